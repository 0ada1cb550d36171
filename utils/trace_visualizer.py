# utils/trace_visualizer.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Graphviz rendering of a replayed event log

import os
from typing import Dict, Iterable, Optional, Set

import graphviz
from graphviz import Digraph

from model.event import EventLog, EventOccurrence
from utils.logger import get_logger

logger = get_logger(__name__)

VISUALIZATION_OUTPUT_FOLDER = "trace_visualizations"


def _node_id(index: int) -> str:
    return f"E{index}"


def build_trace_graph(log: EventLog, title: str = "trace",
                      highlight: Iterable[EventOccurrence] = (), fmt: str = "png") -> Digraph:
    """
    One cluster per process instance with its events in program order, plus
    dotted edges following the global log order. Occurrences in `highlight`
    (typically the premises of a counterexample) are filled red.
    """
    marked: Set[EventOccurrence] = set(highlight)
    dot = Digraph(comment=f"Replay of {title}", format=fmt)
    dot.attr(rankdir="TB", nodesep="0.5", ranksep="0.4", label=title, labelloc="t")

    by_instance: Dict[str, list] = {}
    for index, occurrence in enumerate(log):
        by_instance.setdefault(occurrence.instance or "?", []).append((index, occurrence))

    for cluster_no, (instance, entries) in enumerate(by_instance.items()):
        with dot.subgraph(name=f"cluster_{cluster_no}") as cluster:
            cluster.attr(label=instance, style="rounded", color="lightskyblue", fontsize="10")
            previous = None
            for index, occurrence in entries:
                color = "lightcoral" if occurrence in marked else "palegreen"
                cluster.node(
                    _node_id(index),
                    f"t={occurrence.time}\n{occurrence.name}"
                    f"({', '.join(str(a) for a in occurrence.args)})",
                    shape="box", style="filled", fillcolor=color, fontsize="9",
                )
                if previous is not None:
                    cluster.edge(_node_id(previous), _node_id(index))
                previous = index

    for index in range(1, len(log)):
        dot.edge(_node_id(index - 1), _node_id(index), style="dotted", color="grey",
                 constraint="false")
    return dot


def visualize_trace(log: EventLog, base_filename: str, title: str = "trace",
                    highlight: Iterable[EventOccurrence] = (), fmt: str = "png") -> Optional[str]:
    """
    Render the trace graph into the 'trace_visualizations' folder. Returns the
    rendered file path, or None if the Graphviz executables are missing.
    """
    dot = build_trace_graph(log, title, highlight, fmt)

    if not os.path.exists(VISUALIZATION_OUTPUT_FOLDER):
        try:
            os.makedirs(VISUALIZATION_OUTPUT_FOLDER)
            logger.info(f"Created directory for trace visualizations: {VISUALIZATION_OUTPUT_FOLDER}")
            output_path = os.path.join(VISUALIZATION_OUTPUT_FOLDER, base_filename)
        except OSError as e:
            logger.error(f"Could not create directory {VISUALIZATION_OUTPUT_FOLDER}: {e}. "
                         f"Saving to current directory instead.")
            output_path = base_filename
    else:
        output_path = os.path.join(VISUALIZATION_OUTPUT_FOLDER, base_filename)

    try:
        rendered = dot.render(output_path, cleanup=True)
    except graphviz.ExecutableNotFound:
        logger.warning("Graphviz 'dot' executable not found; skipping trace visualization.")
        return None
    logger.info(f"Trace visualization written to {rendered}")
    return rendered
