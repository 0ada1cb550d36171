# logic/runner.py

"""
ModelAndTraceRunner: glue code that ties together a built-in protocol model
and a CSV trace script, replays the script under the model's restrictions
and evaluates the model's queries on the resulting event log. The model is
named on the command line or by a "# protocol: <name>" directive on the
first line of the script.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from core.replay import Inadmissible, ReplayResult, TraceStep, replay
from core.scheduler import Scheduler
from model.event import EventOccurrence
from protocols import ProtocolBundle, get_protocol
from utils.logger import get_logger
from utils.trace_reader import TraceFormatError, get_protocol_name, read_trace_script
from utils.trace_visualizer import visualize_trace

from .evaluator import CorrespondenceEvaluator
from .verdict import QueryResult, Verdict

logger = get_logger(__name__)


@dataclass
class RunReport:
    """Everything one run produced."""
    outcome: Union[ReplayResult, Inadmissible]
    results: Dict[str, QueryResult] = field(default_factory=dict)

    @property
    def admissible(self) -> bool:
        return self.outcome.admissible

    @property
    def verdict(self) -> Verdict:
        if not self.admissible:
            return Verdict.INADMISSIBLE
        return Verdict.combine(r.verdict for r in self.results.values())


class ModelAndTraceRunner:
    """
    Given a trace script (and optionally a protocol name overriding its
    directive), replays the script and evaluates every query of the model.
    """

    def __init__(self, trace_path_str: str, protocol_name: Optional[str] = None):
        self.trace_path = Path(trace_path_str)

        # 1) Resolve the model
        name = protocol_name or get_protocol_name(str(self.trace_path))
        if not name:
            raise TraceFormatError(
                f"No protocol given and no '# protocol:' directive in {self.trace_path}"
            )
        self.bundle: ProtocolBundle = get_protocol(name)

        # 2) Reject malformed models, restrictions and queries before replay
        self.bundle.validate()

        # 3) Parse the whole script up front
        self.script: List[TraceStep] = read_trace_script(str(self.trace_path))
        logger.debug(f"Loaded {len(self.script)} steps for protocol {name}")

    def run(self, *, stop_on_inadmissible: bool = True, visualize: bool = False,
            verbose: bool = False) -> RunReport:
        """
        Replay the script, then evaluate the queries. If verbose, log every
        executed step with its events. Queries on an inadmissible trace are
        reported as INADMISSIBLE without being evaluated.
        """
        model = self.bundle.model
        scheduler = Scheduler(model)
        outcome = replay(model, self.script, self.bundle.restrictions,
                         stop_on_inadmissible=stop_on_inadmissible, scheduler=scheduler)

        if verbose:
            for record in scheduler.history:
                events = ", ".join(str(e) for e in record.events)
                logger.info(f"{record}" + (f"  -> {events}" if events else ""))

        if isinstance(outcome, Inadmissible):
            logger.warning(f"Trace is inadmissible: {outcome}")
            report = RunReport(outcome, {
                q.name: QueryResult(q.name, Verdict.INADMISSIBLE) for q in self.bundle.queries
            })
        else:
            logger.info("=== Query Results ===")
            evaluator = CorrespondenceEvaluator(scheduler.engine)
            report = RunReport(outcome, evaluator.evaluate_all(self.bundle.queries, outcome.event_log))

        logger.info(f"\n>>> FINAL VERDICT: {report.verdict} <<<")

        if visualize:
            visualize_trace(scheduler.log, self.trace_path.stem, title=model.name,
                            highlight=self._highlighted(report))
        return report

    @staticmethod
    def _highlighted(report: RunReport) -> List[EventOccurrence]:
        if isinstance(report.outcome, Inadmissible):
            return list(report.outcome.counterexample.occurrences)
        marked: List[EventOccurrence] = []
        for result in report.results.values():
            if result.counterexample is not None:
                marked.extend(result.counterexample.occurrences)
        return marked
