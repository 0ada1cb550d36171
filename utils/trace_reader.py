# utils/trace_reader.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# CSV reader for scripted protocol interleavings

import csv
from pathlib import Path
from typing import List, Optional

from core.exceptions import ScheduleError
from core.replay import TraceStep
from parser.exceptions import ParseError
from utils.logger import get_logger

PROTOCOL_DIRECTIVE = "# protocol:"
REQUIRED_HEADERS = ("kind", "target", "choice", "recipe")


class TraceFormatError(Exception):
    """Exception raised when trace scripts contain invalid format or data."""

    pass


def read_trace_script(filepath: str) -> List[TraceStep]:
    """Read a scripted interleaving from a CSV file.

    Expected CSV format (recipes containing commas must be quoted):
        # protocol: simple_voting
        kind,target,choice,recipe
        spawn,Registrar,,
        run,Registrar#1,,
        step,Voter#1,,$1
        send,c,,"tuple($4, $6)"
        step,Tally#1,1,

    Lines starting with '#' are comments; the optional first-line
    `# protocol:` directive names the model to replay against.

    Args:
        filepath: Path to the CSV trace script

    Returns:
        The trace steps in file order

    Raises:
        TraceFormatError: If the file or one of its rows is malformed
        ParseError: If a recipe cell is not a valid recipe
    """
    logger = get_logger()
    path = Path(filepath)

    if not path.exists():
        raise TraceFormatError(f"Trace file not found: {filepath}")

    logger.debug(f"Reading trace script: {filepath}")

    try:
        with open(path, "r", newline="", encoding="utf-8") as file:
            lines = file.readlines()
    except OSError as e:
        raise TraceFormatError(f"Cannot open trace file {filepath}: {e}")

    numbered = [(n, line) for n, line in enumerate(lines, start=1)
                if line.strip() and not line.lstrip().startswith("#")]
    if not numbered:
        raise TraceFormatError(f"Trace file {filepath} has no header")

    reader = csv.DictReader(line for _, line in numbered)
    missing = set(REQUIRED_HEADERS) - set(reader.fieldnames or [])
    if missing:
        raise TraceFormatError(f"Missing required headers: {sorted(missing)}")

    steps = []
    for (line_no, _), row in zip(numbered[1:], reader):
        try:
            step = _parse_step_row(row)
        except ParseError as e:
            raise ParseError(f"line {line_no}: {e}") from e
        except (TraceFormatError, ScheduleError, ValueError) as e:
            raise TraceFormatError(f"Error parsing line {line_no}: {e}")
        logger.debug(f"Parsed step '{step}' from line {line_no}")
        steps.append(step)
    return steps


def get_protocol_name(filepath: str) -> Optional[str]:
    """Extract the protocol name from the trace file directive, if present."""
    logger = get_logger()
    path = Path(filepath)

    if not path.exists():
        return None

    try:
        with open(path, "r", encoding="utf-8") as file:
            first_line = file.readline().strip()
    except OSError as e:
        raise TraceFormatError(f"Cannot open trace file {filepath}: {e}")

    if first_line.startswith(PROTOCOL_DIRECTIVE):
        name = first_line[len(PROTOCOL_DIRECTIVE):].strip()
        logger.debug(f"Found protocol directive: {name}")
        return name or None
    return None


def validate_trace_file(filepath: str) -> int:
    """Parse every row of a trace script; return the number of steps.

    Raises:
        TraceFormatError: If validation fails
        ParseError: If a recipe is malformed
    """
    logger = get_logger()
    logger.debug(f"Validating trace file: {filepath}")

    steps = read_trace_script(filepath)
    logger.validation_result(True, f"Trace script valid: {len(steps)} steps")
    return len(steps)


def _parse_step_row(row: dict) -> TraceStep:
    kind = (row.get("kind") or "").strip()
    target = (row.get("target") or "").strip()
    if not kind:
        raise TraceFormatError("Empty kind field")
    if not target:
        raise TraceFormatError("Empty target field")
    return TraceStep.from_fields(
        kind,
        target,
        _parse_choice(row.get("choice") or ""),
        (row.get("recipe") or "").strip(),
    )


def _parse_choice(choice_str: str) -> Optional[int]:
    """Parse the optional row/message index column."""
    choice_str = choice_str.strip()
    if not choice_str:
        return None
    try:
        choice = int(choice_str)
    except ValueError:
        raise TraceFormatError(f"Choice must be an integer, got '{choice_str}'")
    if choice < 0:
        raise TraceFormatError(f"Choice must be non-negative, got {choice}")
    return choice
