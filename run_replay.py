#!/usr/bin/env python3
# run_replay.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Command-line interface for replaying trace scripts against protocol models

import sys
import argparse
from pathlib import Path
from typing import List, Optional

from core.exceptions import ScheduleError
from logic.runner import ModelAndTraceRunner, RunReport
from logic.verdict import Verdict
from model.exceptions import ModelError
from parser.exceptions import ParseError
from protocols import available_protocols, get_protocol
from utils.logger import LogLevel, get_logger, set_log_level
from utils.trace_reader import TraceFormatError, get_protocol_name, validate_trace_file


def configure_logging_for_replay(debug: bool = False) -> None:
    """Configure logging levels for the replay CLI.

    The query summary is logged at INFO, so INFO is the floor; --debug adds
    every step, match and rewrite. --verbose does not change the level, it
    makes the runner report each setup and replay stage.
    """
    set_log_level(LogLevel.DEBUG if debug else LogLevel.INFO)


def print_report(report: RunReport) -> None:
    """Print the per-query verdicts and the replay statistics."""
    logger = get_logger()

    outcome = report.outcome
    result = outcome if report.admissible else outcome.result
    if not report.admissible:
        logger.info(f"\n🚫 Inadmissible: {outcome}")
    if result is not None:
        logger.info(f"\n📊 Steps executed: {result.steps}, events logged: {len(result.event_log)}")
    logger.info("\n📋 Queries:")

    for name, query_result in report.results.items():
        if query_result.verdict == Verdict.TRUE:
            logger.info(f"  {name}: ✅ TRUE")
        elif query_result.verdict == Verdict.FALSE:
            logger.info(f"  {name}: ❌ FALSE  {query_result.counterexample}")
        else:
            logger.info(f"  {name}: 🚫 INADMISSIBLE")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser for command line interface.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Ballotrace symbolic voting protocol replay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  python run_replay.py -t attack.csv
  python run_replay.py -m simple_voting -t attack.csv -v
  python run_replay.py -t attack.csv --debug
  python run_replay.py -t attack.csv --validate-only

Trace script format:
  # protocol: simple_voting
  kind,target,choice,recipe
  spawn,Registrar,,
  run,Registrar#1,,
  spawn,Voter,,
  run,Voter#1,,
  step,Voter#1,,$1

Built-in protocols: {", ".join(available_protocols())}
        """,
    )

    parser.add_argument(
        "-m", "--model", default=None,
        help="Protocol name (defaults to the trace's '# protocol:' directive)",
    )

    parser.add_argument(
        "-t", "--trace", required=True, type=Path, help="Path to CSV trace script"
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )

    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output (overrides --verbose)"
    )

    parser.add_argument(
        "--validate-only", action="store_true",
        help="Only validate the model and the trace script",
    )

    parser.add_argument(
        "--stop-on-inadmissible",
        dest="stop_on_inadmissible",
        action="store_true",
        default=True,
        help="Stop replaying at the first restriction violation (default)",
    )

    parser.add_argument(
        "--no-stop-on-inadmissible",
        dest="stop_on_inadmissible",
        action="store_false",
        help="Replay the whole script even after a restriction is violated",
    )

    parser.add_argument(
        "--visualize", action="store_true",
        help="Render the replayed events with Graphviz into trace_visualizations/",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for trace replay.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    configure_logging_for_replay(debug=args.debug)
    logger = get_logger()

    try:
        if args.validate_only:
            name = args.model or get_protocol_name(str(args.trace))
            if not name:
                raise TraceFormatError(f"No protocol given and no '# protocol:' directive in {args.trace}")
            get_protocol(name).validate()
            logger.validation_result(True, f"Model {name} is well-formed")
            steps = validate_trace_file(str(args.trace))
            logger.info(f"✅ Validation successful ({name}, {steps} steps). Exiting.")
            return 0

        runner = ModelAndTraceRunner(str(args.trace), args.model)
        report = runner.run(
            stop_on_inadmissible=args.stop_on_inadmissible,
            visualize=args.visualize,
            verbose=args.verbose or args.debug,
        )
        print_report(report)
        return 0

    except TraceFormatError as e:
        logger.error(f"Trace file error: {e}")
        return 1

    except ParseError as e:
        logger.error(f"Recipe parsing error: {e}")
        return 2

    except (ModelError, ScheduleError) as e:
        logger.error(f"Replay error: {e}")
        return 3

    except KeyboardInterrupt:
        logger.error("Replay interrupted by user")
        return 4

    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        import traceback

        traceback.print_exc()
        return 5


if __name__ == "__main__":
    sys.exit(main())
