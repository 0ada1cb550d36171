# tests/integration_tests/test_cli_and_trace_reader.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Tests for CSV trace scripts and the command-line entry point

"""Integration tests for trace script reading and the `run_replay` CLI.

Covers the CSV format (directive, comments, headers, choice and recipe
columns), the error each malformed script produces, and the exit codes
the CLI maps those errors to.
"""

import pytest

from core.replay import StepKind
from parser.exceptions import ParseError
from run_replay import configure_logging_for_replay, main
from utils.logger import LogLevel, configure_logging, get_logger
from utils.trace_reader import (
    TraceFormatError,
    get_protocol_name,
    read_trace_script,
    validate_trace_file,
)

HEADER = "kind,target,choice,recipe\n"


@pytest.fixture
def write_trace(tmp_path):
    def _write(body, directive="# protocol: simple_voting\n", name="trace.csv"):
        path = tmp_path / name
        path.write_text(directive + HEADER + body, encoding="utf-8")
        return str(path)
    return _write


class TestTraceReader:
    """Reading CSV trace scripts."""

    def test_01_reads_steps_in_order(self, write_trace):
        path = write_trace(
            "spawn,Registrar,,\n"
            "# a comment between steps\n"
            "run,Registrar#1,,\n"
            "step,Tally#1,1,\n"
            'send,c,,"tuple($4, ~r)"\n'
            "insert,inbox,,\"A, $0\"\n"
        )
        steps = read_trace_script(path)
        assert [s.kind for s in steps] == [
            StepKind.SPAWN, StepKind.RUN, StepKind.STEP, StepKind.SEND, StepKind.INSERT,
        ]
        assert steps[2].choice == 1
        assert str(steps[3].recipes[0]) == "tuple($4, ~r)"
        assert len(steps[4].recipes) == 2

    def test_02_protocol_directive(self, write_trace):
        assert get_protocol_name(write_trace("")) == "simple_voting"
        assert get_protocol_name(write_trace("", directive="")) is None
        assert get_protocol_name("/nonexistent/trace.csv") is None

    def test_03_validate_counts_steps(self, traces_dir):
        assert validate_trace_file(str(traces_dir / "honest_vote.csv")) == 12

    def test_04_missing_file(self):
        with pytest.raises(TraceFormatError, match="not found"):
            read_trace_script("/nonexistent/trace.csv")

    def test_05_missing_headers(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("kind,target\nspawn,Voter\n", encoding="utf-8")
        with pytest.raises(TraceFormatError, match="Missing required headers"):
            read_trace_script(str(path))

    @pytest.mark.parametrize("row, message", [
        ("teleport,Voter#1,,\n", "line 3"),
        (",Voter#1,,\n", "Empty kind"),
        ("step,,,\n", "Empty target"),
        ("step,Voter#1,one,\n", "integer"),
        ("step,Voter#1,-1,\n", "non-negative"),
        ("send,c,,\n", "line 3"),
        ("spawn,Voter,2,\n", "line 3"),
    ])
    def test_06_malformed_rows(self, write_trace, row, message):
        with pytest.raises(TraceFormatError, match=message):
            read_trace_script(write_trace(row))

    def test_07_bad_recipe_reports_line(self, write_trace):
        with pytest.raises(ParseError, match="line 4"):
            read_trace_script(write_trace("spawn,Voter,,\nstep,Voter#1,,h(\n"))


class TestCommandLine:
    """Exit codes of the CLI entry point."""

    def test_01_successful_replay(self, traces_dir):
        assert main(["-t", str(traces_dir / "credential_leak.csv")]) == 0

    def test_02_validate_only(self, traces_dir):
        assert main(["-t", str(traces_dir / "honest_vote.csv"), "--validate-only"]) == 0

    def test_03_missing_trace_is_format_error(self, tmp_path):
        assert main(["-t", str(tmp_path / "missing.csv"), "-m", "simple_voting"]) == 1

    def test_04_no_protocol_given(self, write_trace):
        assert main(["-t", write_trace("spawn,Voter,,\n", directive="")]) == 1

    def test_05_recipe_parse_error(self, write_trace):
        assert main(["-t", write_trace("step,Voter#1,,f(,)\n")]) == 2

    def test_06_unknown_protocol(self, write_trace):
        assert main(["-t", write_trace("spawn,Voter,,\n"), "-m", "no_such_protocol"]) == 3

    def test_07_impossible_step(self, write_trace):
        assert main(["-t", write_trace("spawn,Voter,,\nstep,Voter#1,,\n")]) == 3

    def test_08_no_stop_and_verbose_flags(self, write_trace):
        path = write_trace("spawn,Registrar,,\nrun,Registrar#1,,\nrun,Admin#1,,\n")
        assert main(["-t", path, "--no-stop-on-inadmissible", "-v"]) == 0

    def test_09_only_debug_changes_the_log_level(self):
        logger = get_logger()
        try:
            configure_logging_for_replay()
            assert logger.logger.level == LogLevel.INFO.value
            configure_logging_for_replay(debug=True)
            assert logger.logger.level == LogLevel.DEBUG.value
        finally:
            configure_logging()
