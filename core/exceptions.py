# core/exceptions.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Errors raised when a trace script requests an impossible transition

"""Scheduler-level exceptions.

A schedule is supplied by an external driver. When it asks for a step the
current configuration cannot take (the instance is suspended or finished,
a `get` choice names a non-matching row, a recipe does not evaluate), the
script itself is wrong; this is reported as `ScheduleError` and never
confused with guard failure or suspension, which are protocol behaviour.
"""


class ScheduleError(RuntimeError):
    """Raised when a trace step cannot be executed in the current state."""

    def __init__(self, message: str, step_index: int = -1):
        self.step_index = step_index
        prefix = f"step {step_index}: " if step_index >= 0 else ""
        super().__init__(f"{prefix}{message}")
