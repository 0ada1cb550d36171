# model/exceptions.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Load-time and contract-violation errors for protocol models

"""Exceptions raised for malformed protocol models.

A model that references undeclared tables, events, channels or function
symbols, or that uses them with the wrong arity, is rejected before any
replay starts. Reduction failure and pattern-match suspension are part of
the protocol semantics and are never reported through these exceptions.
"""


class ModelError(RuntimeError):
    """Raised when a protocol model, restriction or query is malformed."""

    pass


class UnboundVariableError(ModelError):
    """Raised when an expression is evaluated with a free variable.

    Every action must be fully instantiated by the time it executes; hitting
    an unbound variable is an implementation-level contract violation, not a
    protocol failure.
    """

    def __init__(self, name: str, context: str = ""):
        self.name = name
        where = f" in {context}" if context else ""
        super().__init__(f"Unbound variable '{name}'{where}")
