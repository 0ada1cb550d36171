# logic/__init__.py

"""Trace-property interface.

This package provides:
  • the correspondence formula AST (EventAtom, Holds, Equal, TimeOrder, ...)
  • Restriction / Query wrappers validated against a signature
  • CorrespondenceEvaluator: decides them on an event log
  • Verdict, QueryResult, Counterexample

The CSV-driven runner lives in `logic.runner` and is imported from there.
"""

from .formula import (
    EventAtom,
    Holds,
    Equal,
    NotEqual,
    TimeOrder,
    Conj,
    Disj,
    Neg,
    Falsum,
    Correspondence,
    Restriction,
    Query,
    conj,
    disj,
)
from .evaluator import CorrespondenceEvaluator
from .verdict import Verdict, QueryResult, Counterexample

__all__ = [
    "EventAtom",
    "Holds",
    "Equal",
    "NotEqual",
    "TimeOrder",
    "Conj",
    "Disj",
    "Neg",
    "Falsum",
    "Correspondence",
    "Restriction",
    "Query",
    "conj",
    "disj",
    "CorrespondenceEvaluator",
    "Verdict",
    "QueryResult",
    "Counterexample",
]
