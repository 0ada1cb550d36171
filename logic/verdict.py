# logic/verdict.py

"""
Verdicts for queries evaluated on a replayed trace, together with the
counterexample that justifies a FALSE verdict.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterable, Optional, Tuple

from model.event import EventOccurrence
from model.terms import Term, format_substitution


class Verdict(Enum):
    """Outcome of checking a query on one trace."""
    TRUE = auto()  # every premise combination satisfies the conclusion
    FALSE = auto()  # a counterexample exists
    INADMISSIBLE = auto()  # a restriction excluded the trace; queries are vacuous

    def __str__(self) -> str:
        return self.name

    def is_conclusive(self) -> bool:
        return self in (Verdict.TRUE, Verdict.FALSE)

    @staticmethod
    def combine(verdicts: Iterable["Verdict"]) -> "Verdict":
        """Conjunction over several queries: any FALSE wins, then INADMISSIBLE."""
        verdicts = list(verdicts)
        if Verdict.FALSE in verdicts:
            return Verdict.FALSE
        if Verdict.INADMISSIBLE in verdicts:
            return Verdict.INADMISSIBLE
        return Verdict.TRUE


@dataclass(frozen=True)
class Counterexample:
    """
    Premise occurrences that satisfy every premise while the conclusion
    fails, with the substitution they induce (time variables included).
    """
    correspondence: str
    substitution: Dict[str, Term] = field(default_factory=dict)
    times: Dict[str, int] = field(default_factory=dict)
    occurrences: Tuple[EventOccurrence, ...] = ()

    def describe(self) -> str:
        bindings = dict(self.substitution)
        bindings.update(self.times)
        premises = ", ".join(str(o) for o in self.occurrences)
        return f"{format_substitution(bindings)} via [{premises}]"

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class QueryResult:
    name: str
    verdict: Verdict
    counterexample: Optional[Counterexample] = None

    @property
    def holds(self) -> bool:
        return self.verdict is Verdict.TRUE

    def __str__(self) -> str:
        if self.counterexample is None:
            return f"{self.name}: {self.verdict}"
        return f"{self.name}: {self.verdict} ({self.counterexample})"
