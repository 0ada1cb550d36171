# logic/evaluator.py

"""
CorrespondenceEvaluator: decides restrictions and queries on a finished (or
partial) event log.

Premise combinations are enumerated by backtracking: the first premise
ranges over its matching occurrences in log order, the second over its
matches under the bindings of the first, and so on. The first combination
whose conclusion has no solution is the counterexample, so the witness is
deterministic for a given log.

Conclusions are solved as generators of extended substitutions:
conjunction is a join, disjunction a union, negation succeeds when its
operand has no solution, and a conclusion event atom is existential over
the whole log.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from model.event import EventLog, EventOccurrence
from model.exceptions import ModelError
from model.terms import TRUE, Term, match_sequence
from utils.logger import get_logger
from .formula import (
    Conj,
    Correspondence,
    Disj,
    Equal,
    EventAtom,
    Falsum,
    Formula,
    Holds,
    Neg,
    NotEqual,
    Query,
    Restriction,
    TimeOrder,
)
from .verdict import Counterexample, QueryResult, Verdict

if TYPE_CHECKING:
    from core.term_engine import TermEngine

logger = get_logger(__name__)

Times = Dict[str, int]
Solution = Tuple[Dict[str, Term], Times]


class CorrespondenceEvaluator:
    def __init__(self, engine: "TermEngine"):
        self.engine = engine

    # -- public API --------------------------------------------------------------

    def check_restriction(self, restriction: Restriction, log: EventLog) -> bool:
        return self.find_violation(restriction.body, log) is None

    def evaluate_query(self, query: Query, log: EventLog) -> QueryResult:
        witness = self.find_violation(query.body, log)
        if witness is None:
            result = QueryResult(query.name, Verdict.TRUE)
        else:
            result = QueryResult(query.name, Verdict.FALSE, witness)
        logger.query_result(query.name, str(result.verdict),
                            witness.describe() if witness else None)
        return result

    def evaluate_all(self, queries: Iterable[Query], log: EventLog) -> Dict[str, QueryResult]:
        return {q.name: self.evaluate_query(q, log) for q in queries}

    def find_violation(self, correspondence: Correspondence, log: EventLog) -> Optional[Counterexample]:
        """The first premise combination whose conclusion fails, or None."""
        for subst, times, occurrences in self._premise_matches(correspondence.premises, log):
            if next(self._solve(correspondence.conclusion, subst, times, log), None) is None:
                return Counterexample(str(correspondence), dict(subst), dict(times), tuple(occurrences))
        return None

    # -- premises ----------------------------------------------------------------------

    def _premise_matches(self, premises: Tuple[EventAtom, ...], log: EventLog,
                         subst: Optional[Dict[str, Term]] = None, times: Optional[Times] = None,
                         chosen: Tuple[EventOccurrence, ...] = ()
                         ) -> Iterator[Tuple[Dict[str, Term], Times, Tuple[EventOccurrence, ...]]]:
        subst = subst if subst is not None else {}
        times = times if times is not None else {}
        if not premises:
            yield subst, times, chosen
            return
        head, rest = premises[0], premises[1:]
        for occurrence, new_subst, new_times in self._atom_matches(head, log, subst, times):
            yield from self._premise_matches(rest, log, new_subst, new_times, chosen + (occurrence,))

    @staticmethod
    def _atom_matches(atom: EventAtom, log: EventLog, subst: Mapping[str, Term],
                      times: Times) -> Iterator[Tuple[EventOccurrence, Dict[str, Term], Times]]:
        for occurrence in log.occurrences(atom.name):
            if atom.at is not None and atom.at in times and times[atom.at] != occurrence.time:
                continue
            extended = match_sequence(atom.args, occurrence.args, subst)
            if extended is None:
                continue
            new_times = dict(times)
            if atom.at is not None:
                new_times[atom.at] = occurrence.time
            yield occurrence, extended, new_times

    # -- conclusions ---------------------------------------------------------------------

    def _solve(self, formula: Formula, subst: Dict[str, Term], times: Times,
               log: EventLog) -> Iterator[Solution]:
        if isinstance(formula, EventAtom):
            for _, extended, new_times in self._atom_matches(formula, log, subst, times):
                yield extended, new_times

        elif isinstance(formula, Holds):
            if self.engine.evaluate(formula.expr, subst) == TRUE:
                yield subst, times

        elif isinstance(formula, Equal):
            left = self.engine.evaluate(formula.left, subst)
            right = self.engine.evaluate(formula.right, subst)
            if left is not None and left == right:
                yield subst, times

        elif isinstance(formula, NotEqual):
            left = self.engine.evaluate(formula.left, subst)
            right = self.engine.evaluate(formula.right, subst)
            if left is not None and right is not None and left != right:
                yield subst, times

        elif isinstance(formula, TimeOrder):
            if self._compare(formula, times):
                yield subst, times

        elif isinstance(formula, Conj):
            for left_subst, left_times in self._solve(formula.left, subst, times, log):
                yield from self._solve(formula.right, left_subst, left_times, log)

        elif isinstance(formula, Disj):
            yield from self._solve(formula.left, subst, times, log)
            yield from self._solve(formula.right, subst, times, log)

        elif isinstance(formula, Neg):
            if next(self._solve(formula.operand, subst, times, log), None) is None:
                yield subst, times

        elif isinstance(formula, Falsum):
            return

        else:
            raise ModelError(f"Unsupported conclusion {formula!r}")

    @staticmethod
    def _compare(order: TimeOrder, times: Times) -> bool:
        missing: List[str] = [t for t in (order.left, order.right) if t not in times]
        if missing:
            raise ModelError(f"Time variable(s) {missing} unbound in '{order}'")
        left, right = times[order.left], times[order.right]
        if order.op == "<":
            return left < right
        if order.op == "<=":
            return left <= right
        return left == right
