# logic/formula.py

"""
Correspondence formulas over an event log.

A correspondence reads

    premise_1 & ... & premise_n  ==>  conclusion

Premises are event atoms, optionally timed with `@i`. Every combination of
log occurrences matching all premises must satisfy the conclusion. The
conclusion is built from event atoms (existentially quantified over the
log), `Holds(expr)` (the expression evaluates to `true`), term
(dis)equality, ordering of time variables and the boolean connectives.

Restrictions decide whether a trace is admissible; queries are the
properties checked on admissible traces. Both are validated against the
protocol signature before use.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import FrozenSet, Iterator, Optional, Tuple, Union

from model.exceptions import ModelError
from model.signature import Signature
from model.terms import Func, Term, variables


@dataclass(frozen=True, slots=True)
class EventAtom:
    name: str
    args: Tuple[Term, ...]
    at: Optional[str] = None

    def __str__(self) -> str:
        timed = f"@{self.at}" if self.at else ""
        return f"{self.name}({', '.join(str(a) for a in self.args)}){timed}"


@dataclass(frozen=True, slots=True)
class Holds:
    """`expr` evaluates to `true`; a failing expression does not hold."""
    expr: Term

    def __str__(self) -> str:
        return str(self.expr)


@dataclass(frozen=True, slots=True)
class Equal:
    left: Term
    right: Term

    def __str__(self) -> str:
        return f"{self.left} = {self.right}"


@dataclass(frozen=True, slots=True)
class NotEqual:
    left: Term
    right: Term

    def __str__(self) -> str:
        return f"{self.left} <> {self.right}"


TIME_OPERATORS = ("<", "<=", "=")


@dataclass(frozen=True, slots=True)
class TimeOrder:
    left: str
    op: str
    right: str

    def __post_init__(self):
        if self.op not in TIME_OPERATORS:
            raise ModelError(f"Unsupported time comparison '{self.op}'")

    def __str__(self) -> str:
        return f"{self.left} {self.op} {self.right}"


@dataclass(frozen=True, slots=True)
class Conj:
    left: "Formula"
    right: "Formula"

    def __str__(self) -> str:
        return f"({self.left} & {self.right})"


@dataclass(frozen=True, slots=True)
class Disj:
    left: "Formula"
    right: "Formula"

    def __str__(self) -> str:
        return f"({self.left} | {self.right})"


@dataclass(frozen=True, slots=True)
class Neg:
    operand: "Formula"

    def __str__(self) -> str:
        return f"not({self.operand})"


@dataclass(frozen=True, slots=True)
class Falsum:
    def __str__(self) -> str:
        return "false"


Formula = Union[EventAtom, Holds, Equal, NotEqual, TimeOrder, Conj, Disj, Neg, Falsum]


def conj(*parts: Formula) -> Formula:
    """Right-nested conjunction of one or more formulas."""
    if not parts:
        raise ValueError("conj() needs at least one operand")
    result = parts[-1]
    for part in reversed(parts[:-1]):
        result = Conj(part, result)
    return result


def disj(*parts: Formula) -> Formula:
    if not parts:
        return Falsum()
    result = parts[-1]
    for part in reversed(parts[:-1]):
        result = Disj(part, result)
    return result


@dataclass(frozen=True, slots=True)
class Correspondence:
    premises: Tuple[EventAtom, ...]
    conclusion: Formula

    def __str__(self) -> str:
        return f"{' & '.join(str(p) for p in self.premises)} ==> {self.conclusion}"

    def validate(self, signature: Signature) -> None:
        """
        Check event names, arities and function symbols against `signature`,
        and that every conclusion variable is bound by a premise or by a
        conclusion event atom to its left.
        """
        if not self.premises:
            raise ModelError(f"Correspondence '{self}' has no premises")
        bound: FrozenSet[str] = frozenset()
        times: FrozenSet[str] = frozenset()
        for premise in self.premises:
            _check_atom(premise, signature)
            for arg in premise.args:
                bound = bound.union(variables(arg))
            if premise.at is not None:
                times = times | {premise.at}
        _check_conclusion(self.conclusion, signature, bound, times)


@dataclass(frozen=True, slots=True)
class Restriction:
    name: str
    body: Correspondence

    def validate(self, signature: Signature) -> None:
        try:
            self.body.validate(signature)
        except ModelError as exc:
            raise ModelError(f"Restriction {self.name}: {exc}") from exc

    def __str__(self) -> str:
        return f"restriction {self.name}: {self.body}"


@dataclass(frozen=True, slots=True)
class Query:
    name: str
    body: Correspondence

    def validate(self, signature: Signature) -> None:
        try:
            self.body.validate(signature)
        except ModelError as exc:
            raise ModelError(f"Query {self.name}: {exc}") from exc

    def __str__(self) -> str:
        return f"query {self.name}: {self.body}"


def _check_atom(atom: EventAtom, signature: Signature) -> None:
    decl = signature.events.get(atom.name)
    if decl is None:
        raise ModelError(f"undeclared event '{atom.name}'")
    if decl.arity != len(atom.args):
        raise ModelError(f"event '{atom.name}' has arity {decl.arity}, used with {len(atom.args)}")
    for arg in atom.args:
        signature.check_term(arg)
        for symbol in _symbols(arg):
            if symbol in signature.destructors:
                raise ModelError(
                    f"destructor '{symbol}' in arguments of event '{atom.name}' never matches a logged event"
                )


def _symbols(term: Term) -> Iterator[str]:
    if isinstance(term, Func):
        yield term.symbol
        for arg in term.args:
            yield from _symbols(arg)


def _require_bound(term: Term, bound: FrozenSet[str], where: Formula) -> None:
    for name in variables(term):
        if name not in bound:
            raise ModelError(f"variable '{name}' used in '{where}' before it is bound")


def _check_conclusion(formula: Formula, signature: Signature, bound: FrozenSet[str],
                      times: FrozenSet[str]) -> Tuple[FrozenSet[str], FrozenSet[str]]:
    """
    Check `formula` under the term variables `bound` and time variables
    `times`, and return the binders visible to whatever follows it in a
    conjunction.

    Event atoms bind their variables and their `@` time. A disjunction
    only exports what both branches bind; a negation exports nothing.
    """
    if isinstance(formula, EventAtom):
        _check_atom(formula, signature)
        for arg in formula.args:
            bound = bound.union(variables(arg))
        if formula.at is not None:
            times = times | {formula.at}
        return bound, times

    if isinstance(formula, Holds):
        signature.check_term(formula.expr)
        _require_bound(formula.expr, bound, formula)
        return bound, times

    if isinstance(formula, (Equal, NotEqual)):
        for side in (formula.left, formula.right):
            signature.check_term(side)
            _require_bound(side, bound, formula)
        return bound, times

    if isinstance(formula, TimeOrder):
        missing = [t for t in (formula.left, formula.right) if t not in times]
        if missing:
            raise ModelError(f"time variable(s) {missing} unbound in '{formula}'")
        return bound, times

    if isinstance(formula, Conj):
        bound, times = _check_conclusion(formula.left, signature, bound, times)
        return _check_conclusion(formula.right, signature, bound, times)

    if isinstance(formula, Disj):
        left_bound, left_times = _check_conclusion(formula.left, signature, bound, times)
        right_bound, right_times = _check_conclusion(formula.right, signature, bound, times)
        return left_bound & right_bound, left_times & right_times

    if isinstance(formula, Neg):
        _check_conclusion(formula.operand, signature, bound, times)
        return bound, times

    if isinstance(formula, Falsum):
        return bound, times

    raise ModelError(f"Unsupported conclusion {formula!r}")
