# model/terms.py

"""
Terms
=====

Immutable nodes of the free term algebra. A ground term is built from
atoms (fresh `Name`s and declared `Const`s) and constructor applications
(`Func`). `Var` only appears in patterns: rewrite-rule left-hand sides,
relation/receive patterns and correspondence formulas.

Terms are frozen dataclasses, so structural equality and hashing come for
free; the engine keeps every stored term in normal form, which makes
syntactic equality the equality of the algebra.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Optional, Tuple


class Term:
    """Base class of all term nodes."""

    __slots__ = ()

    def is_ground(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Name(Term):
    """Fresh name (nonce, key, identity). `uid` is unique within one trace."""
    label: str
    uid: int

    def __str__(self) -> str:
        return f"~{self.label}_{self.uid}"


@dataclass(frozen=True, slots=True)
class Const(Term):
    """Free name or declared constant."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Func(Term):
    """Constructor (or, inside expressions, destructor) application."""
    symbol: str
    args: Tuple[Term, ...] = ()

    def is_ground(self) -> bool:
        return all(a.is_ground() for a in self.args)

    def __str__(self) -> str:
        if not self.args:
            return self.symbol
        return f"{self.symbol}({', '.join(str(a) for a in self.args)})"


@dataclass(frozen=True, slots=True)
class Var(Term):
    """Pattern or formula variable."""
    name: str

    def is_ground(self) -> bool:
        return False

    def __str__(self) -> str:
        return self.name


Substitution = Dict[str, Term]


def variables(term: Term) -> Iterator[str]:
    """Yield the variable names occurring in `term`, left to right."""
    if isinstance(term, Var):
        yield term.name
    elif isinstance(term, Func):
        for arg in term.args:
            yield from variables(arg)


def substitute(term: Term, subst: Mapping[str, Term]) -> Term:
    """Replace bound variables in `term`; unbound variables are left in place."""
    if isinstance(term, Var):
        return subst.get(term.name, term)
    if isinstance(term, Func):
        return Func(term.symbol, tuple(substitute(a, subst) for a in term.args))
    return term


def match(pattern: Term, term: Term, subst: Optional[Mapping[str, Term]] = None) -> Optional[Substitution]:
    """
    One-way syntactic matching of `pattern` against the ground `term`.

    Variables already present in `subst` must match their bound value, which
    makes repeated variables (non-linear patterns such as `eq(x, x)`) behave
    as equality constraints. Returns the extended substitution, or None.
    """
    result: Substitution = dict(subst) if subst else {}
    if _match_into(pattern, term, result):
        return result
    return None


def _match_into(pattern: Term, term: Term, subst: Substitution) -> bool:
    if isinstance(pattern, Var):
        bound = subst.get(pattern.name)
        if bound is None:
            subst[pattern.name] = term
            return True
        return bound == term
    if isinstance(pattern, Func):
        if not isinstance(term, Func) or term.symbol != pattern.symbol:
            return False
        if len(term.args) != len(pattern.args):
            return False
        return all(_match_into(p, t, subst) for p, t in zip(pattern.args, term.args))
    return pattern == term


def match_sequence(patterns: Tuple[Term, ...], terms: Tuple[Term, ...],
                   subst: Optional[Mapping[str, Term]] = None) -> Optional[Substitution]:
    """Match a tuple of patterns position-wise against a tuple of terms."""
    if len(patterns) != len(terms):
        return None
    result: Substitution = dict(subst) if subst else {}
    for p, t in zip(patterns, terms):
        if not _match_into(p, t, result):
            return None
    return result


def fresh_names(term: Term) -> Iterator[Name]:
    """Yield every fresh `Name` leaf of `term`."""
    if isinstance(term, Name):
        yield term
    elif isinstance(term, Func):
        for arg in term.args:
            yield from fresh_names(arg)


def format_substitution(subst: Mapping[str, object]) -> str:
    items = ", ".join(f"{k}={v}" for k, v in sorted(subst.items()))
    return "{" + items + "}"


TRUE = Func("true", ())
FALSE = Func("false", ())
