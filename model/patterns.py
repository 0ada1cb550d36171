# model/patterns.py

"""
Binding patterns used by relation `get`, channel receive and `let`.

A pattern position is one of:
  •  Bind(x)       binds a fresh local variable to the value found there
  •  Exact(expr)   the `=expr` form: the value must equal `expr` evaluated
                     under the bindings that exist *before* the match
  •  Wildcard()    accepts anything
  •  PFunc(f, ps)  destructures a constructor application (usually a tuple)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

from .terms import Func, Term, variables

Evaluator = Callable[[Term, Mapping[str, Term]], Optional[Term]]


@dataclass(frozen=True, slots=True)
class Bind:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Exact:
    expr: Term

    def __str__(self) -> str:
        return f"={self.expr}"


@dataclass(frozen=True, slots=True)
class Wildcard:
    def __str__(self) -> str:
        return "_"


@dataclass(frozen=True, slots=True)
class PFunc:
    symbol: str
    args: Tuple["Pattern", ...]

    def __str__(self) -> str:
        return f"{self.symbol}({', '.join(str(a) for a in self.args)})"


Pattern = Union[Bind, Exact, Wildcard, PFunc]


def bound_names(pattern: Pattern) -> Iterator[str]:
    """Variables a successful match of `pattern` introduces."""
    if isinstance(pattern, Bind):
        yield pattern.name
    elif isinstance(pattern, PFunc):
        for arg in pattern.args:
            yield from bound_names(arg)


def used_names(pattern: Pattern) -> Iterator[str]:
    """Variables `pattern` reads from the existing bindings."""
    if isinstance(pattern, Exact):
        yield from variables(pattern.expr)
    elif isinstance(pattern, PFunc):
        for arg in pattern.args:
            yield from used_names(arg)


def match_pattern(pattern: Pattern, value: Term, bindings: Mapping[str, Term],
                  evaluate: Evaluator) -> Optional[Dict[str, Term]]:
    """
    Match one ground `value`. Returns only the *new* bindings, or None.

    `Exact` expressions are evaluated against `bindings`; an expression that
    fails to evaluate matches nothing.
    """
    new: Dict[str, Term] = {}
    if _match(pattern, value, bindings, evaluate, new):
        return new
    return None


def match_row(patterns: Tuple[Pattern, ...], row: Tuple[Term, ...], bindings: Mapping[str, Term],
              evaluate: Evaluator) -> Optional[Dict[str, Term]]:
    """Match a tuple of patterns position-wise against a relation row."""
    if len(patterns) != len(row):
        return None
    new: Dict[str, Term] = {}
    for pattern, value in zip(patterns, row):
        if not _match(pattern, value, bindings, evaluate, new):
            return None
    return new


def _match(pattern: Pattern, value: Term, bindings: Mapping[str, Term],
           evaluate: Evaluator, new: Dict[str, Term]) -> bool:
    if isinstance(pattern, Wildcard):
        return True
    if isinstance(pattern, Bind):
        # a name bound twice in the same pattern must see the same value
        if pattern.name in new:
            return new[pattern.name] == value
        new[pattern.name] = value
        return True
    if isinstance(pattern, Exact):
        expected = evaluate(pattern.expr, bindings)
        return expected is not None and expected == value
    if isinstance(pattern, PFunc):
        if not isinstance(value, Func) or value.symbol != pattern.symbol:
            return False
        if len(value.args) != len(pattern.args):
            return False
        return all(_match(p, a, bindings, evaluate, new) for p, a in zip(pattern.args, value.args))
    raise TypeError(f"Unsupported pattern: {pattern!r}")
