# model/process.py

"""
Role templates: linear scripts of actions executed by process instances.

Expressions inside actions are terms whose `Var` leaves refer to the
instance's local bindings and whose `Func` nodes may name constructors or
destructors; `core.term_engine.TermEngine.evaluate` gives them meaning.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .patterns import Pattern
from .terms import Term


@dataclass(frozen=True, slots=True)
class New:
    """Generate a globally unique fresh name and bind it to `var`."""
    var: str
    label: Optional[str] = None

    def __str__(self) -> str:
        return f"new {self.var}"


@dataclass(frozen=True, slots=True)
class Let:
    """Evaluate `expr` and match it against `pattern`; failure terminates."""
    pattern: Pattern
    expr: Term

    def __str__(self) -> str:
        return f"let {self.pattern} = {self.expr}"


@dataclass(frozen=True, slots=True)
class Guard:
    """Continue only when `expr` evaluates to `true`."""
    expr: Term

    def __str__(self) -> str:
        return f"if {self.expr}"


@dataclass(frozen=True, slots=True)
class Insert:
    table: str
    values: Tuple[Term, ...]

    def __str__(self) -> str:
        return f"insert {self.table}({', '.join(str(x) for x in self.values)})"


@dataclass(frozen=True, slots=True)
class Get:
    """Blocking read of one row of `table`; `suchthat` filters candidate rows."""
    table: str
    patterns: Tuple[Pattern, ...]
    suchthat: Optional[Term] = None

    def __str__(self) -> str:
        cond = f" suchthat {self.suchthat}" if self.suchthat is not None else ""
        return f"get {self.table}({', '.join(str(p) for p in self.patterns)}){cond}"


@dataclass(frozen=True, slots=True)
class Out:
    channel: str
    expr: Term

    def __str__(self) -> str:
        return f"out({self.channel}, {self.expr})"


@dataclass(frozen=True, slots=True)
class In:
    channel: str
    pattern: Pattern

    def __str__(self) -> str:
        return f"in({self.channel}, {self.pattern})"


@dataclass(frozen=True, slots=True)
class Emit:
    event: str
    args: Tuple[Term, ...]

    def __str__(self) -> str:
        return f"event {self.event}({', '.join(str(a) for a in self.args)})"


Action = Union[New, Let, Guard, Insert, Get, Out, In, Emit]


@dataclass(frozen=True, slots=True)
class RoleTemplate:
    """A named script; `replicated` templates are spawned on demand."""
    name: str
    actions: Tuple[Action, ...]
    replicated: bool = False

    def __len__(self) -> int:
        return len(self.actions)

    def __str__(self) -> str:
        bang = "!" if self.replicated else ""
        return f"{bang}{self.name}[{len(self.actions)} actions]"
