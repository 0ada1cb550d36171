# model/protocol.py

"""
ProtocolModel: a signature plus the main process, a fixed parallel
composition of role templates. `validate()` rejects malformed models before
any replay begins.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, Set

from utils.logger import get_logger
from .exceptions import ModelError
from .patterns import Bind, Exact, PFunc, Pattern, Wildcard, bound_names, used_names
from .process import Emit, Get, Guard, In, Insert, Let, New, Out, RoleTemplate
from .signature import Signature
from .terms import Term, variables

logger = get_logger(__name__)


@dataclass(slots=True)
class ProtocolModel:
    name: str
    signature: Signature
    roles: List[RoleTemplate] = field(default_factory=list)

    def role(self, name: str) -> RoleTemplate:
        for template in self.roles:
            if template.name == name:
                return template
        raise ModelError(f"Unknown role template '{name}'")

    @property
    def singletons(self) -> List[RoleTemplate]:
        return [r for r in self.roles if not r.replicated]

    def validate(self) -> None:
        """Raise ModelError on the first malformed declaration or action."""
        seen: Set[str] = set()
        for template in self.roles:
            if template.name in seen:
                raise ModelError(f"Duplicate role template '{template.name}'")
            seen.add(template.name)
            _RoleChecker(self.signature, template).check()
        logger.debug(f"Model {self.name} validated: {len(self.roles)} role templates")


class _RoleChecker:
    """Walks one template, tracking which locals are bound at each action."""

    def __init__(self, signature: Signature, template: RoleTemplate):
        self.sig = signature
        self.template = template
        self.bound: Set[str] = set()
        self.position = 0

    def check(self) -> None:
        for self.position, action in enumerate(self.template.actions):
            if isinstance(action, New):
                self.bound.add(action.var)
            elif isinstance(action, Let):
                self._expr(action.expr)
                self._pattern(action.pattern)
            elif isinstance(action, Guard):
                self._expr(action.expr)
            elif isinstance(action, Insert):
                decl = self._table(action.table)
                self._arity("table", action.table, decl.arity, len(action.values))
                self._exprs(action.values)
            elif isinstance(action, Get):
                decl = self._table(action.table)
                self._arity("table", action.table, decl.arity, len(action.patterns))
                self._patterns(action.patterns)
                if action.suchthat is not None:
                    self._expr(action.suchthat)
            elif isinstance(action, Out):
                self._channel(action.channel)
                self._expr(action.expr)
            elif isinstance(action, In):
                self._channel(action.channel)
                self._pattern(action.pattern)
            elif isinstance(action, Emit):
                decl = self.sig.events.get(action.event)
                if decl is None:
                    self._fail(f"undeclared event '{action.event}'")
                self._arity("event", action.event, decl.arity, len(action.args))
                self._exprs(action.args)
            else:
                self._fail(f"unsupported action {action!r}")

    def _where(self) -> str:
        return f"{self.template.name} action {self.position}"

    def _fail(self, message: str) -> None:
        raise ModelError(f"{self._where()}: {message}")

    def _arity(self, kind: str, name: str, expected: int, got: int) -> None:
        if expected != got:
            self._fail(f"{kind} '{name}' has arity {expected}, used with {got}")

    def _table(self, name: str):
        decl = self.sig.tables.get(name)
        if decl is None:
            self._fail(f"undeclared table '{name}'")
        return decl

    def _channel(self, name: str) -> None:
        if name not in self.sig.channels:
            self._fail(f"undeclared channel '{name}'")

    def _exprs(self, exprs: Iterable[Term]) -> None:
        for expr in exprs:
            self._expr(expr)

    def _expr(self, expr: Term) -> None:
        try:
            self.sig.check_term(expr)
        except ModelError as exc:
            self._fail(str(exc))
        self._require_bound(variables(expr))

    def _require_bound(self, names: Iterable[str]) -> None:
        for name in names:
            if name not in self.bound:
                self._fail(f"variable '{name}' used before it is bound")

    def _pattern(self, pattern: Pattern) -> None:
        self._patterns((pattern,))

    def _patterns(self, patterns: Iterable[Pattern]) -> None:
        # `=expr` positions only see bindings made before the whole match
        patterns = tuple(patterns)
        for pattern in patterns:
            self._require_bound(used_names(pattern))
            self._pattern_symbols(pattern)
        for pattern in patterns:
            self.bound.update(bound_names(pattern))

    def _pattern_symbols(self, pattern: Pattern) -> None:
        if isinstance(pattern, PFunc):
            if pattern.symbol not in self.sig.constructors:
                self._fail(f"pattern uses '{pattern.symbol}', which is not a constructor")
            try:
                self.sig.check_application(pattern.symbol, len(pattern.args))
            except ModelError as exc:
                self._fail(str(exc))
            for arg in pattern.args:
                self._pattern_symbols(arg)
        elif isinstance(pattern, Exact):
            try:
                self.sig.check_term(pattern.expr)
            except ModelError as exc:
                self._fail(str(exc))
        elif not isinstance(pattern, (Bind, Wildcard)):
            self._fail(f"unsupported pattern {pattern!r}")

