# model/signature.py

"""
Typed signature of a protocol model: constructors and their equations,
destructors and their ordered rewrite rules, tables, events, channels and
free names. The signature is pure declaration; evaluation lives in
`core.term_engine`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from .exceptions import ModelError
from .terms import Const, Func, Term, Var, variables

VARIADIC = None  #: arity marker for constructors such as `tuple`


@dataclass(frozen=True, slots=True)
class RewriteRule:
    """`symbol(lhs...) -> rhs`, tried top-to-bottom with first-match semantics."""
    lhs: Tuple[Term, ...]
    rhs: Term

    def check(self, symbol: str) -> None:
        bound = {v for arg in self.lhs for v in variables(arg)}
        unbound = [v for v in variables(self.rhs) if v not in bound]
        if unbound:
            raise ModelError(
                f"Rule for '{symbol}' has right-hand side variables not bound "
                f"on the left: {sorted(set(unbound))}"
            )

    def __str__(self) -> str:
        return f"({', '.join(str(a) for a in self.lhs)}) -> {self.rhs}"


@dataclass(frozen=True, slots=True)
class Constructor:
    name: str
    arity: Optional[int]
    private: bool = False
    equations: Tuple[RewriteRule, ...] = ()


@dataclass(frozen=True, slots=True)
class Destructor:
    name: str
    arity: int
    rules: Tuple[RewriteRule, ...]
    otherwise: Optional[Term] = None
    private: bool = False


@dataclass(frozen=True, slots=True)
class TableDecl:
    name: str
    arity: int
    public: bool = False
    attacker_writable: bool = False


@dataclass(frozen=True, slots=True)
class EventDecl:
    name: str
    arity: int


@dataclass(frozen=True, slots=True)
class ChannelDecl:
    name: str
    public: bool = True


@dataclass(frozen=True, slots=True)
class FreeName:
    name: str
    public: bool = True


@dataclass(slots=True)
class Signature:
    """
    All declarations a model may reference.

    Declaring the same symbol twice replaces the earlier declaration, which
    lets a protocol extend a standard theory.
    """
    constructors: Dict[str, Constructor] = field(default_factory=dict)
    destructors: Dict[str, Destructor] = field(default_factory=dict)
    tables: Dict[str, TableDecl] = field(default_factory=dict)
    events: Dict[str, EventDecl] = field(default_factory=dict)
    channels: Dict[str, ChannelDecl] = field(default_factory=dict)
    free_names: Dict[str, FreeName] = field(default_factory=dict)

    # -- declaration helpers -------------------------------------------------

    def constructor(self, name: str, arity: Optional[int], *, private: bool = False,
                    equations: Iterable[RewriteRule] = ()) -> Constructor:
        self._check_symbol_free(name, self.destructors)
        decl = Constructor(name, arity, private, tuple(equations))
        for rule in decl.equations:
            self._check_rule_arity(name, arity, rule)
            rule.check(name)
        self.constructors[name] = decl
        return decl

    def constant(self, name: str, *, private: bool = False) -> Constructor:
        return self.constructor(name, 0, private=private)

    def destructor(self, name: str, arity: int, rules: Iterable[RewriteRule], *,
                   otherwise: Optional[Term] = None, private: bool = False) -> Destructor:
        self._check_symbol_free(name, self.constructors)
        decl = Destructor(name, arity, tuple(rules), otherwise, private)
        for rule in decl.rules:
            self._check_rule_arity(name, arity, rule)
            rule.check(name)
        if otherwise is not None and not otherwise.is_ground():
            raise ModelError(f"Destructor '{name}' has a non-ground 'otherwise' result")
        self.destructors[name] = decl
        return decl

    def table(self, name: str, arity: int, *, public: bool = False,
              attacker_writable: bool = False) -> TableDecl:
        decl = TableDecl(name, arity, public, attacker_writable)
        self.tables[name] = decl
        return decl

    def event(self, name: str, arity: int) -> EventDecl:
        decl = EventDecl(name, arity)
        self.events[name] = decl
        return decl

    def channel(self, name: str, *, public: bool = True) -> ChannelDecl:
        decl = ChannelDecl(name, public)
        self.channels[name] = decl
        return decl

    def free_name(self, name: str, *, public: bool = True) -> FreeName:
        decl = FreeName(name, public)
        self.free_names[name] = decl
        return decl

    # -- queries -------------------------------------------------------------

    def is_function(self, name: str) -> bool:
        return name in self.constructors or name in self.destructors

    def function_arity(self, name: str) -> Optional[int]:
        if name in self.constructors:
            return self.constructors[name].arity
        if name in self.destructors:
            return self.destructors[name].arity
        raise ModelError(f"Undeclared function symbol '{name}'")

    def is_public_symbol(self, name: str) -> bool:
        decl = self.constructors.get(name) or self.destructors.get(name)
        return decl is not None and not decl.private

    def atom(self, name: str) -> Term:
        """Resolve a free name or nullary constructor to its ground term."""
        if name in self.free_names or name in self.channels:
            return Const(name)
        ctor = self.constructors.get(name)
        if ctor is not None and ctor.arity == 0:
            return Func(name, ())
        raise ModelError(f"'{name}' is neither a free name nor a constant")

    def check_application(self, symbol: str, argc: int) -> None:
        arity = self.function_arity(symbol)
        if arity is not VARIADIC and arity != argc:
            raise ModelError(f"'{symbol}' expects {arity} arguments, got {argc}")

    def check_term(self, term: Term) -> None:
        """Check that every function symbol in `term` is declared with its arity."""
        if isinstance(term, Func):
            self.check_application(term.symbol, len(term.args))
            for arg in term.args:
                self.check_term(arg)
        elif isinstance(term, Const):
            if term.name not in self.free_names and term.name not in self.channels:
                raise ModelError(f"Undeclared free name '{term.name}'")

    @staticmethod
    def _check_symbol_free(name: str, other: Dict[str, object]) -> None:
        if name in other:
            raise ModelError(f"Symbol '{name}' is declared as both constructor and destructor")

    @staticmethod
    def _check_rule_arity(name: str, arity: Optional[int], rule: RewriteRule) -> None:
        if arity is not VARIADIC and len(rule.lhs) != arity:
            raise ModelError(
                f"Rule for '{name}' has {len(rule.lhs)} arguments, declared arity is {arity}"
            )


def rule(lhs: Tuple[Term, ...], rhs: Term) -> RewriteRule:
    """Shorthand used by theory definitions."""
    return RewriteRule(tuple(lhs), rhs)


def v(name: str) -> Var:
    """Shorthand for a pattern variable."""
    return Var(name)
