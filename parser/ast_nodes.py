# parser/ast_nodes.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Abstract Syntax Tree node classes for attacker recipes

"""AST node classes for parsed attacker recipes.

Node Types:
    KnowledgeRef: `$n`, the n-th item of the attacker's knowledge
    AttackerName: `~label`, a fresh name owned by the attacker
    Atom: a public free name or nullary constructor
    Apply: a public constructor or destructor applied to sub-recipes

All nodes support the visitor design pattern; the attacker's recipe
evaluator is the main visitor.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, Tuple


class Visitor(Protocol):
    """Interface for recipe visitors."""

    def visit_ref(self, n: KnowledgeRef): ...

    def visit_fresh(self, n: AttackerName): ...

    def visit_atom(self, n: Atom): ...

    def visit_apply(self, n: Apply): ...


@dataclass(frozen=True, slots=True)
class Recipe:
    """Base class for all recipe nodes.

    Concrete nodes implement `accept` for visitor dispatch and `__str__`,
    which reproduces the source syntax.
    """

    def accept(self, v: Visitor):
        raise NotImplementedError

    def __str__(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class KnowledgeRef(Recipe):
    """Reference to an item of the attacker's knowledge by index.

    Attributes:
        index: Zero-based position in the knowledge list
    """

    index: int

    def accept(self, v: Visitor):
        return v.visit_ref(self)

    def __str__(self) -> str:
        return f"${self.index}"


@dataclass(frozen=True, slots=True)
class AttackerName(Recipe):
    """Fresh name generated by the attacker; equal labels denote one name."""

    label: str

    def accept(self, v: Visitor):
        return v.visit_fresh(self)

    def __str__(self) -> str:
        return f"~{self.label}"


@dataclass(frozen=True, slots=True)
class Atom(Recipe):
    name: str

    def accept(self, v: Visitor):
        return v.visit_atom(self)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Apply(Recipe):
    """Function application inside a recipe.

    Attributes:
        symbol: Constructor or destructor name
        args: Sub-recipes in argument order
    """

    symbol: str
    args: Tuple[Recipe, ...]

    def accept(self, v: Visitor):
        return v.visit_apply(self)

    def __str__(self) -> str:
        return f"{self.symbol}({', '.join(str(a) for a in self.args)})"
