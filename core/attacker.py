# core/attacker.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Dolev-Yao attacker knowledge and recipe evaluation

"""Attacker knowledge.

The network attacker sees every message sent on a public channel and every
cell inserted into a public table. What it sees is kept as an ordered,
duplicate-free list so trace scripts can name items by index (`$n`).

A recipe combines known items with public function symbols, public free
names and attacker-generated names. Only public symbols may appear; a
private symbol, an out-of-range reference or a failing destructor makes the
recipe invalid, which is a schedule error rather than protocol behaviour.
"""

from __future__ import annotations
from typing import Callable, Dict, List, Mapping, Optional

from model.exceptions import ModelError
from model.terms import Name, Term
from parser.ast_nodes import Apply, AttackerName, Atom, KnowledgeRef, Recipe
from utils.logger import get_logger
from .exceptions import ScheduleError
from .term_engine import TermEngine

logger = get_logger(__name__)


class AttackerKnowledge:
    """Ordered set of terms the attacker has observed."""

    def __init__(self, engine: TermEngine):
        self.engine = engine
        self._items: List[Term] = []
        self._positions: Dict[Term, int] = {}
        self._names: Dict[str, Name] = {}

    def learn(self, term: Term) -> int:
        """Add `term` unless already known; return its index either way."""
        position = self._positions.get(term)
        if position is not None:
            return position
        self._items.append(term)
        self._positions[term] = len(self._items) - 1
        logger.debug(f"      attacker learns ${len(self._items) - 1} = {term}")
        return len(self._items) - 1

    def knows(self, term: Term) -> bool:
        return term in self._positions

    def index_of(self, term: Term) -> Optional[int]:
        return self._positions.get(term)

    def item(self, index: int) -> Term:
        if index < 0 or index >= len(self._items):
            raise ScheduleError(f"attacker knowledge has no item ${index} (size {len(self._items)})")
        return self._items[index]

    @property
    def items(self) -> List[Term]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def attacker_name(self, label: str, fresh: Callable[[str], Name]) -> Name:
        """The attacker's name for `label`, generated on first use."""
        name = self._names.get(label)
        if name is None:
            name = fresh(label)
            self._names[label] = name
        return name

    def name_table(self) -> Dict[str, Name]:
        return dict(self._names)

    def restore_name_table(self, names: Mapping[str, Name]) -> None:
        self._names = dict(names)

    def evaluate(self, recipe: Recipe, fresh: Callable[[str], Name]) -> Term:
        """Compute the term a recipe denotes, or raise ScheduleError."""
        return recipe.accept(_RecipeEvaluator(self, fresh))


class _RecipeEvaluator:
    """Visitor that evaluates a recipe tree bottom-up."""

    def __init__(self, knowledge: AttackerKnowledge, fresh: Callable[[str], Name]):
        self.knowledge = knowledge
        self.fresh = fresh
        self.signature = knowledge.engine.signature

    def visit_ref(self, n: KnowledgeRef) -> Term:
        return self.knowledge.item(n.index)

    def visit_fresh(self, n: AttackerName) -> Term:
        return self.knowledge.attacker_name(n.label, self.fresh)

    def visit_atom(self, n: Atom) -> Term:
        decl = self.signature.free_names.get(n.name)
        if decl is not None:
            if not decl.public:
                raise ScheduleError(f"recipe uses private free name '{n.name}'")
            return self.signature.atom(n.name)
        if n.name in self.signature.channels:
            if not self.signature.channels[n.name].public:
                raise ScheduleError(f"recipe uses private channel '{n.name}'")
            return self.signature.atom(n.name)
        return self.visit_apply(Apply(n.name, ()))

    def visit_apply(self, n: Apply) -> Term:
        if not self.signature.is_function(n.symbol):
            raise ScheduleError(f"recipe uses unknown symbol '{n.symbol}'")
        if not self.signature.is_public_symbol(n.symbol):
            raise ScheduleError(f"recipe uses private symbol '{n.symbol}'")
        args = [arg.accept(self) for arg in n.args]
        try:
            result = self.knowledge.engine.apply(n.symbol, args)
        except ModelError as exc:
            raise ScheduleError(f"recipe {n} is ill-formed: {exc}") from exc
        if result is None:
            raise ScheduleError(f"recipe {n} fails to evaluate")
        return result
