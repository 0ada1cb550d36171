# model/relations.py

"""
RelationStore
=============

The bulletin board: named, fixed-arity, append-only multisets of ground
rows. Rows are kept in insertion order so a schedule can name the row a
`get` selects by its index; nothing is ever removed, so an index stays
valid for the rest of the trace and any number of readers may select the
same row.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from utils.logger import get_logger
from .exceptions import ModelError
from .patterns import Evaluator, Pattern, match_row
from .signature import TableDecl
from .terms import TRUE, Term

logger = get_logger(__name__)

Row = Tuple[Term, ...]


@dataclass(slots=True)
class RowMatch:
    """A candidate row for a `get`, with the bindings the match introduces."""
    index: int
    row: Row
    bindings: Dict[str, Term]


@dataclass(slots=True)
class RelationStore:
    declarations: Dict[str, TableDecl]
    _rows: Dict[str, List[Row]] = field(default_factory=dict)

    def __post_init__(self):
        for name in self.declarations:
            self._rows.setdefault(name, [])

    def _decl(self, table: str) -> TableDecl:
        decl = self.declarations.get(table)
        if decl is None:
            raise ModelError(f"Undeclared table '{table}'")
        return decl

    def insert(self, table: str, row: Row) -> int:
        """Append `row` unconditionally and return its index."""
        decl = self._decl(table)
        if len(row) != decl.arity:
            raise ModelError(f"Table '{table}' has arity {decl.arity}, row has {len(row)} values")
        rows = self._rows[table]
        rows.append(tuple(row))
        logger.debug(f"      insert {table}[{len(rows) - 1}] = ({', '.join(str(x) for x in row)})")
        return len(rows) - 1

    def rows(self, table: str) -> Tuple[Row, ...]:
        self._decl(table)
        return tuple(self._rows[table])

    def matches(self, table: str, patterns: Tuple[Pattern, ...], bindings: Mapping[str, Term],
                evaluate: Evaluator, predicate: Optional[Term] = None) -> List[RowMatch]:
        """
        Every current row of `table` that matches `patterns` and, when given,
        satisfies `predicate` under the extended bindings. An empty result
        means the reader has to suspend.
        """
        self._decl(table)
        found: List[RowMatch] = []
        for index, row in enumerate(self._rows[table]):
            new = match_row(patterns, row, bindings, evaluate)
            if new is None:
                continue
            if predicate is not None and not self._predicate_holds(predicate, bindings, new, evaluate):
                continue
            found.append(RowMatch(index, row, new))
        return found

    @staticmethod
    def _predicate_holds(predicate: Term, bindings: Mapping[str, Term], new: Mapping[str, Term],
                         evaluate: Evaluator) -> bool:
        scope = dict(bindings)
        scope.update(new)
        return evaluate(predicate, scope) == TRUE

    def snapshot(self) -> Dict[str, Tuple[Row, ...]]:
        return {name: tuple(rows) for name, rows in self._rows.items()}

    def total_rows(self) -> int:
        return sum(len(rows) for rows in self._rows.values())
