# protocols/__init__.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Registry of built-in protocol models

"""Built-in protocol models, looked up by name from the CLI and trace scripts."""

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from logic.formula import Query, Restriction
from model.exceptions import ModelError
from model.protocol import ProtocolModel
from . import simple_voting


@dataclass(frozen=True)
class ProtocolBundle:
    """A model with the restrictions and queries that belong to it."""
    model: ProtocolModel
    restrictions: Tuple[Restriction, ...] = ()
    queries: Tuple[Query, ...] = ()

    @property
    def name(self) -> str:
        return self.model.name

    def validate(self) -> None:
        self.model.validate()
        for restriction in self.restrictions:
            restriction.validate(self.model.signature)
        for query in self.queries:
            query.validate(self.model.signature)


def _simple_voting() -> ProtocolBundle:
    return ProtocolBundle(
        simple_voting.build_model(),
        simple_voting.restrictions(),
        simple_voting.queries(),
    )


_REGISTRY: Dict[str, Callable[[], ProtocolBundle]] = {
    simple_voting.NAME: _simple_voting,
}


def available_protocols() -> List[str]:
    return sorted(_REGISTRY)


def get_protocol(name: str) -> ProtocolBundle:
    """A freshly built bundle for `name`; raises ModelError if unknown."""
    factory = _REGISTRY.get(name)
    if factory is None:
        raise ModelError(
            f"Unknown protocol '{name}' (available: {', '.join(available_protocols())})"
        )
    return factory()


__all__ = ["ProtocolBundle", "available_protocols", "get_protocol"]
