# model/channels.py

"""
Asynchronous point-to-point channels.

Each channel keeps the messages still waiting for a receiver (`pending`,
FIFO) and everything ever sent on it (`history`). Whether the attacker
learns a message is decided by the scheduler from the channel's `public`
flag; the channel itself only stores terms.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from .exceptions import ModelError
from .patterns import Evaluator, Pattern, match_pattern
from .signature import ChannelDecl
from .terms import Term


@dataclass(slots=True)
class Channel:
    name: str
    public: bool
    pending: List[Term] = field(default_factory=list)
    history: List[Term] = field(default_factory=list)

    def send(self, message: Term) -> None:
        self.pending.append(message)
        self.history.append(message)

    def matching(self, pattern: Pattern, bindings: Mapping[str, Term],
                 evaluate: Evaluator) -> List[Tuple[int, Dict[str, Term]]]:
        """Pending positions whose message matches `pattern`, oldest first."""
        found = []
        for index, message in enumerate(self.pending):
            new = match_pattern(pattern, message, bindings, evaluate)
            if new is not None:
                found.append((index, new))
        return found

    def take(self, index: int) -> Term:
        return self.pending.pop(index)

    def __str__(self) -> str:
        kind = "public" if self.public else "private"
        return f"{self.name}({kind}, {len(self.pending)} pending)"


@dataclass(slots=True)
class ChannelSet:
    channels: Dict[str, Channel] = field(default_factory=dict)

    @classmethod
    def from_declarations(cls, declarations: Mapping[str, ChannelDecl]) -> "ChannelSet":
        return cls({name: Channel(name, decl.public) for name, decl in declarations.items()})

    def __getitem__(self, name: str) -> Channel:
        channel = self.channels.get(name)
        if channel is None:
            raise ModelError(f"Undeclared channel '{name}'")
        return channel

    def get(self, name: str) -> Optional[Channel]:
        return self.channels.get(name)
