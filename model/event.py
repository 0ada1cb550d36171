# model/event.py

"""
Event
=====

Immutable record of one `event` action in a replayed trace. Occurrences are
stamped with the logical time of the step that emitted them and the id of
the emitting instance. The log is append-only: identical occurrences stay
separate entries because multiplicity matters to uniqueness queries.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

from .terms import Term


@dataclass(frozen=True, slots=True)
class EventOccurrence:
    name: str
    args: Tuple[Term, ...]
    time: int
    instance: str = ""

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        return f"{self.name}({args})@{self.time}"


@dataclass(slots=True)
class EventLog:
    _entries: List[EventOccurrence] = field(default_factory=list)
    _by_name: Dict[str, List[EventOccurrence]] = field(default_factory=dict)

    def record(self, name: str, args: Tuple[Term, ...], time: int, instance: str = "") -> EventOccurrence:
        """Append an occurrence; times must not decrease."""
        if self._entries and time < self._entries[-1].time:
            raise ValueError(f"Event {name} at time {time} precedes the last logged time")
        occurrence = EventOccurrence(name, tuple(args), time, instance)
        self._entries.append(occurrence)
        self._by_name.setdefault(name, []).append(occurrence)
        return occurrence

    def occurrences(self, name: str) -> Tuple[EventOccurrence, ...]:
        return tuple(self._by_name.get(name, ()))

    def __iter__(self) -> Iterator[EventOccurrence]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> EventOccurrence:
        return self._entries[index]

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self._entries) + "]"
