# core/instance.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Running activations of role templates

"""Process instances.

An instance is one activation of a `RoleTemplate` with its own local
bindings and program counter. Its lifecycle is

    RUNNING -> DONE       ran past its last action
    RUNNING -> ABORTED    a guard, destructor or `let` match failed

Blocking on a `get` or `in` is not a state: whether an instance can move is
recomputed from the shared store whenever the scheduler is asked.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from model.process import Action, RoleTemplate
from model.terms import Term


class InstanceStatus(Enum):
    RUNNING = "running"
    DONE = "done"
    ABORTED = "aborted"

    def __str__(self) -> str:
        return self.value.upper()


@dataclass(slots=True)
class ProcessInstance:
    instance_id: str
    template: RoleTemplate
    bindings: Dict[str, Term] = field(default_factory=dict)
    position: int = 0
    status: InstanceStatus = InstanceStatus.RUNNING
    abort_reason: Optional[str] = None

    def __post_init__(self):
        if not self.template.actions:
            self.status = InstanceStatus.DONE

    @property
    def running(self) -> bool:
        return self.status is InstanceStatus.RUNNING

    @property
    def current_action(self) -> Optional[Action]:
        if not self.running:
            return None
        return self.template.actions[self.position]

    def bind(self, new: Dict[str, Term]) -> None:
        self.bindings.update(new)

    def advance(self) -> None:
        """Move past the current action."""
        self.position += 1
        if self.position >= len(self.template.actions):
            self.status = InstanceStatus.DONE

    def abort(self, reason: str) -> None:
        self.status = InstanceStatus.ABORTED
        self.abort_reason = reason

    def __str__(self) -> str:
        return f"{self.instance_id}[{self.position}/{len(self.template.actions)} {self.status}]"
