# core/__init__.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Core module public API for protocol execution

"""Execution semantics for symbolic voting protocol models.

This package gives meaning to the declarations in `model`: the term engine
evaluates constructor and destructor applications under an equational
theory, the scheduler interleaves process instances over a shared bulletin
board and public or private channels, and the replay driver runs a
scripted interleaving while enforcing the model's restrictions.

Primary Components:
    TermEngine: build, reduce, normalize and evaluate terms
    standard_theory / voting_theory: ready-made signatures
    AttackerKnowledge: what the network attacker has observed
    Scheduler: the single global stepper
    TraceStep / replay: scripted replay with restriction checking

Example:
    >>> from core import replay, TraceStep
    >>> from protocols import get_protocol
    >>> bundle = get_protocol("simple_voting")
    >>> result = replay(bundle.model, [TraceStep.spawn("Registrar")], bundle.restrictions)
"""

from .exceptions import ScheduleError
from .term_engine import TermEngine
from .theories import standard_theory, voting_theory
from .attacker import AttackerKnowledge
from .instance import InstanceStatus, ProcessInstance
from .scheduler import Scheduler, StepRecord
from .replay import TraceStep, StepKind, ReplayResult, Inadmissible, replay

__all__ = [
    "ScheduleError",
    "TermEngine",
    "standard_theory",
    "voting_theory",
    "AttackerKnowledge",
    "InstanceStatus",
    "ProcessInstance",
    "Scheduler",
    "StepRecord",
    "TraceStep",
    "StepKind",
    "ReplayResult",
    "Inadmissible",
    "replay",
]
