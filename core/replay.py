# core/replay.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Deterministic replay of a scripted interleaving

"""Trace replay.

A trace script is a list of `TraceStep`s. Replaying it drives a fresh
`Scheduler` step by step and checks every restriction after each step that
records an event. The first violation makes the trace inadmissible; with
`stop_on_inadmissible=False` the replay still runs to the end so the whole
trace can be inspected, and the first violation is reported afterwards.

Step kinds:
    spawn   target = replicated template
    step    target = instance id, optional row/message choice, optional recipe
    run     target = instance id, stepped with default choices until it blocks
    send    target = public channel, one recipe
    insert  target = attacker-writable table, one recipe per column
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Sequence, Tuple, Union

from logic.evaluator import CorrespondenceEvaluator
from logic.formula import Restriction
from logic.verdict import Counterexample
from model.event import EventLog
from model.protocol import ProtocolModel
from model.relations import Row
from model.terms import Term
from parser import parse_recipe, parse_recipes
from parser.ast_nodes import Recipe
from utils.logger import get_logger
from .exceptions import ScheduleError
from .instance import InstanceStatus
from .scheduler import Scheduler, StepRecord

logger = get_logger(__name__)


class StepKind(Enum):
    SPAWN = "spawn"
    STEP = "step"
    RUN = "run"
    SEND = "send"
    INSERT = "insert"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class TraceStep:
    kind: StepKind
    target: str
    choice: Optional[int] = None
    recipes: Tuple[Recipe, ...] = ()

    def __post_init__(self):
        if self.kind in (StepKind.SPAWN, StepKind.RUN):
            if self.choice is not None or self.recipes:
                raise ScheduleError(f"'{self.kind}' takes neither a choice nor a recipe")
        elif self.kind is StepKind.STEP:
            if len(self.recipes) > 1:
                raise ScheduleError("'step' takes at most one recipe")
        elif self.kind is StepKind.SEND:
            if len(self.recipes) != 1 or self.choice is not None:
                raise ScheduleError("'send' takes exactly one recipe and no choice")
        elif self.kind is StepKind.INSERT:
            if not self.recipes or self.choice is not None:
                raise ScheduleError("'insert' takes one recipe per column and no choice")

    @classmethod
    def spawn(cls, template: str) -> "TraceStep":
        return cls(StepKind.SPAWN, template)

    @classmethod
    def step(cls, instance_id: str, choice: Optional[int] = None,
             recipe: Optional[str] = None) -> "TraceStep":
        recipes = (parse_recipe(recipe),) if recipe else ()
        return cls(StepKind.STEP, instance_id, choice, recipes)

    @classmethod
    def run(cls, instance_id: str) -> "TraceStep":
        return cls(StepKind.RUN, instance_id)

    @classmethod
    def send(cls, channel: str, recipe: str) -> "TraceStep":
        return cls(StepKind.SEND, channel, None, (parse_recipe(recipe),))

    @classmethod
    def insert(cls, table: str, recipes: str) -> "TraceStep":
        return cls(StepKind.INSERT, table, None, parse_recipes(recipes))

    @classmethod
    def from_fields(cls, kind: str, target: str, choice: Optional[int] = None,
                    recipe: str = "") -> "TraceStep":
        """Build a step from the raw columns of a trace script line."""
        recipes = parse_recipes(recipe) if recipe.strip() else ()
        return cls(StepKind(kind), target, choice, recipes)

    def __str__(self) -> str:
        parts = [str(self.kind), self.target]
        if self.choice is not None:
            parts.append(f"#{self.choice}")
        if self.recipes:
            parts.append(", ".join(str(r) for r in self.recipes))
        return " ".join(parts)


@dataclass(frozen=True)
class ReplayResult:
    """Final configuration of an admissible replay."""
    model_name: str
    relations: Dict[str, Tuple[Row, ...]]
    event_log: EventLog
    steps: int
    knowledge: Tuple[Term, ...]
    instances: Dict[str, InstanceStatus] = field(default_factory=dict)

    @property
    def admissible(self) -> bool:
        return True


@dataclass(frozen=True)
class Inadmissible:
    """A restriction was violated; the trace is outside the model's semantics."""
    step_index: int
    restriction: str
    counterexample: Counterexample
    result: Optional[ReplayResult] = None

    @property
    def admissible(self) -> bool:
        return False

    @property
    def substitution(self) -> Dict[str, Term]:
        return self.counterexample.substitution

    def __str__(self) -> str:
        return f"restriction {self.restriction} violated at step {self.step_index}: {self.counterexample}"


def perform(scheduler: Scheduler, trace_step: TraceStep) -> Iterator[StepRecord]:
    """Execute one script step, yielding every scheduler step it causes."""
    kind = trace_step.kind
    if kind is StepKind.SPAWN:
        scheduler.spawn(trace_step.target)
        yield scheduler.history[-1]
    elif kind is StepKind.STEP:
        recipe = trace_step.recipes[0] if trace_step.recipes else None
        yield scheduler.step(trace_step.target, trace_step.choice, recipe)
    elif kind is StepKind.RUN:
        yield from scheduler.iter_advance(trace_step.target)
    elif kind is StepKind.SEND:
        yield scheduler.attacker_send(trace_step.target, trace_step.recipes[0])
    elif kind is StepKind.INSERT:
        yield scheduler.attacker_insert(trace_step.target, trace_step.recipes)
    else:
        raise ScheduleError(f"unsupported step kind {kind!r}")


def snapshot(scheduler: Scheduler) -> ReplayResult:
    return ReplayResult(
        model_name=scheduler.model.name,
        relations=scheduler.store.snapshot(),
        event_log=scheduler.log,
        steps=scheduler.clock,
        knowledge=tuple(scheduler.attacker.items),
        instances=scheduler.instance_states(),
    )


def first_violation(evaluator: CorrespondenceEvaluator, restrictions: Sequence[Restriction],
                    log: EventLog) -> Optional[Tuple[Restriction, Counterexample]]:
    for restriction in restrictions:
        witness = evaluator.find_violation(restriction.body, log)
        if witness is not None:
            return restriction, witness
    return None


def replay(model: ProtocolModel, script: Sequence[TraceStep],
           restrictions: Sequence[Restriction] = (), *,
           stop_on_inadmissible: bool = True,
           scheduler: Optional[Scheduler] = None) -> Union[ReplayResult, Inadmissible]:
    """
    Replay `script` against `model`.

    Raises ModelError for a malformed model or restriction and ScheduleError
    (carrying the script index) for an impossible step. Pass `scheduler` to
    inspect the final configuration afterwards.
    """
    if scheduler is None:
        scheduler = Scheduler(model)
    for restriction in restrictions:
        restriction.validate(model.signature)
    evaluator = CorrespondenceEvaluator(scheduler.engine)
    logger.replay_start(model.name, len(script), len(restrictions))

    violation: Optional[Tuple[int, Restriction, Counterexample]] = None
    for index, trace_step in enumerate(script):
        try:
            for record in perform(scheduler, trace_step):
                if not record.events or violation is not None:
                    continue
                found = first_violation(evaluator, restrictions, scheduler.log)
                if found is None:
                    continue
                restriction, witness = found
                logger.restriction_violated(restriction.name, index, witness.describe())
                violation = (index, restriction, witness)
                if stop_on_inadmissible:
                    return Inadmissible(index, restriction.name, witness, snapshot(scheduler))
        except ScheduleError as exc:
            if exc.step_index >= 0:
                raise
            raise ScheduleError(str(exc), index) from exc

    result = snapshot(scheduler)
    logger.final_summary(result.steps, len(result.event_log))
    if violation is not None:
        index, restriction, witness = violation
        return Inadmissible(index, restriction.name, witness, result)
    return result
