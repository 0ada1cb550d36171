# core/scheduler.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Single global stepper over process instances, channels and the board

"""Process scheduler.

The scheduler owns one configuration of a protocol run: the relation store,
the channels, the event log, the attacker's knowledge, the running process
instances and the logical clock. It executes exactly one action per call,
chosen by an external driver (a trace script, a test, a harness).

Clock:
    Every executed step, spawns and attacker steps included, advances the
    clock by one. Events are stamped with the clock value of the step that
    emits them, so the log is totally ordered.

Failures:
    Protocol failure (false guard, failing destructor, mismatched `let`)
    aborts the instance silently. A request the configuration cannot honour
    (stepping a suspended or finished instance, a non-matching choice, an
    invalid recipe) raises ScheduleError and leaves the configuration as it
    was.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from model.event import EventLog, EventOccurrence
from model.exceptions import ModelError
from model.patterns import match_pattern
from model.process import Action, Emit, Get, Guard, In, Insert, Let, New, Out
from model.protocol import ProtocolModel
from model.relations import RelationStore, RowMatch
from model.channels import ChannelSet
from model.terms import TRUE, Const, Name, Term
from parser.ast_nodes import Recipe
from utils.logger import get_logger
from .attacker import AttackerKnowledge
from .exceptions import ScheduleError
from .instance import InstanceStatus, ProcessInstance
from .term_engine import TermEngine

logger = get_logger(__name__)

ATTACKER = "attacker"


@dataclass(frozen=True, slots=True)
class StepRecord:
    """One executed step: who moved, what it did, which events it recorded."""
    clock: int
    actor: str
    description: str
    events: Tuple[EventOccurrence, ...] = ()

    def __str__(self) -> str:
        return f"t={self.clock} {self.actor}: {self.description}"


class Scheduler:
    def __init__(self, model: ProtocolModel, *, validate: bool = True):
        if validate:
            model.validate()
        self.model = model
        self.signature = model.signature
        self.engine = TermEngine(self.signature)
        self.store = RelationStore(dict(self.signature.tables))
        self.channels = ChannelSet.from_declarations(self.signature.channels)
        self.log = EventLog()
        self.attacker = AttackerKnowledge(self.engine)
        self.instances: Dict[str, ProcessInstance] = {}
        self.history: List[StepRecord] = []
        self.clock = 0
        self._fresh_counter = 0
        self._spawned: Dict[str, int] = {}

        for name, decl in self.signature.channels.items():
            if decl.public:
                self.attacker.learn(Const(name))
        for name, decl in self.signature.free_names.items():
            if decl.public:
                self.attacker.learn(Const(name))

        for template in model.singletons:
            self._instantiate(template)

    # -- names and instances -------------------------------------------------

    def fresh(self, label: str) -> Name:
        """A name never returned before in this run."""
        self._fresh_counter += 1
        return Name(label, self._fresh_counter)

    def instance(self, instance_id: str) -> ProcessInstance:
        instance = self.instances.get(instance_id)
        if instance is None:
            raise ScheduleError(f"unknown instance '{instance_id}'")
        return instance

    def instance_states(self) -> Dict[str, InstanceStatus]:
        return {iid: inst.status for iid, inst in self.instances.items()}

    def spawn(self, template_name: str) -> ProcessInstance:
        """Start a new activation of a replicated template."""
        try:
            template = self.model.role(template_name)
        except ModelError as exc:
            raise ScheduleError(str(exc)) from exc
        if not template.replicated:
            raise ScheduleError(f"'{template_name}' is a singleton and cannot be spawned")
        instance = self._instantiate(template)
        self._record(instance.instance_id, f"spawn {template_name}")
        return instance

    def _instantiate(self, template) -> ProcessInstance:
        count = self._spawned.get(template.name, 0) + 1
        self._spawned[template.name] = count
        instance = ProcessInstance(f"{template.name}#{count}", template)
        self.instances[instance.instance_id] = instance
        logger.debug(f"    + {instance.instance_id}")
        return instance

    # -- enabledness -------------------------------------------------------------

    def can_step(self, instance_id: str, attacker_serves: bool = True) -> bool:
        """
        Whether `step(instance_id)` would succeed now. With `attacker_serves`,
        an instance waiting on a public channel counts as enabled because the
        attacker can always supply a message.
        """
        instance = self.instance(instance_id)
        if not instance.running:
            return False
        action = instance.current_action
        if isinstance(action, Get):
            return bool(self._row_candidates(instance, action))
        if isinstance(action, In):
            channel = self.channels[action.channel]
            if channel.public and attacker_serves:
                return True
            return bool(channel.matching(action.pattern, instance.bindings, self.engine.evaluate))
        return True

    def enabled(self) -> List[str]:
        return [iid for iid in self.instances if self.can_step(iid)]

    # -- protocol steps ------------------------------------------------------------

    def step(self, instance_id: str, choice: Optional[int] = None,
             recipe: Optional[Recipe] = None) -> StepRecord:
        """Execute the next action of one instance atomically."""
        instance = self.instance(instance_id)
        if not instance.running:
            raise ScheduleError(f"instance {instance_id} is {instance.status}")
        action = instance.current_action
        if recipe is not None and not isinstance(action, In):
            raise ScheduleError(f"{instance_id}: a recipe was given for '{action}'")
        if choice is not None and not isinstance(action, (Get, In)):
            raise ScheduleError(f"{instance_id}: a choice was given for '{action}'")

        events = self._execute(instance, action, choice, recipe, self.clock + 1)
        if instance.running:
            instance.advance()
        return self._record(instance_id, str(action), events)

    def iter_advance(self, instance_id: str) -> Iterator[StepRecord]:
        """
        Step `instance_id` with default choices until it suspends, terminates
        or waits on a public channel with nothing pending. Yields each step.
        """
        instance = self.instance(instance_id)
        if not instance.running:
            raise ScheduleError(f"instance {instance_id} is {instance.status}")
        while self.can_step(instance_id, attacker_serves=False):
            yield self.step(instance_id)
        if instance.running:
            logger.instance_suspended(instance_id, str(instance.current_action))

    def advance(self, instance_id: str) -> List[StepRecord]:
        return list(self.iter_advance(instance_id))

    # -- attacker steps --------------------------------------------------------------

    def attacker_send(self, channel_name: str, recipe: Recipe) -> StepRecord:
        """Enqueue an attacker-computed message on a public channel."""
        channel = self._channel(channel_name)
        if not channel.public:
            raise ScheduleError(f"attacker cannot send on private channel '{channel_name}'")
        message = self._tentatively(lambda: self.attacker.evaluate(recipe, self.fresh))
        channel.send(message)
        self.attacker.learn(message)
        return self._record(ATTACKER, f"out({channel_name}, {message})")

    def attacker_insert(self, table: str, recipes: Sequence[Recipe]) -> StepRecord:
        """Insert an attacker-computed row into an attacker-writable table."""
        decl = self.signature.tables.get(table)
        if decl is None:
            raise ScheduleError(f"unknown table '{table}'")
        if not decl.attacker_writable:
            raise ScheduleError(f"table '{table}' is not writable by the attacker")
        if len(recipes) != decl.arity:
            raise ScheduleError(f"table '{table}' has arity {decl.arity}, got {len(recipes)} recipes")
        row = self._tentatively(lambda: tuple(self.attacker.evaluate(r, self.fresh) for r in recipes))
        self._insert(table, row)
        return self._record(ATTACKER, f"insert {table}({', '.join(str(x) for x in row)})")

    # -- internals ---------------------------------------------------------------------

    def _tentatively(self, compute):
        """Run `compute`; on ScheduleError, forget the names it generated."""
        counter, names = self._fresh_counter, self.attacker.name_table()
        try:
            return compute()
        except ScheduleError:
            self._fresh_counter = counter
            self.attacker.restore_name_table(names)
            raise

    def _record(self, actor: str, description: str,
                events: Sequence[EventOccurrence] = ()) -> StepRecord:
        self.clock += 1
        record = StepRecord(self.clock, actor, description, tuple(events))
        self.history.append(record)
        logger.step_executed(self.clock, actor, description)
        return record

    def _channel(self, name: str):
        channel = self.channels.get(name)
        if channel is None:
            raise ScheduleError(f"unknown channel '{name}'")
        return channel

    def _abort(self, instance: ProcessInstance, reason: str) -> None:
        instance.abort(reason)
        logger.instance_aborted(instance.instance_id, reason)

    def _insert(self, table: str, row: Tuple[Term, ...]) -> None:
        self.store.insert(table, row)
        if self.signature.tables[table].public:
            for cell in row:
                self.attacker.learn(cell)

    def _evaluate_all(self, exprs: Sequence[Term], bindings: Mapping[str, Term]) -> Optional[Tuple[Term, ...]]:
        values = []
        for expr in exprs:
            value = self.engine.evaluate(expr, bindings)
            if value is None:
                return None
            values.append(value)
        return tuple(values)

    def _row_candidates(self, instance: ProcessInstance, action: Get) -> List[RowMatch]:
        return self.store.matches(action.table, action.patterns, instance.bindings,
                                  self.engine.evaluate, action.suchthat)

    def _execute(self, instance: ProcessInstance, action: Action, choice: Optional[int],
                 recipe: Optional[Recipe], time: int) -> List[EventOccurrence]:
        evaluate = self.engine.evaluate
        bindings = instance.bindings

        if isinstance(action, New):
            instance.bind({action.var: self.fresh(action.label or action.var)})

        elif isinstance(action, Let):
            value = evaluate(action.expr, bindings)
            new = None if value is None else match_pattern(action.pattern, value, bindings, evaluate)
            if new is None:
                self._abort(instance, f"'{action}' failed")
            else:
                instance.bind(new)

        elif isinstance(action, Guard):
            if evaluate(action.expr, bindings) != TRUE:
                self._abort(instance, f"guard '{action.expr}' is false")

        elif isinstance(action, Insert):
            row = self._evaluate_all(action.values, bindings)
            if row is None:
                self._abort(instance, f"'{action}' has a failing value")
            else:
                self._insert(action.table, row)

        elif isinstance(action, Get):
            candidates = self._row_candidates(instance, action)
            instance.bind(self._select_row(instance, action, candidates, choice).bindings)

        elif isinstance(action, Out):
            message = evaluate(action.expr, bindings)
            if message is None:
                self._abort(instance, f"'{action}' has a failing message")
            else:
                channel = self.channels[action.channel]
                channel.send(message)
                if channel.public:
                    self.attacker.learn(message)

        elif isinstance(action, In):
            instance.bind(self._receive(instance, action, choice, recipe))

        elif isinstance(action, Emit):
            args = self._evaluate_all(action.args, bindings)
            if args is None:
                self._abort(instance, f"'{action}' has a failing argument")
            else:
                return [self.log.record(action.event, args, time, instance.instance_id)]

        else:
            raise ModelError(f"Unsupported action {action!r}")
        return []

    def _select_row(self, instance: ProcessInstance, action: Get, candidates: List[RowMatch],
                    choice: Optional[int]) -> RowMatch:
        if not candidates:
            raise ScheduleError(f"{instance.instance_id} is suspended at '{action}'")
        if choice is None:
            return candidates[0]
        for candidate in candidates:
            if candidate.index == choice:
                return candidate
        raise ScheduleError(
            f"{instance.instance_id}: row {choice} of '{action.table}' does not match '{action}'"
        )

    def _receive(self, instance: ProcessInstance, action: In, choice: Optional[int],
                 recipe: Optional[Recipe]) -> Dict[str, Term]:
        channel = self.channels[action.channel]
        evaluate = self.engine.evaluate

        if recipe is not None:
            if not channel.public:
                raise ScheduleError(f"attacker cannot inject into private channel '{channel.name}'")
            if choice is not None:
                raise ScheduleError("a receive takes either a choice or a recipe, not both")
            def inject() -> Dict[str, Term]:
                message = self.attacker.evaluate(recipe, self.fresh)
                new = match_pattern(action.pattern, message, instance.bindings, evaluate)
                if new is None:
                    raise ScheduleError(
                        f"{instance.instance_id}: injected {message} does not match '{action.pattern}'"
                    )
                return new

            return self._tentatively(inject)

        candidates = channel.matching(action.pattern, instance.bindings, evaluate)
        if not candidates:
            raise ScheduleError(f"{instance.instance_id} is suspended at '{action}'")
        if choice is None:
            position, new = candidates[0]
        else:
            selected = [(p, n) for p, n in candidates if p == choice]
            if not selected:
                raise ScheduleError(
                    f"{instance.instance_id}: pending message {choice} on '{channel.name}' "
                    f"does not match '{action.pattern}'"
                )
            position, new = selected[0]
        channel.take(position)
        return new
