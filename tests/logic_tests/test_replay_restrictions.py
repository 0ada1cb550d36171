# tests/logic_tests/test_replay_restrictions.py

import pytest

from core.exceptions import ScheduleError
from core.replay import Inadmissible, ReplayResult, StepKind, TraceStep, replay
from core.scheduler import Scheduler
from core.theories import standard_theory
from model.exceptions import ModelError
from model.process import Emit, New, RoleTemplate
from model.protocol import ProtocolModel
from model.terms import Var
from logic.formula import Correspondence, EventAtom, Falsum, Restriction
from protocols import simple_voting


def keygen_model() -> ProtocolModel:
    sig = standard_theory()
    sig.event("ElectionKey", 1)
    keygen = RoleTemplate("KeyGen", (New("k"), Emit("ElectionKey", (Var("k"),))), replicated=True)
    return ProtocolModel("keygen", sig, [keygen])


TWO_KEYS = [
    TraceStep.spawn("KeyGen"),
    TraceStep.run("KeyGen#1"),
    TraceStep.spawn("KeyGen"),
    TraceStep.run("KeyGen#2"),
    TraceStep.spawn("KeyGen"),
]


class TestRestrictions:
    """Admissibility checking during replay."""

    def test_01_without_restrictions_every_trace_is_admissible(self):
        outcome = replay(keygen_model(), TWO_KEYS)
        assert isinstance(outcome, ReplayResult)
        assert outcome.admissible
        assert len(outcome.event_log) == 2
        assert outcome.steps == 7

    def test_02_second_key_makes_trace_inadmissible(self):
        outcome = replay(keygen_model(), TWO_KEYS, simple_voting.restrictions())
        assert isinstance(outcome, Inadmissible)
        assert not outcome.admissible
        assert outcome.step_index == 3
        assert outcome.restriction == "UniqueElectionKey"
        assert set(outcome.substitution) == {"k1", "k2"}
        assert outcome.substitution["k1"] != outcome.substitution["k2"]
        assert outcome.result.steps == 6

    def test_03_no_stop_mode_reports_first_violation_after_full_replay(self):
        scheduler = Scheduler(keygen_model())
        outcome = replay(keygen_model(), TWO_KEYS, simple_voting.restrictions(),
                         stop_on_inadmissible=False, scheduler=scheduler)
        assert isinstance(outcome, Inadmissible)
        assert outcome.step_index == 3
        assert outcome.result.steps == 7
        assert scheduler.clock == 7

    def test_04_vacuous_restriction_on_eventless_trace(self):
        never = Restriction("Never", Correspondence((EventAtom("ElectionKey", (Var("k"),)),), Falsum()))
        outcome = replay(keygen_model(), [TraceStep.spawn("KeyGen")], [never])
        assert outcome.admissible

    def test_05_restrictions_are_validated_first(self):
        bad = Restriction("Bad", Correspondence((EventAtom("Missing", ()),), Falsum()))
        with pytest.raises(ModelError, match="Restriction Bad"):
            replay(keygen_model(), TWO_KEYS, [bad])


class TestScriptErrors:
    """Impossible script steps report their position."""

    def test_01_schedule_error_carries_script_index(self):
        script = [TraceStep.spawn("KeyGen"), TraceStep.run("KeyGen#1"), TraceStep.step("KeyGen#1")]
        with pytest.raises(ScheduleError) as info:
            replay(keygen_model(), script)
        assert info.value.step_index == 2
        assert str(info.value).startswith("step 2: ")

    def test_02_invalid_step_shapes(self):
        with pytest.raises(ScheduleError):
            TraceStep(StepKind.SPAWN, "KeyGen", choice=1)
        with pytest.raises(ScheduleError):
            TraceStep.from_fields("send", "c")
        with pytest.raises(ScheduleError):
            TraceStep.from_fields("step", "X#1", None, "A, B")
        with pytest.raises(ValueError):
            TraceStep.from_fields("teleport", "X#1")

    def test_03_from_fields(self):
        step = TraceStep.from_fields("insert", "inbox", None, "A, tuple($0, ~r)")
        assert step.kind is StepKind.INSERT
        assert len(step.recipes) == 2
        assert str(step) == "insert inbox A, tuple($0, ~r)"
        assert str(TraceStep.step("Tally#1", 1)) == "step Tally#1 #1"
