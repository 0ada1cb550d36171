# tests/integration_tests/test_voting_scenarios.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# End-to-end replays of the reference voting model

"""Integration tests for replaying scripted runs of `simple_voting`.

Each scenario drives the scheduler through a full election (key
generation, registration, voting, casting, tallying) and checks the
reference queries on the resulting event log:

- an honest run satisfies every query
- a leaked credential lets the attacker cast a ballot that is tallied
  against the voter's verification, breaking IV1 but not IV2
- tallying the same credential twice breaks ONE
- the bundled trace scripts produce the same verdicts through the runner
"""

import pytest

from core.replay import ReplayResult, TraceStep, replay
from core.scheduler import Scheduler
from logic.evaluator import CorrespondenceEvaluator
from logic.runner import ModelAndTraceRunner
from logic.verdict import Verdict
from model.terms import Const, Func

HONEST = [
    TraceStep.run("Admin#1"),
    TraceStep.spawn("Registrar"),
    TraceStep.run("Registrar#1"),
    TraceStep.spawn("Voter"),
    TraceStep.run("Voter#1"),
    TraceStep.step("Voter#1", recipe="A"),
    TraceStep.run("Voter#1"),
    TraceStep.spawn("Server"),
    TraceStep.run("Server#1"),
    TraceStep.run("Voter#1"),
    TraceStep.spawn("Tally"),
    TraceStep.run("Tally#1"),
]

FORGED_BALLOT = (
    "tuple(pk(proj_2($7)), enc(B, $3, ~r), zkp(enc(B, $3, ~r), B, ~r), "
    "sign(tuple(enc(B, $3, ~r), zkp(enc(B, $3, ~r), B, ~r)), proj_2($7)))"
)

CREDENTIAL_LEAK = HONEST[:10] + [
    TraceStep.spawn("CorruptVoter"),
    TraceStep.run("CorruptVoter#1"),
    TraceStep.send("c", FORGED_BALLOT),
    TraceStep.spawn("Server"),
    TraceStep.run("Server#2"),
    TraceStep.spawn("Tally"),
    TraceStep.step("Tally#1"),
    TraceStep.step("Tally#1", 1),
    TraceStep.run("Tally#1"),
]

DOUBLE_TALLY = HONEST + [
    TraceStep.spawn("Tally"),
    TraceStep.run("Tally#2"),
]


def run_scenario(bundle, script):
    scheduler = Scheduler(bundle.model)
    outcome = replay(bundle.model, script, bundle.restrictions, scheduler=scheduler)
    assert isinstance(outcome, ReplayResult)
    results = CorrespondenceEvaluator(scheduler.engine).evaluate_all(bundle.queries, outcome.event_log)
    return scheduler, outcome, results


class TestHonestElection:
    """A single honest voter's ballot is cast, verified and tallied."""

    def test_01_all_queries_hold(self, voting_bundle):
        _, _, results = run_scenario(voting_bundle, HONEST)
        assert {name: r.verdict for name, r in results.items()} == {
            "IV1": Verdict.TRUE,
            "IV2": Verdict.TRUE,
            "ONE": Verdict.TRUE,
            "TallyFromCast": Verdict.TRUE,
        }

    def test_02_event_log_order_and_times(self, voting_bundle):
        _, outcome, _ = run_scenario(voting_bundle, HONEST)
        assert [(e.name, e.time) for e in outcome.event_log] == [
            ("ElectionKey", 2),
            ("Registered", 10),
            ("Voted", 20),
            ("Cast", 28),
            ("Verified", 30),
            ("BB_tally", 35),
        ]
        assert outcome.steps == 36

    def test_03_board_contents_and_attacker_view(self, voting_bundle):
        scheduler, outcome, _ = run_scenario(voting_bundle, HONEST)
        assert outcome.relations["bb_result"] == ((Const("A"),),)
        assert len(outcome.relations["bb_ballots"]) == 1
        cr, ballot = outcome.relations["bb_ballots"][0]
        assert scheduler.attacker.index_of(cr) == 4
        assert scheduler.attacker.index_of(ballot) == 6
        assert not any(scheduler.attacker.knows(row[1]) for row in outcome.relations["voter_creds"])

    def test_04_every_instance_finished(self, voting_bundle):
        _, outcome, _ = run_scenario(voting_bundle, HONEST)
        assert set(outcome.instances) == {"Admin#1", "Registrar#1", "Voter#1", "Server#1", "Tally#1"}
        assert all(str(status) == "DONE" for status in outcome.instances.values())


class TestCredentialLeak:
    """The attacker reuses a corrupted voter's signing key."""

    def test_01_forged_ballot_breaks_iv1_only(self, voting_bundle):
        _, _, results = run_scenario(voting_bundle, CREDENTIAL_LEAK)
        assert results["IV1"].verdict is Verdict.FALSE
        assert results["IV2"].holds
        assert results["ONE"].holds
        assert results["TallyFromCast"].holds

    def test_02_counterexample_names_the_tallied_forgery(self, voting_bundle):
        _, outcome, results = run_scenario(voting_bundle, CREDENTIAL_LEAK)
        witness = results["IV1"].counterexample
        assert [o.name for o in witness.occurrences] == ["Verified", "BB_tally", "ElectionKey"]
        assert witness.substitution["v"] == Const("A")
        ballot = witness.substitution["b"]
        assert isinstance(ballot, Func) and ballot.args[0] == Const("B")

    def test_03_forged_cast_goes_through_second_server(self, voting_bundle):
        _, outcome, _ = run_scenario(voting_bundle, CREDENTIAL_LEAK)
        casts = outcome.event_log.occurrences("Cast")
        assert [c.instance for c in casts] == ["Server#1", "Server#2"]
        assert len(outcome.relations["bb_ballots"]) == 2
        assert outcome.relations["bb_result"] == ((Const("B"),),)

    def test_04_leaked_credential_is_in_knowledge(self, voting_bundle):
        scheduler, outcome, _ = run_scenario(voting_bundle, CREDENTIAL_LEAK)
        id_, sk = outcome.relations["voter_creds"][0]
        assert scheduler.attacker.item(7) == Func("tuple", (id_, sk))


class TestDoubleTally:
    """Tallying one credential twice."""

    def test_01_one_fails_with_both_tallies_as_witness(self, voting_bundle):
        _, _, results = run_scenario(voting_bundle, DOUBLE_TALLY)
        assert results["ONE"].verdict is Verdict.FALSE
        witness = results["ONE"].counterexample
        assert witness.times == {"i": 35, "j": 41}
        assert [o.instance for o in witness.occurrences] == ["Tally#1", "Tally#2"]
        assert results["IV1"].holds


class TestRunnerOnScripts:
    """The bundled CSV scripts through the runner."""

    @pytest.mark.parametrize("script, expected", [
        ("honest_vote.csv", {"IV1": Verdict.TRUE, "IV2": Verdict.TRUE}),
        ("credential_leak.csv", {"IV1": Verdict.FALSE, "IV2": Verdict.TRUE}),
    ])
    def test_01_script_verdicts(self, traces_dir, script, expected):
        report = ModelAndTraceRunner(str(traces_dir / script)).run()
        assert report.admissible
        for name, verdict in expected.items():
            assert report.results[name].verdict is verdict

    def test_02_overall_verdict(self, traces_dir):
        honest = ModelAndTraceRunner(str(traces_dir / "honest_vote.csv")).run()
        leak = ModelAndTraceRunner(str(traces_dir / "credential_leak.csv")).run(verbose=True)
        assert honest.verdict is Verdict.TRUE
        assert leak.verdict is Verdict.FALSE
