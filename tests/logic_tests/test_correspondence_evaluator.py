# tests/logic_tests/test_correspondence_evaluator.py

import pytest

from logic.evaluator import CorrespondenceEvaluator
from logic.formula import (
    Conj,
    Correspondence,
    Disj,
    Equal,
    EventAtom,
    Falsum,
    Holds,
    Neg,
    NotEqual,
    Query,
    Restriction,
    TimeOrder,
    conj,
    disj,
)
from logic.verdict import Verdict
from model.event import EventLog
from model.exceptions import ModelError
from model.terms import Const, Func, Name, Var
from protocols import simple_voting

A, B = Const("A"), Const("B")
cr = Func("pk", (Name("sk", 1),))
b1, b2 = Name("b", 2), Name("b", 3)
x, y = Var("x"), Var("y")


def f(symbol, *args):
    return Func(symbol, tuple(args))


def voting_query(name):
    return {q.name: q for q in simple_voting.queries()}[name]


@pytest.fixture
def evaluator(engine):
    return CorrespondenceEvaluator(engine)


def query(premises, conclusion, name="Q"):
    return Query(name, Correspondence(tuple(premises), conclusion))


class TestVotingQueries:
    """The reference queries on hand-built logs."""

    def test_01_one_tally_per_credential_has_deterministic_witness(self, evaluator):
        log = EventLog()
        first = log.record("BB_tally", (cr, b1), 1, "Tally#1")
        log.record("Cast", (cr, b1), 2, "Server#1")
        third = log.record("BB_tally", (cr, b2), 3, "Tally#2")

        result = evaluator.evaluate_query(voting_query("ONE"), log)

        assert result.verdict is Verdict.FALSE
        witness = result.counterexample
        assert witness.occurrences == (first, third)
        assert witness.times == {"i": 1, "j": 3}
        assert witness.substitution == {"cr": cr, "b1": b1, "b2": b2}

    def test_02_one_tally_holds_for_distinct_credentials(self, evaluator):
        log = EventLog()
        log.record("BB_tally", (cr, b1), 1)
        log.record("BB_tally", (Func("pk", (Name("sk", 9),)), b2), 2)
        assert evaluator.evaluate_query(voting_query("ONE"), log).holds

    def test_03_tally_must_follow_cast(self, evaluator):
        late = EventLog()
        late.record("BB_tally", (cr, b1), 2)
        late.record("Cast", (cr, b1), 5)
        assert evaluator.evaluate_query(voting_query("TallyFromCast"), late).verdict is Verdict.FALSE

        ordered = EventLog()
        ordered.record("Cast", (cr, b1), 1)
        ordered.record("BB_tally", (cr, b1), 2)
        assert evaluator.evaluate_query(voting_query("TallyFromCast"), ordered).holds

    def test_04_cast_of_another_ballot_does_not_count(self, evaluator):
        log = EventLog()
        log.record("Cast", (cr, b2), 1)
        log.record("BB_tally", (cr, b1), 2)
        assert not evaluator.evaluate_query(voting_query("TallyFromCast"), log).holds

    def test_05_individual_verifiability_and_its_corruption_escape(self, evaluator):
        sk_e, voter_id, rand = Name("skE", 4), Name("id", 5), Name("r", 6)
        ballot_for_b = f("enc", B, f("pk", sk_e), rand)
        log = EventLog()
        log.record("ElectionKey", (sk_e,), 1)
        log.record("Verified", (voter_id, cr, A), 2)
        log.record("BB_tally", (cr, ballot_for_b), 3)

        assert evaluator.evaluate_query(voting_query("IV1"), log).verdict is Verdict.FALSE
        assert evaluator.evaluate_query(voting_query("IV2"), log).verdict is Verdict.FALSE

        log.record("Corrupted", (voter_id,), 4)
        assert evaluator.evaluate_query(voting_query("IV1"), log).verdict is Verdict.FALSE
        assert evaluator.evaluate_query(voting_query("IV2"), log).holds


class TestConclusions:
    """Each conclusion form on small logs."""

    def test_01_vacuous_on_empty_log(self, evaluator):
        assert evaluator.evaluate_query(query([EventAtom("E", (x,))], Falsum()), EventLog()).holds

    def test_02_falsum_fails_on_any_premise_match(self, evaluator):
        log = EventLog()
        log.record("E", (A,), 1)
        assert not evaluator.evaluate_query(query([EventAtom("E", (x,))], Falsum()), log).holds

    def test_03_negation(self, evaluator):
        log = EventLog()
        log.record("E", (A,), 1)
        log.record("F", (B,), 2)
        q = query([EventAtom("E", (x,))], Neg(EventAtom("F", (x,))))
        assert evaluator.evaluate_query(q, log).holds
        log.record("F", (A,), 3)
        assert not evaluator.evaluate_query(q, log).holds

    def test_04_disjunction_tries_both_sides(self, evaluator):
        log = EventLog()
        log.record("E", (A,), 1)
        log.record("G", (A,), 2)
        q = query([EventAtom("E", (x,))], Disj(EventAtom("F", (x,)), EventAtom("G", (x,))))
        assert evaluator.evaluate_query(q, log).holds

    def test_05_conjunction_joins_bindings(self, evaluator):
        log = EventLog()
        log.record("E", (A,), 1)
        log.record("F", (A, B), 2)
        log.record("G", (A,), 3)
        q = query([EventAtom("E", (x,))], Conj(EventAtom("F", (x, y)), EventAtom("G", (y,))))
        assert not evaluator.evaluate_query(q, log).holds
        log.record("G", (B,), 4)
        assert evaluator.evaluate_query(q, log).holds

    def test_06_holds_with_failing_expression_does_not_hold(self, evaluator):
        log = EventLog()
        log.record("E", (A,), 1)
        q = query([EventAtom("E", (x,))], Holds(f("eq", f("dec", x, x), A)))
        assert evaluator.evaluate_query(q, log).verdict is Verdict.FALSE

    def test_07_equality_and_disequality(self, evaluator):
        log = EventLog()
        log.record("P", (A, B), 1)
        equal = query([EventAtom("P", (x, y))], Equal(x, y))
        unequal = query([EventAtom("P", (x, y))], NotEqual(x, y))
        assert not evaluator.evaluate_query(equal, log).holds
        assert evaluator.evaluate_query(unequal, log).holds

    def test_08_disequality_needs_both_sides_defined(self, evaluator):
        log = EventLog()
        log.record("P", (A, B), 1)
        q = query([EventAtom("P", (x, y))], NotEqual(f("dec", x, y), y))
        assert not evaluator.evaluate_query(q, log).holds

    def test_09_time_ordering(self, evaluator):
        log = EventLog()
        log.record("E", (A,), 1)
        log.record("F", (A,), 1)
        before = query([EventAtom("E", (x,), at="i")], conj(EventAtom("F", (x,), at="j"),
                                                           TimeOrder("j", "<", "i")))
        same_step = query([EventAtom("E", (x,), at="i")], conj(EventAtom("F", (x,), at="j"),
                                                              TimeOrder("j", "<=", "i")))
        assert not evaluator.evaluate_query(before, log).holds
        assert evaluator.evaluate_query(same_step, log).holds

    def test_10_unbound_time_variable_is_an_error(self, evaluator):
        log = EventLog()
        log.record("E", (A,), 1)
        q = query([EventAtom("E", (x,), at="i")], TimeOrder("i", "<", "k"))
        with pytest.raises(ModelError, match="unbound"):
            evaluator.evaluate_query(q, log)

    def test_11_restriction_check(self, evaluator):
        unique = simple_voting.restrictions()[0]
        log = EventLog()
        log.record("ElectionKey", (Name("k", 1),), 1)
        assert evaluator.check_restriction(unique, log)
        log.record("ElectionKey", (Name("k", 2),), 2)
        assert not evaluator.check_restriction(unique, log)

    def test_12_evaluate_all_keeps_query_order(self, evaluator):
        results = evaluator.evaluate_all(simple_voting.queries(), EventLog())
        assert list(results) == ["IV1", "IV2", "ONE", "TallyFromCast"]
        assert all(r.holds for r in results.values())


class TestFormulaValidation:
    """Restriction and query validation against a signature."""

    def test_01_reference_formulas_validate(self, voting_model):
        for item in simple_voting.restrictions() + simple_voting.queries():
            item.validate(voting_model.signature)

    def test_02_undeclared_event(self, voting_model):
        bad = query([EventAtom("Nope", (x,))], Falsum(), name="Bad")
        with pytest.raises(ModelError, match="Query Bad"):
            bad.validate(voting_model.signature)

    def test_03_event_arity(self, voting_model):
        bad = Restriction("R", Correspondence((EventAtom("Cast", (x,)),), Falsum()))
        with pytest.raises(ModelError, match="Restriction R"):
            bad.validate(voting_model.signature)

    def test_04_undeclared_symbol_in_conclusion(self, voting_model):
        bad = query([EventAtom("Corrupted", (x,))], Holds(f("mystery", x)))
        with pytest.raises(ModelError):
            bad.validate(voting_model.signature)

    def test_05_no_premises(self, voting_model):
        with pytest.raises(ModelError, match="no premises"):
            query([], Falsum()).validate(voting_model.signature)

    def test_06_unknown_time_operator(self):
        with pytest.raises(ModelError):
            TimeOrder("i", ">", "j")

    def test_08_unbound_conclusion_variable(self, voting_model):
        cast = EventAtom("Cast", (x, y))
        bad = query([cast], Holds(f("eq", y, Var("zzz"))), name="Bad")
        with pytest.raises(ModelError, match="'zzz'.*before it is bound"):
            bad.validate(voting_model.signature)
        with pytest.raises(ModelError, match="'zzz'"):
            query([cast], NotEqual(Var("zzz"), y)).validate(voting_model.signature)

    def test_09_unbound_time_variable(self, voting_model):
        bad = query([EventAtom("Cast", (x, y), at="i")], TimeOrder("i", "<", "nope"))
        with pytest.raises(ModelError, match="nope"):
            bad.validate(voting_model.signature)

    def test_10_conclusion_atoms_bind_to_their_right(self, voting_model):
        """An event atom in a conjunction binds for the conjuncts after it, not before."""
        sig = voting_model.signature
        k = Var("k")
        ok = query([EventAtom("Cast", (x, y), at="i")],
                   conj(EventAtom("ElectionKey", (k,), at="j"),
                        Holds(f("eq", f("dec", y, k), A)),
                        TimeOrder("j", "<", "i")))
        ok.validate(sig)
        reversed_order = query([EventAtom("Cast", (x, y))],
                               conj(Holds(f("eq", f("dec", y, k), A)),
                                    EventAtom("ElectionKey", (k,))))
        with pytest.raises(ModelError, match="'k'"):
            reversed_order.validate(sig)

    def test_11_disjunction_exports_only_shared_binders(self, voting_model):
        sig = voting_model.signature
        k = Var("k")
        both = disj(EventAtom("ElectionKey", (k,)), EventAtom("Corrupted", (k,)))
        query([EventAtom("Cast", (x, y))], conj(both, Equal(k, k))).validate(sig)
        one_side = disj(EventAtom("ElectionKey", (k,)), EventAtom("Corrupted", (x,)))
        with pytest.raises(ModelError, match="'k'"):
            query([EventAtom("Cast", (x, y))], conj(one_side, Equal(k, k))).validate(sig)

    def test_12_negation_binds_only_inside(self, voting_model):
        sig = voting_model.signature
        k = Var("k")
        inside = Neg(conj(EventAtom("ElectionKey", (k,)), NotEqual(k, y)))
        query([EventAtom("Cast", (x, y))], inside).validate(sig)
        with pytest.raises(ModelError, match="'k'"):
            query([EventAtom("Cast", (x, y))],
                  conj(Neg(EventAtom("ElectionKey", (k,))), Equal(k, y))).validate(sig)

    def test_13_destructor_in_event_arguments(self, voting_model):
        bad = query([EventAtom("Corrupted", (f("getmess", x),))], Falsum())
        with pytest.raises(ModelError, match="destructor 'getmess'"):
            bad.validate(voting_model.signature)
        in_conclusion = query([EventAtom("Cast", (x, y))], EventAtom("Corrupted", (f("dec", y, x),)))
        with pytest.raises(ModelError, match="destructor 'dec'"):
            in_conclusion.validate(voting_model.signature)

    def test_14_bad_restriction_rejected_before_replay(self, voting_model):
        from core.replay import replay

        bad = Restriction("Loose", Correspondence((EventAtom("ElectionKey", (x,)),),
                                                  Equal(x, Var("other"))))
        with pytest.raises(ModelError, match="Restriction Loose"):
            replay(voting_model, [], [bad])

    def test_15_helpers(self):
        assert isinstance(disj(), Falsum)
        assert disj(Falsum(), Falsum()) == Disj(Falsum(), Falsum())
        with pytest.raises(ValueError):
            conj()


class TestVerdicts:
    """Combining verdicts."""

    def test_01_combine(self):
        assert Verdict.combine([Verdict.TRUE, Verdict.TRUE]) is Verdict.TRUE
        assert Verdict.combine([Verdict.TRUE, Verdict.INADMISSIBLE]) is Verdict.INADMISSIBLE
        assert Verdict.combine([Verdict.INADMISSIBLE, Verdict.FALSE]) is Verdict.FALSE
        assert Verdict.combine([]) is Verdict.TRUE

    def test_02_conclusiveness(self):
        assert Verdict.FALSE.is_conclusive()
        assert not Verdict.INADMISSIBLE.is_conclusive()
