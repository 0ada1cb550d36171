# protocols/simple_voting.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Reference model: a bulletin-board voting scheme with signed encrypted ballots

"""Simple voting.

Parties:
    Admin         (singleton) generates the election key, publishes pk(skE)
                  on the board and hands skE to the tallier
    Registrar     creates a voter identity with a signing key, publishes the
                  verification key
    Voter         reads its credentials and the election key, receives its
                  choice on the public channel `c`, sends a signed encrypted
                  ballot with a proof of correct encryption and finally checks
                  that its ballot is on the board
    Server        checks signature and proof, then publishes the ballot
    Tally         decrypts one published ballot and publishes the result
    CorruptVoter  leaks a voter's identity and signing key to the network

Individual verifiability (IV1) fails when a corrupted voter's credential is
reused by the attacker; IV2 allows exactly that escape.
"""

from logic.formula import (
    Correspondence,
    Disj,
    Equal,
    EventAtom,
    Holds,
    Query,
    Restriction,
    TimeOrder,
    Conj,
)
from model.patterns import Bind, Exact, PFunc
from model.process import Emit, Get, Guard, In, Insert, Let, New, Out, RoleTemplate
from model.protocol import ProtocolModel
from model.terms import Func, Var
from core.theories import voting_theory

NAME = "simple_voting"


def _f(symbol, *args):
    return Func(symbol, tuple(args))


def build_model() -> ProtocolModel:
    sig = voting_theory()
    sig.channel("c", public=True)
    sig.free_name("A")
    sig.free_name("B")

    sig.table("voter_creds", 2)
    sig.table("tally_key", 1)
    sig.table("bb_election", 1, public=True)
    sig.table("bb_voters", 1, public=True)
    sig.table("bb_ballots", 2, public=True)
    sig.table("bb_result", 1, public=True)

    sig.event("ElectionKey", 1)
    sig.event("Registered", 2)
    sig.event("Voted", 3)
    sig.event("Verified", 3)
    sig.event("Cast", 2)
    sig.event("BB_tally", 2)
    sig.event("Corrupted", 1)

    id_, sk, skE, pkE = Var("id"), Var("sk"), Var("skE"), Var("pkE")
    v, r, b, p, s, m, cr = Var("v"), Var("r"), Var("b"), Var("p"), Var("s"), Var("m"), Var("cr")
    pk_sk = _f("pk", sk)

    admin = RoleTemplate("Admin", (
        New("skE"),
        Emit("ElectionKey", (skE,)),
        Insert("bb_election", (_f("pk", skE),)),
        Insert("tally_key", (skE,)),
    ))

    registrar = RoleTemplate("Registrar", (
        New("id"),
        New("sk"),
        Insert("voter_creds", (id_, sk)),
        Insert("bb_voters", (pk_sk,)),
        Emit("Registered", (id_, pk_sk)),
    ), replicated=True)

    voter = RoleTemplate("Voter", (
        Get("voter_creds", (Bind("id"), Bind("sk"))),
        Get("bb_election", (Bind("pkE"),)),
        In("c", Bind("v")),
        New("r"),
        Let(Bind("b"), _f("enc", v, pkE, r)),
        Let(Bind("p"), _f("zkp", b, v, r)),
        Let(Bind("s"), _f("sign", _f("tuple", b, p), sk)),
        Out("c", _f("tuple", pk_sk, b, p, s)),
        Emit("Voted", (id_, pk_sk, v)),
        Get("bb_ballots", (Exact(pk_sk), Exact(b))),
        Emit("Verified", (id_, pk_sk, v)),
    ), replicated=True)

    server = RoleTemplate("Server", (
        In("c", PFunc("tuple", (Bind("cr"), Bind("b"), Bind("p"), Bind("s")))),
        Get("bb_voters", (Exact(cr),)),
        Let(Bind("m"), _f("checksign", s, cr)),
        Guard(_f("eq", m, _f("tuple", b, p))),
        Guard(_f("eq", _f("checkzkp", p, b), _f("ok"))),
        Insert("bb_ballots", (cr, b)),
        Emit("Cast", (cr, b)),
    ), replicated=True)

    tally = RoleTemplate("Tally", (
        Get("tally_key", (Bind("sk"),)),
        Get("bb_ballots", (Bind("cr"), Bind("b"))),
        Let(Bind("v"), _f("dec", b, sk)),
        Emit("BB_tally", (cr, b)),
        Insert("bb_result", (v,)),
    ), replicated=True)

    corrupt = RoleTemplate("CorruptVoter", (
        Get("voter_creds", (Bind("id"), Bind("sk"))),
        Emit("Corrupted", (id_,)),
        Out("c", _f("tuple", id_, sk)),
    ), replicated=True)

    return ProtocolModel(NAME, sig, [admin, registrar, voter, server, tally, corrupt])


def restrictions():
    k1, k2 = Var("k1"), Var("k2")
    return (
        Restriction("UniqueElectionKey", Correspondence(
            (EventAtom("ElectionKey", (k1,)), EventAtom("ElectionKey", (k2,))),
            Equal(k1, k2),
        )),
    )


def queries():
    id_, cr, v, b, k = Var("id"), Var("cr"), Var("v"), Var("b"), Var("k")
    decrypts_to_vote = Holds(_f("eq", _f("dec", b, k), v))
    verified_and_tallied = (
        EventAtom("Verified", (id_, cr, v)),
        EventAtom("BB_tally", (cr, b)),
        EventAtom("ElectionKey", (k,)),
    )
    return (
        Query("IV1", Correspondence(verified_and_tallied, decrypts_to_vote)),
        Query("IV2", Correspondence(
            verified_and_tallied,
            Disj(decrypts_to_vote, EventAtom("Corrupted", (id_,))),
        )),
        Query("ONE", Correspondence(
            (EventAtom("BB_tally", (cr, Var("b1")), at="i"),
             EventAtom("BB_tally", (cr, Var("b2")), at="j")),
            TimeOrder("i", "=", "j"),
        )),
        Query("TallyFromCast", Correspondence(
            (EventAtom("BB_tally", (cr, b), at="i"),),
            Conj(EventAtom("Cast", (cr, b), at="j"), TimeOrder("j", "<", "i")),
        )),
    )
