# core/theories.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Standard and cryptographic equational theories

"""Ready-made signatures.

`standard_theory()` holds what every model needs: the boolean constants,
`ok`, the structural equality test `eq`, boolean connectives over `true`
and `false`, the variadic `tuple` constructor and its projections.

`voting_theory()` extends it with the primitives used by verifiable voting
schemes:

    pk(sk)                       public key of a secret key
    enc(m, pk, r)                randomized encryption
    renc(c, pk, r)               re-encryption; on a ciphertext under the same
                                 key it folds the randomness with `radd`
    dec(enc(m, pk(sk), r), sk)   = m
    sign(m, sk)                  signature with message recovery
    checksign(sign(m, sk), pk(sk)) = m,  getmess(sign(m, sk)) = m
    zkp(c, m, r)                 proof of correct encryption
    checkzkp(zkp(enc(m,k,r), m, r), enc(m,k,r)) = ok
    tdcommit(m, r, td)           trapdoor commitment
    fakeopen(r, td, m1, m2)      opening randomness that reopens m1 to m2
    checkopen(tdcommit(m,r,td), m, r) = ok
    checkopen(tdcommit(m1,r,td), m2, fakeopen(r,td,m1,m2)) = ok
    h(x)                         hash

Private symbols cannot be used in attacker recipes; all primitives here
are public.
"""

from model.signature import VARIADIC, Signature, rule, v
from model.terms import FALSE, TRUE, Func

#: largest tuple size for which projection rules are generated
MAX_TUPLE = 8

OK = Func("ok", ())


def standard_theory() -> Signature:
    sig = Signature()
    sig.constant("true")
    sig.constant("false")
    sig.constant("ok")

    x, y = v("x"), v("y")
    sig.destructor("eq", 2, [rule((x, x), TRUE)], otherwise=FALSE)
    sig.destructor("neq", 2, [rule((x, x), FALSE)], otherwise=TRUE)
    sig.destructor("not", 1, [rule((TRUE,), FALSE), rule((FALSE,), TRUE)])
    sig.destructor("and", 2, [rule((TRUE, TRUE), TRUE)], otherwise=FALSE)
    sig.destructor("or", 2, [rule((TRUE, y), TRUE), rule((x, TRUE), TRUE)], otherwise=FALSE)

    sig.constructor("tuple", VARIADIC)
    items = [v(f"x{i}") for i in range(1, MAX_TUPLE + 1)]
    for position in range(1, MAX_TUPLE + 1):
        rules = [
            rule((Func("tuple", tuple(items[:size])),), items[position - 1])
            for size in range(position, MAX_TUPLE + 1)
        ]
        sig.destructor(f"proj_{position}", 1, rules)
    return sig


def voting_theory() -> Signature:
    sig = standard_theory()
    m, m1, m2 = v("m"), v("m1"), v("m2")
    k, sk, r, r1, r2, td = v("k"), v("sk"), v("r"), v("r1"), v("r2"), v("td")

    def pk(key):
        return Func("pk", (key,))

    def enc(msg, key, rand):
        return Func("enc", (msg, key, rand))

    sig.constructor("pk", 1)
    sig.constructor("enc", 3)
    sig.constructor("radd", 2)
    sig.constructor(
        "renc", 3,
        equations=[rule((enc(m, k, r1), k, r2), enc(m, k, Func("radd", (r1, r2))))],
    )
    sig.destructor("dec", 2, [rule((enc(m, pk(sk), r), sk), m)])

    sig.constructor("sign", 2)
    sig.destructor("checksign", 2, [rule((Func("sign", (m, sk)), pk(sk)), m)])
    sig.destructor("getmess", 1, [rule((Func("sign", (m, sk)),), m)])

    sig.constructor("zkp", 3)
    sig.destructor(
        "checkzkp", 2,
        [rule((Func("zkp", (enc(m, k, r), m, r)), enc(m, k, r)), OK)],
    )

    sig.constructor("tdcommit", 3)
    sig.constructor("fakeopen", 4)
    sig.destructor(
        "checkopen", 3,
        [
            rule((Func("tdcommit", (m, r, td)), m, r), OK),
            rule((Func("tdcommit", (m1, r, td)), m2, Func("fakeopen", (r, td, m1, m2))), OK),
        ],
    )

    sig.constructor("h", 1)
    return sig
