# core/term_engine.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Constructor building, destructor reduction and expression evaluation

"""Symbolic term engine.

The engine gives meaning to a `Signature`:

    build(f, args)   constructor application; the constructor's equations are
                     tried in order and the first match rewrites the result
    reduce(g, args)  destructor application; first matching rule wins, then
                     the `otherwise` fallback, else failure (None)
    equals(a, b)     syntactic identity of normal forms
    evaluate(e, σ)   bottom-up evaluation of an action expression

Failure is an ordinary return value (None) so callers can treat it as a
false guard. Evaluating an unbound variable is a contract violation and
raises `UnboundVariableError`.
"""

from __future__ import annotations
from typing import Mapping, Optional, Sequence

from model.exceptions import ModelError, UnboundVariableError
from model.signature import VARIADIC, RewriteRule, Signature
from model.terms import Const, Func, Name, Term, Var, match_sequence
from utils.logger import get_logger


class TermEngine:
    """Evaluates terms over one protocol signature. Stateless apart from the signature."""

    def __init__(self, signature: Signature):
        self.signature = signature

    # -- constructors ----------------------------------------------------------

    def build(self, symbol: str, args: Sequence[Term]) -> Term:
        """Apply constructor `symbol`; always succeeds for well-formed input."""
        ctor = self.signature.constructors.get(symbol)
        if ctor is None:
            raise ModelError(f"'{symbol}' is not a declared constructor")
        args = tuple(args)
        self._check_arity(symbol, ctor.arity, args)
        for rule in ctor.equations:
            rewritten = self._try_rule(symbol, rule, args)
            if rewritten is not None:
                return rewritten
        return Func(symbol, args)

    # -- destructors -----------------------------------------------------------

    def reduce(self, symbol: str, args: Sequence[Term]) -> Optional[Term]:
        """Apply destructor `symbol` to normalized ground `args`; None on failure."""
        dtor = self.signature.destructors.get(symbol)
        if dtor is None:
            raise ModelError(f"'{symbol}' is not a declared destructor")
        args = tuple(args)
        self._check_arity(symbol, dtor.arity, args)
        for arg in args:
            if not arg.is_ground():
                raise ModelError(f"Destructor '{symbol}' applied to non-ground argument {arg}")
        for rule in dtor.rules:
            result = self._try_rule(symbol, rule, args)
            if result is not None:
                return result
        if dtor.otherwise is not None:
            result = self.normalize(dtor.otherwise)
            get_logger().rewrite_applied(f"{symbol} (otherwise)", str(result))
            return result
        get_logger().debug(f"      ✗ {symbol}({', '.join(str(a) for a in args)}) fails")
        return None

    def apply(self, symbol: str, args: Sequence[Term]) -> Optional[Term]:
        """Dispatch to `build` or `reduce` depending on how `symbol` is declared."""
        if symbol in self.signature.constructors:
            return self.build(symbol, args)
        return self.reduce(symbol, args)

    # -- equality and normal forms -----------------------------------------------

    def normalize(self, term: Term) -> Term:
        """Rebuild `term` bottom-up so every constructor equation has been applied."""
        if isinstance(term, Func):
            if term.symbol not in self.signature.constructors:
                raise ModelError(f"'{term.symbol}' in data term {term} is not a constructor")
            return self.build(term.symbol, [self.normalize(a) for a in term.args])
        if isinstance(term, Var):
            raise UnboundVariableError(term.name, "normalize")
        return term

    def equals(self, left: Term, right: Term) -> bool:
        return self.normalize(left) == self.normalize(right)

    # -- expressions ---------------------------------------------------------------

    def evaluate(self, expr: Term, bindings: Mapping[str, Term]) -> Optional[Term]:
        """
        Evaluate an action expression. `Var` leaves are looked up in `bindings`;
        `Func` nodes are built or reduced. Any failing sub-expression fails the
        whole expression.
        """
        if isinstance(expr, Var):
            value = bindings.get(expr.name)
            if value is None:
                raise UnboundVariableError(expr.name, "expression evaluation")
            return value
        if isinstance(expr, (Const, Name)):
            return expr
        if isinstance(expr, Func):
            args = []
            for arg in expr.args:
                value = self.evaluate(arg, bindings)
                if value is None:
                    return None
                args.append(value)
            if expr.symbol in self.signature.constructors:
                return self.build(expr.symbol, args)
            if expr.symbol in self.signature.destructors:
                return self.reduce(expr.symbol, args)
            raise ModelError(f"Undeclared function symbol '{expr.symbol}'")
        raise TypeError(f"Cannot evaluate {expr!r}")

    # -- internals -------------------------------------------------------------------

    def _try_rule(self, symbol: str, rule: RewriteRule, args: tuple) -> Optional[Term]:
        subst = match_sequence(rule.lhs, args)
        if subst is None:
            return None
        result = self._instantiate(rule.rhs, subst)
        get_logger().rewrite_applied(symbol, str(result))
        return result

    def _instantiate(self, rhs: Term, subst: Mapping[str, Term]) -> Term:
        if isinstance(rhs, Var):
            return subst[rhs.name]
        if isinstance(rhs, Func):
            if rhs.symbol not in self.signature.constructors:
                raise ModelError(f"Rule right-hand side uses non-constructor '{rhs.symbol}'")
            return self.build(rhs.symbol, [self._instantiate(a, subst) for a in rhs.args])
        return rhs

    @staticmethod
    def _check_arity(symbol: str, arity: Optional[int], args: tuple) -> None:
        if arity is not VARIADIC and arity != len(args):
            raise ModelError(f"'{symbol}' expects {arity} arguments, got {len(args)}")
