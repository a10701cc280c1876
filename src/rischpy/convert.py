"""Translating between Exprs and the algebra backend (sympy).

The integrator does its polynomial arithmetic in sympy; everything a user sees is an Expr.
"""

from typing import Dict, Optional

import sympy

from .expr import (
    E,
    Expr,
    Integral,
    Pi,
    Power,
    Prod,
    Rat,
    RootSum,
    Sum,
    Symbol,
    atan,
    cos,
    cosh,
    cot,
    csc,
    e,
    log,
    pi,
    sec,
    sin,
    sinh,
    tan,
    tanh,
)

_FUNCS = {
    sin: sympy.sin,
    cos: sympy.cos,
    tan: sympy.tan,
    sec: sympy.sec,
    csc: sympy.csc,
    cot: sympy.cot,
    atan: sympy.atan,
    sinh: sympy.sinh,
    cosh: sympy.cosh,
    tanh: sympy.tanh,
}
_INVERSE_FUNCS = {v: k for k, v in _FUNCS.items()}


def to_sympy(expr: Expr) -> sympy.Expr:
    if isinstance(expr, Rat):
        return sympy.Rational(expr.value.numerator, expr.value.denominator)
    if isinstance(expr, Pi):
        return sympy.pi
    if isinstance(expr, E):
        return sympy.E
    if isinstance(expr, Symbol):
        return sympy.Symbol(expr.name)
    if isinstance(expr, Sum):
        return sympy.Add(*[to_sympy(t) for t in expr.terms])
    if isinstance(expr, Prod):
        return sympy.Mul(*[to_sympy(t) for t in expr.terms])
    if isinstance(expr, Power):
        if isinstance(expr.base, E):
            return sympy.exp(to_sympy(expr.exponent))
        return sympy.Pow(to_sympy(expr.base), to_sympy(expr.exponent))
    if isinstance(expr, log):
        if isinstance(expr.base, E):
            return sympy.log(to_sympy(expr.inner))
        return sympy.log(to_sympy(expr.inner)) / sympy.log(to_sympy(expr.base))
    if expr.__class__ in _FUNCS:
        return _FUNCS[expr.__class__](to_sympy(expr.inner))
    if isinstance(expr, Integral):
        return sympy.Integral(to_sympy(expr.integrand), to_sympy(expr.var))
    if isinstance(expr, RootSum):
        z = to_sympy(expr.var)
        return sympy.RootSum(to_sympy(expr.poly), sympy.Lambda(z, to_sympy(expr.body)))

    raise NotImplementedError(f"to_sympy not implemented for {expr.__class__.__name__}")


def from_sympy(sexpr: sympy.Expr, subs: Optional[Dict[sympy.Symbol, Expr]] = None) -> Expr:
    """subs: backend symbols to put an Expr in place of, instead of a plain Symbol."""
    if subs is None:
        subs = {}

    def _convert(s: sympy.Expr) -> Expr:
        if s in subs:
            return subs[s]
        if isinstance(s, sympy.Rational):
            return Rat(int(s.p), int(s.q))
        if s is sympy.pi:
            return pi
        if s is sympy.E:
            return e
        if s is sympy.I:
            return Power(Rat(-1), Rat(1, 2))
        if isinstance(s, sympy.Float):
            raise NotImplementedError(f"Cannot convert float {s}, everything has to be exact")
        if isinstance(s, sympy.Symbol):
            return Symbol(s.name)
        if isinstance(s, sympy.Add):
            return Sum([_convert(a) for a in s.args])
        if isinstance(s, sympy.Mul):
            return Prod([_convert(a) for a in s.args])
        if isinstance(s, sympy.Pow):
            return Power(_convert(s.base), _convert(s.exp))
        if isinstance(s, sympy.exp):
            return Power(e, _convert(s.args[0]))
        if isinstance(s, sympy.log):
            return log(_convert(s.args[0]))
        if s.func in _INVERSE_FUNCS:
            return _INVERSE_FUNCS[s.func](_convert(s.args[0]))
        if isinstance(s, sympy.Integral):
            var = s.variables[0]
            return Integral(_convert(s.function), Symbol(var.name))
        if isinstance(s, sympy.RootSum):
            z = s.fun.variables[0]
            inner = {k: v for k, v in subs.items() if k != z}
            return RootSum(from_sympy(s.poly.as_expr(z), inner), Symbol(z.name), from_sympy(s.fun.expr, inner))

        raise NotImplementedError(f"from_sympy not implemented for {s.func}")

    return _convert(sexpr)
