"""Front-end rewrites run before the tower is built.

Hyperbolic functions turn into exponentials, logs of products get split, and trig functions get
either the half-angle substitution or the complex exponential form.
"""

from dataclasses import dataclass
from fractions import Fraction
from functools import reduce
from math import gcd
from typing import List, Tuple

import sympy

from .convert import from_sympy, to_sympy
from .expr import (
    E,
    Expr,
    I,
    Power,
    Prod,
    Rat,
    Symbol,
    TrigFunctionNotInverse,
    cos,
    cosh,
    cot,
    csc,
    exp,
    log,
    sec,
    sin,
    sinh,
    tan,
    tanh,
)
from .polynomial import multiple_angle
from .utils import general_collect, replace_factory, replace_factory_list


@dataclass
class Rewritten:
    """The integrand after the front end.

    var is the variable to integrate in. For the half-angle substitution it is a fresh symbol, and
    definition is what it stands for in terms of the original variable. jacobian is d(var)/dx written
    in the new variable, so a residual integrand g(var) d(var) maps back to g * jacobian dx.
    """

    expr: Expr
    var: Symbol
    definition: Expr
    jacobian: Expr
    needs_algebraic: bool = False
    strategy: str = "none"


TAU = Symbol("_tau")


def rewrite_hyperbolic(expr: Expr) -> Expr:
    def _perform(e: Expr) -> Expr:
        u = rewrite_hyperbolic(e.inner)
        if isinstance(e, sinh):
            return (exp(u) - exp(-u)) / 2
        if isinstance(e, cosh):
            return (exp(u) + exp(-u)) / 2
        return (exp(2 * u) - 1) / (exp(2 * u) + 1)

    return replace_factory(lambda e: isinstance(e, (sinh, cosh, tanh)), _perform)(expr)


def expand_logs(expr: Expr) -> Expr:
    """log(a*b) -> log(a) + log(b), log(a^n) -> n*log(a), log base b -> ln / ln(b)"""

    def _expand(inner: Expr) -> Expr:
        if isinstance(inner, Prod):
            return sum(_expand(t) for t in inner.terms)
        if isinstance(inner, Power) and isinstance(inner.exponent, Rat):
            return inner.exponent * _expand(inner.base)
        return log(inner)

    def _perform(e: log) -> Expr:
        ans = _expand(expand_logs(e.inner))
        if not isinstance(e.base, E):
            ans = ans / log(e.base)
        return ans

    return replace_factory(lambda e: isinstance(e, log), _perform)(expr)


def _to_sin_cos(expr: Expr) -> Expr:
    conditions = [lambda e, cls=cls: isinstance(e, cls) for cls in (tan, sec, csc, cot)]
    performs = [
        lambda e: sin(_to_sin_cos(e.inner)) / cos(_to_sin_cos(e.inner)),
        lambda e: 1 / cos(_to_sin_cos(e.inner)),
        lambda e: 1 / sin(_to_sin_cos(e.inner)),
        lambda e: cos(_to_sin_cos(e.inner)) / sin(_to_sin_cos(e.inner)),
    ]
    return replace_factory_list(conditions, performs)(expr)


def _rational_gcd(values: List[Fraction]) -> Fraction:
    num = reduce(gcd, (v.numerator for v in values))
    den = reduce(lambda a, b: a * b // gcd(a, b), (v.denominator for v in values))
    return Fraction(num, den)


def _common_angle(args: List[sympy.Expr], var: sympy.Symbol) -> Tuple[sympy.Expr, List[int]]:
    """If every arg is a rational multiple of the first one, returns the base angle theta and the
    integer multiples n_i with arg_i = n_i * theta. Returns (None, None) otherwise."""
    ratios = []
    for a in args:
        r = sympy.cancel(a / args[0])
        if not r.is_Rational:
            return None, None
        ratios.append(Fraction(int(r.p), int(r.q)))
    g = _rational_gcd(ratios)
    theta = sympy.Rational(g.numerator, g.denominator) * args[0]
    return theta, [int(r / g) for r in ratios]


def rewrite_trig(expr: Expr, var: Symbol) -> Rewritten:
    expr = _to_sin_cos(expr)

    def _is_trig(e: Expr) -> bool:
        return isinstance(e, (sin, cos)) and e.contains(var)

    nodes = general_collect(expr, _is_trig)
    if not nodes:
        return Rewritten(expr, var, var, Rat(1))

    # Exprs aren't hashable; the backend's are.
    svar = to_sympy(var)
    args = [to_sympy(n.inner) for n in nodes]
    distinct = list(dict.fromkeys(args))
    theta, multiples = _common_angle(distinct, svar)

    if theta is not None and _half_angle_applies(expr, var, theta, svar, _is_trig):
        return _half_angle(expr, var, theta, dict(zip(distinct, multiples)), svar, _is_trig)
    return _complex_exponential(expr, var, _is_trig)


def _half_angle_applies(expr, var, theta, svar, is_trig) -> bool:
    slope = sympy.diff(theta, svar)
    if slope == 0 or slope.has(svar):
        return False
    # var can't show up outside the trig functions
    dummy = Symbol("_trig")
    stripped = replace_factory(is_trig, lambda e: dummy)(expr)
    return not stripped.contains(var)


def _half_angle(expr, var, theta, multiples, svar, is_trig) -> Rewritten:
    tau = TAU
    s = 2 * tau / (1 + tau**2)
    c = (1 - tau**2) / (1 + tau**2)

    def _perform(e: TrigFunctionNotInverse) -> Expr:
        n = multiples[to_sympy(e.inner)]
        return multiple_angle(e.func, n, s, c)

    slope = from_sympy(sympy.diff(theta, svar))
    new_expr = replace_factory(is_trig, _perform)(expr) * 2 / (slope * (1 + tau**2))
    definition = tan(from_sympy(theta) / 2)
    jacobian = slope * (1 + tau**2) / 2
    return Rewritten(new_expr, tau, definition, jacobian, strategy="half-angle")


def _complex_exponential(expr, var, is_trig) -> Rewritten:
    def _perform(e: TrigFunctionNotInverse) -> Expr:
        u = replace_factory(is_trig, _perform)(e.inner)
        big_e = exp(I * u)
        if isinstance(e, sin):
            return (big_e - 1 / big_e) / (2 * I)
        return (big_e + 1 / big_e) / 2

    new_expr = replace_factory(is_trig, _perform)(expr)
    return Rewritten(new_expr, var, var, Rat(1), needs_algebraic=True, strategy="complex-exponential")
