"""Integration in a logarithmic (primitive) extension: the top generator t has D(t) = D(u)/u."""

from typing import Callable, Optional, Tuple

import sympy

from .errors import AlgorithmFailure, backend_errors
from .rational import hermite_reduce, residue_reduce, split_polynomial
from .result import Antiderivative
from .tower import Tower

LowerIntegrator = Callable[[sympy.Expr], Antiderivative]


def limited_integrate(a: sympy.Expr, tower: Tower, level: int, lower: LowerIntegrator) -> Optional[Tuple[sympy.Expr, sympy.Expr]]:
    """a = D(b) + c*D(t) with b one level down and c constant. Returns (b, c), or None.

    The lower integrator does the work. Its answer is usable when every log it produced is a
    constant multiple of t plus a constant.
    """
    gen = tower[level]
    t = gen.symbol
    field = tower.field
    res = lower(a)
    if not res.is_closed:
        return None

    c = sympy.S.Zero
    for log_sum in res.logs:
        if log_sum.roots is None:
            return None
        for root in log_sum.roots:
            v = log_sum.arg.subs(log_sum.z, root)
            ratio = field.normalize(tower.D(v) / (v * gen.derivative))
            if not tower.constant(ratio):
                return None
            c += root * ratio
    c = field.normalize(c)
    if not tower.constant(c):
        return None
    return res.rational, c


@backend_errors
def integrate_primitive(f: sympy.Expr, tower: Tower, level: int, lower: LowerIntegrator) -> Antiderivative:
    t = tower[level].symbol
    field = tower.field

    num, den = field.fraction(f, t)
    p, r = split_polynomial(num, den)
    g, a, d, _ = hermite_reduce(r, den, tower)
    extra, a = a.div(d)
    p = p + extra

    result = Antiderivative(rational=g)
    logs, elementary = residue_reduce(a, d, tower)
    if elementary:
        result.logs = logs
    else:
        result.residual = field.normalize(a.as_expr() / d.as_expr())

    return result + _integrate_polynomial(p, tower, level, lower)


def _integrate_polynomial(p: sympy.Poly, tower: Tower, level: int, lower: LowerIntegrator) -> Antiderivative:
    """p in K[t], leading coefficients first. Each step kills the top coefficient of p."""
    t = tower[level].symbol
    field = tower.field
    q = sympy.S.Zero

    while p.degree() > 0:
        m = p.degree()
        solved = limited_integrate(p.LC(), tower, level, lower)
        if solved is None:
            return Antiderivative(rational=q, residual=p.as_expr())
        b, c = solved
        step = c * t ** (m + 1) / (m + 1) + b * t**m
        q += step
        new_p = p - field.poly(tower.D(step), t)
        if not new_p.is_zero and new_p.degree() >= m:
            raise AlgorithmFailure(f"degree of {p.as_expr()} did not drop while integrating in {t}")
        p = new_p

    if p.is_zero:
        return Antiderivative(rational=q)
    return Antiderivative(rational=q) + lower(p.as_expr())
