"""Putting tower elements back into terms of the original variable.

Log sums over conjugate roots become real logs and arctangents (Rioboo's LogToAtan), roots that
can't be written down become a RootSum, and exp(i*v) generators turn back into cos(v) + i*sin(v).
"""

from typing import Optional, Tuple

import sympy

from .convert import from_sympy, to_sympy
from .errors import backend_errors
from .expr import Expr
from .fields import _has_algebraic
from .result import Antiderivative, LogSum
from .rewrite import Rewritten
from .tower import GeneratorKind, Tower


def log_to_atan(A: sympy.Poly, B: sympy.Poly) -> sympy.Expr:
    """A real function whose derivative is the derivative of i*log((A + iB)/(A - iB)),
    written as a sum of arctangents of polynomials."""
    q, r = A.div(B)
    if r.is_zero:
        return 2 * sympy.atan(q.as_expr())
    if A.degree() < B.degree():
        return log_to_atan(-B, A)
    D, C, G = B.gcdex(-A)
    return 2 * sympy.atan((A * D + B * C).as_expr() / G.as_expr()) + log_to_atan(D, C)


def _real_imag(e: sympy.Expr) -> Optional[Tuple[sympy.Expr, sympy.Expr]]:
    """e = P + i*Q for P, Q real, everything else in e being real."""
    e = sympy.expand(e)
    conj = e.subs(sympy.I, -sympy.I)
    P = sympy.expand((e + conj) / 2)
    Q = sympy.expand((e - conj) / (2 * sympy.I))
    if P.has(sympy.I) or Q.has(sympy.I):
        return None
    return P, Q


def _real_log_sum(log_sum: LogSum) -> Optional[sympy.Expr]:
    """None if the log sum can't be written in real form."""
    if any(not c.is_Rational for c in log_sum.poly.all_coeffs()) or _has_algebraic(log_sum.arg):
        return None
    t = log_sum.gen
    ans = sympy.S.Zero
    for c in log_sum.roots:
        im = sympy.im(c)
        if im == 0:
            ans += c * sympy.log(log_sum.arg.subs(log_sum.z, c))
            continue
        if im.is_negative:
            # conjugate of a root with a positive imaginary part, already accounted for
            continue
        if not im.is_positive:
            return None
        parts = _real_imag(log_sum.arg.subs(log_sum.z, c))
        if parts is None:
            return None
        P, Q = parts
        alpha = sympy.re(c)
        if alpha != 0:
            ans += alpha * sympy.log(P**2 + Q**2)
        ans += im * log_to_atan(sympy.Poly(P, t, field=True), sympy.Poly(Q, t, field=True))
    return ans


def log_sum_to_expr(log_sum: LogSum) -> sympy.Expr:
    if log_sum.roots is None:
        return log_sum.as_expr()
    real = _real_log_sum(log_sum)
    if real is not None:
        return real
    return log_sum.as_expr()


def _unwind_complex_exp(expr: sympy.Expr, symbol: sympy.Symbol, v: sympy.Expr) -> sympy.Expr:
    """E^n -> (cos(v) + i sin(v))^n, negative n through the conjugate."""
    forward = sympy.cos(v) + sympy.I * sympy.sin(v)
    backward = sympy.cos(v) - sympy.I * sympy.sin(v)

    def _perform(e):
        n = e.exp
        return forward**n if n > 0 else backward ** (-n)

    expr = sympy.expand(expr)
    expr = expr.replace(lambda e: e.is_Pow and e.base == symbol and e.exp.is_Integer, _perform)
    return sympy.expand(expr.subs(symbol, forward))


def to_original(expr: sympy.Expr, tower: Tower) -> sympy.Expr:
    """Replaces every generator by its definition, in the backend."""
    subs = {}
    complex_exps = {}
    for g in tower.generators:
        if g.kind is GeneratorKind.EXP and g.argument.has(sympy.I):
            v = sympy.expand(g.argument / sympy.I)
            if not v.has(sympy.I):
                # exp(i*v) with v real
                complex_exps[g.symbol] = v
                continue
        subs[g.symbol] = to_sympy(g.definition)

    for symbol, v in complex_exps.items():
        expr = _unwind_complex_exp(expr, symbol, v.subs(subs, simultaneous=True))
    return expr.subs(subs, simultaneous=True)


@backend_errors
def reconstruct(result: Antiderivative, tower: Tower, rewritten: Rewritten) -> Tuple[Expr, Expr]:
    """(integrated part, residual integrand), both in the original variable."""
    integrated = result.rational + sum((log_sum_to_expr(l) for l in result.logs), sympy.S.Zero)
    integrated = to_original(integrated, tower)

    residual = sympy.S.Zero
    if result.residual != 0:
        jacobian = tower.convert(rewritten.jacobian)
        residual = to_original(tower.field.normalize(result.residual * jacobian), tower)
    return from_sympy(integrated), from_sympy(residual)
