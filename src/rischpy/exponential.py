"""Integration in an exponential extension: the top generator t has D(t) = D(u)*t."""

from typing import Dict, Tuple

import sympy

from .errors import backend_errors
from .primitive import LowerIntegrator
from .rational import hermite_reduce, residue_reduce
from .rde import solve_rde
from .result import Antiderivative
from .tower import Tower


def split_laurent(num: sympy.Poly, den: sympy.Poly) -> Tuple[Dict[int, sympy.Expr], sympy.Poly, sympy.Poly]:
    """num/den = sum p_i t^i + a/d with gcd(d, t) = 1 and deg a < deg d.

    Returns ({i: p_i}, a, d).
    """
    t = den.gen
    # den = t^k * d
    k = min(m for (m,), _ in den.terms())
    tk = sympy.Poly(t**k, t, domain=den.domain)
    d = den.exquo(tk)

    # num = P*d + a*t^k, deg a < deg d
    if d.degree() > 0:
        s, _, _ = tk.gcdex(d)
        a = (num * s).rem(d)
        P = (num - a * tk).exquo(d)
    else:
        a = sympy.Poly(0, t, domain=den.domain)
        P = num.quo_ground(d.LC())
        d = d.monic()

    coeffs = {}
    for (i,), c in P.terms():
        coeffs[i - k] = c
    return coeffs, a, d


@backend_errors
def integrate_exponential(f: sympy.Expr, tower: Tower, level: int, lower: LowerIntegrator) -> Antiderivative:
    gen = tower[level]
    t = gen.symbol
    field = tower.field
    Du = tower.D(gen.argument)

    num, den = field.fraction(f, t)
    laurent, a, d = split_laurent(num, den)

    g, a, d, _ = hermite_reduce(a, d, tower)
    extra, a = a.div(d)
    for (i,), c in extra.terms():
        laurent[i] = laurent.get(i, sympy.S.Zero) + c

    result = Antiderivative(rational=g)
    logs, elementary = residue_reduce(a, d, tower)
    if elementary:
        result.logs = logs
        # D(S)/S for S monic of degree m in t is m*D(u) plus a proper fraction, take that part back out
        for log_sum in logs:
            m = sympy.degree(log_sum.arg, t)
            laurent[0] = laurent.get(0, sympy.S.Zero) - m * log_sum.trace * Du
    else:
        result.residual = field.normalize(a.as_expr() / d.as_expr())

    for i, p in sorted(laurent.items()):
        p = field.normalize(p)
        if p == 0:
            continue
        if i == 0:
            result = result + lower(p)
            continue
        y = solve_rde(i * Du, p, tower, level - 1)
        if y is None:
            result.residual += p * t**i
        else:
            result.rational += y * t**i
    return result
