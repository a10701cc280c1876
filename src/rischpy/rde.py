"""The Risch differential equation D(y) + f*y = g, solved for y in the tower up to a given level.

None means there is no solution there. The exponential integrator turns that into a residual.
"""

from typing import List, Optional

import sympy

from .tower import GeneratorKind, Tower


def solve_rde(f: sympy.Expr, g: sympy.Expr, tower: Tower, level: int) -> Optional[sympy.Expr]:
    field = tower.field
    f = field.normalize(f)
    g = field.normalize(g)
    if g == 0:
        return sympy.S.Zero

    if level == 0:
        y = _solve_base(f, g, tower)
    elif tower.level(f) < level and tower.level(g) < level:
        return solve_rde(f, g, tower, level - 1)
    elif tower[level].kind is GeneratorKind.EXP:
        y = _solve_over_exp(f, g, tower, level)
    elif tower[level].kind is GeneratorKind.LOG:
        y = _solve_over_log(f, g, tower, level)
    else:
        y = None

    if y is None:
        y = _constant_ratio(f, g, tower)
    if y is None:
        return None
    if not field.is_zero(tower.D(y) + f * y - g):
        return None
    return field.normalize(y)


def _constant_ratio(f, g, tower: Tower) -> Optional[sympy.Expr]:
    """y = g/f works exactly when D(g/f) = 0"""
    if f == 0:
        return None
    y = tower.field.normalize(g / f)
    if tower.field.is_zero(tower.D(y)):
        return y
    return None


def _laurent_coefficients(g: sympy.Expr, theta: sympy.Symbol, tower: Tower) -> Optional[dict]:
    """g = sum g_j theta^j with g_j free of theta, or None if g isn't a Laurent polynomial in theta."""
    field = tower.field
    num, den = sympy.fraction(field.normalize(g))
    den_poly = field.poly(den, theta)
    if len(den_poly.terms()) != 1:
        return None
    (k,), den_coeff = den_poly.terms()[0]
    num_poly = field.poly(num, theta)
    return {i - k: field.normalize(c / den_coeff) for (i,), c in num_poly.terms()}


def _solve_over_exp(f, g, tower: Tower, level: int) -> Optional[sympy.Expr]:
    """theta = exp(v): y = sum y_j theta^j with D(y_j) + (f + j D(v)) y_j = g_j, one level down."""
    gen = tower[level]
    if tower.level(f) >= level:
        return None
    coeffs = _laurent_coefficients(g, gen.symbol, tower)
    if coeffs is None:
        return None
    Dv = tower.D(gen.argument)
    y = sympy.S.Zero
    for j, gj in sorted(coeffs.items()):
        yj = solve_rde(f + j * Dv, gj, tower, level - 1)
        if yj is None:
            return None
        y += yj * gen.symbol**j
    return y


def _solve_over_log(f, g, tower: Tower, level: int) -> Optional[sympy.Expr]:
    """theta = log(v): match coefficients of theta^j from the top down,
    D(y_j) + f y_j = g_j - (j+1) y_(j+1) D(theta)."""
    gen = tower[level]
    if tower.level(f) >= level:
        return None
    field = tower.field
    num, den = sympy.fraction(field.normalize(g))
    if den.has(gen.symbol):
        return None
    gp = field.poly(g, gen.symbol)
    m = gp.degree()
    ys: List[sympy.Expr] = [sympy.S.Zero] * (m + 2)
    for j in range(m, -1, -1):
        rhs = gp.coeff_monomial(gen.symbol**j) - (j + 1) * ys[j + 1] * gen.derivative
        yj = solve_rde(f, rhs, tower, level - 1)
        if yj is None:
            return None
        ys[j] = yj
    return sum((yj * gen.symbol**j for j, yj in enumerate(ys)), sympy.S.Zero)


def _weak_normalizer(fn: sympy.Poly, fd: sympy.Poly) -> sympy.Poly:
    """q such that f - D(q)/q has no simple pole with a positive integer residue."""
    x = fd.gen
    g = fd.gcd(fd.diff(x))
    dstar = fd.exquo(g)
    d1 = dstar.exquo(dstar.gcd(g))
    one = sympy.Poly(1, x, domain=fd.domain)
    if d1.degree() <= 0:
        return one
    s, _, _ = fd.exquo(d1).gcdex(d1)
    a = (fn * s).rem(d1)
    z = sympy.Dummy("z")
    Dd1 = d1.diff(x)
    r = sympy.Poly(sympy.resultant(a.as_expr() - z * Dd1.as_expr(), d1.as_expr(), x), z)
    q = one
    for root in sympy.roots(r, filter="Z"):
        n = int(root)
        if n <= 0:
            continue
        q = q * (a - Dd1.mul_ground(n)).gcd(d1) ** n
    return q


def _degree_bound(a: sympy.Poly, b: sympy.Poly, c: sympy.Poly) -> int:
    """bound on deg q for a q' + b q = c. A constant q kills a q', so it is never below 0."""
    da, dc = a.degree(), c.degree()
    if b.is_zero:
        return max(0, dc - da + 1)
    db = b.degree()
    n = max(0, dc - max(db, da - 1))
    if db == da - 1:
        alpha = -b.LC() / a.LC()
        if alpha.is_Integer and alpha >= 0:
            return max(int(alpha), n)
    return n


def _solve_base(f, g, tower: Tower) -> Optional[sympy.Expr]:
    """D = d/dx over the constants. Normal denominator, degree bound, then undetermined coefficients."""
    field = tower.field
    x = tower[0].symbol

    fn, fd = field.fraction(f, x)

    # y = z/w turns the equation into D(z) + (f - D(w)/w) z = w g
    w = _weak_normalizer(fn, fd)
    if w.degree() > 0:
        f = field.normalize(f - w.diff(x).as_expr() / w.as_expr())
        g = field.normalize(g * w.as_expr())
        fn, fd = field.fraction(f, x)
    gn, gd = field.fraction(g, x)

    p = fd.gcd(gd)
    h = gd.gcd(gd.diff(x)).exquo(p.gcd(p.diff(x)))
    a = fd * h
    b = fn * h - fd * h.diff(x)
    c, rem = (fd * h**2 * gn).div(gd)
    if not rem.is_zero:
        return None

    common = a.gcd(b)
    if common.degree() > 0:
        c, rem = c.div(common)
        if not rem.is_zero:
            return None
        a, b = a.exquo(common), b.exquo(common)

    n = _degree_bound(a, b, c)

    unknowns = sympy.symbols(f"_q0:{n + 1}")
    q = sum((u * x**i for i, u in enumerate(unknowns)), sympy.S.Zero)
    eq = a.as_expr() * sympy.diff(q, x) + b.as_expr() * q - c.as_expr()
    equations = sympy.Poly(sympy.expand(eq), x).coeffs()
    solutions = sympy.linsolve(equations, unknowns)
    if solutions == sympy.S.EmptySet:
        return None
    (values,) = solutions
    # free unknowns are solutions of the homogeneous equation, pick 0
    values = [v.subs({u: 0 for u in unknowns}) for v in values]
    q = sum((v * x**i for i, v in enumerate(values)), sympy.S.Zero)
    return field.normalize(q / (h.as_expr() * w.as_expr()))
