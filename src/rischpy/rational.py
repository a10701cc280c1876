"""Hermite reduction and the Rothstein-Trager logarithmic part.

Everything here works for a polynomial ring K[t] with a derivation D, where K is the field made of
the generators below t. With t = x and D = d/dx this is plain rational function integration. The
log and exp integrators reuse it on their top generator.
"""

from typing import List, Tuple

import numpy as np
import sympy

from .errors import AlgorithmFailure, backend_errors
from .result import Antiderivative, LogSum
from .tower import Tower


def split_polynomial(num: sympy.Poly, den: sympy.Poly) -> Tuple[sympy.Poly, sympy.Poly]:
    """num/den -> (polynomial part, numerator of the proper fraction over den)"""
    return num.div(den)


def _repeated_multiplicity(factors) -> int:
    return sum(k - 1 for _, k in factors)


def hermite_reduce(a: sympy.Poly, d: sympy.Poly, tower: Tower) -> Tuple[sympy.Expr, sympy.Poly, sympy.Poly, List[int]]:
    """a/d = D(g) + a'/d' with d' square-free.

    d has to be normal: gcd(p, D(p)) = 1 for its square-free factors p.
    Returns (g, a', d', steps) where steps holds the repeated-factor multiplicity of the denominator
    before each reduction. It strictly decreases.
    """
    g = sympy.S.Zero
    steps = []

    while True:
        lc, factors = d.sqf_list()
        m = _repeated_multiplicity(factors)
        if m == 0:
            break
        steps.append(m)
        if len(steps) > 1 and steps[-1] >= steps[-2]:
            raise AlgorithmFailure(f"Hermite reduction is not making progress on {d.as_expr()}")

        V, k = max(factors, key=lambda f: f[1])
        U = d.exquo(V**k)
        DV = tower.Dpoly(V)

        # U*D(V)*B + V*C = a/(1-k), deg B < deg V
        rhs = a.mul_ground(sympy.Rational(1, 1 - k))
        s, _, h = (U * DV).gcdex(V)
        if h.degree() != 0:
            raise AlgorithmFailure(f"{V.as_expr()} is not normal, can't reduce {a.as_expr()}/{d.as_expr()}")
        B = (s * rhs).rem(V)
        C = (rhs - U * DV * B).exquo(V)

        g += B.as_expr() / V.as_expr() ** (k - 1)
        a = C.mul_ground(1 - k) - U * tower.Dpoly(B)
        d = U * V ** (k - 1)

    return tower.field.normalize(g), a, d, steps


def _strip(coeffs: List[sympy.Expr]) -> List[sympy.Expr]:
    i = 0
    while i < len(coeffs) and coeffs[i] == 0:
        i += 1
    return coeffs[i:]


class _QuotientRing:
    """K[z]/(q) for q irreducible with constant coefficients. Elements are sympy expressions kept
    reduced: polynomial in z of degree < deg q, coefficients in K."""

    def __init__(self, q: sympy.Poly, tower: Tower):
        self.q = q
        self.z = q.gen
        self.tower = tower

    def reduce(self, c: sympy.Expr) -> sympy.Expr:
        num, den = sympy.fraction(sympy.cancel(sympy.together(c)))
        if den.has(self.z):
            num = num * self.invert(den)
            den = sympy.S.One
        num = sympy.Poly(num, self.z).rem(self.q)
        return self.tower.field.normalize(num.as_expr() / den)

    def invert(self, c: sympy.Expr) -> sympy.Expr:
        num, den = sympy.fraction(sympy.cancel(sympy.together(c)))
        p = sympy.Poly(num, self.z, field=True)
        q = sympy.Poly(self.q.as_expr(), self.z, field=True)
        return p.invert(q).as_expr() * den

    def gcd(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        """Euclid on coefficient arrays, highest degree first. Result is monic."""
        A = np.array(_strip([self.reduce(c) for c in A]), dtype=object)
        B = np.array(_strip([self.reduce(c) for c in B]), dtype=object)
        while len(B) > 0:
            A, B = B, self._rem(A, B)
        return self._monic(A)

    def _rem(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        A = A.copy()
        inv = self.invert(B[0])
        while len(A) >= len(B):
            f = self.reduce(A[0] * inv)
            A[: len(B)] = [self.reduce(v - f * w) for v, w in zip(A[: len(B)], B)]
            A = np.array(_strip(list(A)), dtype=object)
        return A

    def _monic(self, A: np.ndarray) -> np.ndarray:
        inv = self.invert(A[0])
        return np.array([self.reduce(c * inv) for c in A], dtype=object)


def _log_argument(q: sympy.Poly, d: sympy.Poly, a_minus_zDd: sympy.Poly, tower: Tower) -> sympy.Expr:
    """gcd_t(d, a - z D(d)) computed mod q(z), made monic in t."""
    t = d.gen
    ring = _QuotientRing(q, tower)
    A = np.array(d.all_coeffs(), dtype=object)
    B = np.array(a_minus_zDd.all_coeffs(), dtype=object)
    S = ring.gcd(A, B)
    n = len(S) - 1
    return sympy.Add(*[c * t ** (n - i) for i, c in enumerate(S)])


def residue_reduce(a: sympy.Poly, d: sympy.Poly, tower: Tower) -> Tuple[List[LogSum], bool]:
    """The logarithmic part of a/d, d square-free and normal, deg a < deg d.

    Returns (log sums, elementary). elementary is False when the resultant has a non-constant
    coefficient; then a/d has no elementary integral over this tower and no logs are returned.
    """
    if a.is_zero:
        return [], True
    t = d.gen
    z = sympy.Dummy("z")
    field = tower.field
    Dd = tower.Dpoly(d)

    b_expr = a.as_expr() - z * Dd.as_expr()
    R = sympy.resultant(d.as_expr(), b_expr, t)
    R = field.poly(R, z)
    if R.degree() <= 0:
        return [], True
    R = R.monic()
    if not all(tower.constant(c) for c in R.all_coeffs()):
        return [], False

    R = field.poly(R.as_expr(), z)
    b = sympy.Poly(b_expr, t)
    logs = []
    for q in field.factor(R):
        q = q.monic()
        roots = field.roots(q)
        S = _log_argument(q, d, b, tower)
        logs.append(LogSum(q, S, z, t, roots))
    return logs, True


@backend_errors
def integrate_rational(f: sympy.Expr, tower: Tower) -> Antiderivative:
    """Integrates an element of K(x), the bottom of the tower. Never leaves a residual."""
    field = tower.field
    x = tower[0].symbol
    num, den = field.fraction(f, x)

    p, r = split_polynomial(num, den)
    g, a, d, _ = hermite_reduce(r, den, tower)
    extra, a = a.div(d)
    p = p + extra

    logs, elementary = residue_reduce(a, d, tower)
    if not elementary:
        raise AlgorithmFailure(f"Rational function {f} has non-constant residues")
    return Antiderivative(rational=g + p.integrate().as_expr(), logs=logs)
