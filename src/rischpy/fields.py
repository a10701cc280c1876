"""Coefficient fields. Every arithmetic routine gets one of these passed in, so the same code runs
over the rationals and over the algebraic numbers.
"""

from typing import List, Optional, Tuple

import sympy

from .errors import NeedsAlgebraicNumbers


def _has_algebraic(expr: sympy.Expr) -> bool:
    if expr.has(sympy.I):
        return True
    return any(p.is_number and not p.is_rational for p in expr.atoms(sympy.Pow))


class CoefficientField:
    TAG = None

    def normalize(self, expr: sympy.Expr) -> sympy.Expr:
        return sympy.cancel(sympy.together(expr))

    def is_zero(self, expr: sympy.Expr) -> bool:
        return self.normalize(expr) == 0

    def poly(self, expr: sympy.Expr, *gens: sympy.Symbol) -> sympy.Poly:
        return sympy.Poly(self.normalize(expr), *gens, field=True)

    def fraction(self, expr: sympy.Expr, gen: sympy.Symbol) -> Tuple[sympy.Poly, sympy.Poly]:
        """expr -> (numerator, monic denominator), polynomials in gen over one domain"""
        num, den = sympy.fraction(self.normalize(expr))
        num, den = self.poly(num, gen).unify(self.poly(den, gen))
        return num.quo_ground(den.LC()), den.monic()

    def factor(self, poly: sympy.Poly) -> List[sympy.Poly]:
        """Distinct irreducible factors of a polynomial with constant coefficients."""
        _, factors = poly.factor_list()
        return [f for f, _ in factors if f.degree() > 0]

    def roots(self, poly: sympy.Poly) -> Optional[list]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    def __eq__(self, other) -> bool:
        return isinstance(other, CoefficientField) and self.TAG == other.TAG


class RationalField(CoefficientField):
    TAG = "rational"

    def roots(self, poly: sympy.Poly) -> list:
        if poly.degree() != 1:
            raise NeedsAlgebraicNumbers(poly.as_expr())
        a, b = poly.all_coeffs()
        return [-b / a]


class AlgebraicClosure(CoefficientField):
    """Rationals plus the roots of any polynomial over them."""

    TAG = "algebraic"

    # Roots of cubics and quartics get written with radicals only if these are on. The formulas are
    # huge and the RootSum reads better.
    cubics = False
    quartics = False

    def normalize(self, expr: sympy.Expr) -> sympy.Expr:
        expr = sympy.together(expr)
        if _has_algebraic(expr):
            return sympy.cancel(sympy.radsimp(expr))
        return sympy.cancel(expr)

    def poly(self, expr: sympy.Expr, *gens: sympy.Symbol) -> sympy.Poly:
        expr = self.normalize(expr)
        if _has_algebraic(expr):
            return sympy.Poly(expr, *gens, domain="EX")
        return sympy.Poly(expr, *gens, field=True)

    def factor(self, poly: sympy.Poly) -> List[sympy.Poly]:
        if not poly.domain.is_EX:
            return super().factor(poly)
        found = sympy.roots(poly, cubics=self.cubics, quartics=self.quartics)
        if sum(found.values()) != poly.degree():
            return [poly]
        z = poly.gen
        return [sympy.Poly(z - r, z, domain="EX") for r in found]

    def roots(self, poly: sympy.Poly) -> Optional[list]:
        """None means the roots exist but can only be written as opaque root objects."""
        if poly.degree() == 1:
            a, b = poly.all_coeffs()
            return [self.normalize(-b / a)]
        found = sympy.roots(poly, cubics=self.cubics, quartics=self.quartics)
        if sum(found.values()) != poly.degree():
            return None
        return list(found)
