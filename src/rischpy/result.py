from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import sympy

from .expr import Expr, Integral, Rat, Symbol


@dataclass
class LogSum:
    """sum of c * log(arg(c)) over the roots c of poly.

    arg is a polynomial in z and the tower's generators. gen is the generator arg is a polynomial in.
    roots is None when the roots can't be written down explicitly.
    """

    poly: sympy.Poly
    arg: sympy.Expr
    z: sympy.Symbol
    gen: sympy.Symbol
    roots: Optional[list] = None

    @property
    def trace(self) -> sympy.Expr:
        """sum of the roots of poly"""
        coeffs = self.poly.all_coeffs()
        if len(coeffs) < 2:
            return sympy.S.Zero
        return -coeffs[1] / coeffs[0]

    def as_expr(self) -> sympy.Expr:
        if self.roots is None:
            return sympy.RootSum(self.poly.as_expr(), sympy.Lambda(self.z, self.z * sympy.log(self.arg)))
        return sympy.Add(*[c * sympy.log(self.arg.subs(self.z, c)) for c in self.roots])


@dataclass
class Antiderivative:
    """What one level of the integrator hands back: an integrated part in the tower (rational plus
    log sums) and a residual integrand it couldn't do anything with."""

    rational: sympy.Expr = sympy.S.Zero
    logs: List[LogSum] = field(default_factory=list)
    residual: sympy.Expr = sympy.S.Zero

    def __add__(self, other: "Antiderivative") -> "Antiderivative":
        return Antiderivative(self.rational + other.rational, self.logs + other.logs, self.residual + other.residual)

    @property
    def is_closed(self) -> bool:
        return self.residual == 0

    def as_expr(self) -> sympy.Expr:
        """the integrated part, residual not included"""
        return self.rational + sum((l.as_expr() for l in self.logs), sympy.S.Zero)


class ResultKind(Enum):
    CLOSED = "closed"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class IntegrationResult:
    """integrated + Integral(residual, var) is the antiderivative.

    For FAILED results integrated is 0 and residual is the original integrand.
    """

    kind: ResultKind
    var: Symbol
    integrated: Expr = field(default_factory=lambda: Rat(0))
    residual: Expr = field(default_factory=lambda: Rat(0))
    error: Optional[Exception] = None

    @property
    def expr(self) -> Expr:
        if self.kind is ResultKind.CLOSED:
            return self.integrated
        return self.integrated + Integral(self.residual, self.var)

    def __repr__(self) -> str:
        return f"IntegrationResult({self.kind.value}, {self.expr})"
