"""Reads the transcendental pieces off an integrand, innermost first.

The tower builder turns each Term into one generator, so the order here is the order of the tower.
"""

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import List, Tuple, Union

import sympy

from .convert import to_sympy
from .errors import UnsupportedIntegrand
from .expr import (
    E,
    Expr,
    Integral,
    Power,
    Prod,
    Rat,
    RootSum,
    SingleFunc,
    Sum,
    Symbol,
    TrigFunction,
    _deconstruct_prod,
    log,
)
from .rewrite import _rational_gcd


class FunctionKind(Enum):
    LOG = "log"
    EXP = "exp"
    TAN = "tan"
    ATAN = "atan"


@dataclass
class IdentityTerm:
    var: Symbol


@dataclass
class FunctionTerm:
    """kind(coefficient * argument)"""

    kind: FunctionKind
    coefficient: Rat
    argument: Expr

    @property
    def full_argument(self) -> Expr:
        return self.coefficient * self.argument


Term = Union[IdentityTerm, FunctionTerm]


def split_exponent(w: Expr, var: Symbol, factor: Expr = Rat(1)) -> Tuple[Expr, List[Tuple[Fraction, Expr]]]:
    """exp(factor * w) = exp(const) * prod exp(c_i * m_i).

    Returns (const, [(c_i, m_i)]) where the c_i are rational and the m_i are the var-dependent parts.
    """
    const = []
    parts = []
    for term in w.as_terms():
        if not term.contains(var):
            const.append(term * factor)
            continue
        coeffs, rest = _deconstruct_prod(term)
        c = Fraction(1)
        for r in coeffs:
            c *= r.value
        parts.append((c, Prod(rest + [factor])))
    return Sum(const), parts


def exponent_of(expr: Power, var: Symbol) -> Tuple[Expr, Expr]:
    """b^w with b constant -> (w, log(b)) so it reads as exp(w * log(b))."""
    if isinstance(expr.base, E):
        return expr.exponent, Rat(1)
    return expr.exponent, log(expr.base)


def _check_supported(expr: Expr, var: Symbol):
    if not expr.contains(var):
        return
    if isinstance(expr, (Integral, RootSum)):
        raise UnsupportedIntegrand(f"Can't integrate nested {expr.__class__.__name__}: {expr}")
    if isinstance(expr, TrigFunction):
        raise UnsupportedIntegrand(f"{expr.__class__.__name__} is not supported in an integrand: {expr}")
    if isinstance(expr, SingleFunc):
        raise UnsupportedIntegrand(f"Unrecognized function {expr.__class__.__name__}: {expr}")
    if isinstance(expr, log) and not isinstance(expr.base, E) and expr.contains(var):
        raise UnsupportedIntegrand(f"log with a base should've been rewritten: {expr}")
    if isinstance(expr, Power) and expr.base.contains(var):
        if expr.exponent.contains(var):
            raise UnsupportedIntegrand(f"{var} in both the base and the exponent: {expr}")
        if not (isinstance(expr.exponent, Rat) and expr.exponent.is_int):
            raise UnsupportedIntegrand(f"Algebraic functions are not supported: {expr}")


class _ExpGroup:
    def __init__(self, monomial: Expr):
        self.monomial = monomial
        self.key = to_sympy(monomial)
        self.coefficients: List[Fraction] = []

    def ratio(self, monomial: Expr):
        r = sympy.cancel(to_sympy(monomial) / self.key)
        if r.is_Rational:
            return Fraction(int(r.p), int(r.q))
        return None


def classify(expr: Expr, var: Symbol) -> List[Term]:
    """Ordered terms for the tower, identity first. Every term's argument only uses earlier terms."""
    order: List[Union[FunctionTerm, _ExpGroup]] = []
    groups: List[_ExpGroup] = []
    log_args: List[sympy.Expr] = []

    def _visit(e: Expr):
        _check_supported(e, var)
        for child in e.children():
            _visit(child)

        if isinstance(e, log) and e.inner.contains(var):
            key = to_sympy(e.inner)
            if key not in log_args:
                log_args.append(key)
                order.append(FunctionTerm(FunctionKind.LOG, Rat(1), e.inner))
        elif isinstance(e, Power) and not e.base.contains(var) and e.exponent.contains(var):
            w, factor = exponent_of(e, var)
            _, parts = split_exponent(w, var, factor)
            for c, m in parts:
                _add_exp(c, m)

    def _add_exp(c: Fraction, m: Expr):
        for group in groups:
            r = group.ratio(m)
            if r is not None:
                group.coefficients.append(c * r)
                return
        group = _ExpGroup(m)
        group.coefficients.append(c)
        groups.append(group)
        order.append(group)

    _visit(expr)

    terms: List[Term] = [IdentityTerm(var)]
    for item in order:
        if isinstance(item, _ExpGroup):
            g = _rational_gcd(item.coefficients)
            terms.append(FunctionTerm(FunctionKind.EXP, Rat(g), item.monomial))
        else:
            terms.append(item)
    return terms
