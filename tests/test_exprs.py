from fractions import Fraction

import pytest

from rischpy.convert import from_sympy, to_sympy
from rischpy.debug.test_utils import assert_eq_strict, assert_eq_value, x, y
from rischpy.debug.utils import debug_repr
from rischpy.expr import *


def test_equality():
    assert x == x
    assert x == Symbol("x")  # seperately created symbols with the same name should be the same
    assert not x == y
    assert x != y
    assert not x == 2 * x
    assert (x + 2) == (x + 2)  # seperately created sums should be the same
    assert (x + 2) == (2 + x)
    assert x * y == y * x

    assert Rat(2) == 2
    assert Rat(2) != 3
    assert 2 == Rat(2)
    assert 2 < Rat(3)
    assert 2 <= Rat(2)

    assert cos(x * 2) == cos(x * 2)


def test_rat_ordering():
    assert Rat(1, 2) < 1
    assert Rat(3) > Rat(5, 2)
    assert Rat(2) <= 2
    assert Rat(-1) >= -1
    assert not Rat(1) < x  # only numbers are ordered
    assert abs(Rat(-3, 2)) == Rat(3, 2)


def test_no_floats():
    with pytest.raises(NotImplementedError):
        x + 0.5


def test_defaults():
    assert Sum([]) == 0
    assert Prod([]) == 1

    assert_eq_strict(x * 0, 0)
    assert_eq_strict(x * 2, 2 * x)
    assert_eq_strict(x**2, x * x)
    assert_eq_strict(x * 2 - 2 * x, 0)


def test_sum_combines_like_terms():
    assert_eq_strict(x + x, 2 * x)
    assert_eq_strict(x + x + x, 3 * x)
    assert_eq_strict(2 * x * y + 3 * x * y, 5 * x * y)
    assert_eq_strict(Fraction(1, 5) * x * y + Fraction(4, 5) * x * y, x * y)
    assert_eq_strict(3 * x - 2 * x, x)


def test_basic_power_simplification():
    assert_eq_strict(x**0, 1)
    assert_eq_strict(x**1, x)
    assert_eq_strict(Rat(2) ** 2, 4)
    assert_eq_strict(sqrt(4), 2)
    assert_eq_strict(e ** log(x), x)


def test_i_stays_put():
    # -1 is a constant factor, not a power of -1 to merge with
    expr = -1 * I
    assert isinstance(expr, Prod)
    assert Rat(-1) in expr.terms
    assert debug_repr(I) == "Power(Rat(-1), Rat(1/2))"


def test_hyperbolic_constructors():
    assert_eq_strict(sinh(0), 0)
    assert_eq_strict(cosh(0), 1)
    assert_eq_strict(sinh(-x), -sinh(x))
    assert_eq_strict(cosh(-x), cosh(x))


def test_derivatives():
    assert_eq_value(diff(log(x)), 1 / x)
    assert_eq_value(diff(exp(x**2)), 2 * x * exp(x**2))
    assert_eq_value(diff(tanh(x)), 1 - tanh(x) ** 2)
    assert_eq_value(diff(atan(x)), 1 / (1 + x**2))
    assert_eq_strict(diff(Integral(exp(x**2), x), x), exp(x**2))


def test_integral_is_bound():
    integral = Integral(x * y, x)
    assert integral.subs({"x": Rat(3)}) == integral
    assert integral.subs({"y": Rat(3)}) == Integral(3 * x, x)


def test_root_sum():
    z = Symbol("z")
    rs = RootSum(z**3 + z + 1, z, z * log(x - z))
    assert rs.symbols() == [x]
    assert rs.contains(x)
    assert not rs.contains(z)
    assert_eq_strict(rs.subs({"z": Rat(1)}), rs)


def test_repr():
    assert repr(x - 2) == "x - 2"
    assert (2 * x).__repr__() == "2*x"
    assert repr(log(x)) == "ln(x)"
    assert repr(sinh(x)) == "sinh(x)"
    assert repr(Integral(x, x)) == "Integral(x, x)"


def test_sympy_round_trip():
    import sympy

    sx = sympy.Symbol("x")
    assert to_sympy(x**2 + 1) == sx**2 + 1
    assert to_sympy(log(x) * exp(x)) == sympy.log(sx) * sympy.exp(sx)
    assert to_sympy(I) == sympy.I
    assert to_sympy(atan(x)) == sympy.atan(sx)
    assert_eq_strict(from_sympy(sympy.log(sx) + sympy.atan(sx)), log(x) + atan(x))
    assert_eq_value(from_sympy(sympy.exp(sx**2)), exp(x**2))
    with pytest.raises(NotImplementedError):
        from_sympy(sympy.Float(1.5) * sx)
