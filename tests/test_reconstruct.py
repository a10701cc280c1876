import sympy

from rischpy.classifier import IdentityTerm, classify
from rischpy.debug.test_utils import assert_eq_value, x
from rischpy.expr import *
from rischpy.fields import AlgebraicClosure, RationalField
from rischpy.reconstruct import log_sum_to_expr, log_to_atan, reconstruct, to_original
from rischpy.result import Antiderivative, LogSum
from rischpy.rewrite import rewrite_trig
from rischpy.tower import build_tower

sx = sympy.Symbol("x")
z = sympy.Symbol("z")


def _derivative_matches(A, B):
    """d/dx log_to_atan(A, B) = 2 (A'B - AB') / (A^2 + B^2)"""
    a, b = A.as_expr(), B.as_expr()
    expected = 2 * (sympy.diff(a, sx) * b - a * sympy.diff(b, sx)) / (a**2 + b**2)
    return sympy.cancel(sympy.diff(log_to_atan(A, B), sx) - expected) == 0


def test_log_to_atan_divides():
    assert log_to_atan(sympy.Poly(sx, sx), sympy.Poly(1, sx)) == 2 * sympy.atan(sx)


def test_log_to_atan_recursion():
    A = sympy.Poly(sx**3 - 3 * sx, sx, field=True)
    B = sympy.Poly(sx**2 - 2, sx, field=True)
    assert _derivative_matches(A, B)
    # swapped degrees
    assert _derivative_matches(B, A)
    # every arctangent has a polynomial argument, no poles on the real line
    for atan_ in log_to_atan(A, B).atoms(sympy.atan):
        assert sympy.fraction(sympy.cancel(atan_.args[0]))[1].is_number


def test_real_form():
    # i/2 log(x + i) - i/2 log(x - i) = atan(x)
    log_sum = LogSum(sympy.Poly(z**2 + sympy.Rational(1, 4), z), sx + 2 * z, z, sx, [sympy.I / 2, -sympy.I / 2])
    assert log_sum_to_expr(log_sum) == sympy.atan(sx)


def test_real_roots_stay_logs():
    log_sum = LogSum(sympy.Poly(z - sympy.Rational(1, 2), z), sx**2 + 2, z, sx, [sympy.Rational(1, 2)])
    assert log_sum_to_expr(log_sum) == sympy.log(sx**2 + 2) / 2


def test_root_sum():
    q = sympy.Poly(z**5 - z - 1, z)
    log_sum = LogSum(q, sx - z, z, sx, None)
    assert isinstance(log_sum_to_expr(log_sum), sympy.RootSum)


def test_to_original():
    tower = build_tower(classify(log(x) * exp(x), x), RationalField())
    symbols = {g.kind.value: g.symbol for g in tower.generators}
    expr = symbols["log"] * symbols["exp"] + sx
    assert to_original(expr, tower) == sympy.log(sx) * sympy.exp(sx) + sx


def test_complex_exponential_unwinds():
    rewritten = rewrite_trig(x * sin(x), x)
    tower = build_tower(classify(rewritten.expr, x), AlgebraicClosure())
    (theta,) = [g.symbol for g in tower.generators[1:]]
    # (-(x + i)/2) e^(ix) + ((i - x)/2) e^(-ix) = sin(x) - x cos(x)
    expr = -(sx + sympy.I) / 2 * theta + (sympy.I - sx) / 2 / theta
    assert sympy.simplify(to_original(expr, tower) - (sympy.sin(sx) - sx * sympy.cos(sx))) == 0


def test_reconstruct_half_angle_residual():
    rewritten = rewrite_trig(sin(x) / (1 + cos(x) ** 2), x)
    tower = build_tower(classify(rewritten.expr, rewritten.var), RationalField(), rewritten.definition)
    tau = tower[0].symbol
    result = Antiderivative(residual=2 * tau / (1 + tau**4))
    integrated, residual = reconstruct(result, tower, rewritten)
    assert integrated == 0
    # the residual comes back in x, multiplied by d(tau)/dx
    assert_eq_value(residual, sin(x) / (1 + cos(x) ** 2))
