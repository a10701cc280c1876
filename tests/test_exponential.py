import sympy

from rischpy.classifier import classify
from rischpy.debug.test_utils import x
from rischpy.exponential import integrate_exponential, split_laurent
from rischpy.expr import exp
from rischpy.fields import RationalField
from rischpy.rational import integrate_rational
from rischpy.tower import build_tower

sx = sympy.Symbol("x")


def _setup(expr):
    tower = build_tower(classify(expr, x), RationalField())
    return tower, tower[1].symbol, (lambda g: integrate_rational(g, tower))


def test_split_laurent():
    t = sympy.Symbol("t")
    num = sympy.Poly(t**3 + 2, t, field=True)
    den = sympy.Poly(t**2 + t, t, field=True)
    coeffs, a, d = split_laurent(num, den)
    f = sum(c * t**i for i, c in coeffs.items()) + a.as_expr() / d.as_expr()
    assert sympy.cancel(f - (t**3 + 2) / (t**2 + t)) == 0
    assert d.eval(0) != 0
    assert a.degree() < d.degree()
    assert min(coeffs) == -1


def test_split_laurent_pure_monomial():
    t = sympy.Symbol("t")
    coeffs, a, d = split_laurent(sympy.Poly(3 * t**2 + 1, t, field=True), sympy.Poly(t, t, field=True))
    assert coeffs == {1: 3, -1: 1}
    assert a.is_zero


def test_log_of_one_plus_exp():
    tower, theta, lower = _setup(exp(x))
    result = integrate_exponential(theta / (1 + theta), tower, 1, lower)
    assert result.is_closed
    assert result.rational == 0
    (log_sum,) = result.logs
    assert log_sum.as_expr() == sympy.log(theta + 1)


def test_correction_term():
    # 1/(1 + e^x) = 1 - e^x/(1 + e^x), so x shows up next to the log
    tower, theta, lower = _setup(exp(x))
    f = 1 / (1 + theta)
    result = integrate_exponential(f, tower, 1, lower)
    assert result.is_closed
    assert tower.field.is_zero(tower.D(result.as_expr()) - f)
    assert tower.field.is_zero(result.rational - sx)


def test_x_exp_x():
    tower, theta, lower = _setup(exp(x))
    result = integrate_exponential(sx * theta, tower, 1, lower)
    assert result.is_closed
    assert tower.field.is_zero(result.as_expr() - (sx - 1) * theta)


def test_negative_powers():
    tower, theta, lower = _setup(exp(x))
    f = theta + 1 / theta + sx
    result = integrate_exponential(f, tower, 1, lower)
    assert result.is_closed
    assert tower.field.is_zero(tower.D(result.as_expr()) - f)


def test_exp_x_squared_is_residual():
    tower, theta, lower = _setup(exp(x**2))
    result = integrate_exponential(theta + 1 / sx, tower, 1, lower)
    assert not result.is_closed
    assert tower.field.is_zero(result.residual - theta)
    (log_sum,) = result.logs
    assert log_sum.as_expr() == sympy.log(sx)


def test_x_exp_x_squared():
    tower, theta, lower = _setup(exp(x**2))
    result = integrate_exponential(sx * theta, tower, 1, lower)
    assert result.is_closed
    assert tower.field.is_zero(result.as_expr() - theta / 2)


def test_denominator_in_x():
    tower, theta, lower = _setup(exp(x))
    result = integrate_exponential(theta / sx, tower, 1, lower)
    assert not result.is_closed
    assert result.as_expr() == 0
    assert tower.field.is_zero(result.residual - theta / sx)
