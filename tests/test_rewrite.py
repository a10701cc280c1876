from rischpy.debug.test_utils import assert_eq_strict, assert_eq_value, x, y
from rischpy.expr import *
from rischpy.polynomial import chebyshev_t, chebyshev_u, multiple_angle
from rischpy.rewrite import TAU, expand_logs, rewrite_hyperbolic, rewrite_trig


def test_rewrite_hyperbolic():
    assert_eq_value(rewrite_hyperbolic(sinh(x)), (exp(x) - exp(-x)) / 2)
    assert_eq_value(rewrite_hyperbolic(cosh(2 * x)), (exp(2 * x) + exp(-2 * x)) / 2)
    assert_eq_value(rewrite_hyperbolic(tanh(x)), (exp(2 * x) - 1) / (exp(2 * x) + 1))
    # nested ones get rewritten too
    assert not rewrite_hyperbolic(sinh(cosh(x))).has(cosh)


def test_expand_logs():
    assert_eq_value(expand_logs(log(x * (x + 1))), log(x) + log(x + 1))
    assert_eq_value(expand_logs(log(x**3)), 3 * log(x))
    assert_eq_value(expand_logs(log(x, 2)), log(x) / log(2))


def test_chebyshev():
    assert list(chebyshev_t(2)) == [-1, 0, 2]
    assert list(chebyshev_t(3)) == [0, -3, 0, 4]
    assert list(chebyshev_u(2)) == [-1, 0, 4]


def test_multiple_angle():
    s, c = symbols("s c")
    assert_eq_value(multiple_angle("cos", 2, s, c), 2 * c**2 - 1)
    assert_eq_value(multiple_angle("sin", 2, s, c), 2 * s * c)
    assert_eq_value(multiple_angle("sin", -3, s, c), -s * (4 * c**2 - 1))
    assert_eq_strict(multiple_angle("sin", 0, s, c), 0)


def test_no_trig():
    rewritten = rewrite_trig(x**2 + log(x), x)
    assert rewritten.strategy == "none"
    assert rewritten.var == x
    assert_eq_strict(rewritten.expr, x**2 + log(x))


def test_half_angle():
    rewritten = rewrite_trig(sin(x) / (1 + cos(x) ** 2), x)
    assert rewritten.strategy == "half-angle"
    assert rewritten.var == TAU
    assert not rewritten.needs_algebraic
    assert_eq_value(rewritten.expr, 2 * TAU / (1 + TAU**4))
    assert_eq_value(rewritten.definition, tan(x / 2))


def test_half_angle_multiple_angles():
    # sin(2x) and cos(3x) share the angle x
    rewritten = rewrite_trig(sin(2 * x) * cos(3 * x), x)
    assert rewritten.strategy == "half-angle"
    assert_eq_value(rewritten.definition, tan(x / 2))

    # sin(x/2) and sin(x/3) share the angle x/6
    rewritten = rewrite_trig(sin(x / 2) + sin(x / 3), x)
    assert rewritten.strategy == "half-angle"
    assert_eq_value(rewritten.definition, tan(x / 12))


def test_tan_sec_become_sin_cos():
    rewritten = rewrite_trig(tan(x) * sec(x), x)
    assert rewritten.strategy == "half-angle"
    assert not rewritten.expr.has(TrigFunction)


def test_complex_exponential():
    # x outside of the trig functions, no tangent substitution
    rewritten = rewrite_trig(x * sin(x), x)
    assert rewritten.strategy == "complex-exponential"
    assert rewritten.needs_algebraic
    assert rewritten.var == x
    assert not rewritten.expr.has(TrigFunction)
    assert_eq_value(rewritten.expr, x * sin(x))

    # incommensurable angles
    rewritten = rewrite_trig(sin(x) * sin(pi * x), x)
    assert rewritten.strategy == "complex-exponential"


def test_trig_of_constants_left_alone():
    rewritten = rewrite_trig(sin(y) * x, x)
    assert rewritten.strategy == "none"
