import sympy

from rischpy.classifier import IdentityTerm, classify
from rischpy.debug.test_utils import x
from rischpy.expr import exp, log
from rischpy.fields import AlgebraicClosure, RationalField
from rischpy.rde import _degree_bound, _weak_normalizer, solve_rde
from rischpy.tower import GeneratorKind, build_tower

sx = sympy.Symbol("x")


def _check(f, g, y, tower):
    assert tower.field.is_zero(tower.D(y) + f * y - g)


def test_polynomial_solution():
    tower = build_tower([IdentityTerm(x)], RationalField())
    y = solve_rde(sympy.Integer(1), sx, tower, 0)
    assert tower.field.is_zero(y - (sx - 1))


def test_rational_solution():
    # y' - y/x = x has y = x^2, the degree bound has to look at the residue of -1/x
    tower = build_tower([IdentityTerm(x)], RationalField())
    f, g = -1 / sx, sx
    y = solve_rde(f, g, tower, 0)
    assert y is not None
    _check(f, g, y, tower)


def test_weak_normalizer():
    # f = 2/x has residue 2 at 0, so q = x^2
    fn = sympy.Poly(2, sx, field=True)
    fd = sympy.Poly(sx, sx, field=True)
    assert _weak_normalizer(fn, fd) == sympy.Poly(sx**2, sx, field=True)
    # negative residues are left alone
    fn = sympy.Poly(-2, sx, field=True)
    assert _weak_normalizer(fn, fd).degree() == 0


def test_degree_bound():
    P = lambda e: sympy.Poly(e, sx, field=True)
    # y' + 2x y = 1, only a constant could work
    assert _degree_bound(P(1), P(2 * sx), P(1)) == 0
    # x^2 y' - y = 1 is solved by y = -1
    assert _degree_bound(P(sx**2), P(-1), P(1)) == 0
    # y' + y = x^2
    assert _degree_bound(P(1), P(1), P(sx**2)) == 2
    # y' = x^2
    assert _degree_bound(P(1), P(0), P(sx**2)) == 3


def test_constant_solution():
    # from exp(1/x)/x^2
    tower = build_tower([IdentityTerm(x)], RationalField())
    y = solve_rde(-1 / sx**2, 1 / sx**2, tower, 0)
    assert y == -1
    _check(-1 / sx**2, 1 / sx**2, y, tower)


def test_no_solution():
    # exp(x^2) has no elementary integral
    tower = build_tower([IdentityTerm(x)], RationalField())
    assert solve_rde(2 * sx, sympy.Integer(1), tower, 0) is None


def test_zero_right_hand_side():
    tower = build_tower([IdentityTerm(x)], RationalField())
    assert solve_rde(2 * sx, sympy.Integer(0), tower, 0) == 0


def test_over_exponential():
    # y' + y = exp(x) has y = exp(x)/2
    tower = build_tower(classify(exp(x), x), RationalField())
    theta = tower[1].symbol
    y = solve_rde(sympy.Integer(1), theta, tower, 1)
    assert tower.field.is_zero(y - theta / 2)


def test_over_logarithm():
    # y' + y = log(x) + 1/x has y = log(x)
    tower = build_tower(classify(log(x), x), RationalField())
    t = tower[1].symbol
    f, g = sympy.Integer(1), t + 1 / sx
    y = solve_rde(f, g, tower, 1)
    assert tower.field.is_zero(y - t)

    # y' + y = log(x) doesn't have an elementary solution
    assert solve_rde(f, t, tower, 1) is None


def test_complex_coefficients():
    # y' + i*y = -i*x/2, from integrating x*sin(x)
    tower = build_tower([IdentityTerm(x)], AlgebraicClosure())
    f, g = sympy.I, -sympy.I * sx / 2
    y = solve_rde(f, g, tower, 0)
    assert y is not None
    _check(f, g, y, tower)


def test_lower_level_equation_at_higher_level():
    # nothing mentions the top generator, solve one level down
    tower = build_tower(classify(exp(x**2), x), RationalField())
    assert tower[1].kind is GeneratorKind.EXP
    y = solve_rde(sympy.Integer(1), sx, tower, 1)
    assert tower.field.is_zero(y - (sx - 1))
