import pytest
import sympy

from rischpy.classifier import FunctionKind, FunctionTerm, IdentityTerm, classify
from rischpy.debug.test_utils import x
from rischpy.debug.utils import print_tower
from rischpy.errors import MalformedTower, NeedsAlgebraicNumbers, UnsupportedIntegrand
from rischpy.expr import *
from rischpy.fields import AlgebraicClosure, RationalField
from rischpy.tower import GeneratorKind, build_tower

sx = sympy.Symbol("x")


def test_determinism():
    terms = classify(exp(x) * log(x) + log(log(x)), x)
    a = build_tower(terms, RationalField())
    b = build_tower(terms, RationalField())
    assert a.symbols == b.symbols
    assert [g.kind for g in a.generators] == [g.kind for g in b.generators]
    assert [g.argument for g in a.generators] == [g.argument for g in b.generators]
    assert [g.height for g in a.generators] == list(range(len(a)))


def test_derivatives():
    tower = build_tower(classify(log(x) * exp(x**2), x), RationalField())
    log_gen = tower.find(GeneratorKind.LOG, sx)
    exp_gen = tower.find(GeneratorKind.EXP, sx**2)
    assert tower[0].symbol == sx
    assert tower[0].derivative == 1
    assert tower.field.is_zero(log_gen.derivative - 1 / sx)
    assert tower.field.is_zero(exp_gen.derivative - 2 * sx * exp_gen.symbol)

    # product rule through the chain rule
    t, theta = log_gen.symbol, exp_gen.symbol
    assert tower.field.is_zero(tower.D(t * theta) - (theta / sx + 2 * sx * t * theta))


def test_constants_and_levels():
    tower = build_tower(classify(log(x + 1), x), RationalField())
    t = tower[1].symbol
    assert tower.constant(sympy.Integer(3) + sympy.Symbol("y"))
    assert not tower.constant(sx)
    assert tower.level(sympy.Integer(3)) == -1
    assert tower.level(sx**2) == 0
    assert tower.level(t / sx) == 1


def test_duplicates_are_reused():
    terms = [IdentityTerm(x), FunctionTerm(FunctionKind.LOG, Rat(1), x), FunctionTerm(FunctionKind.LOG, Rat(1), x)]
    tower = build_tower(terms, RationalField())
    assert tower.height == 1


def test_convert():
    # exp(2x) and exp(3x) share exp(x)
    tower = build_tower(classify(exp(2 * x) + exp(3 * x) + log(x**2 + 1), x), RationalField())
    theta = tower.find(GeneratorKind.EXP, sx).symbol
    t = tower.find(GeneratorKind.LOG, sx**2 + 1).symbol
    assert tower.field.is_zero(tower.convert(exp(2 * x) + log(x**2 + 1)) - (theta**2 + t))
    assert tower.field.is_zero(tower.convert(exp(-x + 1)) - sympy.E / theta)


def test_malformed():
    with pytest.raises(MalformedTower):
        build_tower([FunctionTerm(FunctionKind.LOG, Rat(1), x)], RationalField())

    # log(log(x)) before log(x) refers to a generator that doesn't exist yet
    terms = [IdentityTerm(x), FunctionTerm(FunctionKind.LOG, Rat(1), log(x)), FunctionTerm(FunctionKind.LOG, Rat(1), x)]
    with pytest.raises(MalformedTower):
        build_tower(terms, RationalField())

    tower = build_tower([IdentityTerm(x)], RationalField())
    with pytest.raises(MalformedTower):
        tower.convert(log(x))


def test_tan_terms_rejected():
    with pytest.raises(UnsupportedIntegrand):
        build_tower([IdentityTerm(x), FunctionTerm(FunctionKind.TAN, Rat(1), x)], RationalField())


def test_fields():
    z = sympy.Symbol("z")
    with pytest.raises(NeedsAlgebraicNumbers):
        RationalField().roots(sympy.Poly(z**2 + 1, z))
    assert RationalField().roots(sympy.Poly(2 * z - 1, z)) == [sympy.Rational(1, 2)]
    assert set(AlgebraicClosure().roots(sympy.Poly(z**2 + 1, z))) == {sympy.I, -sympy.I}
    assert AlgebraicClosure().roots(sympy.Poly(z**5 - z - 1, z)) is None
    assert RationalField() == RationalField()
    assert RationalField() != AlgebraicClosure()


def test_fraction_shares_one_domain():
    t, y = sympy.symbols("t y")
    for field in (RationalField(), AlgebraicClosure()):
        num, den = field.fraction(1 / (sx * y * t), t)
        assert num.domain == den.domain
        assert den.as_expr() == t
        assert sympy.cancel(num.as_expr() - 1 / (sx * y)) == 0


def test_print_tower():
    tower = build_tower(classify(log(x) * exp(x), x), RationalField())
    lines = []
    print_tower(tower, func=lines.append)
    assert len(lines) == 4
    assert "log" in "".join(lines)


def test_exponential_gets_the_gcd_coefficient():
    tower = build_tower(classify(exp(2 * x), x), RationalField())
    assert tower.find(GeneratorKind.EXP, 2 * sx) is not None
    with pytest.raises(MalformedTower):
        tower.convert(exp(x))
