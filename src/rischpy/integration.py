"""Drives one integration: front-end rewrites, tower, level-by-level integration, reconstruction."""

import time
import warnings
from typing import Optional

import sympy

from .classifier import classify
from .errors import AlgorithmFailure, NeedsAlgebraicNumbers, UnsupportedIntegrand
from .exponential import integrate_exponential
from .expr import Expr, Symbol, _cast, cast
from .fields import AlgebraicClosure, CoefficientField, RationalField
from .primitive import integrate_primitive
from .rational import integrate_rational
from .reconstruct import reconstruct
from .result import Antiderivative, IntegrationResult, ResultKind
from .rewrite import Rewritten, expand_logs, rewrite_hyperbolic, rewrite_trig
from .tower import GeneratorKind, Tower, build_tower


@cast
def integrate(expr: Expr, var: Optional[Symbol] = None, **kwargs) -> Expr:
    """
    Integrates an expression.

    Args:
        expr: the integrand
        var: the variable of integration. can omit it if the integrand contains exactly one symbol.
    kwargs:
        use_algebraic_numbers: start in the algebraic closure of Q instead of Q.
        catch_unsupported: warn & return an unevaluated Integral for integrands outside the
            supported class instead of raising UnsupportedIntegrand.
        catch_algorithm_failure: same, for AlgorithmFailure.
        observer: anything with a log(stage, message, **details) method. see debug/logger.py

        Examples of valid uses:
            integrate(x**2)
            integrate(x*y, x)
            integrate(exp(x) / (1 + exp(x)))

    Returns:
        The antiderivative. If part of it is not elementary, that part is left as an Integral.
    """
    if var is None:
        var = _infer_var(expr)
    return Integration(**kwargs).integrate(expr, var)


def _infer_var(expr: Expr) -> Symbol:
    vars = expr.symbols()
    if len(vars) != 1:
        raise ValueError(f"Please specify the variable of integration for {expr}")
    return vars[0]


class Integration:
    """
    Keeps track of one integration's settings & hands work down the tower.
    """

    # tweakable params
    MAX_FIELD_RESTARTS = 1  # Q -> algebraic closure is the only restart there is.

    def __init__(
        self,
        *,
        use_algebraic_numbers: bool = False,
        catch_unsupported: bool = True,
        catch_algorithm_failure: bool = True,
        observer=None,
    ):
        self._use_algebraic_numbers = use_algebraic_numbers
        self._catch_unsupported = catch_unsupported
        self._catch_algorithm_failure = catch_algorithm_failure
        self._observer = observer

    def integrate(self, expr: Expr, var: Symbol) -> Expr:
        """Performs indefinite integral. Whatever couldn't be integrated comes back as an Integral."""
        return self.attempt(expr, var).expr

    def attempt(self, expr: Expr, var: Symbol) -> IntegrationResult:
        """Same as integrate, but keeps the integrated part & the residual apart."""
        expr = _cast(expr)
        start = time.time()
        try:
            result = self._attempt(expr, var)
        except UnsupportedIntegrand as e:
            if not self._catch_unsupported:
                raise
            warnings.warn(f"Cannot integrate {expr}: {e}")
            result = IntegrationResult(ResultKind.FAILED, var, residual=expr, error=e)
        except AlgorithmFailure as e:
            if not self._catch_algorithm_failure:
                raise
            warnings.warn(f"Integration of {expr} failed: {e}")
            result = IntegrationResult(ResultKind.FAILED, var, residual=expr, error=e)

        self._log("done", f"{result.kind.value}: {result.expr}", integrand=expr, time_spent=time.time() - start)
        return result

    def _attempt(self, expr: Expr, var: Symbol) -> IntegrationResult:
        rewritten = self._rewrite(expr, var)
        if self._use_algebraic_numbers or rewritten.needs_algebraic:
            field = AlgebraicClosure()
        else:
            field = RationalField()

        restarts = 0
        while True:
            try:
                return self._run(rewritten, var, field)
            except NeedsAlgebraicNumbers as e:
                if isinstance(field, AlgebraicClosure) or restarts >= self.MAX_FIELD_RESTARTS:
                    raise AlgorithmFailure(f"{e.poly} has no usable roots in {field}") from e
                self._log("field", f"restarting in the algebraic closure, {e.poly} doesn't split over Q")
                field = AlgebraicClosure()
                restarts += 1

    def _rewrite(self, expr: Expr, var: Symbol) -> Rewritten:
        expr = rewrite_hyperbolic(expr)
        expr = expand_logs(expr)
        rewritten = rewrite_trig(expr, var)
        self._log("rewrite", f"{rewritten.strategy}: {rewritten.expr}", var=rewritten.var)
        return rewritten

    def _run(self, rewritten: Rewritten, var: Symbol, field: CoefficientField) -> IntegrationResult:
        terms = classify(rewritten.expr, rewritten.var)
        tower = build_tower(terms, field, rewritten.definition)
        self._log("tower", repr(tower), field=field, height=tower.height)

        f = tower.convert(rewritten.expr)
        result = self._integrate_level(f, tower, tower.height)
        integrated, residual = reconstruct(result, tower, rewritten)

        kind = ResultKind.CLOSED if residual == 0 else ResultKind.PARTIAL
        return IntegrationResult(kind, var, integrated, residual)

    def _integrate_level(self, f: sympy.Expr, tower: Tower, level: int) -> Antiderivative:
        gen = tower[level]
        self._log("level", f"integrating {f} over {gen.symbol}", level=level, kind=gen.kind)

        def _lower(g: sympy.Expr) -> Antiderivative:
            return self._integrate_level(g, tower, level - 1)

        if gen.kind is GeneratorKind.IDENTITY:
            return integrate_rational(f, tower)
        if gen.kind is GeneratorKind.LOG:
            return integrate_primitive(f, tower, level, _lower)
        if gen.kind is GeneratorKind.EXP:
            return integrate_exponential(f, tower, level, _lower)
        raise AlgorithmFailure(f"No integrator for {gen}")

    def _log(self, stage: str, message: str, **details):
        if self._observer is not None:
            self._observer.log(stage, message, **details)
