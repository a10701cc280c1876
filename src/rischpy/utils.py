from typing import Callable, Iterable, Type

from .expr import Expr, Integral, Power, Prod, RootSum, SingleFunc, Sum, log

ExprFn = Callable[[Expr], Expr]
ExprCondition = Callable[[Expr], bool]


def contains_cls(expr: Expr, cls: Type[Expr]) -> bool:
    if isinstance(expr, cls):
        return True

    return any([contains_cls(e, cls) for e in expr.children()])


def general_collect(expr: Expr, condition: ExprCondition) -> list:
    """All subexpressions satisfying condition, outermost first, without descending into hits."""
    if condition(expr):
        return [expr]
    return [hit for e in expr.children() for hit in general_collect(e, condition)]


def replace_factory(condition: ExprCondition, perform: ExprFn) -> ExprFn:
    return replace_factory_list([condition], [perform])


def replace_factory_list(conditions: Iterable[ExprCondition], performs: Iterable[ExprFn]) -> ExprFn:
    """
    every time a condition returns True, you replace that expr with the output of its `perform`.
    the first condition that hits wins. children are replaced bottom-up otherwise.
    """
    conditions = list(conditions)
    performs = list(performs)

    def _replace(expr: Expr) -> Expr:
        for condition, perform in zip(conditions, performs):
            if condition(expr):
                return perform(expr)

        if isinstance(expr, Sum):
            return Sum([_replace(e) for e in expr.terms])
        if isinstance(expr, Prod):
            return Prod([_replace(e) for e in expr.terms])
        if isinstance(expr, Power):
            return Power(base=_replace(expr.base), exponent=_replace(expr.exponent))
        if isinstance(expr, log):
            return log(inner=_replace(expr.inner), base=_replace(expr.base))
        if isinstance(expr, SingleFunc):
            return expr.__class__(_replace(expr.inner))
        if isinstance(expr, Integral):
            return Integral(_replace(expr.integrand), expr.var)
        if isinstance(expr, RootSum):
            return RootSum(expr.poly, expr.var, _replace(expr.body))

        if len(expr.children()) == 0:  # Number, Symbol
            return expr

        raise NotImplementedError(f"replace not implemented for {expr.__class__.__name__}")

    return _replace
