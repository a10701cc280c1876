"""Error kinds raised by the integrator.

Lower components raise these and never swallow them. Only the coordinator (integration.py) decides
whether to propagate them or degrade to an unevaluated integral.
"""

from sympy.polys.polyerrors import BasePolynomialError


class RischError(Exception):
    """Base class for everything the integrator raises on purpose."""


class UnsupportedIntegrand(RischError, NotImplementedError):
    """The integrand has a construct the algorithm does not cover (algebraic functions, non-integer
    powers of the variable, inverse trig functions...)."""


class AlgorithmFailure(RischError, RuntimeError):
    """A step that should always succeed for valid input didn't."""


class NeedsAlgebraicNumbers(RischError):
    """Control signal: a root is not in the current coefficient field. The coordinator restarts
    with the algebraic closure when it sees this."""

    def __init__(self, poly=None):
        self.poly = poly
        super().__init__(f"roots of {poly} are not rational" if poly is not None else "algebraic numbers needed")


class MalformedTower(RischError, AssertionError):
    """A generator refers to a generator at the same height or above it."""


def backend_errors(func):
    """Decorator: errors from sympy's polynomial code leave func as AlgorithmFailure."""

    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BasePolynomialError as e:
            raise AlgorithmFailure(f"{func.__name__}: {e.__class__.__name__}: {e}") from e

    return wrapper
