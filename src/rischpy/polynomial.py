"""Coefficient arrays. Index i holds the coefficient of var**i."""

from typing import List

import numpy as np

from .expr import Expr, Rat, Symbol

Polynomial = np.ndarray  # has to be 1-D array


def _pad(poly: Polynomial, n: int) -> Polynomial:
    return np.concatenate([poly, np.zeros(n - len(poly), dtype=object)]) if len(poly) < n else poly


def _add(a: Polynomial, b: Polynomial) -> Polynomial:
    n = max(len(a), len(b))
    return _pad(a, n) + _pad(b, n)


def _shift(poly: Polynomial) -> Polynomial:
    """multiply by var"""
    return np.concatenate([np.array([0], dtype=object), poly])


def _chebyshev(first: Polynomial, second: Polynomial, n: int) -> List[Polynomial]:
    """P(k+1) = 2c P(k) - P(k-1), starting from P(0) = first, P(1) = second."""
    polys = [first, second]
    for _ in range(2, n + 1):
        polys.append(_add(2 * _shift(polys[-1]), -polys[-2]))
    return polys[: n + 1]


def chebyshev_t(n: int) -> Polynomial:
    """cos(n*theta) as a polynomial in cos(theta)."""
    one = np.array([1], dtype=object)
    c = np.array([0, 1], dtype=object)
    return _chebyshev(one, c, n)[n]


def chebyshev_u(n: int) -> Polynomial:
    """sin((n+1)*theta) / sin(theta) as a polynomial in cos(theta)."""
    one = np.array([1], dtype=object)
    two_c = np.array([0, 2], dtype=object)
    return _chebyshev(one, two_c, n)[n]


def polynomial_to_expr(poly: Polynomial, var: Expr) -> Expr:
    final = Rat(0)
    for i, element in enumerate(poly):
        if element != 0:
            final += int(element) * var**i
    return final


def rid_ending_zeros(lis: Polynomial) -> Polynomial:
    num_zeros = 0
    for i in reversed(range(len(lis))):
        if lis[i] == 0:
            num_zeros += 1
        else:
            break
    new_list = lis[: len(lis) - num_zeros]
    return np.array(new_list, dtype=object)


def multiple_angle(kind: str, n: int, s: Expr, c: Expr) -> Expr:
    """sin(n*theta) or cos(n*theta) written with s = sin(theta), c = cos(theta).

    n can be any integer.
    """
    if n < 0:
        ans = multiple_angle(kind, -n, s, c)
        return -ans if kind == "sin" else ans
    if kind == "cos":
        return polynomial_to_expr(rid_ending_zeros(chebyshev_t(n)), c)
    if kind == "sin":
        if n == 0:
            return Rat(0)
        return s * polynomial_to_expr(rid_ending_zeros(chebyshev_u(n - 1)), c)
    raise ValueError(f"Unknown kind {kind}")
