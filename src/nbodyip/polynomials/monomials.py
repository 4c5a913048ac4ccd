"""
Monomials in the primary invariants.

``monomial(alpha, x)`` evaluates prod_i x_i**alpha_i and ``monomial_d``
additionally returns the gradient with respect to x. Each univariate
factor is computed once; partial derivatives reuse them through prefix
and suffix products, so no division by a factor (which may be zero) is
ever needed.

These functions sit in the innermost loop of every N-body evaluation and
work on plain Python floats.
"""
from typing import List, Sequence, Tuple


def _m1(a: int, x: float) -> float:
    """Univariate monomial x**a."""
    if a == 0:
        return 1.0
    if a == 1:
        return x
    return x ** a


def _m1d(a: int, x: float) -> float:
    """Derivative of x**a; exactly 0 for a == 0 so that 0**(-1) never occurs."""
    if a == 0:
        return 0.0
    if a == 1:
        return 1.0
    return a * x ** (a - 1)


def monomial(alpha: Sequence[int], x: Sequence[float]) -> float:
    """
    Evaluate prod_i x[i] ** alpha[i].

    Only the first len(x) entries of alpha are used, so an exponent tuple
    whose last entry selects a secondary invariant can be passed directly.

    Args:
        alpha: Non-negative integer exponents (length >= len(x)).
        x: Values of the primary invariants.

    Returns:
        The monomial value.

    Example:
        >>> monomial((2, 0, 1), (3.0, 5.0, 2.0))
        18.0
    """
    m = 1.0
    for a, xi in zip(alpha, x):
        if a:
            m *= _m1(a, xi)
    return m


def monomial_d(alpha: Sequence[int], x: Sequence[float]) -> Tuple[float, List[float]]:
    """
    Evaluate a monomial and its gradient.

    Args:
        alpha: Non-negative integer exponents (length >= len(x)).
        x: Values of the primary invariants.

    Returns:
        Tuple (m, dm) where dm[i] = d m / d x[i].
    """
    K = len(x)
    f = [_m1(alpha[i], x[i]) for i in range(K)]

    # suffix[i] = f[i] * ... * f[K-1]
    suffix = [1.0] * (K + 1)
    for i in range(K - 1, -1, -1):
        suffix[i] = suffix[i + 1] * f[i]

    dm = [0.0] * K
    prefix = 1.0
    for i in range(K):
        a = alpha[i]
        if a:
            dm[i] = prefix * _m1d(a, x[i]) * suffix[i + 1]
        prefix *= f[i]
    return suffix[0], dm
