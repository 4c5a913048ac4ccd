"""
Permutation invariants of a simplex of (transformed) bond lengths.

For an N-body cluster the M = N(N-1)/2 edge variables s are mapped to
primary invariants I1 (algebraically independent) and secondary
invariants I2. Every polynomial that is invariant under relabelling of
the N atoms can be written as sum_k I2[k] * p_k(I1). By convention
I2[0] == 1.

Edges are ordered lexicographically:

* 2-body: s = [s12]
* 3-body: s = [s12, s13, s23]
* 4-body: s = [s12, s13, s14, s23, s24, s34]
* 5-body: s = [s12, s13, s14, s15, s23, s24, s25, s34, s35, s45]

Each body order has a closed-form implementation returning the values
and, for the ``_ed`` variants, the Jacobians dI1/ds (P x M) and
dI2/ds (S x M). Dispatch is a fixed table keyed by body order.

The 4-body invariants follow Schmelzer & Murrell: a fixed orthogonal
change of coordinates splits the six edges into a totally symmetric
coordinate, three differences of opposite edges and a two-dimensional
standard representation of S3, from which six primary invariants
(degrees 1, 2, 3, 4, 2, 3) and five non-trivial secondaries (degrees
3, 4, 5, 6, 9) are formed.

The 5-body set is partial: the ten primary invariants are power sums and
orbit sums over edge subgraphs, and only the trivial secondary 1 is
provided.
"""
import math
from itertools import combinations, permutations
from typing import Callable, Dict, NamedTuple, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from nbodyip.core.errors import ConfigurationError, DimensionMismatch

Invariants = Tuple[NDArray[np.floating], NDArray[np.floating]]
InvariantsED = Tuple[
    NDArray[np.floating],
    NDArray[np.floating],
    NDArray[np.floating],
    NDArray[np.floating],
]


def nedges(body_order: int) -> int:
    """Number of edges M = N(N-1)/2 of an N-body simplex."""
    return (body_order * (body_order - 1)) // 2


bo2edges = nedges


def edges2bo(n_edges: int) -> int:
    """
    Body order N of a simplex with n_edges edges.

    Raises:
        DimensionMismatch: If n_edges is not a triangular number.
    """
    if n_edges == 0:
        return 1
    body_order = int(round((1 + math.sqrt(1 + 8 * n_edges)) / 2))
    if nedges(body_order) != n_edges:
        raise DimensionMismatch("a triangular number of", n_edges)
    return body_order


# ------------------------------------------------------------------ #
#  2-body
# ------------------------------------------------------------------ #


def _invariants_2(s: NDArray[np.floating]) -> Invariants:
    return np.array([s[0]]), np.ones(1)


def _invariants_ed_2(s: NDArray[np.floating]) -> InvariantsED:
    I1, I2 = _invariants_2(s)
    return I1, I2, np.ones((1, 1)), np.zeros((1, 1))


# ------------------------------------------------------------------ #
#  3-body: elementary symmetric polynomials
# ------------------------------------------------------------------ #


def _invariants_3(s: NDArray[np.floating]) -> Invariants:
    s1, s2, s3 = s
    I1 = np.array([
        s1 + s2 + s3,
        s1 * s2 + s1 * s3 + s2 * s3,
        s1 * s2 * s3,
    ])
    return I1, np.ones(1)


def _invariants_ed_3(s: NDArray[np.floating]) -> InvariantsED:
    s1, s2, s3 = s
    I1, I2 = _invariants_3(s)
    dI1 = np.array([
        [1.0, 1.0, 1.0],
        [s2 + s3, s1 + s3, s1 + s2],
        [s2 * s3, s1 * s3, s1 * s2],
    ])
    return I1, I2, dI1, np.zeros((1, 3))


# ------------------------------------------------------------------ #
#  4-body: Schmelzer-Murrell invariants
# ------------------------------------------------------------------ #

_2 = 2.0 ** -0.5
_3 = 3.0 ** -0.5
_6 = 6.0 ** -0.5
_12 = 12.0 ** -0.5
_RT3 = math.sqrt(3.0)

# reorders (s12, s13, s14, s23, s24, s34) -> (s12, s13, s14, s34, s24, s23)
# so that entries k and k+3 are opposite edges
_S2RHO = np.array([
    [1, 0, 0, 0, 0, 0],
    [0, 1, 0, 0, 0, 0],
    [0, 0, 1, 0, 0, 0],
    [0, 0, 0, 0, 0, 1],
    [0, 0, 0, 0, 1, 0],
    [0, 0, 0, 1, 0, 0],
], dtype=np.float64)

_RHO2Q = np.array([
    [_6, _6, _6, _6, _6, _6],
    [_2, 0, 0, -_2, 0, 0],
    [0, _2, 0, 0, -_2, 0],
    [0, 0, _2, 0, 0, -_2],
    [0, 0.5, -0.5, 0, 0.5, -0.5],
    [_3, -_12, -_12, _3, -_12, -_12],
])

_S2Q = _RHO2Q @ _S2RHO


def _invariants_4(s: NDArray[np.floating]) -> Invariants:
    q1, q2, q3, q4, q5, q6 = _S2Q @ s
    p2, p3, p4, p5, p6 = q2 * q2, q3 * q3, q4 * q4, q5 * q5, q6 * q6
    p34, p24, p23 = p3 * p4, p2 * p4, p2 * p3

    X7 = 2 * p2 - p3 - p4
    W7 = p3 - p4
    X9 = 2 * p34 - p24 - p23
    Y9 = p24 - p23
    U = p6 - p5

    I1 = np.array([
        q1,
        p2 + p3 + p4,
        q2 * q3 * q4,
        p34 + p24 + p23,
        p5 + p6,
        q6 * (p6 - 3 * p5),
    ])
    I2 = np.array([
        1.0,
        q6 * X7 + _RT3 * q5 * W7,
        U * X7 - 2 * _RT3 * q5 * q6 * W7,
        q6 * X9 + _RT3 * q5 * Y9,
        U * X9 - 2 * _RT3 * q5 * q6 * Y9,
        (p3 - p4) * (p4 - p2) * (p2 - p3) * q5 * (3 * p6 - p5),
    ])
    return I1, I2


def _invariants_ed_4(s: NDArray[np.floating]) -> InvariantsED:
    I1, I2 = _invariants_4(s)
    q1, q2, q3, q4, q5, q6 = _S2Q @ s
    p2, p3, p4, p5, p6 = q2 * q2, q3 * q3, q4 * q4, q5 * q5, q6 * q6
    p34, p24, p23 = p3 * p4, p2 * p4, p2 * p3

    X7 = 2 * p2 - p3 - p4
    W7 = p3 - p4
    X9 = 2 * p34 - p24 - p23
    Y9 = p24 - p23
    U = p6 - p5
    P11 = (p3 - p4) * (p4 - p2) * (p2 - p3)
    G11 = q5 * (3 * p6 - p5)

    # gradients w.r.t. Q of the building blocks
    dX7 = np.array([0.0, 4 * q2, -2 * q3, -2 * q4, 0.0, 0.0])
    dW7 = np.array([0.0, 0.0, 2 * q3, -2 * q4, 0.0, 0.0])
    dX9 = np.array([
        0.0, -2 * q2 * (p3 + p4), 2 * q3 * (2 * p4 - p2), 2 * q4 * (2 * p3 - p2),
        0.0, 0.0,
    ])
    dY9 = np.array([0.0, 2 * q2 * (p4 - p3), -2 * q3 * p2, 2 * q4 * p2, 0.0, 0.0])
    dU = np.array([0.0, 0.0, 0.0, 0.0, -2 * q5, 2 * q6])
    dq5q6 = np.array([0.0, 0.0, 0.0, 0.0, q6, q5])
    dP11 = np.array([
        0.0,
        2 * q2 * (p3 - p4) * (p3 + p4 - 2 * p2),
        2 * q3 * (p4 - p2) * (p2 + p4 - 2 * p3),
        2 * q4 * (p2 - p3) * (p2 + p3 - 2 * p4),
        0.0,
        0.0,
    ])
    dG11 = np.array([0.0, 0.0, 0.0, 0.0, 3 * (p6 - p5), 6 * q5 * q6])
    e5 = np.array([0.0, 0.0, 0.0, 0.0, 1.0, 0.0])
    e6 = np.array([0.0, 0.0, 0.0, 0.0, 0.0, 1.0])

    dI = np.zeros((12, 6))
    dI[0] = [1.0, 0.0, 0.0, 0.0, 0.0, 0.0]
    dI[1] = [0.0, 2 * q2, 2 * q3, 2 * q4, 0.0, 0.0]
    dI[2] = [0.0, q3 * q4, q2 * q4, q2 * q3, 0.0, 0.0]
    dI[3] = [0.0, 2 * q2 * (p3 + p4), 2 * q3 * (p2 + p4), 2 * q4 * (p2 + p3), 0.0, 0.0]
    dI[4] = [0.0, 0.0, 0.0, 0.0, 2 * q5, 2 * q6]
    dI[5] = [0.0, 0.0, 0.0, 0.0, -6 * q5 * q6, 3 * (p6 - p5)]
    # dI[6] is the gradient of the constant secondary 1
    dI[7] = q6 * dX7 + X7 * e6 + _RT3 * (q5 * dW7 + W7 * e5)
    dI[8] = U * dX7 + X7 * dU - 2 * _RT3 * (q5 * q6 * dW7 + W7 * dq5q6)
    dI[9] = q6 * dX9 + X9 * e6 + _RT3 * (q5 * dY9 + Y9 * e5)
    dI[10] = U * dX9 + X9 * dU - 2 * _RT3 * (q5 * q6 * dY9 + Y9 * dq5q6)
    dI[11] = G11 * dP11 + P11 * dG11

    J = dI @ _S2Q
    return I1, I2, J[:6], J[6:]


# ------------------------------------------------------------------ #
#  5-body: power sums and edge-subgraph orbit sums (partial set)
# ------------------------------------------------------------------ #

_EDGES_5 = tuple(combinations(range(5), 2))


def _orbit(seed: Tuple[Tuple[int, int], ...]) -> NDArray[np.intp]:
    """
    Edge-index tuples of all images of a subgraph under relabelling.

    Summing prod_k s[t_k] over the returned rows gives an S5 invariant.
    """
    index = {edge: k for k, edge in enumerate(_EDGES_5)}
    terms = set()
    for perm in permutations(range(5)):
        terms.add(tuple(sorted(
            index[tuple(sorted((perm[a], perm[b])))] for a, b in seed
        )))
    return np.array(sorted(terms), dtype=np.intp)


# two edges sharing a vertex (30 terms)
_ORBIT_P2 = _orbit(((0, 1), (0, 2)))
# three-star (20 terms)
_ORBIT_P4 = _orbit(((0, 1), (0, 2), (0, 3)))
# three-star plus an edge from one leaf to the remaining vertex (60 terms)
_ORBIT_P6 = _orbit(((0, 1), (0, 2), (0, 3), (3, 4)))
# four-star plus an edge between two leaves (30 terms)
_ORBIT_P8 = _orbit(((0, 1), (0, 2), (0, 3), (0, 4), (2, 3)))


def _orbit_sum(x: NDArray[np.floating], terms: NDArray[np.intp]) -> float:
    return float(np.prod(x[terms], axis=1).sum())


def _orbit_sum_d(x: NDArray[np.floating], terms: NDArray[np.intp]) -> NDArray[np.floating]:
    values = x[terms]
    grad = np.zeros_like(x)
    for j in range(terms.shape[1]):
        others = np.prod(np.delete(values, j, axis=1), axis=1)
        np.add.at(grad, terms[:, j], others)
    return grad


def _invariants_5(s: NDArray[np.floating]) -> Invariants:
    x2 = s * s
    x3 = x2 * s
    I1 = np.array([
        s.sum(),
        _orbit_sum(s, _ORBIT_P2),
        x2.sum(),
        _orbit_sum(s, _ORBIT_P4),
        x3.sum(),
        _orbit_sum(s, _ORBIT_P6),
        (x2 * x2).sum(),
        _orbit_sum(s, _ORBIT_P8),
        (x2 * x3).sum(),
        (x3 * x3).sum(),
    ])
    return I1, np.ones(1)


def _invariants_ed_5(s: NDArray[np.floating]) -> InvariantsED:
    I1, I2 = _invariants_5(s)
    x2 = s * s
    x3 = x2 * s
    dI1 = np.array([
        np.ones_like(s),
        _orbit_sum_d(s, _ORBIT_P2),
        2 * s,
        _orbit_sum_d(s, _ORBIT_P4),
        3 * x2,
        _orbit_sum_d(s, _ORBIT_P6),
        4 * x3,
        _orbit_sum_d(s, _ORBIT_P8),
        5 * x2 * x2,
        6 * x2 * x3,
    ])
    return I1, I2, dI1, np.zeros((1, 10))


# ------------------------------------------------------------------ #
#  Dispatch table
# ------------------------------------------------------------------ #


class InvariantSet(NamedTuple):
    """Closed-form invariants of one body order and their polynomial degrees."""

    body_order: int
    degrees1: Tuple[int, ...]
    degrees2: Tuple[int, ...]
    evaluate: Callable[[NDArray[np.floating]], Invariants]
    evaluate_ed: Callable[[NDArray[np.floating]], InvariantsED]

    @property
    def n_primary(self) -> int:
        return len(self.degrees1)

    @property
    def n_secondary(self) -> int:
        return len(self.degrees2)


_INVARIANT_SETS: Dict[int, InvariantSet] = {
    2: InvariantSet(2, (1,), (0,), _invariants_2, _invariants_ed_2),
    3: InvariantSet(3, (1, 2, 3), (0,), _invariants_3, _invariants_ed_3),
    4: InvariantSet(
        4, (1, 2, 3, 4, 2, 3), (0, 3, 4, 5, 6, 9), _invariants_4, _invariants_ed_4
    ),
    5: InvariantSet(
        5, (1, 2, 2, 3, 3, 4, 4, 5, 5, 6), (0,), _invariants_5, _invariants_ed_5
    ),
}


def invariant_set(body_order: int) -> InvariantSet:
    """
    Look up the invariant implementation for a body order.

    Raises:
        ConfigurationError: If no invariants exist for this body order.
    """
    try:
        return _INVARIANT_SETS[body_order]
    except KeyError:
        supported = ", ".join(str(n) for n in sorted(_INVARIANT_SETS))
        raise ConfigurationError(
            f"No invariants for body order {body_order}; supported: {supported}"
        ) from None


def supported_body_orders() -> Tuple[int, ...]:
    return tuple(sorted(_INVARIANT_SETS))


def tdegrees(body_order: int) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """Polynomial degrees (in s) of the primary and secondary invariants."""
    inv = invariant_set(body_order)
    return inv.degrees1, inv.degrees2


def num_invariants(body_order: int) -> Tuple[int, int]:
    """Number of primary and secondary invariants (P, S)."""
    inv = invariant_set(body_order)
    return inv.n_primary, inv.n_secondary


def _prepare(
    s: NDArray[np.floating], body_order: Optional[int]
) -> Tuple[NDArray[np.floating], InvariantSet]:
    s = np.asarray(s, dtype=np.float64)
    if s.ndim != 1:
        raise DimensionMismatch("a 1-d vector of", s.size, body_order)
    if body_order is None:
        body_order = edges2bo(len(s))
    elif len(s) != nedges(body_order):
        raise DimensionMismatch(nedges(body_order), len(s), body_order)
    return s, invariant_set(body_order)


def invariants(
    s: NDArray[np.floating], body_order: Optional[int] = None
) -> Invariants:
    """
    Compute primary and secondary invariants of an edge vector.

    Args:
        s: (M,) edge variables in lexicographic pair order.
        body_order: Expected body order; inferred from M when omitted.

    Returns:
        Tuple (I1, I2) of primary (P,) and secondary (S,) invariants.

    Raises:
        DimensionMismatch: If len(s) does not match the body order.

    Example:
        >>> invariants(np.array([1.0, 2.0, 3.0]))
        (array([ 6., 11.,  6.]), array([1.]))
    """
    s, inv = _prepare(s, body_order)
    return inv.evaluate(s)


def invariants_ed(
    s: NDArray[np.floating], body_order: Optional[int] = None
) -> InvariantsED:
    """
    Compute invariants together with their Jacobians.

    Args:
        s: (M,) edge variables in lexicographic pair order.
        body_order: Expected body order; inferred from M when omitted.

    Returns:
        Tuple (I1, I2, dI1, dI2) where dI1 is (P, M) and dI2 is (S, M).
    """
    s, inv = _prepare(s, body_order)
    return inv.evaluate_ed(s)
