"""
Exponent-tuple enumeration.

A tuple alpha = (a_1, ..., a_P, k) describes the basis function
I2[k] * prod_i I1[i]**a_i. Its total degree in the edge variables is
sum_i a_i * deg(I1[i]) + deg(I2[k]).

Tuples are generated with an odometer: the first component is increased
while the bound admits the tuple; on rejection the advanced prefix is
reset and the carry moves one component further. This visits every
admissible tuple exactly once provided the bound is monotone, i.e.
whenever beta is admitted every alpha <= beta (componentwise) with
non-zero degree is admitted as well. Non-monotone bounds silently give
an incomplete basis; pass ``check_monotone=True`` to detect them.
"""
import logging
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from nbodyip.core.errors import NonMonotoneBoundError

from .invariants import edges2bo, tdegrees

logger = logging.getLogger(__name__)

Tup = Tuple[int, ...]
TupleBound = Callable[[Tup], bool]


def tdegree(alpha: Sequence[int], body_order: Optional[int] = None) -> int:
    """
    Total degree of the basis function described by alpha.

    Args:
        alpha: Exponent tuple of length P + 1.
        body_order: Body order; inferred from len(alpha) when omitted
            (the number of primary invariants equals the number of edges).

    Example:
        >>> tdegree((1, 0, 2, 0))
        7
    """
    if body_order is None:
        body_order = edges2bo(len(alpha) - 1)
    degs1, degs2 = tdegrees(body_order)
    d = sum(a * g for a, g in zip(alpha[:-1], degs1))
    return d + degs2[alpha[-1]]


def _degree_bound(body_order: int, degree: int) -> TupleBound:
    return lambda alpha: 0 < tdegree(alpha, body_order) <= degree


def _check_predecessors(
    alpha: Tup, body_order: int, tuplebound: TupleBound
) -> None:
    for j, a in enumerate(alpha):
        if a == 0:
            continue
        beta = alpha[:j] + (a - 1,) + alpha[j + 1:]
        if tdegree(beta, body_order) > 0 and not tuplebound(beta):
            raise NonMonotoneBoundError(
                f"Tuple bound admits {alpha} but rejects its predecessor {beta}"
            )


def iter_tuples(
    body_order: int,
    degree: Optional[int] = None,
    tuplebound: Optional[TupleBound] = None,
    check_monotone: bool = False,
) -> Iterator[Tup]:
    """
    Lazily enumerate admissible exponent tuples in odometer order.

    Args:
        body_order: Body order N (2..5).
        degree: Total degree bound; used by the default bound
            ``0 < tdegree(alpha) <= degree``.
        tuplebound: Custom monotone predicate replacing the default.
        check_monotone: Verify every admitted tuple against its immediate
            predecessors.

    Yields:
        Exponent tuples of length P + 1.

    Raises:
        ValueError: If neither degree nor tuplebound is given.
        NonMonotoneBoundError: Only with check_monotone=True.
    """
    if tuplebound is None:
        if degree is None:
            raise ValueError("Either degree or tuplebound must be given")
        tuplebound = _degree_bound(body_order, degree)

    degs1, degs2 = tdegrees(body_order)
    K = len(degs1) + 1
    n_secondary = len(degs2)

    alpha = [0] * K
    alpha[0] = 1
    lastinc = 0

    while True:
        current = tuple(alpha)
        if alpha[-1] < n_secondary and tuplebound(current):
            if check_monotone:
                _check_predecessors(current, body_order, tuplebound)
            yield current
            alpha[0] += 1
            lastinc = 0
        else:
            if lastinc == K - 1:
                return
            for j in range(lastinc + 1):
                alpha[j] = 0
            alpha[lastinc + 1] += 1
            lastinc += 1


def gen_tuples(
    body_order: int,
    degree: Optional[int] = None,
    tuplebound: Optional[TupleBound] = None,
    check_monotone: bool = False,
) -> List[Tup]:
    """Enumerate admissible exponent tuples into a list (see ``iter_tuples``)."""
    tuples = list(iter_tuples(body_order, degree, tuplebound, check_monotone))
    logger.debug(
        "generated %d tuples for body order %d (degree=%s)",
        len(tuples), body_order, degree,
    )
    return tuples
