"""
Unit tests for exponent-tuple enumeration.
"""
from itertools import product

import pytest

from nbodyip.core import NonMonotoneBoundError
from nbodyip.polynomials import gen_tuples, iter_tuples, tdegree, tdegrees


def brute_force_tuples(body_order: int, degree: int, extra=lambda alpha: True):
    degs1, degs2 = tdegrees(body_order)
    ranges = [range(degree // g + 1) for g in degs1] + [range(len(degs2))]
    return {
        alpha
        for alpha in product(*ranges)
        if 0 < tdegree(alpha, body_order) <= degree and extra(alpha)
    }


class TestTotalDegree:
    """Tests for tdegree."""

    def test_inferred_body_order(self) -> None:
        assert tdegree((1, 0, 2, 0)) == 7

    def test_secondary_contributes(self) -> None:
        # N = 4: degrees1 = (1, 2, 3, 4, 2, 3), secondary 5 has degree 9
        assert tdegree((0, 0, 0, 0, 0, 0, 5)) == 9
        assert tdegree((1, 1, 0, 0, 0, 0, 1), body_order=4) == 6


class TestGenTuples:
    """Tests for gen_tuples / iter_tuples."""

    @pytest.mark.parametrize("body_order, degree", [(2, 6), (3, 5), (4, 4), (5, 3)])
    def test_matches_brute_force(self, body_order: int, degree: int) -> None:
        tuples = gen_tuples(body_order, degree)
        assert len(tuples) == len(set(tuples))
        assert set(tuples) == brute_force_tuples(body_order, degree)

    def test_two_body_is_powers(self) -> None:
        assert gen_tuples(2, 4) == [(1, 0), (2, 0), (3, 0), (4, 0)]

    def test_starts_with_first_primary(self) -> None:
        assert gen_tuples(3, 3)[0] == (1, 0, 0, 0)

    def test_degree_within_bounds(self) -> None:
        for alpha in gen_tuples(4, 7):
            assert 0 < tdegree(alpha) <= 7

    def test_all_secondaries_reached(self) -> None:
        assert max(t[-1] for t in gen_tuples(4, 9)) == 5
        assert max(t[-1] for t in gen_tuples(4, 8)) == 4

    def test_custom_bound(self) -> None:
        """A bound dropping the secondaries still yields a complete set."""
        bound = lambda alpha: alpha[-1] == 0 and 0 < tdegree(alpha) <= 6
        tuples = gen_tuples(4, tuplebound=bound)
        assert set(tuples) == brute_force_tuples(4, 6, lambda alpha: alpha[-1] == 0)

    def test_iter_is_lazy(self) -> None:
        it = iter_tuples(3, 10)
        assert next(it) == (1, 0, 0, 0)
        assert next(it) == (2, 0, 0, 0)

    def test_degree_or_bound_required(self) -> None:
        with pytest.raises(ValueError):
            gen_tuples(3)

    def test_default_bound_is_monotone(self) -> None:
        tuples = gen_tuples(4, 6, check_monotone=True)
        assert tuples == gen_tuples(4, 6)


class TestNonMonotoneBound:
    """Tests for detection of non-monotone bounds."""

    @staticmethod
    def bound(alpha) -> bool:
        return 0 < tdegree(alpha) <= 6 and alpha != (1, 0, 0, 0)

    def test_detected(self) -> None:
        with pytest.raises(NonMonotoneBoundError):
            gen_tuples(3, tuplebound=self.bound, check_monotone=True)

    def test_unchecked_runs(self) -> None:
        tuples = gen_tuples(3, tuplebound=self.bound)
        assert (1, 0, 0, 0) not in tuples
        assert (0, 1, 0, 0) in tuples
