"""
Unit tests for distance transforms, cutoff envelopes and dictionaries.
"""
import dataclasses

import numpy as np
import pytest

from nbodyip.core import ConfigurationError, DimensionMismatch
from nbodyip.force import NumericalBackend
from nbodyip.polynomials import (
    Cos2sCutoff,
    CosCutoff,
    Dictionary,
    SplineCutoff,
    SquareCutoff,
    SWCutoff,
    analytic_function,
    cluster_cutoff,
    cluster_cutoff_d,
    cutoff_function,
    invariants_ed,
)


class TestAnalyticFunction:
    """Tests for distance transforms."""

    def test_inverse(self) -> None:
        t = analytic_function("r -> 1/r")
        assert t(2.0) == pytest.approx(0.5)
        assert t.derivative(2.0) == pytest.approx(-0.25)

    def test_caret_power(self) -> None:
        t = analytic_function("r -> (2.9/r)^3")
        assert t(2.9) == pytest.approx(1.0)
        assert t.derivative(2.9) == pytest.approx(-3.0 / 2.9)

    def test_vectorized(self) -> None:
        t = analytic_function("r -> exp(-r)")
        r = np.array([0.5, 1.0, 2.0])
        np.testing.assert_allclose(t(r), np.exp(-r))
        np.testing.assert_allclose(t.derivative(r), -np.exp(-r))

    def test_constant_derivative_broadcasts(self) -> None:
        t = analytic_function("identity")
        np.testing.assert_array_equal(t.derivative(np.array([1.0, 2.0, 3.0])), np.ones(3))
        assert t.derivative(4.0) == 1.0

    def test_shorthand_equality(self) -> None:
        assert analytic_function("inverse") == analytic_function("r -> 1/r")
        assert analytic_function("inverse") != analytic_function("identity")
        assert analytic_function("inverse").descriptor == "inverse"

    @pytest.mark.parametrize(
        "bad",
        [
            "1/r",
            "x -> 1/x",
            "r -> 1/x",
            "r -> (",
            "r -> foo(r)",
            "r -> r.real",
            "r -> [r][0]",
            "r -> r + len('ab')",
            "r -> __import__('os').getcwd()",
            "r -> r, r",
        ],
    )
    def test_malformed(self, bad: str) -> None:
        with pytest.raises(ConfigurationError):
            analytic_function(bad)

    def test_undefined_function_in_dictionary(self) -> None:
        with pytest.raises(ConfigurationError, match="foo"):
            Dictionary.from_spec("r -> foo(r)", ("cos", 1.0, 2.0), 2)

    def test_allowed_functions(self) -> None:
        t = analytic_function("r -> sqrt(r) + log(r) * tanh(pi / r)")
        r = 2.0
        assert t(r) == pytest.approx(np.sqrt(r) + np.log(r) * np.tanh(np.pi / r))

    def test_non_string(self) -> None:
        with pytest.raises(ConfigurationError):
            analytic_function(3.0)


class TestCutoffFunctions:
    """Tests for cutoff envelopes."""

    SHAPES = [
        (CosCutoff(1.0, 2.0), [1.2, 1.5, 1.9]),
        (SplineCutoff(1.0, 2.0), [1.2, 1.5, 1.9]),
        (SquareCutoff(2.0), [0.5, 1.5, 1.9]),
        (SWCutoff(1.0, 2.0), [0.5, 1.5, 1.9]),
        (Cos2sCutoff(0.5, 1.0, 1.5, 2.0), [0.7, 1.2, 1.8]),
    ]

    def test_string_form(self) -> None:
        fc = cutoff_function("(:cos, 6.0, 9.0)")
        assert fc == CosCutoff(6.0, 9.0)
        assert fc.rcut == 9.0

    def test_sequence_form(self) -> None:
        assert cutoff_function(("cos", 6, 9)) == CosCutoff(6.0, 9.0)
        assert cutoff_function(["spline", 1, 2]) == SplineCutoff(1.0, 2.0)
        assert cutoff_function((":sw", 1.0, 3.0)) == SWCutoff(1.0, 3.0)

    def test_descriptor(self) -> None:
        assert CosCutoff(6.0, 9.0).descriptor == ("cos", 6.0, 9.0)
        assert cutoff_function(Cos2sCutoff(0.5, 1.0, 1.5, 2.0).descriptor) == Cos2sCutoff(
            0.5, 1.0, 1.5, 2.0
        )

    @pytest.mark.parametrize(
        "spec",
        [
            ("tanh", 1.0, 2.0),
            ("cos", 1.0),
            ("cos", 9.0, 6.0),
            ("cos", 2.0, 2.0),
            ("sw", -1.0, 2.0),
            ("square", -1.0),
            ("cos2s", 1.0, 0.5, 1.5, 2.0),
            ("cos", "a", 2.0),
            "(:cos)",
            "",
        ],
    )
    def test_invalid(self, spec) -> None:
        with pytest.raises(ConfigurationError):
            cutoff_function(spec)

    def test_cos_values(self) -> None:
        fc = CosCutoff(6.0, 9.0)
        np.testing.assert_allclose(fc(np.array([5.0, 7.5, 9.0, 10.0])), [1.0, 0.5, 0.0, 0.0], atol=1e-15)
        np.testing.assert_array_equal(fc.evaluate_d(np.array([5.0, 9.0, 10.0])), [0.0, 0.0, 0.0])

    def test_spline_values(self) -> None:
        fc = SplineCutoff(1.0, 3.0)
        np.testing.assert_allclose(fc(np.array([0.5, 2.0, 3.0, 4.0])), [1.0, 0.5, 0.0, 0.0])

    def test_cos2s_vanishes_at_short_range(self) -> None:
        fc = Cos2sCutoff(0.5, 1.0, 1.5, 2.0)
        np.testing.assert_allclose(fc(np.array([0.3, 1.2, 2.5])), [0.0, 1.0, 0.0])

    @pytest.mark.parametrize("fc, points", SHAPES)
    def test_derivative_matches_finite_differences(self, fc, points) -> None:
        r = np.array(points)
        h = 1e-6
        numeric = (fc(r + h) - fc(r - h)) / (2 * h)
        np.testing.assert_allclose(fc.evaluate_d(r), numeric, rtol=1e-6, atol=1e-8)

    @pytest.mark.parametrize("fc, points", SHAPES)
    def test_zero_beyond_rcut(self, fc, points) -> None:
        r = np.array([fc.rcut, fc.rcut + 0.5])
        np.testing.assert_array_equal(fc(r), [0.0, 0.0])
        np.testing.assert_array_equal(fc.evaluate_d(r), [0.0, 0.0])


class TestClusterCutoff:
    """Tests for the product cutoff of a cluster."""

    @pytest.fixture
    def fc(self) -> CosCutoff:
        return CosCutoff(6.0, 9.0)

    def test_product(self, fc: CosCutoff) -> None:
        r = np.array([5.0, 7.5, 8.0])
        assert cluster_cutoff(fc, r) == pytest.approx(np.prod(fc(r)))

    def test_short_circuit(self, fc: CosCutoff) -> None:
        r = np.array([5.0, 9.5, 8.0])
        assert cluster_cutoff(fc, r) == 0.0
        value, grad = cluster_cutoff_d(fc, r)
        assert value == 0.0
        np.testing.assert_array_equal(grad, np.zeros(3))

    def test_gradient(self, fc: CosCutoff) -> None:
        r = np.array([6.5, 7.0, 8.0, 5.0])
        value, grad = cluster_cutoff_d(fc, r)
        assert value == pytest.approx(cluster_cutoff(fc, r))
        numeric = NumericalBackend(h=1e-6).compute_gradient(
            lambda x: cluster_cutoff(fc, x), r
        )
        np.testing.assert_allclose(grad, numeric, rtol=1e-6, atol=1e-9)

    def test_gradient_with_zero_factor(self) -> None:
        """A zero factor inside the domain does not break the gradient."""
        fc = Cos2sCutoff(0.5, 1.0, 1.5, 2.0)
        r = np.array([0.3, 0.75, 1.2])
        value, grad = cluster_cutoff_d(fc, r)
        assert value == 0.0
        assert np.all(np.isfinite(grad))


class TestDictionary:
    """Tests for Dictionary."""

    @pytest.fixture
    def D(self) -> Dictionary:
        return Dictionary.from_spec("r -> 1/r", ("cos", 4.0, 6.0), 3)

    def test_rcut(self, D: Dictionary) -> None:
        assert D.rcut == 6.0
        assert D.n_edges == 3

    def test_from_strings(self) -> None:
        D = Dictionary.from_spec("inverse", "(:cos, 4.0, 6.0)", 3)
        assert D == Dictionary.from_spec("r -> 1/r", ("cos", 4.0, 6.0), 3)

    @pytest.mark.parametrize("body_order", [1, 6])
    def test_unsupported_body_order(self, body_order: int) -> None:
        with pytest.raises(ConfigurationError):
            Dictionary.from_spec("inverse", ("cos", 4.0, 6.0), body_order)

    def test_immutable(self, D: Dictionary) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            D.body_order = 4

    def test_inverse_chain_factor(self, D: Dictionary) -> None:
        """Jacobians w.r.t. r include the factor -1/r^2 of the inverse transform."""
        r = np.array([2.0, 2.5, 3.0])
        I1, I2, dI1, dI2 = D.invariants_ed(r)
        J1, J2, dJ1, dJ2 = invariants_ed(1.0 / r)
        np.testing.assert_allclose(I1, J1)
        np.testing.assert_allclose(dI1, dJ1 * (-1.0 / r**2))
        np.testing.assert_allclose(dI2, dJ2 * (-1.0 / r**2))

    def test_jacobian_matches_finite_differences(self) -> None:
        D = Dictionary.from_spec("r -> exp(-r)", ("cos", 4.0, 6.0), 4)
        r = np.array([2.0, 2.3, 2.6, 2.9, 3.1, 3.4])
        I1, I2, dI1, dI2 = D.invariants_ed(r)
        numeric = NumericalBackend(h=1e-5).compute_jacobian(
            lambda x: np.concatenate(D.invariants(x)), r
        )
        np.testing.assert_allclose(np.vstack([dI1, dI2]), numeric, rtol=1e-6, atol=1e-9)

    def test_dimension_mismatch(self, D: Dictionary) -> None:
        with pytest.raises(DimensionMismatch):
            D.invariants(np.ones(6))
        with pytest.raises(DimensionMismatch):
            D.fcut(np.ones(2))

    def test_fcut(self, D: Dictionary) -> None:
        assert D.fcut(np.array([2.0, 3.0, 3.5])) == 1.0
        assert D.fcut(np.array([2.0, 3.0, 6.0])) == 0.0

    def test_roundtrip(self, D: Dictionary) -> None:
        record = D.to_dict()
        assert record["id"] == "Dictionary"
        assert Dictionary.from_dict(record) == D

    def test_invalid_record(self) -> None:
        with pytest.raises(ConfigurationError):
            Dictionary.from_dict({"id": "Dictionary", "transform": "inverse", "body_order": 3})

    def test_hashable(self, D: Dictionary) -> None:
        same = Dictionary.from_spec("inverse", ("cos", 4.0, 6.0), 3)
        assert len({D, same}) == 1
