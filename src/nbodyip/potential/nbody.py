"""
N-body polynomial terms.

An NBody holds exponent tuples alpha, coefficients c and a shared
Dictionary. On a cluster with edge lengths r it evaluates

    V(r) = fcut(r) * sum_(alpha, c) c * I2[alpha[-1]] * prod_i I1[i]**alpha[i]

where (I1, I2) are the invariants of the transformed edge lengths.
"""
import logging
from typing import Any, Dict, List, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from pydantic import ValidationError

from nbodyip.core.errors import ConfigurationError
from nbodyip.polynomials.basis import gen_tuples, tdegree
from nbodyip.polynomials.dictionary import Dictionary
from nbodyip.polynomials.monomials import monomial, monomial_d

from .potential_energy import NBodyFunction

logger = logging.getLogger(__name__)

Tup = Tuple[int, ...]


def _polynomial(
    tuples: Sequence[Tup],
    coefficients: Sequence[float],
    I1: NDArray[np.floating],
    I2: NDArray[np.floating],
) -> float:
    x = I1.tolist()
    y = I2.tolist()
    E = 0.0
    for alpha, c in zip(tuples, coefficients):
        E += c * y[alpha[-1]] * monomial(alpha, x)
    return E


def _polynomial_d(
    tuples: Sequence[Tup],
    coefficients: Sequence[float],
    I1: NDArray[np.floating],
    I2: NDArray[np.floating],
    dI1: NDArray[np.floating],
    dI2: NDArray[np.floating],
) -> Tuple[float, NDArray[np.floating]]:
    """Polynomial value and its gradient w.r.t. r, before the cutoff."""
    x = I1.tolist()
    y = I2.tolist()
    E = 0.0
    dM = [0.0] * len(x)
    w2 = [0.0] * len(y)
    for alpha, c in zip(tuples, coefficients):
        k = alpha[-1]
        m, m_d = monomial_d(alpha, x)
        cy = c * y[k]
        E += cy * m
        for i, d in enumerate(m_d):
            if d:
                dM[i] += cy * d
        w2[k] += c * m
    # chain rule through the primary and secondary Jacobians
    dE = np.asarray(dM) @ dI1 + np.asarray(w2) @ dI2
    return E, dE


class NBody(NBodyFunction):
    """
    Polynomial N-body term (N >= 2) over a shared dictionary.

    Args:
        tuples: Exponent tuples of length P + 1; the last entry selects
            the secondary invariant.
        coefficients: One coefficient per tuple.
        dictionary: Shared transform, cutoff and body order.

    Raises:
        ConfigurationError: If a tuple does not fit the body order.

    Example:
        >>> D = Dictionary.from_spec("inverse", ("cos", 4.0, 6.0), 3)
        >>> V = NBody([(1, 0, 0, 0)], [1.0], D)
        >>> V.evaluate(np.array([2.0, 2.5, 3.0]))
    """

    def __init__(
        self,
        tuples: Sequence[Sequence[int]],
        coefficients: Sequence[float],
        dictionary: Dictionary,
    ) -> None:
        if not isinstance(dictionary, Dictionary):
            raise ConfigurationError(
                f"NBody needs a Dictionary, got {type(dictionary).__name__}"
            )
        tuples = tuple(tuple(int(a) for a in t) for t in tuples)
        coefficients = np.array(coefficients, dtype=np.float64).reshape(-1)
        if len(tuples) != len(coefficients):
            raise ConfigurationError(
                f"{len(tuples)} tuples but {len(coefficients)} coefficients"
            )

        inv = dictionary.invariant_set
        for alpha in tuples:
            if len(alpha) != inv.n_primary + 1:
                raise ConfigurationError(
                    f"Tuple {alpha} has length {len(alpha)}; body order "
                    f"{dictionary.body_order} needs {inv.n_primary + 1}"
                )
            if min(alpha) < 0:
                raise ConfigurationError(f"Negative exponent in tuple {alpha}")
            if alpha[-1] >= inv.n_secondary:
                raise ConfigurationError(
                    f"Secondary index {alpha[-1]} out of range for body order "
                    f"{dictionary.body_order} ({inv.n_secondary} secondaries)"
                )

        coefficients.setflags(write=False)
        self._tuples = tuples
        self._coefficients = coefficients
        self._dictionary = dictionary

    @property
    def tuples(self) -> Tuple[Tup, ...]:
        return self._tuples

    @property
    def coefficients(self) -> NDArray[np.floating]:
        return self._coefficients

    @property
    def dictionary(self) -> Dictionary:
        return self._dictionary

    @property
    def body_order(self) -> int:
        return self._dictionary.body_order

    @property
    def cutoff(self) -> float:
        return self._dictionary.rcut

    def __len__(self) -> int:
        return len(self._tuples)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NBody):
            return NotImplemented
        return (
            self._tuples == other._tuples
            and np.array_equal(self._coefficients, other._coefficients)
            and self._dictionary == other._dictionary
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"NBody(N={self.body_order}, terms={len(self)}, rcut={self.cutoff})"

    def get_name(self) -> str:
        return f"NBody(N={self.body_order}, terms={len(self)})"

    def evaluate(self, r: NDArray[np.floating]) -> float:
        D = self._dictionary
        fc = D.fcut(r)
        if fc == 0.0:
            return 0.0
        I1, I2 = D.invariants(r)
        return _polynomial(self._tuples, self._coefficients.tolist(), I1, I2) * fc

    def evaluate_grad(
        self, r: NDArray[np.floating]
    ) -> Tuple[float, NDArray[np.floating]]:
        """
        Value and gradient with respect to the edge lengths.

        The polynomial and the cutoff envelope are differentiated
        separately and combined with the product rule.
        """
        D = self._dictionary
        fc, fc_d = D.fcut_d(r)
        if fc == 0.0 and not np.any(fc_d):
            return 0.0, np.zeros(D.n_edges)
        I1, I2, dI1, dI2 = D.invariants_ed(r)
        E, dE = _polynomial_d(
            self._tuples, self._coefficients.tolist(), I1, I2, dI1, dI2
        )
        return E * fc, dE * fc + E * fc_d

    def evaluate_d(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        return self.evaluate_grad(r)[1]

    def degree(self) -> int:
        """
        Total degree of a single-tuple term.

        Raises:
            ValueError: If the term holds more than one tuple.
        """
        if len(self) != 1:
            raise ValueError("degree is only defined for single-tuple terms")
        return tdegree(self._tuples[0], self.body_order)

    def recover_basis(self) -> List["NBody"]:
        """Split into single-tuple terms, keeping the coefficients."""
        return [
            NBody([t], [c], self._dictionary)
            for t, c in zip(self._tuples, self._coefficients)
        ]

    def match_dictionary(self, other: Union["NBody", Dictionary]) -> "NBody":
        """Return the same tuples and coefficients on another dictionary."""
        target = other.dictionary if isinstance(other, NBody) else other
        if target != self._dictionary:
            logger.warning(
                "matching non-matching dictionaries: %s -> %s",
                self._dictionary.to_dict(), target.to_dict(),
            )
        return NBody(self._tuples, self._coefficients, target)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": "NBody",
            "body_order": self.body_order,
            "tuples": [list(t) for t in self._tuples],
            "coefficients": self._coefficients.tolist(),
            "dictionary": self._dictionary.to_dict(),
        }

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "NBody":
        from nbodyip.io.schemas import NBodyRecord

        try:
            rec = NBodyRecord.model_validate(record)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid NBody record: {exc}") from exc
        D = Dictionary.from_dict(rec.dictionary.model_dump())
        return cls(rec.tuples, rec.coefficients, D)


def combine_basis(basis: Sequence[NBody], coefficients: Sequence[float]) -> NBody:
    """
    Merge terms sharing one dictionary into a single multi-tuple term.

    The coefficient of every tuple of basis[i] is multiplied by
    coefficients[i].

    Raises:
        ValueError: If basis is empty or the lengths differ.
        ConfigurationError: If the terms use different dictionaries.
    """
    if len(basis) == 0:
        raise ValueError("Cannot combine an empty basis")
    if len(basis) != len(coefficients):
        raise ValueError(
            f"{len(basis)} basis functions but {len(coefficients)} coefficients"
        )
    D = basis[0].dictionary
    tuples: List[Tup] = []
    coeffs: List[float] = []
    for b, c in zip(basis, coefficients):
        if b.dictionary != D:
            raise ConfigurationError("combine_basis needs a shared dictionary")
        tuples.extend(b.tuples)
        coeffs.extend(float(c) * b.coefficients)
    return NBody(tuples, coeffs, D)


def _shared_dictionary(basis: Sequence[NBody]) -> Dictionary:
    if len(basis) == 0:
        raise ValueError("Empty basis")
    D = basis[0].dictionary
    if any(b.dictionary != D for b in basis[1:]):
        raise ConfigurationError("Basis functions must share one dictionary")
    return D


def evaluate_many(basis: Sequence[NBody], r: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Evaluate every term of a shared-dictionary basis on one cluster.

    Invariants and cutoff are computed once.

    Returns:
        (len(basis),) values.
    """
    D = _shared_dictionary(basis)
    out = np.zeros(len(basis))
    fc = D.fcut(r)
    if fc == 0.0:
        return out
    I1, I2 = D.invariants(r)
    for ib, b in enumerate(basis):
        out[ib] = _polynomial(b.tuples, b.coefficients.tolist(), I1, I2)
    return out * fc


def evaluate_many_d(basis: Sequence[NBody], r: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Gradients of every term of a shared-dictionary basis on one cluster.

    Returns:
        (len(basis), M) array of dV_b/dr.
    """
    D = _shared_dictionary(basis)
    out = np.zeros((len(basis), D.n_edges))
    fc, fc_d = D.fcut_d(r)
    if fc == 0.0 and not np.any(fc_d):
        return out
    I1, I2, dI1, dI2 = D.invariants_ed(r)
    for ib, b in enumerate(basis):
        E, dE = _polynomial_d(b.tuples, b.coefficients.tolist(), I1, I2, dI1, dI2)
        out[ib] = dE * fc + E * fc_d
    return out


def poly_basis(
    body_order: int,
    dictionary: Union[Dictionary, Tuple[str, Any]],
    degree: int,
    **kwargs: Any,
) -> List[NBody]:
    """
    Generate an N-body basis with unit coefficients.

    Args:
        body_order: Body order N.
        dictionary: A Dictionary or a (transform, cutoff) descriptor pair.
        degree: Total degree bound.
        **kwargs: Passed to ``gen_tuples`` (tuplebound, check_monotone).

    Example:
        >>> B = poly_basis(3, ("r -> 1/r", "(:cos, 4.0, 6.0)"), 6)
    """
    if not isinstance(dictionary, Dictionary):
        transform, cutoff = dictionary
        dictionary = Dictionary.from_spec(transform, cutoff, body_order)
    elif dictionary.body_order != body_order:
        raise ConfigurationError(
            f"Dictionary has body order {dictionary.body_order}, expected {body_order}"
        )
    return [NBody([t], [1.0], dictionary) for t in gen_tuples(body_order, degree, **kwargs)]
