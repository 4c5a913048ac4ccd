"""
Dictionary: the shared (transform, cutoff, body order) of a family of terms.
"""
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from pydantic import ValidationError

from nbodyip.core.errors import ConfigurationError, DimensionMismatch

from .cutoffs import CutoffFunction, CutoffSpec, cluster_cutoff, cluster_cutoff_d, cutoff_function
from .invariants import Invariants, InvariantsED, InvariantSet, invariant_set, nedges
from .transforms import AnalyticFunction, analytic_function


@dataclass(frozen=True)
class Dictionary:
    """
    Immutable description of how distances enter an N-body term.

    Holds the distance transform s = t(r), the cutoff envelope and the
    body order. Invariants are computed in the transformed coordinates;
    their Jacobians are returned with respect to r.

    Attributes:
        transform: Distance transform.
        cutoff: Cutoff envelope applied to every edge.
        body_order: Number of atoms N per cluster.

    Example:
        >>> D = Dictionary.from_spec("r -> 1/r", ("cos", 4.0, 6.0), 3)
        >>> D.rcut
        6.0
    """

    transform: AnalyticFunction
    cutoff: CutoffFunction
    body_order: int

    def __post_init__(self):
        object.__setattr__(self, "transform", analytic_function(self.transform))
        object.__setattr__(self, "cutoff", cutoff_function(self.cutoff))
        # raises ConfigurationError for unsupported body orders
        invariant_set(self.body_order)

    @classmethod
    def from_spec(
        cls,
        transform: Union[str, AnalyticFunction],
        cutoff: Union[CutoffSpec, CutoffFunction],
        body_order: int,
    ) -> "Dictionary":
        """Build a dictionary from descriptor strings or tuples."""
        return cls(analytic_function(transform), cutoff_function(cutoff), int(body_order))

    @property
    def rcut(self) -> float:
        return self.cutoff.rcut

    @property
    def n_edges(self) -> int:
        return nedges(self.body_order)

    @property
    def invariant_set(self) -> InvariantSet:
        return invariant_set(self.body_order)

    def _check(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        r = np.asarray(r, dtype=np.float64)
        if r.shape != (self.n_edges,):
            raise DimensionMismatch(self.n_edges, r.size, self.body_order)
        return r

    def invariants(self, r: NDArray[np.floating]) -> Invariants:
        """Primary and secondary invariants of the transformed distances."""
        r = self._check(r)
        return self.invariant_set.evaluate(np.asarray(self.transform(r), dtype=np.float64))

    def invariants_ed(self, r: NDArray[np.floating]) -> InvariantsED:
        """
        Invariants and their Jacobians with respect to r.

        Each column of dI/ds is scaled by dt/dr of its edge.
        """
        r = self._check(r)
        s = np.asarray(self.transform(r), dtype=np.float64)
        I1, I2, dI1, dI2 = self.invariant_set.evaluate_ed(s)
        t_d = np.asarray(self.transform.derivative(r), dtype=np.float64)
        return I1, I2, dI1 * t_d, dI2 * t_d

    def fcut(self, r: NDArray[np.floating]) -> float:
        """Cluster cutoff prod_i f(r_i)."""
        return cluster_cutoff(self.cutoff, self._check(r))

    def fcut_d(self, r: NDArray[np.floating]) -> Tuple[float, NDArray[np.floating]]:
        """Cluster cutoff and its gradient."""
        return cluster_cutoff_d(self.cutoff, self._check(r))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": "Dictionary",
            "transform": self.transform.descriptor,
            "cutoff": list(self.cutoff.descriptor),
            "body_order": self.body_order,
        }

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Dictionary":
        from nbodyip.io.schemas import DictionaryRecord

        try:
            rec = DictionaryRecord.model_validate(record)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid Dictionary record: {exc}") from exc
        return cls.from_spec(rec.transform, tuple(rec.cutoff), rec.body_order)
