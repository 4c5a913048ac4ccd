"""
Interatomic potential assembled from N-body terms.
"""
import logging
import math
from typing import TYPE_CHECKING, Any, Dict, List, Sequence, Union

import numpy as np
from numpy.typing import NDArray
from pydantic import ValidationError

from nbodyip.core.errors import ConfigurationError

from .nbody import NBody, combine_basis
from .one_body import OneBody
from .potential_energy import NBodyFunction

if TYPE_CHECKING:
    from nbodyip.core import Configuration

logger = logging.getLogger(__name__)


class NBodyIP:
    """
    Sum of N-body terms of possibly different body orders.

    Each term runs its own cluster enumeration with its own cutoff.

    Example:
        >>> ip = NBodyIP([OneBody(-4.0), V2, V3])
        >>> ip.cutoff
        9.0
        >>> E = ip.energy(config)
    """

    def __init__(self, orders: Sequence[NBodyFunction]) -> None:
        """
        Initialize the potential.

        Args:
            orders: N-body terms to sum.
        """
        if not orders:
            raise ValueError("Must provide at least one N-body term")
        self.orders: List[NBodyFunction] = list(orders)

    @classmethod
    def from_basis(
        cls, basis: Sequence[NBodyFunction], coefficients: Sequence[float]
    ) -> "NBodyIP":
        """
        Build a potential from a fitted basis.

        Terms are grouped by dictionary (one-body terms form their own
        group) and every group is merged into a single term.

        Args:
            basis: Basis functions.
            coefficients: One coefficient per basis function.
        """
        if len(basis) != len(coefficients):
            raise ValueError(
                f"{len(basis)} basis functions but {len(coefficients)} coefficients"
            )

        one_body: List[float] = []
        groups: Dict[Any, List[int]] = {}
        for i, b in enumerate(basis):
            if isinstance(b, OneBody):
                one_body.append(float(coefficients[i]) * b.c)
            elif isinstance(b, NBody):
                groups.setdefault(b.dictionary, []).append(i)
            else:
                raise ConfigurationError(
                    f"Cannot merge basis function of type {type(b).__name__}"
                )

        orders: List[NBodyFunction] = []
        if one_body:
            orders.append(OneBody(math.fsum(one_body)))
        for indices in groups.values():
            orders.append(
                combine_basis(
                    [basis[i] for i in indices], [coefficients[i] for i in indices]
                )
            )
        orders.sort(key=lambda V: V.body_order)

        logger.info(
            "merged %d basis functions into %d terms (body orders %s)",
            len(basis), len(orders), sorted({V.body_order for V in orders}),
        )
        return cls(orders)

    @property
    def cutoff(self) -> float:
        """Return maximum cutoff of all terms."""
        return max(V.cutoff for V in self.orders)

    @property
    def body_order(self) -> int:
        """Highest body order of all terms."""
        return max(V.body_order for V in self.orders)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NBodyIP):
            return NotImplemented
        return self.orders == other.orders

    __hash__ = None

    def __len__(self) -> int:
        return len(self.orders)

    def get_name(self) -> str:
        """Return name listing all terms."""
        names = [V.get_name() for V in self.orders]
        return f"NBodyIP({', '.join(names)})"

    def site_energies(
        self,
        configuration: "Configuration",
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        out = np.zeros(configuration.n_atoms)
        for V in self.orders:
            out += V.site_energies(configuration, n_workers=n_workers)
        return out

    def energy(
        self,
        configuration: "Configuration",
        n_workers: int = 1,
    ) -> float:
        """Total energy, with compensated summation over all site energies."""
        parts = [
            V.site_energies(configuration, n_workers=n_workers) for V in self.orders
        ]
        return math.fsum(np.concatenate(parts))

    def gradient(
        self,
        configuration: "Configuration",
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        out = np.zeros((configuration.n_atoms, 3))
        for V in self.orders:
            out += V.gradient(configuration, n_workers=n_workers)
        return out

    def forces(
        self,
        configuration: "Configuration",
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        return -self.gradient(configuration, n_workers)

    def virial(
        self,
        configuration: "Configuration",
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        out = np.zeros((3, 3))
        for V in self.orders:
            out += V.virial(configuration, n_workers=n_workers)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {"id": "NBodyIP", "components": [V.to_dict() for V in self.orders]}

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "NBodyIP":
        from nbodyip.io.schemas import NBodyIPRecord
        from nbodyip.io.serialization import decode

        try:
            rec = NBodyIPRecord.model_validate(record)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid NBodyIP record: {exc}") from exc
        return cls([decode(c) for c in rec.components])


Potential = Union[NBodyFunction, NBodyIP]
