"""
One-body (on-site) energy term.
"""
from typing import TYPE_CHECKING, Any, Dict, Optional

import numpy as np
from numpy.typing import NDArray
from pydantic import ValidationError

from nbodyip.core.errors import ConfigurationError

from .potential_energy import NBodyFunction

if TYPE_CHECKING:
    from nbodyip.core import Configuration
    from nbodyip.neighbor import NeighborList


class OneBody(NBodyFunction):
    """
    Constant energy c per atom.

    Contributes c * n_atoms to the energy and nothing to forces or virial.
    No neighbor search is performed.

    Example:
        >>> V = OneBody(-4.0)
        >>> V.energy(config)  # config with 10 atoms
        -40.0
    """

    def __init__(self, c: float) -> None:
        self.c = float(c)

    @property
    def body_order(self) -> int:
        return 1

    @property
    def cutoff(self) -> float:
        return 0.0

    @property
    def coefficients(self) -> NDArray[np.floating]:
        return np.array([self.c])

    def __len__(self) -> int:
        return 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OneBody):
            return NotImplemented
        return self.c == other.c

    __hash__ = None

    def __repr__(self) -> str:
        return f"OneBody({self.c!r})"

    def get_name(self) -> str:
        return f"OneBody(c={self.c})"

    def degree(self) -> int:
        return 0

    def evaluate(self, r: Optional[NDArray[np.floating]] = None) -> float:
        return self.c

    def evaluate_d(self, r: Optional[NDArray[np.floating]] = None) -> NDArray[np.floating]:
        return np.zeros(0)

    def site_energies(
        self,
        configuration: "Configuration",
        neighbor_list: Optional["NeighborList"] = None,
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        return np.full(configuration.n_atoms, self.c)

    def gradient(
        self,
        configuration: "Configuration",
        neighbor_list: Optional["NeighborList"] = None,
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        return np.zeros((configuration.n_atoms, 3))

    def virial(
        self,
        configuration: "Configuration",
        neighbor_list: Optional["NeighborList"] = None,
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        return np.zeros((3, 3))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": "OneBody", "c": self.c}

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "OneBody":
        from nbodyip.io.schemas import OneBodyRecord

        try:
            rec = OneBodyRecord.model_validate(record)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid OneBody record: {exc}") from exc
        return cls(rec.c)
