"""
Atomic configuration container.

This module provides the Configuration dataclass: the positions, box and
boundary condition that potentials are evaluated on.
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from nbodyip.boundary import BoundaryCondition


@dataclass
class Configuration:
    """
    Snapshot of an atomic configuration.

    Holds everything a potential needs to compute energies and forces.
    The box lives here (not in the BoundaryCondition) so that the same
    stateless boundary condition can be shared between configurations.

    Attributes:
        positions: (N, 3) array of atomic positions.
        box: (3,) array of orthorhombic box lengths.
        boundary_condition: Strategy for periodicity / minimum image.
        atom_types: Optional (N,) integer species indices.

    Example:
        >>> import numpy as np
        >>> from nbodyip.core import Configuration
        >>> from nbodyip.boundary import OpenBoundaryCondition
        >>> config = Configuration(
        ...     positions=np.zeros((10, 3)),
        ...     box=np.array([10.0, 10.0, 10.0]),
        ...     boundary_condition=OpenBoundaryCondition(),
        ... )
    """
    positions: NDArray[np.floating]
    box: NDArray[np.floating]
    boundary_condition: "BoundaryCondition"
    atom_types: Optional[NDArray[np.intp]] = field(default=None)

    def __post_init__(self) -> None:
        """Validate arrays after initialization."""
        self.positions = np.asarray(self.positions, dtype=np.float64)
        self.box = np.asarray(self.box, dtype=np.float64)

        if self.positions.ndim != 2 or self.positions.shape[1] != 3:
            raise ValueError(
                f"Positions must be (N, 3) array, got shape {self.positions.shape}"
            )
        if self.box.shape != (3,):
            raise ValueError(f"Box must be (3,) array, got shape {self.box.shape}")
        if np.any(self.box <= 0):
            raise ValueError(f"Box lengths must be positive, got {self.box}")

        if self.atom_types is not None:
            self.atom_types = np.asarray(self.atom_types, dtype=np.intp)
            if self.atom_types.shape != (self.n_atoms,):
                raise ValueError(
                    f"atom_types shape {self.atom_types.shape} must be "
                    f"({self.n_atoms},)"
                )

    @property
    def n_atoms(self) -> int:
        """Return the number of atoms."""
        return self.positions.shape[0]

    def __len__(self) -> int:
        return self.n_atoms

    def copy(self) -> "Configuration":
        """Create a deep copy (the boundary condition is shared)."""
        return Configuration(
            positions=self.positions.copy(),
            box=self.box.copy(),
            boundary_condition=self.boundary_condition,
            atom_types=None if self.atom_types is None else self.atom_types.copy(),
        )

    def with_positions(self, positions: NDArray[np.floating]) -> "Configuration":
        """Return a copy of this configuration with new positions."""
        return Configuration(
            positions=positions,
            box=self.box,
            boundary_condition=self.boundary_condition,
            atom_types=self.atom_types,
        )
