"""
Abstract base class for neighbor list algorithms.

This module provides the NeighborList ABC that defines the interface
for pair-search strategies (BruteForce, Cell). Cluster enumeration for
N-body terms is built on top of the pairs they produce.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from nbodyip.boundary import BoundaryCondition


class NeighborList(ABC):
    """
    Abstract base for neighbor list algorithms (Strategy Pattern).

    A neighbor list stores, for each atom i, the atoms j > i within the
    cutoff radius, so that every pair is recorded exactly once.

    Attributes:
        cutoff: Interaction cutoff distance.
        neighbors: Dictionary mapping atom index to list of neighbor indices.

    Example:
        >>> from nbodyip.neighbor import CellList
        >>> nl = CellList(cutoff=5.0)
        >>> nl.build(positions, box, boundary_condition)
        >>> neighbors_of_atom_0 = nl.get_neighbors(0)
    """

    def __init__(self, cutoff: float) -> None:
        """
        Initialize neighbor list.

        Args:
            cutoff: Interaction cutoff distance.
        """
        if cutoff <= 0:
            raise ValueError(f"Cutoff must be positive, got {cutoff}")

        self.cutoff = cutoff
        self.neighbors: Optional[Dict[int, List[int]]] = None

    @abstractmethod
    def build(
        self,
        positions: NDArray[np.floating],
        box: NDArray[np.floating],
        boundary_condition: "BoundaryCondition",
    ) -> None:
        """
        Build or rebuild the neighbor list.

        Args:
            positions: (N, 3) atomic positions.
            box: (3,) box dimensions.
            boundary_condition: For handling periodicity.
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get human-readable name of this neighbor list algorithm."""
        pass

    def get_neighbors(self, atom_index: int) -> NDArray[np.intp]:
        """
        Get neighbor indices j > atom_index for a given atom.

        Args:
            atom_index: Index of the atom.

        Returns:
            Sorted array of neighbor atom indices.
        """
        if self.neighbors is None:
            return np.array([], dtype=np.intp)
        return np.array(sorted(self.neighbors.get(atom_index, [])), dtype=np.intp)

    def get_num_neighbors(self) -> int:
        """Return total number of neighbor pairs."""
        if self.neighbors is None:
            return 0
        return sum(len(v) for v in self.neighbors.values())

    def get_all_pairs(self) -> List[Tuple[int, int]]:
        """
        Get all neighbor pairs as a list of (i, j) tuples.

        Returns:
            List of tuples (i, j) where i < j.
        """
        if self.neighbors is None:
            return []

        pairs = []
        for i in sorted(self.neighbors):
            for j in sorted(self.neighbors[i]):
                pairs.append((i, j))
        return pairs
