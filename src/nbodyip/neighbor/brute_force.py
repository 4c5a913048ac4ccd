"""
Brute-force neighbor list implementation.

Simple O(N²) algorithm that checks all pairs. Good for small systems
and as a reference for the cell list.
"""
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .neighbor_list import NeighborList

if TYPE_CHECKING:
    from nbodyip.boundary import BoundaryCondition


class BruteForceNeighborList(NeighborList):
    """
    Brute-force neighbor list (O(N²) scaling).

    Checks all pairs of atoms at every build. Simple and correct; used
    as the reference implementation in tests.

    Example:
        >>> from nbodyip.neighbor import BruteForceNeighborList
        >>> nl = BruteForceNeighborList(cutoff=2.5)
        >>> nl.build(positions, box, pbc)
        >>> print(nl.get_num_neighbors())
    """

    def build(
        self,
        positions: NDArray[np.floating],
        box: NDArray[np.floating],
        boundary_condition: "BoundaryCondition",
    ) -> None:
        """
        Build neighbor list by checking all pairs.

        Args:
            positions: (N, 3) atomic positions.
            box: (3,) box dimensions.
            boundary_condition: For minimum image convention.
        """
        n_atoms = len(positions)
        self.neighbors = {i: [] for i in range(n_atoms)}

        for i in range(n_atoms - 1):
            dr = boundary_condition.compute_distance_vectors(
                positions[i], positions[i + 1:], box
            )
            distances = np.linalg.norm(dr, axis=1)
            for offset in np.nonzero(distances < self.cutoff)[0]:
                self.neighbors[i].append(i + 1 + int(offset))

    def get_name(self) -> str:
        """Return algorithm name."""
        return "BruteForce"
