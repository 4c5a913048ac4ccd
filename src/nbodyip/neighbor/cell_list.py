"""
Cell list (link-cell) neighbor list implementation.

O(N) scaling algorithm for large systems. Divides box into cells
and only checks neighboring cells.
"""
from typing import TYPE_CHECKING, Dict, List, Set, Tuple

import numpy as np
from numpy.typing import NDArray

from .neighbor_list import NeighborList

if TYPE_CHECKING:
    from nbodyip.boundary import BoundaryCondition


class CellList(NeighborList):
    """
    Cell list (link-cell) algorithm with O(N) scaling.

    Divides the box into cells of size >= cutoff. For each atom, only
    atoms in the same cell and the 26 neighboring cells are checked.
    When a dimension holds fewer than three cells the wrapped neighbor
    cells coincide; they are de-duplicated so that no pair is visited
    twice.

    Attributes:
        cells: Dictionary mapping cell indices to list of atom indices.
        n_cells: Number of cells in each dimension.
        build_count: Number of times the list has been rebuilt.

    Example:
        >>> from nbodyip.neighbor import CellList
        >>> nl = CellList(cutoff=5.0)
        >>> nl.build(positions, box, pbc)
        >>> print(f"Grid: {nl.n_cells}")
    """

    def __init__(self, cutoff: float) -> None:
        """
        Initialize cell list.

        Args:
            cutoff: Interaction cutoff distance.
        """
        super().__init__(cutoff)
        self.cells: Dict[Tuple[int, int, int], List[int]] = {}
        self.n_cells: NDArray[np.intp] = np.array([1, 1, 1], dtype=np.intp)
        self.build_count = 0

    def build(
        self,
        positions: NDArray[np.floating],
        box: NDArray[np.floating],
        boundary_condition: "BoundaryCondition",
    ) -> None:
        """
        Build cell list.

        Args:
            positions: (N, 3) atomic positions.
            box: (3,) box dimensions.
            boundary_condition: For minimum image convention.
        """
        n_atoms = len(positions)
        box = np.asarray(box, dtype=np.float64)

        self.n_cells = np.maximum(1, (box / self.cutoff).astype(np.intp))
        actual_cell_size = box / self.n_cells

        # Open boundaries leave positions unwrapped; wrapping only picks the cell
        wrapped = positions - box * np.floor(positions / box)

        self.cells = {}
        for atom_idx in range(n_atoms):
            cell_idx = tuple(
                int(c)
                for c in np.floor(wrapped[atom_idx] / actual_cell_size).astype(np.intp)
                % self.n_cells
            )
            self.cells.setdefault(cell_idx, []).append(atom_idx)

        self.neighbors = {i: [] for i in range(n_atoms)}

        for cell_idx, atoms_in_cell in self.cells.items():
            neighbor_cells = self._get_neighbor_cells(cell_idx)

            for atom_i in atoms_in_cell:
                for neighbor_cell in neighbor_cells:
                    for atom_j in self.cells.get(neighbor_cell, ()):
                        if atom_j <= atom_i:
                            continue

                        dr = boundary_condition.compute_distance_vectors(
                            positions[atom_i], positions[atom_j], box
                        )
                        if np.linalg.norm(dr) < self.cutoff:
                            self.neighbors[atom_i].append(atom_j)

        self.build_count += 1

    def _get_neighbor_cells(
        self, cell_idx: Tuple[int, int, int]
    ) -> Set[Tuple[int, int, int]]:
        """
        Get indices of neighboring cells (including periodic wrapping).

        Args:
            cell_idx: (i, j, k) cell index.

        Returns:
            Set of distinct neighboring cell indices.
        """
        i, j, k = cell_idx
        neighbors = set()

        for di in (-1, 0, 1):
            for dj in (-1, 0, 1):
                for dk in (-1, 0, 1):
                    ni = (i + di) % int(self.n_cells[0])
                    nj = (j + dj) % int(self.n_cells[1])
                    nk = (k + dk) % int(self.n_cells[2])
                    neighbors.add((ni, nj, nk))

        return neighbors

    def get_name(self) -> str:
        """Return algorithm name with stats."""
        return f"CellList(cells={tuple(int(n) for n in self.n_cells)}, builds={self.build_count})"
