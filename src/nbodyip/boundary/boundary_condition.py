"""
Abstract base class for boundary conditions.

A boundary condition decides two things for cluster enumeration: how the
displacement between two atoms is reduced, and which periodic images of
an atom can lie within a given cutoff.
"""
from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray


class BoundaryCondition(ABC):
    """
    Abstract base for boundary conditions (Strategy Pattern).

    The box is not owned by the boundary condition; it is passed in from
    Configuration.box so one strategy instance serves any cell.

    Example:
        >>> from nbodyip.boundary import PeriodicBoundaryCondition
        >>> bc = PeriodicBoundaryCondition()
        >>> bc.has_unique_image(np.array([10.0, 10.0, 10.0]), 4.0)
        True
    """

    @abstractmethod
    def apply_minimum_image(
        self,
        vector: NDArray[np.floating],
        box: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """
        Reduce displacement vectors to their shortest image.

        Args:
            vector: (..., 3) displacement vectors r_j - r_i.
            box: (3,) box dimensions.

        Returns:
            Reduced vectors, same shape as ``vector``.
        """
        pass

    @abstractmethod
    def has_unique_image(self, box: NDArray[np.floating], rcut: float) -> bool:
        """
        True if at most one image of any atom lies within rcut of another.

        When this holds, the reduced displacement is the only one that can
        be shorter than rcut and a pair neighbor list is enough to find
        every cluster.
        """
        pass

    @abstractmethod
    def image_shifts(
        self, box: NDArray[np.floating], rcut: float
    ) -> NDArray[np.intp]:
        """
        Integer lattice shifts to add to reduced displacements.

        Every image closer than rcut is reached by adding one of the
        returned shifts (times the box) to the reduced displacement.

        Returns:
            (K, 3) integer array, always containing (0, 0, 0).
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get human-readable name of this boundary condition."""
        pass

    def compute_distance_vectors(
        self,
        positions_i: NDArray[np.floating],
        positions_j: NDArray[np.floating],
        box: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """Reduced displacement r_j - r_i (broadcasts over leading axes)."""
        dr = np.asarray(positions_j, dtype=np.float64) - np.asarray(positions_i, dtype=np.float64)
        return self.apply_minimum_image(dr, box)

    def compute_distances(
        self,
        positions_i: NDArray[np.floating],
        positions_j: NDArray[np.floating],
        box: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """Lengths of ``compute_distance_vectors``."""
        dr = self.compute_distance_vectors(positions_i, positions_j, box)
        return np.linalg.norm(dr, axis=-1)
