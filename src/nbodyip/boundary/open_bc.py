"""
Open boundary condition implementation.

Isolated molecules and clusters: displacements are taken as they are.
"""
import numpy as np
from numpy.typing import NDArray

from .boundary_condition import BoundaryCondition


class OpenBoundaryCondition(BoundaryCondition):
    """
    Open boundaries (no periodicity).

    The box is only used by the cell list to size its grid; atoms may sit
    outside it.
    """

    def apply_minimum_image(
        self,
        vector: NDArray[np.floating],
        box: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        return np.asarray(vector, dtype=np.float64)

    def has_unique_image(self, box: NDArray[np.floating], rcut: float) -> bool:
        return True

    def image_shifts(
        self, box: NDArray[np.floating], rcut: float
    ) -> NDArray[np.intp]:
        return np.zeros((1, 3), dtype=np.intp)

    def get_name(self) -> str:
        return "Open"
