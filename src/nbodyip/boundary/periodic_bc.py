"""
Periodic boundary condition implementation.

Fully periodic orthorhombic cells, used for bulk training and test
structures. Cutoffs may exceed half the cell: every periodic image
within the cutoff is then enumerated.
"""
import math
from itertools import product

import numpy as np
from numpy.typing import NDArray

from .boundary_condition import BoundaryCondition


class PeriodicBoundaryCondition(BoundaryCondition):
    """
    Fully periodic boundaries in all dimensions.

    Example:
        >>> import numpy as np
        >>> from nbodyip.boundary import PeriodicBoundaryCondition
        >>> bc = PeriodicBoundaryCondition()
        >>> box = np.array([10.0, 10.0, 10.0])
        >>> bc.apply_minimum_image(np.array([[8.0, 0.0, 0.0]]), box)
        array([[-2.,  0.,  0.]])
        >>> bc.image_shifts(box, 4.0).tolist()
        [[0, 0, 0]]
    """

    def apply_minimum_image(
        self,
        vector: NDArray[np.floating],
        box: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """Map each component into [-L/2, L/2]."""
        vector = np.asarray(vector, dtype=np.float64)
        box = np.asarray(box, dtype=np.float64)
        return vector - box * np.round(vector / box)

    def has_unique_image(self, box: NDArray[np.floating], rcut: float) -> bool:
        """Only the minimum image can be within rcut when rcut < L_min / 2."""
        return rcut < 0.5 * float(np.min(box))

    def image_shifts(
        self, box: NDArray[np.floating], rcut: float
    ) -> NDArray[np.intp]:
        """
        All shifts n with |n_k| <= ceil(rcut / L_k).

        A reduced component lies in [-L/2, L/2], so an image within rcut
        needs |n_k| L_k < rcut + L_k / 2.
        """
        if self.has_unique_image(box, rcut):
            return np.zeros((1, 3), dtype=np.intp)
        reach = [math.ceil(rcut / float(L)) for L in box]
        ranges = [range(-n, n + 1) for n in reach]
        return np.array(list(product(*ranges)), dtype=np.intp)

    def get_name(self) -> str:
        return "Periodic"
