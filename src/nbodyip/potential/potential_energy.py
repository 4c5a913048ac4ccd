"""
Abstract base class for N-body potential terms.

An NBodyFunction is a function of the M = N(N-1)/2 edge lengths of an
N-atom cluster. Site energies, total energy, forces and virial of a
configuration follow from evaluating it on every cluster within the
cutoff; subclasses only provide ``evaluate`` and ``evaluate_d``.
"""
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, List, Optional

import numpy as np
from numpy.typing import NDArray

from nbodyip.neighbor import (
    CellList,
    Cluster,
    accumulate_site_gradients,
    accumulate_site_values,
    accumulate_site_virials,
    clusters_of_order,
)

if TYPE_CHECKING:
    from nbodyip.core import Configuration
    from nbodyip.neighbor import NeighborList


class NBodyFunction(ABC):
    """
    Abstract base for all N-body terms.

    Example:
        >>> class Harmonic(NBodyFunction):
        ...     body_order = 2
        ...     cutoff = 3.0
        ...     def evaluate(self, r):
        ...         return (r[0] - 1.0) ** 2
        ...     def evaluate_d(self, r):
        ...         return 2.0 * (r - 1.0)
        ...     def get_name(self):
        ...         return "Harmonic"
    """

    neighbor_list_factory: Callable[[float], "NeighborList"] = CellList

    @property
    @abstractmethod
    def body_order(self) -> int:
        """Number of atoms per cluster."""
        pass

    @property
    @abstractmethod
    def cutoff(self) -> float:
        """Cutoff radius applied to every edge."""
        pass

    @abstractmethod
    def evaluate(self, r: NDArray[np.floating]) -> float:
        """
        Evaluate the term on one cluster.

        Args:
            r: (M,) edge lengths in lexicographic pair order.

        Returns:
            Cluster energy.
        """
        pass

    @abstractmethod
    def evaluate_d(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        """
        Gradient of ``evaluate`` with respect to the edge lengths.

        Returns:
            (M,) array dE/dr.
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get human-readable name of this term."""
        pass

    def clusters(
        self,
        configuration: "Configuration",
        neighbor_list: Optional["NeighborList"] = None,
    ) -> List[Cluster]:
        """Enumerate the clusters this term acts on."""
        if neighbor_list is None:
            neighbor_list = self.neighbor_list_factory(self.cutoff)
        return clusters_of_order(
            configuration, self.body_order, self.cutoff, neighbor_list
        )

    def site_energies(
        self,
        configuration: "Configuration",
        neighbor_list: Optional["NeighborList"] = None,
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        """
        Per-atom energies; each cluster energy is shared equally by its atoms.

        Args:
            configuration: Atomic configuration.
            neighbor_list: Pair search strategy (defaults to a CellList).
            n_workers: Threads used for cluster evaluation.

        Returns:
            (n_atoms,) site energies.
        """
        return accumulate_site_values(
            self.evaluate,
            self.clusters(configuration, neighbor_list),
            configuration.n_atoms,
            n_workers,
        )

    def energy(
        self,
        configuration: "Configuration",
        neighbor_list: Optional["NeighborList"] = None,
        n_workers: int = 1,
    ) -> float:
        """Total energy, summed with compensated summation."""
        return math.fsum(self.site_energies(configuration, neighbor_list, n_workers))

    def gradient(
        self,
        configuration: "Configuration",
        neighbor_list: Optional["NeighborList"] = None,
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        """(n_atoms, 3) energy gradient with respect to atomic positions."""
        return accumulate_site_gradients(
            self.evaluate_d,
            self.clusters(configuration, neighbor_list),
            configuration.n_atoms,
            n_workers,
        )

    def forces(
        self,
        configuration: "Configuration",
        neighbor_list: Optional["NeighborList"] = None,
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        """(n_atoms, 3) forces F = -grad E."""
        return -self.gradient(configuration, neighbor_list, n_workers)

    def virial(
        self,
        configuration: "Configuration",
        neighbor_list: Optional["NeighborList"] = None,
        n_workers: int = 1,
    ) -> NDArray[np.floating]:
        """(3, 3) virial tensor."""
        return accumulate_site_virials(
            self.evaluate_d,
            self.clusters(configuration, neighbor_list),
            n_workers,
        )
