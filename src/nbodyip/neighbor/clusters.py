"""
N-body cluster enumeration and site mapping.

Turns a pair neighbor list into the set of N-atom clusters whose edges
all lie within the cutoff, and maps per-cluster energies and edge
gradients back onto atoms.

Under periodic boundaries a cluster is a set of sites, each site being
an atom together with the lattice shift of the image it refers to.
Clusters that differ by a whole-lattice translation are the same
cluster and are reported once. When the cutoff is at least half the
cell, one cluster may contain several images of the same atom.

Every cluster stores its edges in lexicographic pair order, e.g. for
four atoms (r12, r13, r14, r23, r24, r34). This is the order the
invariant formulas expect.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import lru_cache
from itertools import combinations
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
from numpy.typing import NDArray

from .cell_list import CellList

if TYPE_CHECKING:
    from nbodyip.core import Configuration
    from .neighbor_list import NeighborList

logger = logging.getLogger(__name__)

# (atom index, shift_x, shift_y, shift_z)
Site = Tuple[int, int, int, int]


@lru_cache(maxsize=None)
def edge_pairs(body_order: int) -> Tuple[Tuple[int, int], ...]:
    """Return the (a, b), a < b, vertex pairs of an N-simplex in lexicographic order."""
    return tuple(combinations(range(body_order), 2))


@dataclass(frozen=True)
class Cluster:
    """
    One N-atom cluster.

    Attributes:
        indices: Atom index of each site, non-decreasing. An atom appears
            more than once when several of its periodic images belong to
            the cluster.
        vectors: (M, 3) edge vectors p_b - p_a between site positions,
            lexicographic.
        distances: (M,) edge lengths |vectors|.
    """
    indices: Tuple[int, ...]
    vectors: NDArray[np.floating]
    distances: NDArray[np.floating]

    @property
    def body_order(self) -> int:
        return len(self.indices)


def _shift_of(
    reduced: NDArray[np.floating],
    raw: NDArray[np.floating],
    box: NDArray[np.floating],
) -> NDArray[np.intp]:
    """Lattice shift n with reduced = raw + n * box."""
    return np.rint((reduced - raw) / box).astype(np.intp)


def _pair_neighbors(
    configuration: "Configuration",
    rcut: float,
    neighbor_list: "NeighborList",
) -> Dict[int, Set[Site]]:
    """Neighbor sites from a pair list; valid while every pair has one image in range."""
    positions = configuration.positions
    box = configuration.box
    bc = configuration.boundary_condition
    neighbor_list.build(positions, box, bc)

    neighbors: Dict[int, Set[Site]] = {i: set() for i in range(configuration.n_atoms)}
    pairs = neighbor_list.get_all_pairs()
    if not pairs:
        return neighbors
    ij = np.array(pairs, dtype=np.intp)
    raw = positions[ij[:, 1]] - positions[ij[:, 0]]
    reduced = bc.apply_minimum_image(raw, box)
    shifts = _shift_of(reduced, raw, box)
    r = np.linalg.norm(reduced, axis=1)
    for (i, j), s, rij in zip(ij.tolist(), shifts.tolist(), r):
        if rij < rcut:
            neighbors[i].add((j, s[0], s[1], s[2]))
            neighbors[j].add((i, -s[0], -s[1], -s[2]))
    return neighbors


def _image_neighbors(
    configuration: "Configuration",
    rcut: float,
) -> Dict[int, Set[Site]]:
    """Neighbor sites over every periodic image within rcut."""
    positions = configuration.positions
    box = configuration.box
    bc = configuration.boundary_condition
    n_atoms = configuration.n_atoms

    raw = positions[None, :, :] - positions[:, None, :]
    reduced = bc.apply_minimum_image(raw, box)
    base = _shift_of(reduced, raw, box)
    self_pair = np.eye(n_atoms, dtype=bool)

    neighbors: Dict[int, Set[Site]] = {i: set() for i in range(n_atoms)}
    for shift in bc.image_shifts(box, rcut):
        r = np.linalg.norm(reduced + shift * box, axis=-1)
        mask = r < rcut
        if not np.any(shift):
            mask &= ~self_pair
        for i, j in zip(*np.nonzero(mask)):
            s = base[i, j] + shift
            neighbors[int(i)].add((int(j), int(s[0]), int(s[1]), int(s[2])))
    return neighbors


def _neighbor_sites(
    configuration: "Configuration",
    rcut: float,
    neighbor_list: Optional["NeighborList"],
) -> Dict[int, Set[Site]]:
    """Map atom i to the sites (j, shift) within rcut of atom i in the home cell."""
    if neighbor_list is None:
        neighbor_list = CellList(cutoff=rcut)
    elif neighbor_list.cutoff < rcut:
        raise ValueError(
            f"Neighbor list cutoff {neighbor_list.cutoff} is smaller than "
            f"the requested cluster cutoff {rcut}"
        )

    bc = configuration.boundary_condition
    if bc.has_unique_image(configuration.box, rcut):
        return _pair_neighbors(configuration, rcut, neighbor_list)
    logger.debug(
        "rcut=%g reaches beyond the minimum image of box %s; enumerating images",
        rcut, configuration.box,
    )
    return _image_neighbors(configuration, rcut)


def _translate(sites: Sequence[Site], by: Site) -> Tuple[Site, ...]:
    return tuple(sorted(
        (j, sx - by[1], sy - by[2], sz - by[3]) for j, sx, sy, sz in sites
    ))


def _is_canonical(sites: Tuple[Site, ...]) -> bool:
    """
    True if no translate of ``sites`` sorts before it.

    Only translates that put another image of the lowest atom index in
    the home cell are candidates; all of them are enumerated, and exactly
    one is kept.
    """
    lowest = sites[0][0]
    for site in sites:
        if site[0] != lowest:
            break
        if site[1:] != (0, 0, 0) and _translate(sites, site) < sites:
            return False
    return True


class _CliqueSearch:
    """Sites pairwise within rcut, grown from an anchor atom in the home cell."""

    def __init__(self, neighbors: Dict[int, Set[Site]], body_order: int) -> None:
        self.neighbors = neighbors
        self.body_order = body_order
        self._adjacent: Dict[Site, Set[Site]] = {}

    def adjacent(self, site: Site) -> Set[Site]:
        if site not in self._adjacent:
            j, sx, sy, sz = site
            self._adjacent[site] = {
                (k, sx + tx, sy + ty, sz + tz) for k, tx, ty, tz in self.neighbors[j]
            }
        return self._adjacent[site]

    def extend(
        self,
        chosen: Tuple[Site, ...],
        candidates: Set[Site],
        out: List[Tuple[Site, ...]],
    ) -> None:
        if len(chosen) == self.body_order:
            sites = tuple(sorted(chosen))
            if _is_canonical(sites):
                out.append(sites)
            return
        for site in sorted(candidates):
            remaining = {c for c in candidates if c > site} & self.adjacent(site)
            self.extend(chosen + (site,), remaining, out)

    def from_anchor(self, i: int, out: List[Tuple[Site, ...]]) -> None:
        anchor = (i, 0, 0, 0)
        candidates = {s for s in self.neighbors[i] if s[0] >= i}
        self.extend((anchor,), candidates, out)


def clusters_of_order(
    configuration: "Configuration",
    body_order: int,
    rcut: float,
    neighbor_list: Optional["NeighborList"] = None,
) -> List[Cluster]:
    """
    Enumerate all N-atom clusters with every edge shorter than rcut.

    Each cluster is reported once, up to lattice translations. Under
    periodic boundaries with rcut >= half the smallest box length the
    search runs over periodic images instead of the pair list, so that
    energies are independent of the choice of cell.

    Args:
        configuration: Atomic configuration.
        body_order: Number of atoms N per cluster (N >= 1).
        rcut: Cutoff radius applied to every edge.
        neighbor_list: Pair search strategy (defaults to a CellList with
            cutoff rcut). Its cutoff must be at least rcut.

    Returns:
        List of Cluster objects.

    Raises:
        ValueError: If body_order < 1.
    """
    if body_order < 1:
        raise ValueError(f"Body order must be at least 1, got {body_order}")

    n_atoms = configuration.n_atoms
    if body_order == 1:
        empty_vectors = np.zeros((0, 3))
        empty_distances = np.zeros(0)
        return [Cluster((i,), empty_vectors, empty_distances) for i in range(n_atoms)]

    search = _CliqueSearch(_neighbor_sites(configuration, rcut, neighbor_list), body_order)
    site_tuples: List[Tuple[Site, ...]] = []
    for i in range(n_atoms):
        search.from_anchor(i, site_tuples)

    pairs = np.array(edge_pairs(body_order), dtype=np.intp)
    positions = configuration.positions
    box = configuration.box
    clusters = []
    for sites in site_tuples:
        table = np.array(sites, dtype=np.intp)
        points = positions[table[:, 0]] + table[:, 1:] * box
        vectors = points[pairs[:, 1]] - points[pairs[:, 0]]
        indices = tuple(int(j) for j in table[:, 0])
        clusters.append(Cluster(indices, vectors, np.linalg.norm(vectors, axis=1)))

    logger.debug(
        "found %d clusters of order %d within rcut=%g", len(clusters), body_order, rcut
    )
    return clusters


def _map_chunks(
    worker: Callable[[Sequence[Cluster]], NDArray[np.floating]],
    clusters: Sequence[Cluster],
    n_workers: int,
) -> NDArray[np.floating]:
    """
    Run worker over chunks of clusters and sum the partial accumulators.

    Each chunk owns its accumulator, so no two threads ever write into the
    same array.
    """
    if n_workers <= 1 or len(clusters) < 2:
        return worker(clusters)

    n_chunks = min(n_workers, len(clusters))
    bounds = np.linspace(0, len(clusters), n_chunks + 1).astype(int)
    chunks = [clusters[lo:hi] for lo, hi in zip(bounds[:-1], bounds[1:])]
    with ThreadPoolExecutor(max_workers=n_workers) as executor:
        partials = list(executor.map(worker, chunks))
    total = partials[0]
    for partial in partials[1:]:
        total = total + partial
    return total


def accumulate_site_values(
    fn: Callable[[NDArray[np.floating]], float],
    clusters: Sequence[Cluster],
    n_atoms: int,
    n_workers: int = 1,
) -> NDArray[np.floating]:
    """
    Distribute per-cluster values onto atoms.

    The value of each cluster is split equally over its N atoms.

    Args:
        fn: Maps a distance vector to a scalar.
        clusters: Clusters to evaluate.
        n_atoms: Number of atoms in the configuration.
        n_workers: Number of threads; partial results are merged at the end.

    Returns:
        (n_atoms,) array of site values.
    """

    def worker(chunk: Sequence[Cluster]) -> NDArray[np.floating]:
        out = np.zeros(n_atoms)
        for cluster in chunk:
            value = fn(cluster.distances)
            if value != 0.0:
                np.add.at(out, list(cluster.indices), value / cluster.body_order)
        return out

    return _map_chunks(worker, clusters, n_workers)


def accumulate_site_gradients(
    grad_fn: Callable[[NDArray[np.floating]], NDArray[np.floating]],
    clusters: Sequence[Cluster],
    n_atoms: int,
    n_workers: int = 1,
) -> NDArray[np.floating]:
    """
    Map per-edge derivatives dE/dr onto atomic position gradients.

    For the edge (a, b) with vector R = x_b - x_a and length r,
    dr/dx_b = R/r and dr/dx_a = -R/r.

    Args:
        grad_fn: Maps a distance vector to dE/dr (same length).
        clusters: Clusters to evaluate.
        n_atoms: Number of atoms in the configuration.
        n_workers: Number of threads; partial results are merged at the end.

    Returns:
        (n_atoms, 3) energy gradient. Forces are its negation.
    """

    def worker(chunk: Sequence[Cluster]) -> NDArray[np.floating]:
        out = np.zeros((n_atoms, 3))
        for cluster in chunk:
            if cluster.body_order < 2:
                continue
            dE = grad_fn(cluster.distances)
            if not np.any(dE):
                continue
            pairs = np.array(edge_pairs(cluster.body_order), dtype=np.intp)
            idx = np.array(cluster.indices, dtype=np.intp)
            f = (dE / cluster.distances)[:, None] * cluster.vectors
            np.add.at(out, idx[pairs[:, 1]], f)
            np.subtract.at(out, idx[pairs[:, 0]], f)
        return out

    return _map_chunks(worker, clusters, n_workers)


def accumulate_site_virials(
    grad_fn: Callable[[NDArray[np.floating]], NDArray[np.floating]],
    clusters: Sequence[Cluster],
    n_workers: int = 1,
) -> NDArray[np.floating]:
    """
    Compute the virial -sum_k (dE/dr_k) R_k (x) R_k / r_k over all edges.

    Args:
        grad_fn: Maps a distance vector to dE/dr (same length).
        clusters: Clusters to evaluate.
        n_workers: Number of threads; partial results are merged at the end.

    Returns:
        (3, 3) virial tensor.
    """

    def worker(chunk: Sequence[Cluster]) -> NDArray[np.floating]:
        out = np.zeros((3, 3))
        for cluster in chunk:
            if cluster.body_order < 2:
                continue
            dE = grad_fn(cluster.distances)
            weights = dE / cluster.distances
            out -= np.einsum("k,ki,kj->ij", weights, cluster.vectors, cluster.vectors)
        return out

    return _map_chunks(worker, clusters, n_workers)
