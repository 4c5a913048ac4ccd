"""
Neighbor module for nbodyip.

Pair search strategies and the N-body cluster layer built on them:
- BruteForceNeighborList: O(N²), reference implementation
- CellList: O(N) link-cell search, used by default
- clusters_of_order: N-atom clusters with all edges inside the cutoff
- accumulate_site_*: map cluster values and gradients onto atoms
"""

from .brute_force import BruteForceNeighborList
from .cell_list import CellList
from .clusters import (
    Cluster,
    accumulate_site_gradients,
    accumulate_site_values,
    accumulate_site_virials,
    clusters_of_order,
    edge_pairs,
)
from .neighbor_list import NeighborList

__all__ = [
    "NeighborList",
    "BruteForceNeighborList",
    "CellList",
    "Cluster",
    "clusters_of_order",
    "edge_pairs",
    "accumulate_site_values",
    "accumulate_site_gradients",
    "accumulate_site_virials",
]
