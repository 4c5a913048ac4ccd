"""
Functions exposed to regression code.

The least-squares solver itself lives elsewhere; this module only
evaluates terms and potentials on configurations and assembles the
linear system rows.
"""
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from nbodyip.neighbor import clusters_of_order, edge_pairs

from .nbody import NBody, evaluate_many, evaluate_many_d
from .nbody_ip import Potential
from .one_body import OneBody
from .potential_energy import NBodyFunction

if TYPE_CHECKING:
    from nbodyip.core import Configuration
    from nbodyip.polynomials import Dictionary


def evaluate(obj: Potential, configuration: "Configuration") -> float:
    """Total energy of a term or potential."""
    return obj.energy(configuration)


def evaluate_gradient(obj: Potential, configuration: "Configuration") -> NDArray[np.floating]:
    """(n_atoms, 3) energy gradient of a term or potential; forces are its negation."""
    return obj.gradient(configuration)


def cutoff(obj: Potential) -> float:
    return obj.cutoff


def body_order(term: Potential) -> int:
    return term.body_order


def _group_basis(basis: Sequence[NBodyFunction]) -> Tuple[List[int], Dict["Dictionary", List[int]]]:
    one_body: List[int] = []
    groups: Dict["Dictionary", List[int]] = {}
    for i, b in enumerate(basis):
        if isinstance(b, OneBody):
            one_body.append(i)
        elif isinstance(b, NBody):
            groups.setdefault(b.dictionary, []).append(i)
        else:
            raise TypeError(f"Unsupported basis function {type(b).__name__}")
    return one_body, groups


def design_matrix(
    basis: Sequence[NBodyFunction],
    configurations: Sequence["Configuration"],
    forces: bool = True,
) -> NDArray[np.floating]:
    """
    Assemble the rows of the linear least-squares system.

    For every configuration the block holds one energy row (energy per
    atom) followed, if requested, by 3 * n_atoms force rows in the order
    (atom 0: x, y, z; atom 1: ...). Column j belongs to basis[j].
    Basis functions sharing a dictionary are evaluated together so the
    invariants of each cluster are computed once.

    Args:
        basis: Basis functions (NBody and OneBody).
        configurations: Training configurations.
        forces: Include force rows.

    Returns:
        (n_rows, len(basis)) matrix.
    """
    n_basis = len(basis)
    one_body, groups = _group_basis(basis)
    blocks = []

    for config in configurations:
        n_atoms = config.n_atoms
        energy_row = np.zeros(n_basis)
        grad = np.zeros((n_atoms, 3, n_basis))

        for i in one_body:
            energy_row[i] = basis[i].energy(config)

        for D, indices in groups.items():
            terms = [basis[i] for i in indices]
            pairs = np.array(edge_pairs(D.body_order), dtype=np.intp)
            for cluster in clusters_of_order(config, D.body_order, D.rcut):
                energy_row[indices] += evaluate_many(terms, cluster.distances)
                if not forces:
                    continue
                dV = evaluate_many_d(terms, cluster.distances)
                if not np.any(dV):
                    continue
                idx = np.array(cluster.indices, dtype=np.intp)
                # (M, 3, n_terms) per-edge contributions
                f = (cluster.vectors / cluster.distances[:, None])[:, :, None] * dV.T[:, None, :]
                for k, (a, b) in enumerate(pairs):
                    grad[idx[b], :, indices] += f[k].T
                    grad[idx[a], :, indices] -= f[k].T

        blocks.append(energy_row[None, :] / n_atoms)
        if forces:
            blocks.append(-grad.reshape(3 * n_atoms, n_basis))

    if not blocks:
        return np.zeros((0, n_basis))
    return np.vstack(blocks)
