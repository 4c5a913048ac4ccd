#!/usr/bin/env python3
"""
Example 1: Fit an N-body potential to a Morse reference

Builds the basis described in examples/basis.yaml, assembles the
least-squares system from energies and forces of random periodic
configurations, solves it with numpy and merges the fitted basis into
a single NBodyIP.

Reference:
    U(r) = D * [1 - exp(-a*(r-r0))]^2 - D, summed over pairs

The reference is itself written as an NBodyFunction, which is all a
new pair or many-body term needs to provide.

Usage:
    python examples/01_fit_morse.py
"""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np
from nbodyip.boundary import PeriodicBoundaryCondition
from nbodyip.config import load_config
from nbodyip.core import Configuration
from nbodyip.io import save_ip
from nbodyip.potential import NBodyFunction, NBodyIP, design_matrix


class MorsePair(NBodyFunction):
    """Morse pair energy, truncated at the cutoff."""

    def __init__(self, D=1.0, a=1.5, r0=2.4, cutoff=6.0):
        self.D, self.a, self.r0 = D, a, r0
        self._cutoff = cutoff

    @property
    def body_order(self):
        return 2

    @property
    def cutoff(self):
        return self._cutoff

    def evaluate(self, r):
        e = np.exp(-self.a * (r[0] - self.r0))
        return self.D * ((1.0 - e) ** 2 - 1.0)

    def evaluate_d(self, r):
        e = np.exp(-self.a * (r - self.r0))
        return 2.0 * self.D * self.a * (1.0 - e) * e

    def get_name(self):
        return f"Morse(D={self.D}, a={self.a}, r0={self.r0})"


def random_configuration(rng, n_atoms=24, box=12.0, min_dist=2.0):
    """Random periodic configuration with a minimum pair distance."""
    bc = PeriodicBoundaryCondition()
    box = np.full(3, box)
    points = []
    while len(points) < n_atoms:
        p = rng.uniform(0.0, box)
        if all(bc.compute_distances(q, p, box) >= min_dist for q in points):
            points.append(p)
    return Configuration(np.array(points), box, bc)


def targets(reference, configurations):
    """Energy-per-atom and force rows in design-matrix order."""
    y = []
    for config in configurations:
        y.append([reference.energy(config) / config.n_atoms])
        y.append(reference.forces(config).reshape(-1))
    return np.concatenate(y)


def main():
    print("=" * 55)
    print("  Example 1: FIT TO A MORSE REFERENCE")
    print("  2-body + 3-body invariant polynomials")
    print("=" * 55)

    rng = np.random.default_rng(2024)
    reference = MorsePair()

    basis = load_config(Path(__file__).parent / "basis.yaml")
    print(f"\nBasis functions: {len(basis)}")
    for N in sorted({b.body_order for b in basis}):
        print(f"  N = {N}: {sum(1 for b in basis if b.body_order == N)}")

    train = [random_configuration(rng) for _ in range(6)]
    test = [random_configuration(rng) for _ in range(2)]

    A = design_matrix(basis, train)
    y = targets(reference, train)
    print(f"\nLinear system: {A.shape[0]} rows x {A.shape[1]} columns")

    coefficients, *_ = np.linalg.lstsq(A, y, rcond=None)
    ip = NBodyIP.from_basis(basis, coefficients)
    print(f"Fitted potential: {ip.get_name()}")

    print(f"\n{'='*40}")
    print("TEST SET ERRORS")
    print(f"{'='*40}")
    for k, config in enumerate(test):
        dE = (ip.energy(config) - reference.energy(config)) / config.n_atoms
        dF = ip.forces(config) - reference.forces(config)
        rmse = np.sqrt(np.mean(dF ** 2))
        print(f"config {k}: dE/atom = {dE:+.2e}   force RMSE = {rmse:.2e}")

    out = Path("morse_fit.json")
    save_ip(out, ip)
    print(f"\nSaved fitted potential to {out}")
    print("=" * 55)


if __name__ == "__main__":
    main()
