"""
Integration tests: full potentials evaluated on configurations.

Exercises the complete path from basis generation through cluster
enumeration and site mapping to energies, forces, virials, fitting
rows and persistence.
"""
import math

import numpy as np
import pytest

from nbodyip.boundary import OpenBoundaryCondition, PeriodicBoundaryCondition
from nbodyip.core import Configuration
from nbodyip.force import NumericalBackend
from nbodyip.io import load_ip, save_ip
from nbodyip.neighbor import BruteForceNeighborList
from nbodyip.polynomials import Dictionary
from nbodyip.potential import (
    NBodyIP,
    OneBody,
    body_order,
    combine_basis,
    cutoff,
    design_matrix,
    evaluate,
    evaluate_gradient,
    poly_basis,
)

# (body order, transform, cutoff, degree)
TERMS = [
    (2, "r -> (1.5/r)^3", ("cos", 3.0, 4.5), 6),
    (3, "inverse", ("cos", 2.5, 4.0), 4),
    (4, "inverse", ("cos", 2.2, 3.8), 4),
    (5, "inverse", ("cos", 2.2, 3.8), 3),
]


def build_basis():
    basis = [OneBody(1.0)]
    for N, transform, fc, degree in TERMS:
        basis.extend(poly_basis(N, Dictionary.from_spec(transform, fc, N), degree))
    return basis


def build_potential(seed: int = 0) -> NBodyIP:
    rng = np.random.default_rng(seed)
    orders = [OneBody(-4.0)]
    for N, transform, fc, degree in TERMS:
        B = poly_basis(N, Dictionary.from_spec(transform, fc, N), degree)
        orders.append(combine_basis(B, 0.1 * rng.normal(size=len(B))))
    return NBodyIP(orders)


def random_positions(rng, n_atoms, box, min_dist, bc) -> np.ndarray:
    """Uniform positions in [0, box)^3 with a minimum pair distance."""
    box = np.full(3, box)
    points = []
    while len(points) < n_atoms:
        p = rng.uniform(0.0, box)
        if all(bc.compute_distances(q, p, box) >= min_dist for q in points):
            points.append(p)
    return np.array(points)


def open_cluster(seed: int = 1) -> Configuration:
    bc = OpenBoundaryCondition()
    rng = np.random.default_rng(seed)
    positions = random_positions(rng, 8, 3.0, 1.3, bc) + 3.0
    return Configuration(positions, np.full(3, 10.0), bc)


def periodic_cell(seed: int = 2) -> Configuration:
    bc = PeriodicBoundaryCondition()
    rng = np.random.default_rng(seed)
    positions = random_positions(rng, 24, 9.0, 1.5, bc)
    return Configuration(positions, np.full(3, 9.0), bc)


def small_cell() -> Configuration:
    """Two atoms in a cell shorter than the cutoff of every term."""
    positions = np.array([[0.3, 0.4, 0.2], [1.9, 1.5, 1.7]])
    return Configuration(positions, np.full(3, 3.2), PeriodicBoundaryCondition())


def supercell(config: Configuration, repeat: int) -> Configuration:
    """Replicate a periodic configuration repeat times along each axis."""
    shifts = np.array(
        [[i, j, k] for i in range(repeat) for j in range(repeat) for k in range(repeat)],
        dtype=float,
    )
    positions = np.concatenate([config.positions + s * config.box for s in shifts])
    return Configuration(positions, repeat * config.box, config.boundary_condition)


def rotation_matrix(axis, angle: float) -> np.ndarray:
    axis = np.asarray(axis, dtype=np.float64)
    axis = axis / np.linalg.norm(axis)
    K = np.array([
        [0.0, -axis[2], axis[1]],
        [axis[2], 0.0, -axis[0]],
        [-axis[1], axis[0], 0.0],
    ])
    return np.eye(3) + math.sin(angle) * K + (1.0 - math.cos(angle)) * K @ K


class TestOneBodyPotential:
    """A constant per-atom potential."""

    def test_energy_and_forces(self) -> None:
        config = Configuration(
            np.random.default_rng(0).uniform(0.0, 5.0, (10, 3)),
            np.full(3, 5.0),
            PeriodicBoundaryCondition(),
        )
        ip = NBodyIP([OneBody(-4.0)])
        assert ip.energy(config) == -40.0
        forces = ip.forces(config)
        assert forces.shape == (10, 3)
        np.testing.assert_array_equal(forces, np.zeros((10, 3)))
        np.testing.assert_array_equal(ip.virial(config), np.zeros((3, 3)))
        assert ip.cutoff == 0.0
        assert ip.body_order == 1


class TestManyBodyPotential:
    """Energies and derivatives of a potential with N = 1..5 terms."""

    @pytest.fixture(scope="class")
    def ip(self) -> NBodyIP:
        return build_potential()

    @pytest.fixture(params=["open", "periodic"])
    def config(self, request) -> Configuration:
        return open_cluster() if request.param == "open" else periodic_cell()

    def test_properties(self, ip: NBodyIP) -> None:
        assert len(ip) == 5
        assert ip.cutoff == 4.5
        assert ip.body_order == 5
        assert cutoff(ip) == 4.5
        assert body_order(ip) == 5
        assert ip.get_name().startswith("NBodyIP(OneBody(c=-4.0), NBody(N=2")

    def test_has_many_body_clusters(self, ip: NBodyIP) -> None:
        """The open cluster is dense enough for every term to contribute."""
        config = open_cluster()
        for V in ip.orders[1:]:
            assert len(V.clusters(config)) > 0

    def test_forces_match_finite_differences(
        self, ip: NBodyIP, config: Configuration
    ) -> None:
        analytic = ip.forces(config)
        numeric = NumericalBackend(h=1e-5).compute_forces(
            lambda x: ip.energy(config.with_positions(x)), config.positions
        )
        np.testing.assert_allclose(analytic, numeric, rtol=1e-5, atol=1e-7)

    def test_energy_is_additive(self, ip: NBodyIP, config: Configuration) -> None:
        total = math.fsum(V.energy(config) for V in ip.orders)
        assert ip.energy(config) == pytest.approx(total, rel=1e-12, abs=1e-12)
        assert evaluate(ip, config) == ip.energy(config)

    def test_site_energies_sum_to_energy(
        self, ip: NBodyIP, config: Configuration
    ) -> None:
        sites = ip.site_energies(config)
        assert sites.shape == (config.n_atoms,)
        assert math.fsum(sites) == pytest.approx(ip.energy(config), rel=1e-12)

    def test_forces_sum_to_zero(self, ip: NBodyIP, config: Configuration) -> None:
        np.testing.assert_allclose(ip.forces(config).sum(axis=0), 0.0, atol=1e-10)
        np.testing.assert_array_equal(evaluate_gradient(ip, config), -ip.forces(config))

    def test_threads_match_serial(self, ip: NBodyIP, config: Configuration) -> None:
        assert ip.energy(config, n_workers=3) == pytest.approx(
            ip.energy(config), rel=1e-12, abs=1e-12
        )
        np.testing.assert_allclose(
            ip.forces(config, n_workers=3), ip.forces(config), rtol=1e-12, atol=1e-12
        )
        np.testing.assert_allclose(
            ip.virial(config, n_workers=3), ip.virial(config), rtol=1e-12, atol=1e-12
        )

    def test_brute_force_neighbor_list_agrees(
        self, ip: NBodyIP, config: Configuration
    ) -> None:
        for V in ip.orders[1:]:
            reference = V.energy(config, BruteForceNeighborList(V.cutoff))
            assert V.energy(config) == pytest.approx(reference, rel=1e-12, abs=1e-12)

    def test_virial_open_boundary(self, ip: NBodyIP) -> None:
        config = open_cluster()
        np.testing.assert_allclose(
            ip.virial(config), -config.positions.T @ ip.gradient(config),
            rtol=1e-10, atol=1e-10,
        )

    def test_virial_is_symmetric(self, ip: NBodyIP, config: Configuration) -> None:
        W = ip.virial(config)
        np.testing.assert_allclose(W, W.T, atol=1e-12)

    def test_rotation_invariance(self, ip: NBodyIP) -> None:
        config = open_cluster()
        Q = rotation_matrix([1.0, 2.0, -0.5], 0.7)
        centre = config.positions.mean(axis=0)
        rotated = config.with_positions((config.positions - centre) @ Q.T + centre)

        assert ip.energy(rotated) == pytest.approx(ip.energy(config), rel=1e-10)
        np.testing.assert_allclose(
            ip.forces(rotated), ip.forces(config) @ Q.T, rtol=1e-8, atol=1e-10
        )

    def test_save_load_preserves_energy(self, ip: NBodyIP, tmp_path) -> None:
        config = open_cluster()
        path = tmp_path / "ip.json"
        save_ip(path, ip)
        loaded = load_ip(path)
        assert loaded == ip
        assert loaded.energy(config) == ip.energy(config)


class TestFitting:
    """Merging a fitted basis and assembling the least-squares rows."""

    @pytest.fixture(scope="class")
    def basis(self):
        return build_basis()

    @pytest.fixture(scope="class")
    def coefficients(self, basis) -> np.ndarray:
        return 0.1 * np.random.default_rng(3).normal(size=len(basis))

    @pytest.fixture(scope="class")
    def configs(self):
        return [open_cluster(seed=1), open_cluster(seed=5), periodic_cell(seed=2)]

    def test_from_basis_merges_by_dictionary(self, basis, coefficients) -> None:
        ip = NBodyIP.from_basis(basis, coefficients)
        assert [V.body_order for V in ip.orders] == [1, 2, 3, 4, 5]
        assert ip.orders[0] == OneBody(coefficients[0])
        assert sum(len(V) for V in ip.orders[1:]) == len(basis) - 1

    def test_from_basis_matches_weighted_sum(self, basis, coefficients, configs) -> None:
        ip = NBodyIP.from_basis(basis, coefficients)
        config = configs[0]
        expected = math.fsum(c * b.energy(config) for c, b in zip(coefficients, basis))
        assert ip.energy(config) == pytest.approx(expected, rel=1e-10, abs=1e-12)

    def test_from_basis_length_mismatch(self, basis) -> None:
        with pytest.raises(ValueError):
            NBodyIP.from_basis(basis, [1.0])

    def test_design_matrix_rows(self, basis, coefficients, configs) -> None:
        ip = NBodyIP.from_basis(basis, coefficients)
        A = design_matrix(basis, configs)
        n_rows = sum(1 + 3 * c.n_atoms for c in configs)
        assert A.shape == (n_rows, len(basis))

        predicted = A @ coefficients
        row = 0
        for config in configs:
            n = config.n_atoms
            assert predicted[row] == pytest.approx(ip.energy(config) / n, rel=1e-10, abs=1e-12)
            np.testing.assert_allclose(
                predicted[row + 1:row + 1 + 3 * n],
                ip.forces(config).reshape(-1),
                rtol=1e-9, atol=1e-10,
            )
            row += 1 + 3 * n

    def test_design_matrix_energy_only(self, basis, configs) -> None:
        A = design_matrix(basis, configs, forces=False)
        assert A.shape == (len(configs), len(basis))
        # one-body column: energy per atom of a unit constant
        np.testing.assert_allclose(A[:, 0], 1.0)

    def test_least_squares_reproduces_data(self, basis, coefficients, configs) -> None:
        A = design_matrix(basis, configs)
        y = A @ coefficients
        fitted, *_ = np.linalg.lstsq(A, y, rcond=None)
        np.testing.assert_allclose(A @ fitted, y, rtol=1e-6, atol=1e-8)


class TestPeriodicImages:
    """Cells smaller than twice the cutoff see every image within range."""

    @pytest.fixture(scope="class")
    def ip(self) -> NBodyIP:
        return build_potential(seed=7)

    def test_pair_energy_scales_with_supercell(self) -> None:
        D = Dictionary.from_spec("inverse", ("cos", 3.5, 4.0), 2)
        B = poly_basis(2, D, 2)
        V = combine_basis(B, np.ones(len(B)))
        cell = Configuration(
            np.array([[0.0, 0.0, 0.0], [1.5, 1.5, 1.5]]),
            np.full(3, 3.0),
            PeriodicBoundaryCondition(),
        )
        assert V.energy(supercell(cell, 2)) == pytest.approx(
            8.0 * V.energy(cell), rel=1e-10
        )

    def test_energy_scales_with_supercell(self, ip: NBodyIP) -> None:
        cell = small_cell()
        assert ip.energy(supercell(cell, 2)) == pytest.approx(
            8.0 * ip.energy(cell), rel=1e-9
        )

    def test_site_energies_repeat(self, ip: NBodyIP) -> None:
        cell = small_cell()
        sites = ip.site_energies(supercell(cell, 2)).reshape(8, cell.n_atoms)
        np.testing.assert_allclose(
            sites, np.tile(ip.site_energies(cell), (8, 1)), rtol=1e-9, atol=1e-12
        )

    def test_forces_repeat(self, ip: NBodyIP) -> None:
        cell = small_cell()
        forces = ip.forces(supercell(cell, 2)).reshape(8, cell.n_atoms, 3)
        np.testing.assert_allclose(
            forces, np.tile(ip.forces(cell), (8, 1, 1)), rtol=1e-8, atol=1e-10
        )

    def test_forces_match_finite_differences(self, ip: NBodyIP) -> None:
        cell = small_cell()
        numeric = NumericalBackend(h=1e-5).compute_forces(
            lambda x: ip.energy(cell.with_positions(x)), cell.positions
        )
        np.testing.assert_allclose(ip.forces(cell), numeric, rtol=1e-5, atol=1e-7)

    def test_virial_scales_with_supercell(self, ip: NBodyIP) -> None:
        cell = small_cell()
        np.testing.assert_allclose(
            ip.virial(supercell(cell, 2)), 8.0 * ip.virial(cell), rtol=1e-9, atol=1e-10
        )

    def test_virial_matches_strain_derivative(self, ip: NBodyIP) -> None:
        """Stretching axis k by (1 + e) changes the energy by -W_kk * e."""
        cell = small_cell()
        W = ip.virial(cell)
        h = 1e-6
        for k in range(3):
            energies = []
            for e in (h, -h):
                stretch = np.ones(3)
                stretch[k] += e
                strained = Configuration(
                    cell.positions * stretch, cell.box * stretch, cell.boundary_condition
                )
                energies.append(ip.energy(strained))
            dE = (energies[0] - energies[1]) / (2 * h)
            assert dE == pytest.approx(-W[k, k], rel=1e-5, abs=1e-7)
