"""
Unit tests for the YAML basis configuration loader.
"""
import pytest

from nbodyip.config import basis_from_config, load_config
from nbodyip.core import ConfigurationError
from nbodyip.polynomials import CosCutoff
from nbodyip.potential import NBody, OneBody


@pytest.fixture
def config() -> dict:
    return {
        "bodyorders": [
            {"N": 1, "energy": -4.0},
            {"N": 2, "transform": "r -> (2.9/r)^3", "cutoff": ["cos", 6.0, 9.0], "degree": 12},
            {"N": 3, "transform": "inverse", "cutoff": "(:cos, 4.0, 6.2)", "degree": 3},
        ]
    }


class TestBasisFromConfig:
    """Tests for basis_from_config."""

    def test_body_orders(self, config: dict) -> None:
        basis = basis_from_config(config)
        assert basis[0] == OneBody(-4.0)
        pairs = [b for b in basis if b.body_order == 2]
        triples = [b for b in basis if b.body_order == 3]
        assert len(pairs) == 12
        # degree <= 3 in (I1, I2, I3) with degrees (1, 2, 3)
        assert len(triples) == 6
        assert len(basis) == 1 + 12 + 6

    def test_shared_dictionary(self, config: dict) -> None:
        basis = basis_from_config(config)
        pairs = [b for b in basis if isinstance(b, NBody) and b.body_order == 2]
        assert all(b.dictionary == pairs[0].dictionary for b in pairs)
        assert pairs[0].dictionary.cutoff == CosCutoff(6.0, 9.0)

    def test_missing_degree(self, config: dict) -> None:
        del config["bodyorders"][1]["degree"]
        with pytest.raises(ConfigurationError, match="degree"):
            basis_from_config(config)

    def test_missing_energy(self) -> None:
        with pytest.raises(ConfigurationError):
            basis_from_config({"bodyorders": [{"N": 1}]})

    def test_unknown_cutoff(self, config: dict) -> None:
        config["bodyorders"][2]["cutoff"] = "(:tanh, 4.0, 6.2)"
        with pytest.raises(ConfigurationError, match="tanh"):
            basis_from_config(config)

    @pytest.mark.parametrize(
        "transform", ["1/r", "r -> foo(r)", "r -> __import__('os').getpid()"]
    )
    def test_bad_transform(self, config: dict, transform: str) -> None:
        config["bodyorders"][1]["transform"] = transform
        with pytest.raises(ConfigurationError):
            basis_from_config(config)

    def test_unsupported_body_order(self, config: dict) -> None:
        config["bodyorders"][2]["N"] = 6
        with pytest.raises(ConfigurationError):
            basis_from_config(config)

    def test_empty(self) -> None:
        with pytest.raises(ConfigurationError):
            basis_from_config({"bodyorders": []})


class TestLoadConfig:
    """Tests for load_config."""

    def test_from_yaml(self, tmp_path) -> None:
        path = tmp_path / "basis.yaml"
        path.write_text(
            "bodyorders:\n"
            "  - {N: 1, energy: -4.0}\n"
            "  - {N: 2, transform: inverse, cutoff: [cos, 4.0, 6.0], degree: 5}\n"
        )
        basis = load_config(path)
        assert len(basis) == 6
        assert basis[0] == OneBody(-4.0)
        assert basis[-1].degree() == 5

    def test_not_a_mapping(self, tmp_path) -> None:
        path = tmp_path / "basis.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError):
            load_config(path)
