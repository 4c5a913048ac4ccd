"""
Configuration loader for YAML-based basis setup.

Example config:
    bodyorders:
      - {N: 1, energy: -4.0}
      - {N: 2, transform: "r -> (2.9/r)^3", cutoff: [cos, 6.0, 9.0], degree: 12}
      - {N: 3, transform: inverse, cutoff: "(:cos, 4.0, 6.2)", degree: 6}
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import ValidationError

from nbodyip.core.errors import ConfigurationError
from nbodyip.io.schemas import BasisConfig, BodyOrderSpec
from nbodyip.polynomials import Dictionary
from nbodyip.potential import NBodyFunction, OneBody, poly_basis

logger = logging.getLogger(__name__)


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Args:
        path: Path to YAML file.

    Returns:
        Dictionary with configuration.
    """
    try:
        import yaml
    except ImportError:
        raise ImportError("PyYAML is required: pip install pyyaml")

    with open(path, "r") as f:
        return yaml.safe_load(f)


def _parse_cutoff(spec: BodyOrderSpec):
    """Cutoff descriptor as accepted by ``cutoff_function``."""
    if isinstance(spec.cutoff, str):
        return spec.cutoff
    return tuple(spec.cutoff)


def _parse_dictionary(spec: BodyOrderSpec) -> Dictionary:
    """Parse the dictionary of one body order."""
    return Dictionary.from_spec(spec.transform, _parse_cutoff(spec), spec.N)


def _parse_body_order(spec: BodyOrderSpec) -> List[NBodyFunction]:
    """Parse one ``bodyorders`` entry into basis functions."""
    if spec.N == 1:
        return [OneBody(spec.energy)]
    basis = poly_basis(spec.N, _parse_dictionary(spec), spec.degree)
    logger.debug("body order %d: %d basis functions", spec.N, len(basis))
    return basis


def basis_from_config(config: Dict[str, Any]) -> List[NBodyFunction]:
    """
    Build a basis set from a configuration dictionary.

    Args:
        config: Configuration dictionary (typically from YAML).

    Returns:
        Basis functions of all configured body orders, in config order.

    Raises:
        ConfigurationError: If the configuration is invalid.
    """
    try:
        parsed = BasisConfig.model_validate(config)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid basis configuration: {exc}") from exc

    basis: List[NBodyFunction] = []
    for spec in parsed.bodyorders:
        basis.extend(_parse_body_order(spec))
    logger.info(
        "built basis of %d functions from %d body orders",
        len(basis), len(parsed.bodyorders),
    )
    return basis


def load_config(path: Union[str, Path]) -> List[NBodyFunction]:
    """Load a YAML basis configuration and build the basis set."""
    config = load_yaml(path)
    if not isinstance(config, dict):
        raise ConfigurationError(f"{path}: expected a mapping at top level")
    return basis_from_config(config)
