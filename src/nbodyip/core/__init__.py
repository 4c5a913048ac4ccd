"""
Core module for nbodyip.

This module provides the fundamental building blocks:
- Configuration: positions, box and boundary condition of a structure
- Error hierarchy shared by all subpackages
"""

from .configuration import Configuration
from .errors import (
    ConfigurationError,
    DimensionMismatch,
    NBodyIPError,
    NonMonotoneBoundError,
)

__all__ = [
    "Configuration",
    "NBodyIPError",
    "ConfigurationError",
    "DimensionMismatch",
    "NonMonotoneBoundError",
]
