"""
Force module for nbodyip.

Finite-difference reference gradients for validating analytic
derivatives.
"""

from .finite_difference import NumericalBackend

__all__ = ["NumericalBackend"]
