"""
Boundary condition module.

Strategy implementations for forming displacement vectors:
- PeriodicBoundaryCondition: minimum image in all three dimensions
- OpenBoundaryCondition: isolated systems
"""

from .boundary_condition import BoundaryCondition
from .open_bc import OpenBoundaryCondition
from .periodic_bc import PeriodicBoundaryCondition

__all__ = [
    "BoundaryCondition",
    "PeriodicBoundaryCondition",
    "OpenBoundaryCondition",
]
