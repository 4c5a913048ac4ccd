"""
nbodyip - Many-body interatomic potentials from invariant polynomials.

An interatomic potential is a sum of N-body terms (N = 1..5). Each term
is a polynomial in permutation invariants of the transformed bond
lengths of an N-atom cluster, multiplied by a smooth cutoff envelope.
Energies, forces and virials follow from evaluating the terms on all
clusters of a configuration.

Main features:
- Closed-form permutation invariants and Jacobians for N = 2, 3, 4, 5
- Distance transforms parsed with sympy, five cutoff shapes
- Odometer basis generation below a total-degree bound
- Cell-list cluster enumeration with optional thread-parallel evaluation
- JSON persistence and YAML basis configuration
"""

__version__ = "0.1.0"
__author__ = "nbodyip Team"

from .boundary import OpenBoundaryCondition, PeriodicBoundaryCondition
from .core import (
    Configuration,
    ConfigurationError,
    DimensionMismatch,
    NBodyIPError,
    NonMonotoneBoundError,
)
from .polynomials import (
    Dictionary,
    analytic_function,
    cutoff_function,
    gen_tuples,
    invariants,
    invariants_ed,
    monomial,
    monomial_d,
)
from .potential import (
    NBody,
    NBodyFunction,
    NBodyIP,
    OneBody,
    combine_basis,
    design_matrix,
    poly_basis,
)
from .io import decode, encode, load_ip, save_ip
from .config import basis_from_config, load_config

__all__ = [
    "__version__",
    "Configuration",
    "PeriodicBoundaryCondition",
    "OpenBoundaryCondition",
    "NBodyIPError",
    "ConfigurationError",
    "DimensionMismatch",
    "NonMonotoneBoundError",
    "monomial",
    "monomial_d",
    "invariants",
    "invariants_ed",
    "analytic_function",
    "cutoff_function",
    "Dictionary",
    "gen_tuples",
    "NBodyFunction",
    "NBody",
    "OneBody",
    "NBodyIP",
    "combine_basis",
    "poly_basis",
    "design_matrix",
    "encode",
    "decode",
    "save_ip",
    "load_ip",
    "basis_from_config",
    "load_config",
]
