"""
Potential module for nbodyip.

Provides the NBodyFunction ABC and the terms built on it:
- NBody: polynomial in the invariants of one body order
- OneBody: constant per-atom energy
- NBodyIP: sum of terms of different body orders
- fitting helpers: evaluate, evaluate_gradient, design_matrix
"""

from .fitting import body_order, cutoff, design_matrix, evaluate, evaluate_gradient
from .nbody import NBody, combine_basis, evaluate_many, evaluate_many_d, poly_basis
from .nbody_ip import NBodyIP, Potential
from .one_body import OneBody
from .potential_energy import NBodyFunction

__all__ = [
    "NBodyFunction",
    "NBody",
    "OneBody",
    "NBodyIP",
    "Potential",
    "combine_basis",
    "evaluate_many",
    "evaluate_many_d",
    "poly_basis",
    "evaluate",
    "evaluate_gradient",
    "cutoff",
    "body_order",
    "design_matrix",
]
