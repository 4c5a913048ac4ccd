"""
Polynomials module for nbodyip.

Building blocks of the invariant-polynomial N-body terms:
- monomial / monomial_d: products of powers of the primary invariants
- invariants / invariants_ed: closed-form permutation invariants, N = 2..5
- AnalyticFunction: distance transforms parsed with sympy
- CutoffFunction: cos, spline, square, sw, cos2s envelopes
- Dictionary: shared (transform, cutoff, body order)
- gen_tuples: odometer enumeration of exponent tuples
"""

from .basis import gen_tuples, iter_tuples, tdegree
from .cutoffs import (
    CUTOFF_SHAPES,
    Cos2sCutoff,
    CosCutoff,
    CutoffFunction,
    SplineCutoff,
    SquareCutoff,
    SWCutoff,
    cluster_cutoff,
    cluster_cutoff_d,
    cutoff_function,
)
from .dictionary import Dictionary
from .invariants import (
    InvariantSet,
    bo2edges,
    edges2bo,
    invariant_set,
    invariants,
    invariants_ed,
    nedges,
    num_invariants,
    supported_body_orders,
    tdegrees,
)
from .monomials import monomial, monomial_d
from .transforms import AnalyticFunction, analytic_function

__all__ = [
    "monomial",
    "monomial_d",
    "InvariantSet",
    "invariant_set",
    "invariants",
    "invariants_ed",
    "nedges",
    "bo2edges",
    "edges2bo",
    "tdegrees",
    "num_invariants",
    "supported_body_orders",
    "AnalyticFunction",
    "analytic_function",
    "CutoffFunction",
    "CosCutoff",
    "SplineCutoff",
    "SquareCutoff",
    "SWCutoff",
    "Cos2sCutoff",
    "CUTOFF_SHAPES",
    "cutoff_function",
    "cluster_cutoff",
    "cluster_cutoff_d",
    "Dictionary",
    "tdegree",
    "iter_tuples",
    "gen_tuples",
]
