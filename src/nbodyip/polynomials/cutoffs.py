"""
Cutoff envelopes.

Each cutoff is an immutable elementwise function f(r) that vanishes
smoothly at its cutoff radius. The cluster cutoff of an N-body term is
the product of f over all edges.

Known shapes: cos, spline, square, sw, cos2s. A cutoff is specified as
``("cos", 6.0, 9.0)`` or in string form ``"(:cos, 6.0, 9.0)"``.
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple, Type, Union

import numpy as np
from numpy.typing import NDArray

from nbodyip.core.errors import ConfigurationError

CutoffSpec = Union[str, Sequence]


class CutoffFunction(ABC):
    """
    Abstract base for cutoff envelopes.

    Subclasses provide ``evaluate``/``evaluate_d`` on arrays of distances
    and the parameter tuple used for equality and persistence.
    """

    name: str = ""

    @property
    @abstractmethod
    def rcut(self) -> float:
        """Radius at and beyond which the cutoff is exactly zero."""
        pass

    @property
    @abstractmethod
    def params(self) -> Tuple[float, ...]:
        pass

    @abstractmethod
    def evaluate(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        pass

    @abstractmethod
    def evaluate_d(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        pass

    @property
    def descriptor(self) -> Tuple:
        return (self.name,) + self.params

    def __call__(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        return self.evaluate(r)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CutoffFunction):
            return NotImplemented
        return self.descriptor == other.descriptor

    def __hash__(self) -> int:
        return hash(self.descriptor)

    def __repr__(self) -> str:
        args = ", ".join(repr(p) for p in self.params)
        return f"{type(self).__name__}({args})"


def _check_order(name: str, *radii: float) -> None:
    if radii[0] <= 0 or any(a > b for a, b in zip(radii, radii[1:])):
        raise ConfigurationError(
            f"Cutoff {name!r} needs increasing positive radii, got {radii}"
        )


@dataclass(frozen=True, eq=False, repr=False)
class CosCutoff(CutoffFunction):
    """Cosine switch from 1 at r0 to 0 at r1."""

    r0: float
    r1: float
    name = "cos"

    def __post_init__(self):
        _check_order(self.name, self.r0, self.r1)
        if self.r0 == self.r1:
            raise ConfigurationError("Cutoff 'cos' needs r0 < r1")

    @property
    def rcut(self) -> float:
        return self.r1

    @property
    def params(self) -> Tuple[float, ...]:
        return (self.r0, self.r1)

    def _x(self, r):
        return np.clip((np.asarray(r, dtype=np.float64) - self.r0) / (self.r1 - self.r0), 0.0, 1.0)

    def evaluate(self, r):
        return 0.5 * (1.0 + np.cos(math.pi * self._x(r)))

    def evaluate_d(self, r):
        r = np.asarray(r, dtype=np.float64)
        inside = (r > self.r0) & (r < self.r1)
        slope = -0.5 * math.pi / (self.r1 - self.r0)
        return np.where(inside, slope * np.sin(math.pi * self._x(r)), 0.0)


@dataclass(frozen=True, eq=False, repr=False)
class SplineCutoff(CutoffFunction):
    """Quintic smoothstep 1 - 10x^3 + 15x^4 - 6x^5 from r0 to r1."""

    r0: float
    r1: float
    name = "spline"

    def __post_init__(self):
        _check_order(self.name, self.r0, self.r1)
        if self.r0 == self.r1:
            raise ConfigurationError("Cutoff 'spline' needs r0 < r1")

    @property
    def rcut(self) -> float:
        return self.r1

    @property
    def params(self) -> Tuple[float, ...]:
        return (self.r0, self.r1)

    def _x(self, r):
        return np.clip((np.asarray(r, dtype=np.float64) - self.r0) / (self.r1 - self.r0), 0.0, 1.0)

    def evaluate(self, r):
        x = self._x(r)
        x3 = x * x * x
        return 1.0 - 10.0 * x3 + 15.0 * x3 * x - 6.0 * x3 * x * x

    def evaluate_d(self, r):
        x = self._x(r)
        x2 = x * x
        return -30.0 * x2 * (1.0 - x) ** 2 / (self.r1 - self.r0)


@dataclass(frozen=True, eq=False, repr=False)
class SquareCutoff(CutoffFunction):
    """(r - rcut)^2 below rcut."""

    radius: float
    name = "square"

    def __post_init__(self):
        _check_order(self.name, self.radius)

    @property
    def rcut(self) -> float:
        return self.radius

    @property
    def params(self) -> Tuple[float, ...]:
        return (self.radius,)

    def evaluate(self, r):
        r = np.asarray(r, dtype=np.float64)
        return np.where(r < self.radius, (r - self.radius) ** 2, 0.0)

    def evaluate_d(self, r):
        r = np.asarray(r, dtype=np.float64)
        return np.where(r < self.radius, 2.0 * (r - self.radius), 0.0)


@dataclass(frozen=True, eq=False, repr=False)
class SWCutoff(CutoffFunction):
    """Stillinger-Weber envelope exp(L / (r - rcut)) below rcut."""

    L: float
    radius: float
    name = "sw"

    def __post_init__(self):
        if self.L <= 0:
            raise ConfigurationError(f"Cutoff 'sw' needs L > 0, got {self.L}")
        _check_order(self.name, self.radius)

    @property
    def rcut(self) -> float:
        return self.radius

    @property
    def params(self) -> Tuple[float, ...]:
        return (self.L, self.radius)

    def _parts(self, r):
        r = np.asarray(r, dtype=np.float64)
        inside = r < self.radius
        # placeholder denominator outside keeps exp() finite
        d = np.where(inside, r - self.radius, -1.0)
        return inside, d, np.exp(self.L / d)

    def evaluate(self, r):
        inside, _, e = self._parts(r)
        return np.where(inside, e, 0.0)

    def evaluate_d(self, r):
        inside, d, e = self._parts(r)
        return np.where(inside, -self.L / (d * d) * e, 0.0)


@dataclass(frozen=True, eq=False, repr=False)
class Cos2sCutoff(CutoffFunction):
    """
    Two-sided cosine window.

    Rises from 0 at ri1 to 1 at ri2, stays 1 up to ro1 and falls back to 0
    at ro2. Unlike the other shapes it also vanishes at short range.
    """

    ri1: float
    ri2: float
    ro1: float
    ro2: float
    name = "cos2s"

    def __post_init__(self):
        _check_order(self.name, self.ri1, self.ri2, self.ro1, self.ro2)
        if self.ri1 == self.ri2 or self.ro1 == self.ro2:
            raise ConfigurationError("Cutoff 'cos2s' needs ri1 < ri2 and ro1 < ro2")

    @property
    def rcut(self) -> float:
        return self.ro2

    @property
    def params(self) -> Tuple[float, ...]:
        return (self.ri1, self.ri2, self.ro1, self.ro2)

    def evaluate(self, r):
        r = np.asarray(r, dtype=np.float64)
        xi = np.clip((r - self.ri1) / (self.ri2 - self.ri1), 0.0, 1.0)
        xo = np.clip((r - self.ro1) / (self.ro2 - self.ro1), 0.0, 1.0)
        return 0.25 * (1.0 - np.cos(math.pi * xi)) * (1.0 + np.cos(math.pi * xo))

    def evaluate_d(self, r):
        r = np.asarray(r, dtype=np.float64)
        wi = self.ri2 - self.ri1
        wo = self.ro2 - self.ro1
        xi = np.clip((r - self.ri1) / wi, 0.0, 1.0)
        xo = np.clip((r - self.ro1) / wo, 0.0, 1.0)
        rise = 0.5 * (1.0 - np.cos(math.pi * xi))
        fall = 0.5 * (1.0 + np.cos(math.pi * xo))
        rise_d = np.where((r > self.ri1) & (r < self.ri2),
                          0.5 * math.pi / wi * np.sin(math.pi * xi), 0.0)
        fall_d = np.where((r > self.ro1) & (r < self.ro2),
                          -0.5 * math.pi / wo * np.sin(math.pi * xo), 0.0)
        return rise_d * fall + rise * fall_d


CUTOFF_SHAPES: Dict[str, Type[CutoffFunction]] = {
    "cos": CosCutoff,
    "spline": SplineCutoff,
    "square": SquareCutoff,
    "sw": SWCutoff,
    "cos2s": Cos2sCutoff,
}

_NUM_PARAMS = {"cos": 2, "spline": 2, "square": 1, "sw": 2, "cos2s": 4}


def _parse_string(spec: str) -> Tuple:
    text = spec.strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]
    parts = [p.strip() for p in text.split(",") if p.strip()]
    if not parts:
        raise ConfigurationError(f"Empty cutoff descriptor {spec!r}")
    return (parts[0].lstrip(":"),) + tuple(parts[1:])


def cutoff_function(spec: Union[CutoffSpec, CutoffFunction]) -> CutoffFunction:
    """
    Build a cutoff from its descriptor.

    Args:
        spec: A CutoffFunction (returned as is), a sequence
            ``(name, *params)`` or the string form ``"(:name, p1, p2)"``.

    Returns:
        The cutoff function.

    Raises:
        ConfigurationError: On unknown shapes, wrong parameter counts or
            invalid radii.

    Example:
        >>> fc = cutoff_function("(:cos, 6.0, 9.0)")
        >>> fc.rcut
        9.0
    """
    if isinstance(spec, CutoffFunction):
        return spec
    if isinstance(spec, str):
        spec = _parse_string(spec)
    if not isinstance(spec, (tuple, list)) or not spec:
        raise ConfigurationError(f"Invalid cutoff descriptor: {spec!r}")

    name = str(spec[0]).lstrip(":").lower()
    if name not in CUTOFF_SHAPES:
        known = ", ".join(sorted(CUTOFF_SHAPES))
        raise ConfigurationError(f"Unknown cutoff {name!r}; known: {known}")
    params = spec[1:]
    if len(params) != _NUM_PARAMS[name]:
        raise ConfigurationError(
            f"Cutoff {name!r} takes {_NUM_PARAMS[name]} parameters, got {len(params)}"
        )
    try:
        values = tuple(float(p) for p in params)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Non-numeric cutoff parameters in {spec!r}") from exc
    return CUTOFF_SHAPES[name](*values)


def cluster_cutoff(cutoff: CutoffFunction, r: NDArray[np.floating]) -> float:
    """Product of the cutoff over all edges; 0 as soon as one edge reaches rcut."""
    r = np.asarray(r, dtype=np.float64)
    if np.any(r >= cutoff.rcut):
        return 0.0
    return float(np.prod(cutoff.evaluate(r)))


def cluster_cutoff_d(
    cutoff: CutoffFunction, r: NDArray[np.floating]
) -> Tuple[float, NDArray[np.floating]]:
    """
    Cluster cutoff and its gradient with respect to the edge lengths.

    grad[i] = f'(r_i) * prod_{j != i} f(r_j), computed with prefix and
    suffix products.

    Returns:
        Tuple (fc, grad). Both are zero when any edge is >= rcut.
    """
    r = np.asarray(r, dtype=np.float64)
    if r.size == 0:
        return 1.0, np.zeros(0)
    if np.any(r >= cutoff.rcut):
        return 0.0, np.zeros_like(r)
    f = cutoff.evaluate(r)
    df = cutoff.evaluate_d(r)
    prefix = np.concatenate(([1.0], np.cumprod(f[:-1])))
    suffix = np.concatenate((np.cumprod(f[:0:-1])[::-1], [1.0]))
    return float(prefix[-1] * f[-1]), df * prefix * suffix
