"""
Finite-difference gradients.

Reference gradients used to validate the analytic derivatives of the
invariants, cutoffs and N-body terms.
"""
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray


class NumericalBackend:
    """
    Numerical differentiation backend (central finite differences).

    Slow (two function evaluations per coordinate) and approximate, but
    works with any scalar function. Good for debugging and validation.

    Example:
        >>> backend = NumericalBackend(h=1e-5)
        >>> g = backend.compute_gradient(V.evaluate, r)
        >>> forces = backend.compute_forces(lambda x: ip.energy(config.with_positions(x)), x)
    """

    def __init__(self, h: float = 1e-5) -> None:
        """
        Initialize numerical backend.

        Args:
            h: Step size for finite differences.
        """
        if h <= 0:
            raise ValueError(f"Step size must be positive, got {h}")
        self.h = h

    def compute_gradient(
        self,
        fn: Callable[..., float],
        x: NDArray[np.floating],
        **kwargs: Any,
    ) -> NDArray[np.floating]:
        """
        Gradient of a scalar function by central differences.

        g_i = (f(x + h*e_i) - f(x - h*e_i)) / (2*h)

        Args:
            fn: Scalar function of an array of any shape.
            x: Point of evaluation.
            **kwargs: Additional arguments for fn.

        Returns:
            Array of the same shape as x.
        """
        x = np.asarray(x, dtype=np.float64)
        grad = np.zeros_like(x)
        h = self.h

        for idx in np.ndindex(x.shape):
            x_plus = x.copy()
            x_minus = x.copy()
            x_plus[idx] += h
            x_minus[idx] -= h
            grad[idx] = (fn(x_plus, **kwargs) - fn(x_minus, **kwargs)) / (2 * h)

        return grad

    def compute_jacobian(
        self,
        fn: Callable[..., NDArray[np.floating]],
        x: NDArray[np.floating],
        **kwargs: Any,
    ) -> NDArray[np.floating]:
        """
        Jacobian of a vector function of a vector, shape (len(fn(x)), len(x)).
        """
        x = np.asarray(x, dtype=np.float64)
        columns = []
        h = self.h
        for i in range(len(x)):
            x_plus = x.copy()
            x_minus = x.copy()
            x_plus[i] += h
            x_minus[i] -= h
            f_plus = np.asarray(fn(x_plus, **kwargs), dtype=np.float64)
            f_minus = np.asarray(fn(x_minus, **kwargs), dtype=np.float64)
            columns.append((f_plus - f_minus) / (2 * h))
        return np.stack(columns, axis=-1)

    def compute_forces(
        self,
        energy_fn: Callable[..., float],
        positions: NDArray[np.floating],
        **kwargs: Any,
    ) -> NDArray[np.floating]:
        """
        Compute forces F = -grad E by central differences.

        Args:
            energy_fn: Energy function taking an (N, 3) positions array.
            positions: (N, 3) atomic positions.

        Returns:
            (N, 3) force array.
        """
        return -self.compute_gradient(energy_fn, positions, **kwargs)

    def get_name(self) -> str:
        """Return backend name."""
        return f"Numerical(h={self.h})"
