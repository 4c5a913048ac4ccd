"""
Distance transforms.

A transform s = t(r) reparametrises the bond lengths before they enter
the invariant formulas, e.g. ``"r -> 1/r"`` or ``"r -> (2.9/r)^3"``.
Descriptor strings are parsed with sympy, differentiated symbolically
once and compiled to numpy callables.

Only arithmetic in ``r``, numeric literals and the functions listed in
``FUNCTIONS`` are accepted. Descriptors are read from persisted records
and YAML files, and ``parse_expr`` evaluates its input, so anything else
is rejected before it reaches sympy.
"""
import re
from typing import Callable, Dict

import numpy as np
import sympy
from numpy.typing import NDArray
from sympy.core.function import AppliedUndef
from sympy.parsing.sympy_parser import (
    convert_xor,
    parse_expr,
    standard_transformations,
)

from nbodyip.core.errors import ConfigurationError

_R = sympy.Symbol("r", positive=True)
_TRANSFORMATIONS = standard_transformations + (convert_xor,)

SHORTHANDS: Dict[str, str] = {
    "identity": "r -> r",
    "inverse": "r -> 1/r",
}

FUNCTIONS: Dict[str, object] = {
    "exp": sympy.exp,
    "log": sympy.log,
    "sqrt": sympy.sqrt,
    "sin": sympy.sin,
    "cos": sympy.cos,
    "tan": sympy.tan,
    "sinh": sympy.sinh,
    "cosh": sympy.cosh,
    "tanh": sympy.tanh,
    "atan": sympy.atan,
    "pi": sympy.pi,
}

_TOKEN = re.compile(
    r"\s+"
    r"|(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_]\w*)"
    r"|[-+*/^()]"
)


def _check_tokens(body: str, descriptor: str) -> None:
    """Raise ConfigurationError unless body is plain arithmetic in r."""
    pos = 0
    while pos < len(body):
        match = _TOKEN.match(body, pos)
        if match is None:
            raise ConfigurationError(
                f"Transform {descriptor!r}: unexpected character {body[pos]!r}"
            )
        name = match.group("name")
        if name is not None and name != "r" and name not in FUNCTIONS:
            raise ConfigurationError(
                f"Transform {descriptor!r}: unknown name {name!r}; "
                f"allowed: r, {', '.join(sorted(FUNCTIONS))}"
            )
        pos = match.end()


def _vectorized(fn: Callable, expr: sympy.Expr) -> Callable:
    """Wrap a lambdified function so constant expressions still broadcast."""
    if expr.free_symbols:
        return fn
    value = float(expr)

    def constant(r):
        if np.ndim(r) == 0:
            return value
        return np.full(np.shape(r), value)

    return constant


class AnalyticFunction:
    """
    Scalar function of a distance together with its derivative.

    Attributes:
        descriptor: Source string, as given.
        expression: Parsed sympy expression in the symbol ``r``.

    Example:
        >>> t = analytic_function("r -> 1/r")
        >>> t(2.0), t.derivative(2.0)
        (0.5, -0.25)
    """

    def __init__(self, descriptor: str) -> None:
        self.descriptor = descriptor.strip()
        source = SHORTHANDS.get(self.descriptor, self.descriptor)

        head, arrow, body = source.partition("->")
        if not arrow or head.strip() != "r":
            raise ConfigurationError(
                f"Transform must have the form 'r -> <expression>', got {descriptor!r}"
            )
        _check_tokens(body, descriptor)
        try:
            expression = parse_expr(
                body,
                local_dict=dict(FUNCTIONS, r=_R),
                transformations=_TRANSFORMATIONS,
            )
        except Exception as exc:
            raise ConfigurationError(
                f"Cannot parse transform {descriptor!r}: {exc}"
            ) from exc

        if not isinstance(expression, sympy.Expr):
            raise ConfigurationError(
                f"Transform {descriptor!r} is not a scalar expression"
            )
        extra = expression.free_symbols - {_R}
        if extra:
            names = ", ".join(sorted(str(s) for s in extra))
            raise ConfigurationError(
                f"Transform {descriptor!r} depends on unknown symbols: {names}"
            )
        undefined = expression.atoms(AppliedUndef)
        if undefined:
            names = ", ".join(sorted(str(f.func) for f in undefined))
            raise ConfigurationError(
                f"Transform {descriptor!r} calls undefined functions: {names}"
            )

        self.expression = expression
        try:
            derivative = sympy.diff(expression, _R)
            self._f = _vectorized(sympy.lambdify(_R, expression, "numpy"), expression)
            self._f_d = _vectorized(sympy.lambdify(_R, derivative, "numpy"), derivative)
            self._key = sympy.srepr(sympy.simplify(expression))
        except Exception as exc:
            raise ConfigurationError(
                f"Cannot compile transform {descriptor!r}: {exc}"
            ) from exc

    def __call__(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        return self._f(r)

    def derivative(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        """Evaluate dt/dr."""
        return self._f_d(r)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnalyticFunction):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return f"AnalyticFunction({self.descriptor!r})"


def analytic_function(descriptor: str) -> AnalyticFunction:
    """
    Build a transform from its descriptor string.

    Args:
        descriptor: ``"r -> <expr>"`` (``^`` is accepted for powers) or one
            of the shorthands ``"identity"``, ``"inverse"``.

    Raises:
        ConfigurationError: If the descriptor is malformed.
    """
    if isinstance(descriptor, AnalyticFunction):
        return descriptor
    if not isinstance(descriptor, str):
        raise ConfigurationError(
            f"Transform descriptor must be a string, got {type(descriptor).__name__}"
        )
    return AnalyticFunction(descriptor)
