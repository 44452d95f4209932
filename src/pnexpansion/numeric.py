"""Numeric-type plumbing shared by the series engine and the formula layer.

Coefficients may be numpy scalars, Python numbers, ``fractions.Fraction``,
``mpmath.mpf`` or sympy expressions. Everything here keeps values in the
numeric type they came in with: literal constants are converted *to* that
type instead of letting Python promote the coefficient to ``float``.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Callable, Optional

import mpmath
import numpy as np
import sympy

# Enough digits for quad precision; numpy parses these strings at full precision.
_PI_DIGITS = "3.14159265358979323846264338327950288"
_EULER_GAMMA_DIGITS = "0.57721566490153286060651209008240243"


def _as_type(x: Any) -> type:
    return x if isinstance(x, type) else type(x)


@dataclass(frozen=True)
class NumericBackend:
    """Named math capabilities for one family of coefficient types."""
    name: str
    sqrt: Callable[[Any], Any]
    log: Callable[[Any], Any]
    pi: Callable[[type], Any]
    euler_gamma: Callable[[type], Any]
    eps: Callable[[type], Any]
    # module name handed to sympy.lambdify; None means stay symbolic
    lambdify_module: Optional[str]


def _numpy_constant(digits: str) -> Callable[[type], Any]:
    return lambda T: np.dtype(T).type(digits)


def _python_eps(T: type) -> float:
    return sys.float_info.epsilon


NUMPY_BACKEND = NumericBackend(
    name="numpy",
    sqrt=np.sqrt,
    log=np.log,
    pi=_numpy_constant(_PI_DIGITS),
    euler_gamma=_numpy_constant(_EULER_GAMMA_DIGITS),
    eps=lambda T: np.finfo(T).eps,
    lambdify_module="numpy",
)

PYTHON_BACKEND = NumericBackend(
    name="python",
    sqrt=math.sqrt,
    log=math.log,
    pi=lambda T: math.pi,
    euler_gamma=lambda T: 0.5772156649015329,
    eps=_python_eps,
    lambdify_module="math",
)

MPMATH_BACKEND = NumericBackend(
    name="mpmath",
    sqrt=mpmath.sqrt,
    log=mpmath.log,
    pi=lambda T: +mpmath.pi,
    euler_gamma=lambda T: +mpmath.euler,
    eps=lambda T: mpmath.eps,
    lambdify_module="mpmath",
)

SYMPY_BACKEND = NumericBackend(
    name="sympy",
    sqrt=sympy.sqrt,
    log=sympy.log,
    pi=lambda T: sympy.pi,
    euler_gamma=lambda T: sympy.EulerGamma,
    eps=lambda T: None,
    lambdify_module=None,
)

# Checked in order: numpy scalars subclass Python float, so numpy comes first.
BACKENDS: tuple[tuple[tuple[type, ...], NumericBackend], ...] = (
    ((np.generic,), NUMPY_BACKEND),
    ((sympy.Basic,), SYMPY_BACKEND),
    ((mpmath.mpf, mpmath.mpc), MPMATH_BACKEND),
    ((float, int, complex, Fraction), PYTHON_BACKEND),
)


def backend_for(x: Any) -> NumericBackend:
    """Return the backend that handles values of the type of ``x`` (or type ``x``)."""
    T = _as_type(x)
    for types, backend in BACKENDS:
        if issubclass(T, types):
            return backend
    raise ValueError(f"No numeric backend registered for coefficient type {T.__name__}")


def zero_like(x: Any) -> Any:
    """Additive identity in the numeric type of ``x`` (a value or a type)."""
    T = _as_type(x)
    if issubclass(T, sympy.Basic):
        return sympy.Integer(0)
    if issubclass(T, np.generic):
        return np.dtype(T).type(0)
    try:
        return T(0)
    except TypeError:
        return x * 0


def one_like(x: Any) -> Any:
    """Multiplicative identity in the numeric type of ``x`` (a value or a type)."""
    T = _as_type(x)
    if issubclass(T, sympy.Basic):
        return sympy.Integer(1)
    if issubclass(T, np.generic):
        return np.dtype(T).type(1)
    try:
        return T(1)
    except TypeError:
        return x ** 0


def constant_convert(like: Any, x: Any) -> Any:
    """Convert a literal ``int``/``Fraction`` constant to the numeric type of ``like``.

    Anything else passes through untouched. Exact types (``int``,
    ``Fraction``) keep exact constants; sympy gets a ``Rational``.
    """
    if isinstance(x, bool) or not isinstance(x, (int, Fraction)):
        return x
    T = _as_type(like)
    if issubclass(T, (int, Fraction)) and not issubclass(T, np.generic):
        return x
    if issubclass(T, sympy.Basic):
        return sympy.Rational(x.numerator, x.denominator)
    if issubclass(T, np.floating) and np.finfo(T).bits < 64:
        # numerators of literature coefficients overflow half precision
        return np.dtype(T).type(float(x))
    if isinstance(x, int):
        return zero_like(T) + x
    return (zero_like(T) + x.numerator) / x.denominator


def cast(T: type, x: Any) -> Any:
    """Convert a computed value (e.g. a float64 from the integrator) to type ``T``."""
    if issubclass(T, sympy.Basic):
        return sympy.sympify(x)
    if issubclass(T, np.generic):
        return np.dtype(T).type(x)
    return T(x)


def is_zero(x: Any) -> bool:
    return bool(x == 0)


def efficient_vector(n: int, zero: Any):
    """Zero-filled buffer of length ``n`` for accumulating coefficients.

    Trivially copyable scalars (numpy types, ``float``, ``complex``) get a
    fixed-size numpy buffer; exact, arbitrary-precision and symbolic values
    get a plain list.
    """
    if isinstance(zero, np.generic) or type(zero) in (float, complex):
        return np.zeros(n, dtype=np.asarray(zero).dtype)
    return [zero] * n


def evalpoly(v: Any, coeffs) -> Any:
    """Horner evaluation of ``sum(coeffs[k] * v**k)`` without leaving the coefficient type."""
    n = len(coeffs)
    if n == 0:
        return zero_like(v)
    acc = coeffs[n - 1]
    for k in range(n - 2, -1, -1):
        acc = acc * v + coeffs[k]
    return acc
