"""Fixed-capacity truncated series in the formal PN parameter.

``Expansion(coeffs, ceiling)`` holds the coefficients of orders
``0, 1, ..., len(coeffs) - 1``; ``coeffs[k]`` multiplies ``eps**k``. The
number of stored coefficients may grow or shrink as expansions are combined,
but it always satisfies ``1 <= len(coeffs) <= ceiling + 1``.

Following Blanchet (2014), ``eps ~ v/c`` and we write formally ``eps = 1/c``;
a term of order ``n`` is a relative ``n/2``-PN correction, so the ceiling of a
series truncated at PN order ``p`` is ``2p``.

Addition and multiplication are only defined between expansions with the same
ceiling. Multiplication by another expansion is a discrete convolution that is
itself truncated at the ceiling. Multiplication by a :class:`Term` shifts the
coefficients by the term's order.

An expansion is a series in ``1/c`` only, so the derivative with respect to
any physical variable (``v``, masses, spins) is taken coefficient by
coefficient and leaves the shape unchanged. Derivatives with respect to the
PN parameter itself are not supported.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Callable, Optional

import numpy as np
import sympy

from .errors import TruncatedSeriesError
from .numeric import constant_convert, efficient_vector, is_zero, zero_like
from .term import Term


@dataclass(frozen=True)
class Expansion:
    coeffs: tuple
    ceiling: int

    __array_ufunc__ = None

    def __post_init__(self):
        coeffs = tuple(self.coeffs)
        n = len(coeffs)
        if n < 1:
            raise TruncatedSeriesError(f"An expansion needs at least one coefficient; got {n}.")
        if n > self.ceiling + 1:
            raise TruncatedSeriesError(
                f"An expansion with ceiling {self.ceiling} holds at most "
                f"{self.ceiling + 1} coefficients; got {n}."
            )
        object.__setattr__(self, "coeffs", coeffs)

    @classmethod
    def from_pn_order(cls, coeffs, pn_order) -> "Expansion":
        from .context import ceiling_from_pn_order
        return cls(tuple(coeffs), ceiling_from_pn_order(pn_order))

    @property
    def pn_order(self) -> Fraction:
        return Fraction(self.ceiling, 2)

    def __len__(self) -> int:
        return len(self.coeffs)

    def __getitem__(self, k):
        return self.coeffs[k]

    def __iter__(self):
        return iter(self.coeffs)

    def as_array(self) -> np.ndarray:
        return np.asarray(self.coeffs)

    def padded(self) -> tuple:
        """Coefficients of orders ``0..ceiling``, zero-filled past the populated length."""
        z = zero_like(self.coeffs[0])
        return self.coeffs + (z,) * (self.ceiling + 1 - len(self.coeffs))

    def sum(self) -> Any:
        return sum(self.coeffs, zero_like(self.coeffs[0]))

    def _check_ceiling(self, other, op: str) -> None:
        if other.ceiling != self.ceiling:
            raise TruncatedSeriesError(
                f"`Expansion` {op} is only defined for objects of the same PN order; "
                f"got ceilings {self.ceiling} and {other.ceiling}."
            )

    def _new(self, coeffs) -> "Expansion":
        return Expansion(tuple(coeffs), self.ceiling)

    # unary

    def __pos__(self) -> "Expansion":
        return self

    def __neg__(self) -> "Expansion":
        return self._new(-c for c in self.coeffs)

    # additive

    def __add__(self, other):
        if isinstance(other, Expansion):
            return _add_expansions(self, other)
        if isinstance(other, Term):
            return add_term_expansion(other, self)
        return _add_scalar(self, other)

    def __radd__(self, other):
        if isinstance(other, Term):
            return add_term_expansion(other, self)
        return _add_scalar(self, other)

    def __sub__(self, other):
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    # multiplicative

    def __mul__(self, other):
        if isinstance(other, Expansion):
            return _convolve(self, other)
        if isinstance(other, Term):
            return _shift(self, other)
        x = constant_convert(self.coeffs[0], other)
        return self._new(c * x for c in self.coeffs)

    def __rmul__(self, other):
        if isinstance(other, Term):
            return _shift(self, other)
        x = constant_convert(self.coeffs[0], other)
        return self._new(x * c for c in self.coeffs)

    def __truediv__(self, other):
        if isinstance(other, Expansion):
            return NotImplemented
        if isinstance(other, Term):
            return _shift(self, other.inverse())
        x = constant_convert(self.coeffs[0], other)
        return self._new(c / x for c in self.coeffs)

    def derivative(self, var, differentiate: Optional[Callable[[Any, Any], Any]] = None) -> "Expansion":
        """Differentiate every coefficient with respect to ``var`` (``sympy.diff`` by default)."""
        if isinstance(var, Term):
            raise TruncatedSeriesError(
                "Cannot differentiate an expansion with respect to the PN expansion parameter."
            )
        if differentiate is None:
            differentiate = sympy.diff
        return self._new(differentiate(c, var) for c in self.coeffs)


def _require_nonnegative(term: Term) -> None:
    if term.order < 0:
        raise TruncatedSeriesError(
            f"Cannot add a term with negative order {term.order}: the result would be "
            "an expansion, which cannot store coefficients below order 0."
        )


def add_terms(t1: Term, t2: Term) -> Expansion:
    t1._check_ceiling(t2, "add")
    _require_nonnegative(t1)
    _require_nonnegative(t2)
    n = min(max(t1.order, t2.order) + 1, t1.ceiling + 1)
    coeffs = efficient_vector(n, zero_like(t1.coeff) + zero_like(t2.coeff))
    if t1.order < n:
        coeffs[t1.order] += t1.coeff
    if t2.order < n:
        coeffs[t2.order] += t2.coeff
    return Expansion(tuple(coeffs), t1.ceiling)


def add_term_scalar(term: Term, x: Any) -> Expansion:
    _require_nonnegative(term)
    x = constant_convert(term.coeff, x)
    n = min(term.order + 1, term.ceiling + 1)
    coeffs = efficient_vector(n, zero_like(term.coeff) + zero_like(x))
    coeffs[0] += x
    if term.order < n:
        coeffs[term.order] += term.coeff
    return Expansion(tuple(coeffs), term.ceiling)


def add_term_expansion(term: Term, expansion: Expansion) -> Expansion:
    expansion._check_ceiling(term, "addition")
    _require_nonnegative(term)
    n = min(max(term.order + 1, len(expansion)), expansion.ceiling + 1)
    coeffs = efficient_vector(n, zero_like(term.coeff) + zero_like(expansion[0]))
    if term.order < n:
        coeffs[term.order] += term.coeff
    for i, c in enumerate(expansion.coeffs):
        coeffs[i] += c
    return Expansion(tuple(coeffs), expansion.ceiling)


def _add_scalar(expansion: Expansion, x: Any) -> Expansion:
    x = constant_convert(expansion[0], x)
    z = zero_like(expansion[0]) + zero_like(x)
    head = expansion[0] + x
    return expansion._new((head,) + tuple(c + z for c in expansion.coeffs[1:]))


def _add_expansions(e1: Expansion, e2: Expansion) -> Expansion:
    e1._check_ceiling(e2, "addition")
    if len(e1) > len(e2):
        e1, e2 = e2, e1
    n1 = len(e1)
    z = zero_like(e1[0]) + zero_like(e2[0])
    return e1._new(
        e1[i] + e2[i] if i < n1 else e2[i] + z
        for i in range(len(e2))
    )


def _convolve(e1: Expansion, e2: Expansion) -> Expansion:
    e1._check_ceiling(e2, "multiplication")
    n1, n2 = len(e1), len(e2)
    n = min(n1 + n2 - 1, e1.ceiling + 1)
    z = zero_like(e1[0]) + zero_like(e2[0])
    return e1._new(
        sum((e1[j] * e2[i - j] for j in range(max(0, i - n2 + 1), min(i, n1 - 1) + 1)), z)
        for i in range(n)
    )


def _shift(expansion: Expansion, term: Term) -> Expansion:
    expansion._check_ceiling(term, "multiplication")
    shift = term.order  # may be negative
    n1 = len(expansion)
    n = min(max(n1, n1 + shift), expansion.ceiling + 1)

    # nothing below order 0 may be dropped
    for i in range(min(max(0, -shift), n1)):
        if not is_zero(expansion[i]):
            raise TruncatedSeriesError(
                f"Cannot multiply an expansion by a term of order {shift}: the nonzero "
                f"coefficient of order {i} would move below order 0."
            )

    coeffs = efficient_vector(n, zero_like(expansion[0]) + zero_like(term.coeff))
    for i in range(max(0, -shift), min(n1, n - shift)):
        coeffs[i + shift] = expansion[i] * term.coeff
    return Expansion(tuple(coeffs), expansion.ceiling)
