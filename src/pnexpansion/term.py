"""A single order-tagged monomial of a post-Newtonian series.

A ``Term`` is ``coeff * eps**order`` where ``eps`` is the formal PN parameter
(``1/c``). Terms whose order exceeds the declared ``ceiling`` are negligible at
that PN order, so their coefficient is replaced by zero on construction.

Multiplicative operations between terms give terms. Additive operations give
an :class:`~pnexpansion.expansion.Expansion`, because two monomials of
different order do not make a monomial.

Useful facts when writing formulas with ``eps = expansion_parameter(...)``:
  - ``v`` appears as ``v * eps``     (order 1)
  - ``x`` and ``gamma`` as ``x * eps**2``  (order 2)
  - ``1/r`` carries order 2 as well
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from .errors import TruncatedSeriesError
from .numeric import backend_for, constant_convert, is_zero, one_like, zero_like


def _expansion_type():
    # expansion.py imports this module
    from .expansion import Expansion
    return Expansion


@dataclass(frozen=True)
class Term:
    order: int
    coeff: Any
    ceiling: int

    # numpy scalars on the left defer to our reflected operators
    __array_ufunc__ = None

    def __post_init__(self):
        if int(self.order) != self.order:
            raise TruncatedSeriesError(f"Term order must be an integer; got {self.order!r}")
        if self.ceiling < 0:
            raise TruncatedSeriesError(f"Term ceiling must be non-negative; got {self.ceiling}")
        object.__setattr__(self, "order", int(self.order))
        if self.order > self.ceiling:
            object.__setattr__(self, "coeff", zero_like(self.coeff))

    def sum(self) -> Any:
        return self.coeff

    def _check_ceiling(self, other: "Term", op: str) -> None:
        if other.ceiling != self.ceiling:
            raise TruncatedSeriesError(
                f"Cannot {op} terms truncated at different orders: "
                f"ceiling {self.ceiling} vs {other.ceiling}."
            )

    def _new(self, order: int, coeff: Any) -> "Term":
        return Term(order, coeff, self.ceiling)

    def _divide(self, order: int, num: Any, den: Any) -> "Term":
        if is_zero(den):
            raise TruncatedSeriesError(
                f"Cannot divide by a term with zero coefficient (order {order}, ceiling "
                f"{self.ceiling}); terms above the ceiling are truncated to zero."
            )
        return self._new(order, num / den)

    # unary

    def __pos__(self) -> "Term":
        return self

    def __neg__(self) -> "Term":
        return self._new(self.order, -self.coeff)

    def inverse(self) -> "Term":
        return self._divide(-self.order, one_like(self.coeff), self.coeff)

    def sqrt(self) -> "Term":
        if self.order % 2 != 0:
            raise TruncatedSeriesError(
                f"Square root of a term of odd order {self.order} would need a "
                "non-half-integer PN order."
            )
        return self._new(self.order // 2, backend_for(self.coeff).sqrt(self.coeff))

    def __pow__(self, n) -> "Term":
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
            raise TruncatedSeriesError(
                f"Terms can only be raised to integer powers; got {n!r}. "
                "Use sqrt() for half-integer powers."
            )
        n = int(n)
        return self._new(self.order * n, self.coeff ** n)

    # multiplicative

    def __mul__(self, other):
        if isinstance(other, Term):
            self._check_ceiling(other, "multiply")
            return self._new(self.order + other.order, self.coeff * other.coeff)
        if isinstance(other, _expansion_type()):
            return NotImplemented
        return self._new(self.order, self.coeff * constant_convert(self.coeff, other))

    def __rmul__(self, other):
        return self._new(self.order, constant_convert(self.coeff, other) * self.coeff)

    def __truediv__(self, other):
        if isinstance(other, Term):
            self._check_ceiling(other, "divide")
            return self._divide(self.order - other.order, self.coeff, other.coeff)
        if isinstance(other, _expansion_type()):
            return NotImplemented
        return self._new(self.order, self.coeff / constant_convert(self.coeff, other))

    def __rtruediv__(self, other):
        return self._divide(-self.order, constant_convert(self.coeff, other), self.coeff)

    # additive; results are always Expansions

    def __add__(self, other):
        from .expansion import Expansion, add_term_scalar, add_terms
        if isinstance(other, Expansion):
            return NotImplemented
        if isinstance(other, Term):
            return add_terms(self, other)
        return add_term_scalar(self, other)

    def __radd__(self, other):
        from .expansion import add_term_scalar
        return add_term_scalar(self, other)

    def __sub__(self, other):
        if isinstance(other, _expansion_type()):
            return NotImplemented
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other


def inverse(term: Term) -> Term:
    return term.inverse()


def sqrt(term: Term) -> Term:
    return term.sqrt()


def expansion_parameter(ceiling: int, dtype: Any = float) -> Term:
    """The formal small parameter ``eps = 1/c``: order 1, unit coefficient of type ``dtype``.

    Multiplying by it raises the order of a quantity by one. Formulas written
    in terms of ``c`` use :func:`inverse_parameter` instead.
    """
    return Term(1, one_like(dtype), ceiling)


def inverse_parameter(ceiling: int, dtype: Any = float) -> Term:
    """The large parameter ``c``: order -1. Dividing by it raises the order by one."""
    return Term(-1, one_like(dtype), ceiling)
