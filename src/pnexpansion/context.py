"""Formula-evaluation context: truncation ceiling, numeric type and reducer.

Every physics formula takes a :class:`PNContext` as its first argument and
uses it for everything that depends on the configuration: the expansion
parameter, typed constants (``pi``, rationals, Euler's gamma) and the final
reduction of the truncated series. Nested formula calls receive the same
context, so one formula evaluation never mixes reducers or ceilings.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from fractions import Fraction
from typing import Any, Optional, Union

from .errors import TruncatedSeriesError
from .expansion import Expansion
from .numeric import NumericBackend, backend_for, cast, constant_convert
from .term import Term, expansion_parameter, inverse_parameter


class Reducer(enum.Enum):
    """What a formula does with the truncated series it builds."""
    SUM = "sum"
    IDENTITY = "identity"

    @classmethod
    def coerce(cls, value: Union["Reducer", str]) -> "Reducer":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ", ".join(r.value for r in cls)
            raise ValueError(f"Unknown reducer {value!r}; expected one of: {names}") from None


def ceiling_from_pn_order(pn_order) -> int:
    """``2 * pn_order`` as an int; ``pn_order`` must be a non-negative half-integer."""
    twice = Fraction(pn_order) * 2
    if twice.denominator != 1 or twice < 0:
        raise ValueError(f"PN order must be a non-negative multiple of 1/2; got {pn_order!r}")
    return int(twice)


def reduce_expansion(x: Any, reducer: Reducer, ceiling: Optional[int] = None) -> Any:
    """Apply ``reducer`` to the value of a ``pn_expansion`` body.

    ``SUM`` collapses Terms and Expansions to a scalar. ``IDENTITY`` always
    returns an :class:`Expansion`; a bare scalar or Term is promoted, which
    needs ``ceiling`` for the scalar case.
    """
    if reducer is Reducer.SUM:
        if isinstance(x, (Term, Expansion)):
            return x.sum()
        return x
    if isinstance(x, Expansion):
        return x
    if isinstance(x, Term):
        return x + 0
    if ceiling is None:
        raise TruncatedSeriesError("Cannot promote a scalar to an expansion without a ceiling.")
    return Expansion((x,), ceiling)


@dataclass(frozen=True)
class PNContext:
    ceiling: int
    dtype: Any = float
    reducer: Reducer = Reducer.SUM

    def __post_init__(self):
        if int(self.ceiling) != self.ceiling or self.ceiling < 0:
            raise ValueError(f"ceiling must be a non-negative integer; got {self.ceiling!r}")
        object.__setattr__(self, "ceiling", int(self.ceiling))
        object.__setattr__(self, "reducer", Reducer.coerce(self.reducer))
        # fail early on coefficient types nothing can evaluate
        backend_for(self.dtype)

    @classmethod
    def from_pn_order(cls, pn_order, dtype: Any = float,
                      reducer: Union[Reducer, str] = Reducer.SUM) -> "PNContext":
        return cls(ceiling_from_pn_order(pn_order), dtype, Reducer.coerce(reducer))

    @property
    def pn_order(self) -> Fraction:
        return Fraction(self.ceiling, 2)

    @property
    def backend(self) -> NumericBackend:
        return backend_for(self.dtype)

    def with_reducer(self, reducer: Union[Reducer, str]) -> "PNContext":
        return replace(self, reducer=Reducer.coerce(reducer))

    def parameter(self) -> Term:
        """``eps = 1/c`` with this context's ceiling and type."""
        return expansion_parameter(self.ceiling, self.dtype)

    def large_parameter(self) -> Term:
        """``c`` with this context's ceiling and type; ``v / c`` is a first-order term."""
        return inverse_parameter(self.ceiling, self.dtype)

    def convert(self, x: Any) -> Any:
        return constant_convert(self.dtype, x)

    def cast(self, x: Any) -> Any:
        return cast(self.dtype, x)

    def q(self, num: int, den: int = 1) -> Any:
        """The rational ``num/den`` in this context's numeric type."""
        return self.convert(Fraction(num, den))

    @property
    def pi(self) -> Any:
        return self.backend.pi(self.dtype)

    @property
    def euler_gamma(self) -> Any:
        return self.backend.euler_gamma(self.dtype)

    def ln(self, x: Any) -> Any:
        x = self.convert(x)
        return backend_for(x).log(x)

    def sqrt(self, x: Any) -> Any:
        if isinstance(x, Term):
            return x.sqrt()
        x = self.convert(x)
        return backend_for(x).sqrt(x)

    def expansion(self, expr: Any) -> Any:
        return reduce_expansion(expr, self.reducer, self.ceiling)
