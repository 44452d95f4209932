r"""Truncated power-series arithmetic on plain coefficient sequences.

These helpers know nothing about :class:`Term` or ceilings: a sequence
``a = (a_0, ..., a_n)`` stands for ``A = sum_i a_i v**i`` and everything is
truncated at the length of the inputs. Expansions can be passed directly.

Note that :func:`series_product` and :func:`series_ratio` return the *value*
of the truncated product or ratio, not its coefficients, while
:func:`series_inverse` returns coefficients.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from .errors import TruncatedSeriesError
from .numeric import efficient_vector, evalpoly, is_zero, one_like, zero_like


def series_inverse(a: Sequence) -> tuple:
    r"""Coefficients ``b`` of the multiplicative inverse of ``a``, so that ``A*B = 1 + O(v**(n+1))``.

    Induction on the vanishing of each order of the product:

        b_0 = 1/a_0
        b_{i+1} = -b_0 * sum_{j=1}^{i+1} a_j b_{i+1-j}

    The constant term must be nonzero. A series that starts at ``v**k`` has
    to be divided by ``v**k`` first.
    """
    n = len(a)
    if n == 0:
        return ()
    if is_zero(a[0]):
        raise TruncatedSeriesError("Cannot invert a series whose leading coefficient is zero.")
    zero = zero_like(a[0])
    b = efficient_vector(n, zero)
    b[0] = one_like(a[0]) / a[0]
    for i in range(n - 1):
        b[i + 1] = -b[0] * sum((a[j] * b[i + 1 - j] for j in range(1, i + 2)), zero)
    return tuple(b)


def series_product(a: Sequence, b: Sequence, v: Any) -> Any:
    """Value at ``v`` of the product of ``a`` and ``b`` truncated at ``v**(len(a)-1)``.

    Nested Horner evaluation; ``a`` and ``b`` must have the same length.
    """
    if len(a) != len(b):
        raise TruncatedSeriesError(
            f"series_product needs sequences of equal length; got {len(a)} and {len(b)}."
        )
    N = len(a) - 1
    if N < 0:
        return zero_like(v)
    ab = b[N] * a[0]
    for n in range(N - 1, -1, -1):
        ab = v * ab + b[n] * evalpoly(v, a[: N - n + 1])
    return ab


def series_ratio(a: Sequence, b: Sequence, v: Optional[Any] = None) -> Any:
    """Value of the truncated ratio ``A/B``.

    With ``v`` this is ``series_product(a, series_inverse(b), v)`` and the
    lengths must match. Without ``v`` the series are evaluated at ``v = 1``,
    which is what PN expansions in ``1/c`` need (the ``v`` dependence already
    sits in the coefficients). In that case the lengths may differ and the
    result equals zero-padding the shorter input to the longer length.
    """
    if v is not None:
        return series_product(a, series_inverse(b), v)

    n1, n2 = len(a), len(b)
    if n2 == 0:
        raise TruncatedSeriesError("series_ratio: the denominator must have at least one term.")
    if n1 == 0:
        return zero_like(b[0])
    if is_zero(b[0]):
        raise TruncatedSeriesError("Cannot invert a series whose leading coefficient is zero.")

    n = max(n1, n2) - 1
    zero = zero_like(a[0]) + zero_like(b[0])

    # inverse of b truncated at n rather than at len(b) - 1
    binv = efficient_vector(n + 1, zero)
    binv[0] = one_like(zero) / b[0]
    for i in range(n):
        binv[i + 1] = -binv[0] * sum(
            (b[j] * binv[i + 1 - j] for j in range(1, min(i + 1, n2 - 1) + 1)), zero
        )

    ratio = zero
    for i1 in range(n1):
        ratio += a[i1] * sum((binv[i2] for i2 in range(n - i1 + 1)), zero)
    return ratio
