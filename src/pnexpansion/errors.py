from __future__ import annotations


class TruncatedSeriesError(ValueError):
    """An operation that is structurally inconsistent with the declared truncation order.

    Raised for: adding a negative-order term, combining series with different
    ceilings, building an expansion with 0 or more than ``ceiling + 1``
    coefficients, multiplying by a negative-order term when that would drop a
    nonzero low-order coefficient, square roots of odd-order terms, and
    inverting a series with a zero leading coefficient.
    """
