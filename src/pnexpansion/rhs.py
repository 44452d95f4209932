from __future__ import annotations

from typing import Callable, Dict

import numpy as np
from numpy.typing import NDArray

from .config import BinaryParams
from .context import PNContext, Reducer
from .formulas import binding_energy_deriv, gw_energy_flux
from .truncated_series import series_ratio


def unpack(y: NDArray[np.float64]) -> tuple[float, float]:
    # state is [v, orbital phase]
    return float(y[0]), float(y[1])


def _pack(vdot, v, M) -> NDArray[np.float64]:
    out = np.empty(2, dtype=float)
    out[0] = float(vdot)
    out[1] = float(v) ** 3 / M  # orbital frequency
    return out


def rhs_taylor_t1(t: float, y: NDArray[np.float64], ctx: PNContext, binary: BinaryParams) -> NDArray[np.float64]:
    """TaylorT1: dv/dt = -F / E' with flux and dE/dv summed separately."""
    ctx = ctx.with_reducer(Reducer.SUM)
    v, _ = unpack(y)
    M, nu, v = ctx.cast(binary.M), ctx.cast(binary.nu), ctx.cast(v)
    F = gw_energy_flux(ctx, nu, v)
    dE = binding_energy_deriv(ctx, M, nu, v)
    return _pack(-F / dE, v, binary.M)


def rhs_taylor_t4(t: float, y: NDArray[np.float64], ctx: PNContext, binary: BinaryParams) -> NDArray[np.float64]:
    """TaylorT4: dv/dt = -F / E' re-expanded as a single truncated series."""
    ctx = ctx.with_reducer(Reducer.IDENTITY)
    v, _ = unpack(y)
    M, nu, v = ctx.cast(binary.M), ctx.cast(binary.nu), ctx.cast(v)
    F = gw_energy_flux(ctx, nu, v)
    dE = binding_energy_deriv(ctx, M, nu, v)
    return _pack(-series_ratio(F, dE), v, binary.M)


def rhs_taylor_t5(t: float, y: NDArray[np.float64], ctx: PNContext, binary: BinaryParams) -> NDArray[np.float64]:
    """TaylorT5: dv/dt = -1 / (E'/F), expanding the inverse ratio instead."""
    ctx = ctx.with_reducer(Reducer.IDENTITY)
    v, _ = unpack(y)
    M, nu, v = ctx.cast(binary.M), ctx.cast(binary.nu), ctx.cast(v)
    F = gw_energy_flux(ctx, nu, v)
    dE = binding_energy_deriv(ctx, M, nu, v)
    return _pack(-1 / series_ratio(dE, F), v, binary.M)


RhsFun = Callable[[float, NDArray[np.float64], PNContext, BinaryParams], NDArray[np.float64]]

RHS_BY_APPROXIMANT: Dict[str, RhsFun] = {
    "TaylorT1": rhs_taylor_t1,
    "TaylorT4": rhs_taylor_t4,
    "TaylorT5": rhs_taylor_t5,
}


def rhs_for(approximant: str) -> RhsFun:
    try:
        return RHS_BY_APPROXIMANT[approximant]
    except KeyError:
        raise ValueError(
            f"unknown approximant {approximant!r}; expected one of {sorted(RHS_BY_APPROXIMANT)}"
        ) from None
