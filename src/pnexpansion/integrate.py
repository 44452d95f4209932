from __future__ import annotations

import logging
import time
from typing import Optional

import numpy as np
from numpy.typing import NDArray
from scipy.integrate import solve_ivp

from .config import BinaryParams, PNParams, SimParams
from .context import Reducer
from .formulas import binding_energy
from .rhs import RhsFun, rhs_for

log = logging.getLogger(__name__)


def initial_state(sim: SimParams) -> NDArray[np.float64]:
    # [v, orbital phase]
    return np.array([sim.v0, 0.0], dtype=float)


def _energy(y: NDArray[np.float64], binary: BinaryParams, pn: PNParams) -> float:
    ctx = pn.context(Reducer.SUM)
    return float(binding_energy(ctx, ctx.cast(binary.M), ctx.cast(binary.nu), ctx.cast(y[0])))


def integrate_inspiral(binary: BinaryParams,
                       pn: PNParams,
                       sim: SimParams,
                       max_runtime_sec=None,
                       rhs_fun: Optional[RhsFun] = None) -> dict:
    """Forward integration of the orbital velocity and phase from ``v0`` to ``v_final``.

    Stops on the terminal ``v = v_final`` event, at ``t_max``, on wall-clock
    timeout, or when the state stops being finite. Errors raised while
    evaluating the truncated series are not caught.
    """
    ctx = pn.context(Reducer.SUM)
    fun_rhs = rhs_fun if rhs_fun is not None else rhs_for(pn.approximant)
    y0 = initial_state(sim)

    start = time.time()
    if max_runtime_sec is None:
        max_wall = float(getattr(sim, "max_walltime_sec", 0.0) or 0.0)
    else:
        max_wall = float(max_runtime_sec)

    def fun(t, yy):
        if max_wall > 0.0 and (time.time() - start) > max_wall:
            raise TimeoutError(f"max_walltime_sec={max_wall} exceeded")
        return fun_rhs(t, yy, ctx, binary)

    def ev_v_final(t, yy):
        return yy[0] - sim.v_final
    ev_v_final.terminal = True
    ev_v_final.direction = 1

    max_step = sim.max_step
    if max_step is None or not np.isfinite(max_step) or max_step <= 0:
        max_step = np.inf

    log.info("integrating %s at %sPN (dtype=%s, nu=%.4g) from v=%g to v=%g",
             pn.approximant, pn.pn_order, pn.dtype, binary.nu, sim.v0, sim.v_final)

    try:
        sol = solve_ivp(
            fun, (0.0, sim.t_max), y0,
            method=sim.method,
            rtol=sim.rtol, atol=sim.atol,
            max_step=max_step,
            events=[ev_v_final],
        )
    except TimeoutError:
        log.warning("integration aborted after %.1fs wall time", max_wall)
        runtime = time.time() - start
        return {
            "T": np.array([0.0]),
            "Y": y0[None, :],
            "t_end": 0.0,
            "v_end": float(y0[0]),
            "phi_end": 0.0,
            "n_orbits": 0.0,
            "stop_reason": "walltime",
            "E0": _energy(y0, binary, pn),
            "E_end": _energy(y0, binary, pn),
            "runtime_sec": float(runtime),
            "solver_success": False,
            "solver_status": -2,
            "solver_message": f"Aborted: walltime exceeded ({max_wall}s)",
        }

    solver_success = bool(sol.success)
    solver_status = int(sol.status)
    solver_message = str(sol.message)

    T = np.asarray(sol.t, dtype=float)
    Y = np.asarray(sol.y.T, dtype=float)

    if solver_status == 1:
        stop_reason = "v_final"
    elif solver_status == 0:
        stop_reason = "t_max"
    else:
        stop_reason = "solver_failed"

    # keep the finite prefix
    finite = np.all(np.isfinite(Y), axis=1)
    if not np.all(finite):
        n_ok = int(np.argmin(finite))
        T, Y = T[:max(n_ok, 1)], Y[:max(n_ok, 1)]
        solver_success = False
        solver_status = -5
        solver_message = "Non-finite state encountered (nan/inf)"
        stop_reason = "nonfinite"

    runtime = time.time() - start
    v_end, phi_end = float(Y[-1, 0]), float(Y[-1, 1])
    log.info("stopped at t=%.6g (v=%.6g, %s) after %d steps in %.2fs",
             T[-1], v_end, stop_reason, len(T), runtime)
    if stop_reason != "v_final":
        log.warning("integration ended without reaching v_final: %s", solver_message)

    return {
        "T": T,
        "Y": Y,
        "t_end": float(T[-1]),
        "v_end": v_end,
        "phi_end": phi_end,
        "n_orbits": phi_end / (2.0 * np.pi),
        "stop_reason": stop_reason,
        "E0": _energy(Y[0], binary, pn),
        "E_end": _energy(Y[-1], binary, pn),
        "runtime_sec": float(runtime),
        "solver_success": bool(solver_success),
        "solver_status": int(solver_status),
        "solver_message": str(solver_message),
    }
