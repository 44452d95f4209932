"""Non-spinning quasi-circular PN quantities in geometric units (G = c = 1).

Each formula takes a :class:`~pnexpansion.context.PNContext` and the physical
variables ``M`` (total mass), ``nu`` (symmetric mass ratio) and ``v`` (orbital
velocity). Inside the bracketed series every power of ``v`` is paired with a
power of ``1/c`` through ``x = v / c``, so terms beyond the context's PN order
drop out automatically. The leading prefactors are applied after reduction.

With the ``SUM`` reducer each function returns a scalar; with ``IDENTITY``
it returns the :class:`~pnexpansion.expansion.Expansion` of per-order
contributions (prefactor included).
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Tuple

import sympy

from .context import PNContext, Reducer
from .expansion import Expansion
from .numeric import SYMPY_BACKEND

log = logging.getLogger(__name__)

# Newton steps for the 3PN gauge logarithm in the separation
_MAX_NEWTON_STEPS = 20


def binding_energy(ctx: PNContext, M: Any, nu: Any, v: Any) -> Any:
    """Binding energy through 3PN; Eq. (233) of Blanchet (2014)."""
    x = v / ctx.large_parameter()
    q, pi = ctx.q, ctx.pi
    e = ctx.expansion(
        1
        + x**2 * (q(-3, 4) - nu / 12)
        + x**4 * (q(-27, 8) + 19 * nu / 8 - nu**2 / 24)
        + x**6 * (
            q(-675, 64)
            + (q(34445, 576) - 205 * pi**2 / 96) * nu
            - 155 * nu**2 / 96
            - 35 * nu**3 / 5184
        )
    )
    return -M * nu * v**2 / 2 * e


def gw_energy_flux(ctx: PNContext, nu: Any, v: Any) -> Any:
    """Energy flux to infinity through 3.5PN; Eq. (314) of Blanchet (2014)."""
    x = v / ctx.large_parameter()
    q, pi, gamma_e = ctx.q, ctx.pi, ctx.euler_gamma
    ln2, lnv = ctx.ln(2), ctx.ln(v)
    f = ctx.expansion(
        1
        + x**2 * (q(-1247, 336) - 35 * nu / 12)
        + x**3 * (4 * pi)
        + x**4 * (q(-44711, 9072) + 9271 * nu / 504 + 65 * nu**2 / 18)
        + x**5 * ((q(-8191, 672) - 583 * nu / 24) * pi)
        + x**6 * (
            q(6643739519, 69854400)
            + 16 * pi**2 / 3
            - 1712 * (gamma_e + 2 * ln2 + lnv) / 105
            + (q(-134543, 7776) + 41 * pi**2 / 48) * nu
            - 94403 * nu**2 / 3024
            - 775 * nu**3 / 324
        )
        + x**7 * ((q(-16285, 504) + 214745 * nu / 1728 + 193385 * nu**2 / 3024) * pi)
    )
    return ctx.q(32, 5) * nu**2 * v**10 * f


def _separation_gamma0(ctx: PNContext, nu: Any, v: Any) -> Any:
    # gamma without the 3PN gauge logarithm; Eq. (4.3) of Bohe et al. (2013)
    x = v / ctx.large_parameter()
    q, pi = ctx.q, ctx.pi
    g = ctx.expansion(
        1
        + x**2 * (1 - nu / 3)
        + x**4 * (1 - 65 * nu / 12)
        + x**6 * (
            1
            + (q(-2203, 2520) - 41 * pi**2 / 192) * nu
            + 229 * nu**2 / 36
            + nu**3 / 81
        )
    )
    return v**2 * g


def separation_gamma(ctx: PNContext, nu: Any, v: Any) -> Any:
    """The PN parameter ``gamma = M / r`` through 3PN.

    At 3PN the separation carries a gauge term ``-22 nu/3 * v**8 * ln(r/M)``,
    and ``ln(r/M) = -ln(gamma)`` makes the definition implicit. The
    correction ``dg`` solving ``gamma = gamma0 - a ln(gamma)``, with
    ``a = 22 nu v**8 / 3``, is found with a few Newton steps starting from
    ``gamma0``. With the ``IDENTITY`` reducer it is folded into the order-6
    coefficient.
    """
    g0 = _separation_gamma0(ctx, nu, v)
    if ctx.ceiling < 6:
        return g0

    eps = ctx.backend.eps(ctx.dtype)
    if eps is None:
        raise ValueError(
            f"separation_gamma needs a numeric coefficient type to solve for the "
            f"gauge logarithm; got {ctx.dtype!r}"
        )

    a = 22 * nu * v**8 / 3
    gamma0 = g0.sum() if isinstance(g0, Expansion) else g0
    dg = ctx.convert(0)
    for _ in range(_MAX_NEWTON_STEPS):
        gamma_i = gamma0 + dg
        step = -(dg + a * ctx.ln(gamma_i)) / (1 + a / gamma_i)
        dg = dg + step
        if abs(step) < 10 * eps * abs(gamma_i):
            break
    else:
        log.warning("separation_gamma: Newton iteration did not converge (v=%s, nu=%s)", v, nu)

    if ctx.reducer is Reducer.SUM:
        return gamma0 + dg
    return Expansion(
        tuple(c + dg if i == 6 else c for i, c in enumerate(g0.coeffs)), g0.ceiling
    )


def orbital_separation(ctx: PNContext, M: Any, nu: Any, v: Any) -> Any:
    """Orbital separation ``r = M / gamma``."""
    return M / separation_gamma(ctx.with_reducer(Reducer.SUM), nu, v)


@functools.lru_cache(maxsize=None)
def _binding_energy_deriv_functions(ceiling: int, module: str) -> Tuple[Callable, ...]:
    """Compile the per-order coefficients of dE/dv for one ceiling and back end."""
    M, nu, v = sympy.symbols("M nu v", positive=True)
    ctx = PNContext(ceiling, sympy.Expr, Reducer.IDENTITY)
    dE = binding_energy(ctx, M, nu, v).derivative(v)
    log.debug("compiled dE/dv for ceiling=%d with %s (%d coefficients)", ceiling, module, len(dE))
    return tuple(sympy.lambdify((M, nu, v), sympy.expand(c), modules=module) for c in dE)


def binding_energy_deriv(ctx: PNContext, M: Any, nu: Any, v: Any) -> Any:
    """Derivative of :func:`binding_energy` with respect to ``v``.

    The energy is built symbolically with the ``IDENTITY`` reducer, each
    coefficient is differentiated, and the results are compiled for the
    context's numeric back end (cached per ceiling and back end). A symbolic
    context gets the differentiated expressions directly.
    """
    backend = ctx.backend
    if backend is SYMPY_BACKEND:
        dE = binding_energy(ctx.with_reducer(Reducer.IDENTITY), M, nu, v).derivative(v)
        return ctx.expansion(dE)

    functions = _binding_energy_deriv_functions(ctx.ceiling, backend.lambdify_module)
    coeffs = tuple(ctx.cast(f(M, nu, v)) for f in functions)
    return ctx.expansion(Expansion(coeffs, ctx.ceiling))
