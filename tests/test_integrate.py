import numpy as np
import pytest

from pnexpansion.config import BinaryParams, PNParams, SimParams
from pnexpansion.context import PNContext
from pnexpansion.errors import TruncatedSeriesError
from pnexpansion.integrate import initial_state, integrate_inspiral
from pnexpansion.rhs import RHS_BY_APPROXIMANT, rhs_for, rhs_taylor_t1, rhs_taylor_t4, rhs_taylor_t5, unpack

BINARY = BinaryParams(M1=0.5, M2=0.5)
SHORT = SimParams(v0=0.2, v_final=0.25, rtol=1e-11, atol=1e-13)


def newtonian_time_and_phase(nu, M, v0, v1):
    # dv/dt = 32/5 nu v^9 / M and dphi/dt = v^3 / M
    t = 5 * M / (256 * nu) * (v0**-8 - v1**-8)
    phi = (v0**-5 - v1**-5) / (32 * nu)
    return t, phi


def test_unpack_state():
    v, phi = unpack(np.array([0.25, 3.0]))
    assert (v, phi) == (0.25, 3.0)
    assert type(v) is float and type(phi) is float


def test_rhs_ignores_phase():
    ctx = PNContext.from_pn_order(2)
    for rhs in RHS_BY_APPROXIMANT.values():
        a = rhs(0.0, np.array([0.3, 0.0]), ctx, BINARY)
        b = rhs(5.0, np.array([0.3, 40.0]), ctx, BINARY)
        np.testing.assert_array_equal(a, b)


def test_rhs_newtonian_value():
    ctx = PNContext(0)
    y = np.array([0.3, 1.0])
    nu, M = BINARY.nu, BINARY.M
    for rhs in (rhs_taylor_t1, rhs_taylor_t4, rhs_taylor_t5):
        dy = rhs(0.0, y, ctx, BINARY)
        assert dy[0] == pytest.approx(32 / 5 * nu * 0.3**9 / M), rhs.__name__
        assert dy[1] == pytest.approx(0.3**3 / M)


def test_approximants_differ_only_beyond_pn_order():
    ctx = PNContext.from_pn_order(3.5)
    y = np.array([0.3, 0.0])
    t1 = rhs_taylor_t1(0.0, y, ctx, BINARY)[0]
    t4 = rhs_taylor_t4(0.0, y, ctx, BINARY)[0]
    t5 = rhs_taylor_t5(0.0, y, ctx, BINARY)[0]
    assert t1 > 0 and t4 > 0 and t5 > 0
    # differences enter at relative order v^8
    assert t4 == pytest.approx(t1, rel=5e-2)
    assert t5 == pytest.approx(t1, rel=5e-2)
    assert t4 != t1


def test_rhs_registry():
    assert set(RHS_BY_APPROXIMANT) == {"TaylorT1", "TaylorT4", "TaylorT5"}
    assert rhs_for("TaylorT4") is rhs_taylor_t4
    with pytest.raises(ValueError, match="unknown approximant"):
        rhs_for("TaylorF2")


@pytest.mark.parametrize("approximant", ["TaylorT1", "TaylorT4", "TaylorT5"])
def test_newtonian_inspiral_matches_closed_form(approximant):
    pn = PNParams(pn_order=0, approximant=approximant)
    res = integrate_inspiral(BINARY, pn, SHORT)
    assert res["stop_reason"] == "v_final", res["solver_message"]
    assert res["v_end"] == pytest.approx(SHORT.v_final, rel=1e-9)
    t, phi = newtonian_time_and_phase(BINARY.nu, BINARY.M, SHORT.v0, SHORT.v_final)
    assert res["t_end"] == pytest.approx(t, rel=1e-6)
    assert res["phi_end"] == pytest.approx(phi, rel=1e-6)
    assert res["n_orbits"] == pytest.approx(phi / (2 * np.pi), rel=1e-6)


def test_inspiral_monotonic_and_energy_decreasing():
    res = integrate_inspiral(BINARY, PNParams(pn_order=3.5), SHORT)
    assert res["stop_reason"] == "v_final"
    Y = res["Y"]
    assert np.all(np.diff(Y[:, 0]) > 0), "v must increase"
    assert np.all(np.diff(Y[:, 1]) > 0), "phase must increase"
    assert res["E_end"] < res["E0"] < 0
    np.testing.assert_allclose(Y[0], initial_state(SHORT))


def test_approximants_agree_at_low_velocity():
    phases = {}
    for approximant in RHS_BY_APPROXIMANT:
        res = integrate_inspiral(BINARY, PNParams(pn_order=3.5, approximant=approximant), SHORT)
        phases[approximant] = res["phi_end"]
    ref = phases["TaylorT1"]
    for approximant, phi in phases.items():
        assert phi == pytest.approx(ref, rel=5e-2), f"{approximant}: {phi} vs {ref}"


def test_float32_coefficients():
    res = integrate_inspiral(BINARY, PNParams(pn_order=2, dtype="float32"),
                             SimParams(v0=0.2, v_final=0.25, rtol=1e-6, atol=1e-9))
    ref = integrate_inspiral(BINARY, PNParams(pn_order=2), SimParams(v0=0.2, v_final=0.25, rtol=1e-6, atol=1e-9))
    assert res["stop_reason"] == "v_final"
    assert res["t_end"] == pytest.approx(ref["t_end"], rel=1e-3)


def test_t_max_stop():
    sim = SimParams(v0=0.2, v_final=0.25, t_max=100.0)
    res = integrate_inspiral(BINARY, PNParams(pn_order=1), sim)
    assert res["stop_reason"] == "t_max"
    assert res["t_end"] == pytest.approx(100.0)
    assert res["v_end"] < sim.v_final


def test_walltime_guard():
    res = integrate_inspiral(BINARY, PNParams(pn_order=1), SHORT, max_runtime_sec=1e-9)
    assert res["stop_reason"] == "walltime"
    assert res["solver_status"] == -2
    assert not res["solver_success"]


def test_truncated_series_errors_propagate():
    def bad_rhs(t, y, ctx, binary):
        raise TruncatedSeriesError("boom")

    with pytest.raises(TruncatedSeriesError, match="boom"):
        integrate_inspiral(BINARY, PNParams(pn_order=1), SHORT, rhs_fun=bad_rhs)
