import importlib.util
from concurrent.futures import Future
from pathlib import Path

import pytest

from pnexpansion.config import PNParams, inspiral_config_from_dict
from pnexpansion.errors import TruncatedSeriesError

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "scan_pn_orders.py"


def load_scan_script():
    spec = importlib.util.spec_from_file_location("scan_pn_orders", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def finished(result=None, exc=None):
    fut = Future()
    if exc is not None:
        fut.set_exception(exc)
    else:
        fut.set_result(result)
    return fut


TASK = {"mass_ratio": 2.0, "pn": PNParams(pn_order=2.5, approximant="TaylorT4")}


def test_collect_row_passes_results_through():
    scan = load_scan_script()
    row = {"stop_reason": "v_final", "n_orbits": 12.0}
    assert scan.collect_row(finished(row), TASK) == row


def test_collect_row_records_solver_failures():
    scan = load_scan_script()
    row = scan.collect_row(finished(exc=RuntimeError("step size too small")), TASK)
    assert row["stop_reason"] == "failed"
    assert row["pn_order"] == 2.5 and row["approximant"] == "TaylorT4" and row["mass_ratio"] == 2.0
    assert "step size too small" in row["error"]


def test_collect_row_reraises_series_errors():
    scan = load_scan_script()
    with pytest.raises(TruncatedSeriesError, match="ceiling"):
        scan.collect_row(finished(exc=TruncatedSeriesError("ceiling mismatch")), TASK)


def test_build_tasks_covers_grid():
    scan = load_scan_script()
    cfg = inspiral_config_from_dict({
        "scan": {"pn_orders": [0, 1], "approximants": ["TaylorT1", "TaylorT5"], "mass_ratios": [1.0, 3.0]},
        "output": {"store_raw": False},
    })
    tasks = scan.build_tasks(cfg)
    assert len(tasks) == 8
    assert {(t["mass_ratio"], t["pn"].pn_order, t["pn"].approximant) for t in tasks} == {
        (q, float(o), a) for q in (1.0, 3.0) for o in (0, 1) for a in ("TaylorT1", "TaylorT5")
    }
    assert all(t["raw_dir"] == "" for t in tasks)
