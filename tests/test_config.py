import json
import math
from fractions import Fraction
from pathlib import Path

import numpy as np
import pytest

from pnexpansion.config import (
    BinaryParams, InspiralConfig, PNParams, SimParams,
    binary_from_mass_ratio, inspiral_config_from_dict, load_inspiral_config, to_json,
)
from pnexpansion.context import PNContext, Reducer

DEFAULT_JSON = Path(__file__).resolve().parents[1] / "configs" / "inspiral_default.json"


def test_binary_derived_quantities():
    b = BinaryParams(M1=3.0, M2=1.0)
    assert b.M == 4.0
    assert b.nu == pytest.approx(3 / 16)
    assert b.delta == pytest.approx(0.5)
    assert BinaryParams().nu == pytest.approx(0.25)
    with pytest.raises(ValueError):
        BinaryParams(M1=0.0, M2=1.0)


def test_binary_from_mass_ratio():
    b = binary_from_mass_ratio(4.0, M=2.0)
    assert b.M1 == pytest.approx(1.6) and b.M2 == pytest.approx(0.4)
    flipped = binary_from_mass_ratio(0.25, M=2.0)
    assert (flipped.M1, flipped.M2) == pytest.approx((b.M1, b.M2))
    assert binary_from_mass_ratio(1.0).nu == pytest.approx(0.25)


def test_pn_params():
    pn = PNParams(pn_order=2.5, dtype="float32")
    assert pn.ceiling == 5
    assert pn.numeric_type is np.float32
    ctx = pn.context(Reducer.IDENTITY)
    assert ctx == PNContext(5, np.float32, Reducer.IDENTITY)
    assert PNParams(pn_order=1, dtype="fraction").context().dtype is Fraction


@pytest.mark.parametrize("kwargs", [
    {"pn_order": 1.25},
    {"pn_order": -1},
    {"dtype": "float16"},
    {"approximant": "TaylorF2"},
])
def test_pn_params_validation(kwargs):
    with pytest.raises(ValueError):
        PNParams(**kwargs)


@pytest.mark.parametrize("kwargs", [
    {"v0": 0.4, "v_final": 0.3},
    {"v0": 0.0},
    {"v_final": 1.0},
    {"t_max": 0.0},
])
def test_sim_params_validation(kwargs):
    with pytest.raises(ValueError):
        SimParams(**kwargs)


def test_load_default_config():
    cfg = load_inspiral_config(str(DEFAULT_JSON))
    assert isinstance(cfg, InspiralConfig)
    assert cfg.pn.pn_order == 3.5
    assert math.isinf(cfg.sim.max_step)
    assert cfg.sim.max_walltime_sec == 600.0
    assert cfg.scan.approximants == ["TaylorT1", "TaylorT4", "TaylorT5"]
    assert cfg.parallel.workers == 0


def test_partial_config_keeps_defaults():
    cfg = inspiral_config_from_dict({"pn": {"pn_order": 2}, "sim": {"v_final": 0.3}})
    assert cfg.pn.pn_order == 2 and cfg.pn.approximant == "TaylorT1"
    assert cfg.sim.v_final == 0.3 and cfg.sim.v0 == SimParams().v0
    assert cfg.binary == BinaryParams()


def test_unknown_keys_rejected():
    with pytest.raises(ValueError, match="unknown keys"):
        inspiral_config_from_dict({"pn": {"order": 2}})
    with pytest.raises(ValueError, match="unknown keys"):
        inspiral_config_from_dict({"solver": {}})


def test_to_json_round_trip(tmp_path):
    cfg = inspiral_config_from_dict({
        "binary": {"M1": 0.8, "M2": 0.2},
        "pn": {"pn_order": 3, "dtype": "mpf", "approximant": "TaylorT5"},
    })
    path = tmp_path / "cfg.json"
    to_json(cfg, str(path))
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["pn"]["dtype"] == "mpf"
    assert load_inspiral_config(str(path)) == cfg
