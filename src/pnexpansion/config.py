from __future__ import annotations

from dataclasses import dataclass, asdict, field
from fractions import Fraction
from typing import Any, Dict, List
import json

import mpmath
import numpy as np

from .context import PNContext, Reducer, ceiling_from_pn_order


# Coefficient types selectable by name in JSON configs.
DTYPES: Dict[str, Any] = {
    "float": float,
    "float64": np.float64,
    "float32": np.float32,
    "longdouble": np.longdouble,
    "mpf": mpmath.mpf,
    "fraction": Fraction,
}

APPROXIMANTS = ("TaylorT1", "TaylorT4", "TaylorT5")


@dataclass(frozen=True)
class BinaryParams:
    # component masses in geometric units (G = c = 1)
    M1: float = 0.5
    M2: float = 0.5

    def __post_init__(self):
        if not (self.M1 > 0 and self.M2 > 0):
            raise ValueError(f"masses must be positive; got M1={self.M1}, M2={self.M2}")

    @property
    def M(self) -> float:
        return float(self.M1 + self.M2)

    @property
    def nu(self) -> float:
        """Symmetric mass ratio M1 M2 / M^2."""
        return float(self.M1 * self.M2 / self.M**2)

    @property
    def delta(self) -> float:
        return float((self.M1 - self.M2) / self.M)


@dataclass(frozen=True)
class PNParams:
    # truncation order; a multiple of 1/2
    pn_order: float = 3.5
    # coefficient type, one of DTYPES
    dtype: str = "float"
    approximant: str = "TaylorT1"

    def __post_init__(self):
        ceiling_from_pn_order(self.pn_order)
        if self.dtype not in DTYPES:
            raise ValueError(f"unknown dtype {self.dtype!r}; expected one of {sorted(DTYPES)}")
        if self.approximant not in APPROXIMANTS:
            raise ValueError(f"unknown approximant {self.approximant!r}; expected one of {APPROXIMANTS}")

    @property
    def ceiling(self) -> int:
        return ceiling_from_pn_order(self.pn_order)

    @property
    def numeric_type(self) -> Any:
        return DTYPES[self.dtype]

    def context(self, reducer: Reducer = Reducer.SUM) -> PNContext:
        return PNContext(self.ceiling, self.numeric_type, reducer)


@dataclass(frozen=True)
class SimParams:
    # solve_ivp options
    method: str = "DOP853"
    rtol: float = 1e-10
    atol: float = 1e-12
    max_step: float = float('inf')

    # orbital velocity at start and at the terminal event
    v0: float = 0.2
    v_final: float = 0.4

    # time control, in units of M
    t_max: float = 1e8

    # Hard wall-clock limit for a single integration (seconds).
    # Set <= 0 to disable.
    max_walltime_sec: float = 0.0

    def __post_init__(self):
        if not (0.0 < self.v0 < self.v_final < 1.0):
            raise ValueError(f"need 0 < v0 < v_final < 1; got v0={self.v0}, v_final={self.v_final}")
        if self.t_max <= 0:
            raise ValueError(f"t_max must be positive; got {self.t_max}")


@dataclass(frozen=True)
class OutputParams:
    out_dir: str = "out_inspiral"
    store_raw: bool = True
    compress_npz: bool = True


@dataclass(frozen=True)
class ScanParams:
    # grid swept by scripts/scan_pn_orders.py
    pn_orders: List[float] = field(default_factory=lambda: [0.0, 1.0, 2.0, 3.0, 3.5])
    approximants: List[str] = field(default_factory=lambda: list(APPROXIMANTS))
    mass_ratios: List[float] = field(default_factory=lambda: [1.0])


@dataclass(frozen=True)
class ParallelParams:
    workers: int = 0  # 0 => use os.cpu_count()


@dataclass(frozen=True)
class InspiralConfig:
    binary: BinaryParams = BinaryParams()
    pn: PNParams = PNParams()
    sim: SimParams = SimParams()
    output: OutputParams = OutputParams()
    scan: ScanParams = ScanParams()
    parallel: ParallelParams = ParallelParams()


_NESTED = {
    "binary": BinaryParams,
    "pn": PNParams,
    "sim": SimParams,
    "output": OutputParams,
    "scan": ScanParams,
    "parallel": ParallelParams,
}


def _dataclass_from_dict(cls, d: Dict[str, Any]):
    unknown = set(d) - set(cls.__dataclass_fields__)  # type: ignore
    if unknown:
        raise ValueError(f"unknown keys for {cls.__name__}: {sorted(unknown)}")
    kwargs = {}
    for f in cls.__dataclass_fields__.values():  # type: ignore
        if f.name not in d:
            continue
        val = d[f.name]
        if f.name == 'max_step' and val is None:
            val = float('inf')
        kwargs[f.name] = val
    return cls(**kwargs)  # type: ignore


def inspiral_config_from_dict(d: Dict[str, Any]) -> InspiralConfig:
    d = dict(d)
    for key, cls in _NESTED.items():
        if key in d and isinstance(d[key], dict):
            d[key] = _dataclass_from_dict(cls, d[key])
    return _dataclass_from_dict(InspiralConfig, d)


def load_inspiral_config(path: str) -> InspiralConfig:
    with open(path, "r", encoding="utf-8") as f:
        d = json.load(f)
    return inspiral_config_from_dict(d)


def binary_from_mass_ratio(q: float, M: float = 1.0) -> BinaryParams:
    # q = M1/M2 >= 1 by convention; total mass M
    q = float(q)
    if q < 1.0:
        q = 1.0 / q
    M1 = M * q / (1.0 + q)
    M2 = M / (1.0 + q)
    return BinaryParams(M1=M1, M2=M2)


def to_json(obj: Any, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(obj), f, indent=2)
