#!/usr/bin/env python
from __future__ import annotations

import os
import argparse
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from typing import Any, Dict

import numpy as np
import pandas as pd
from tqdm import tqdm

from pnexpansion.config import InspiralConfig, PNParams, binary_from_mass_ratio, load_inspiral_config
from pnexpansion.errors import TruncatedSeriesError
from pnexpansion.integrate import integrate_inspiral


def _set_thread_env():
    # one BLAS thread per worker process
    os.environ.setdefault("OMP_NUM_THREADS", "1")
    os.environ.setdefault("OPENBLAS_NUM_THREADS", "1")
    os.environ.setdefault("MKL_NUM_THREADS", "1")


def build_tasks(cfg: InspiralConfig) -> list[Dict[str, Any]]:
    tasks = []
    for q in cfg.scan.mass_ratios:
        for pn_order in cfg.scan.pn_orders:
            for approximant in cfg.scan.approximants:
                tasks.append({
                    "mass_ratio": float(q),
                    "pn": PNParams(pn_order=float(pn_order), dtype=cfg.pn.dtype, approximant=approximant),
                    "sim": cfg.sim,
                    "raw_dir": os.path.join(cfg.output.out_dir, "raw") if cfg.output.store_raw else "",
                })
    return tasks


def one_task(task: Dict[str, Any]) -> Dict[str, Any]:
    q, pn, sim = task["mass_ratio"], task["pn"], task["sim"]
    binary = binary_from_mass_ratio(q)
    res = integrate_inspiral(binary, pn, sim)
    if task["raw_dir"]:
        path = os.path.join(task["raw_dir"], f"inspiral_q{q:g}_{pn.approximant}_pn{pn.pn_order:g}.npz")
        np.savez_compressed(path, T=res["T"], Y=res["Y"])
    row = {k: v for k, v in res.items() if k not in ("T", "Y")}
    row.update({
        "mass_ratio": q,
        "nu": binary.nu,
        "pn_order": pn.pn_order,
        "approximant": pn.approximant,
        "dtype": pn.dtype,
    })
    return row


def collect_row(fut: Future, task: Dict[str, Any]) -> Dict[str, Any]:
    """Result row of a finished task; solver-side failures become a ``failed`` row.

    Series-arithmetic errors are bugs in the formulas and are re-raised.
    """
    try:
        return fut.result()
    except TruncatedSeriesError:
        raise
    except Exception as e:
        return {
            "mass_ratio": task["mass_ratio"],
            "pn_order": task["pn"].pn_order,
            "approximant": task["pn"].approximant,
            "stop_reason": "failed",
            "error": repr(e),
        }


def main():
    _set_thread_env()

    ap = argparse.ArgumentParser(description="Scan PN order x approximant x mass ratio.")
    ap.add_argument("--config", default=None, help="Path to inspiral JSON config (defaults if omitted)")
    args = ap.parse_args()

    cfg = load_inspiral_config(args.config) if args.config else InspiralConfig()
    out_dir = cfg.output.out_dir
    os.makedirs(out_dir, exist_ok=True)
    if cfg.output.store_raw:
        os.makedirs(os.path.join(out_dir, "raw"), exist_ok=True)

    tasks = build_tasks(cfg)
    workers = cfg.parallel.workers or (os.cpu_count() or 4)

    rows = []
    with ProcessPoolExecutor(max_workers=workers) as ex:
        futs = {ex.submit(one_task, t): t for t in tasks}
        for fut in tqdm(as_completed(futs), total=len(futs)):
            rows.append(collect_row(fut, futs[fut]))

    df = pd.DataFrame(rows).sort_values(["mass_ratio", "approximant", "pn_order"])
    out_csv = os.path.join(out_dir, "pn_order_scan.csv")
    df.to_csv(out_csv, index=False)
    print("Saved:", out_csv)

    ok = df[df["stop_reason"] == "v_final"]
    if len(ok):
        print(ok.pivot_table(index="pn_order", columns="approximant", values="n_orbits").to_string())


if __name__ == "__main__":
    main()
