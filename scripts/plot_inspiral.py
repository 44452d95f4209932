#!/usr/bin/env python
from __future__ import annotations

import os
import glob
import argparse

import numpy as np
import pandas as pd

from pnexpansion.plotting import (
    FigureConfig, ensure_dir, plot_orbits_vs_pn_order, plot_phase_difference,
    plot_velocity_evolution, set_paper_style,
)


def main():
    ap = argparse.ArgumentParser(description="Figures from scan_pn_orders.py output.")
    ap.add_argument("--scan_dir", required=True, help="Directory holding pn_order_scan.csv (and raw/)")
    ap.add_argument("--out_dir", default=None)
    ap.add_argument("--fmt", default="pdf")
    ap.add_argument("--reference", default="TaylorT1")
    args = ap.parse_args()

    cfg = FigureConfig(fmt=args.fmt)
    set_paper_style(cfg)
    out_dir = args.out_dir or os.path.join(args.scan_dir, "figures")
    ensure_dir(out_dir)

    df = pd.read_csv(os.path.join(args.scan_dir, "pn_order_scan.csv"))
    df = df[df["stop_reason"] == "v_final"]
    if len(df) == 0:
        raise SystemExit("no run reached v_final; nothing to plot")

    for q in sorted(df["mass_ratio"].unique()):
        path = os.path.join(out_dir, f"orbits_vs_pn_order_q{q:g}.{cfg.fmt}")
        plot_orbits_vs_pn_order(df, path, cfg, mass_ratio=q)
        print("Saved:", path)

    path = os.path.join(out_dir, f"phase_difference.{cfg.fmt}")
    plot_phase_difference(df, path, cfg, reference=args.reference)
    print("Saved:", path)

    raw = sorted(glob.glob(os.path.join(args.scan_dir, "raw", "inspiral_*.npz")))
    if raw:
        runs = []
        for p in raw:
            dat = np.load(p)
            label = os.path.basename(p)[len("inspiral_"):-len(".npz")]
            runs.append((label, dat["T"].astype(float), dat["Y"].astype(float)))
        path = os.path.join(out_dir, f"velocity_evolution.{cfg.fmt}")
        plot_velocity_evolution(runs, path, cfg)
        print("Saved:", path)


if __name__ == "__main__":
    main()
