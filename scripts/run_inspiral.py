#!/usr/bin/env python
from __future__ import annotations

import os
import json
import argparse
import logging
from dataclasses import replace

import numpy as np

from pnexpansion.config import InspiralConfig, load_inspiral_config, to_json
from pnexpansion.integrate import integrate_inspiral


def main():
    ap = argparse.ArgumentParser(description="Integrate one PN inspiral from v0 to v_final.")
    ap.add_argument("--config", default=None, help="Path to inspiral JSON config (defaults if omitted)")
    ap.add_argument("--pn_order", type=float, default=None, help="Override pn.pn_order")
    ap.add_argument("--approximant", default=None, help="Override pn.approximant")
    ap.add_argument("--dtype", default=None, help="Override pn.dtype")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    cfg = load_inspiral_config(args.config) if args.config else InspiralConfig()
    overrides = {k: getattr(args, k) for k in ("pn_order", "approximant", "dtype") if getattr(args, k) is not None}
    if overrides:
        cfg = replace(cfg, pn=replace(cfg.pn, **overrides))

    out_dir = cfg.output.out_dir
    os.makedirs(out_dir, exist_ok=True)
    to_json(cfg, os.path.join(out_dir, "config_used.json"))

    res = integrate_inspiral(cfg.binary, cfg.pn, cfg.sim)

    tag = f"{cfg.pn.approximant}_pn{cfg.pn.pn_order:g}_{cfg.pn.dtype}"
    if cfg.output.store_raw:
        raw_path = os.path.join(out_dir, f"inspiral_{tag}.npz")
        save = np.savez_compressed if cfg.output.compress_npz else np.savez
        save(raw_path, T=res["T"], Y=res["Y"])
        print("Saved:", raw_path)

    summary = {k: v for k, v in res.items() if k not in ("T", "Y")}
    summary_path = os.path.join(out_dir, f"summary_{tag}.json")
    with open(summary_path, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)
    print("Saved:", summary_path)
    print(f"t_end={res['t_end']:.6g} M  v_end={res['v_end']:.6g}  "
          f"orbits={res['n_orbits']:.3f}  stop={res['stop_reason']}")


if __name__ == "__main__":
    main()
