import numpy as np
import pandas as pd

from pnexpansion.plotting import (
    FigureConfig, plot_orbits_vs_pn_order, plot_phase_difference, plot_velocity_evolution, set_paper_style,
)


def scan_frame():
    rows = []
    for q in (1.0, 4.0):
        for approximant, offset in (("TaylorT1", 0.0), ("TaylorT4", 0.5)):
            for pn_order in (0.0, 1.0, 2.0):
                rows.append({
                    "mass_ratio": q,
                    "approximant": approximant,
                    "pn_order": pn_order,
                    "n_orbits": 30.0 - pn_order + offset,
                    "phi_end": 2 * np.pi * (30.0 - pn_order + offset),
                })
    return pd.DataFrame(rows)


def test_plots_write_files(tmp_path):
    cfg = FigureConfig(fmt="png", dpi=50)
    set_paper_style(cfg)

    T = np.linspace(0.0, 10.0, 20)
    Y = np.column_stack([np.linspace(0.2, 0.3, 20), np.linspace(0.0, 5.0, 20)])
    outputs = [
        tmp_path / "v.png",
        tmp_path / "orbits.png",
        tmp_path / "dphi.png",
    ]
    plot_velocity_evolution([("a", T, Y), ("b", T, Y * 1.01)], str(outputs[0]), cfg, title="v(t)")
    df = scan_frame()
    plot_orbits_vs_pn_order(df, str(outputs[1]), cfg, mass_ratio=4.0)
    plot_phase_difference(df, str(outputs[2]), cfg)
    for path in outputs:
        assert path.exists() and path.stat().st_size > 0, f"{path} not written"
