from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd

# plotting scripts import this module; the engine itself never does
import matplotlib
matplotlib.use("Agg", force=True)  # headless
import matplotlib.pyplot as plt


@dataclass(frozen=True)
class FigureConfig:
    fmt: str = "pdf"          # "pdf", "png", "svg"
    dpi: int = 300            # raster formats only
    fontsize: float = 10.0
    use_tex: bool = False
    tight: bool = True
    pad_inches: float = 0.02
    figsize: Tuple[float, float] = (3.4, 2.6)


def set_paper_style(cfg: FigureConfig) -> None:
    small = max(6.0, cfg.fontsize - 2.0)
    plt.rcParams.update({
        "figure.figsize": cfg.figsize,
        "savefig.dpi": cfg.dpi,
        "font.size": cfg.fontsize,
        "axes.labelsize": cfg.fontsize,
        "axes.titlesize": cfg.fontsize,
        "legend.fontsize": small,
        "xtick.labelsize": small,
        "ytick.labelsize": small,
        "xtick.direction": "in",
        "ytick.direction": "in",
        "xtick.minor.visible": True,
        "ytick.minor.visible": True,
        "legend.frameon": False,
        "lines.linewidth": 1.2,
        "pdf.fonttype": 42,
    })
    if cfg.use_tex:
        plt.rcParams.update({"text.usetex": True, "font.family": "serif"})


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def savefig(fig: plt.Figure, path: str, cfg: FigureConfig) -> None:
    kwargs = {}
    if cfg.tight:
        kwargs["bbox_inches"] = "tight"
        kwargs["pad_inches"] = cfg.pad_inches
    if path.lower().endswith((".png", ".jpg", ".jpeg", ".tif", ".tiff")):
        kwargs["dpi"] = cfg.dpi
    fig.savefig(path, **kwargs)
    plt.close(fig)


def plot_velocity_evolution(runs: Iterable[Tuple[str, np.ndarray, np.ndarray]],
                            out_path: str, cfg: FigureConfig, title: str = "") -> None:
    """v(t) for several runs, each given as ``(label, T, Y)``; time measured back from the end."""
    fig, ax = plt.subplots()
    for label, T, Y in runs:
        ax.plot(T - T[-1], Y[:, 0], label=label)
    ax.set_xlabel(r"$(t - t_{\rm end})/M$")
    ax.set_ylabel(r"$v$")
    ax.legend()
    if title:
        ax.set_title(title)
    savefig(fig, out_path, cfg)


def plot_orbits_vs_pn_order(df: pd.DataFrame, out_path: str, cfg: FigureConfig,
                            mass_ratio: Optional[float] = None) -> None:
    """Number of orbits to ``v_final`` against PN order, one line per approximant."""
    if mass_ratio is not None:
        df = df[np.isclose(df["mass_ratio"], mass_ratio)]
    fig, ax = plt.subplots()
    for approximant, group in df.groupby("approximant"):
        group = group.sort_values("pn_order")
        ax.plot(group["pn_order"], group["n_orbits"], marker="o", label=approximant)
    ax.set_xlabel("PN order")
    ax.set_ylabel(r"$N_{\rm orb}$")
    ax.legend()
    savefig(fig, out_path, cfg)


def plot_phase_difference(df: pd.DataFrame, out_path: str, cfg: FigureConfig,
                          reference: str = "TaylorT1") -> None:
    """|Delta phi| at ``v_final`` of each approximant relative to ``reference``."""
    fig, ax = plt.subplots()
    for mass_ratio, by_q in df.groupby("mass_ratio"):
        ref = by_q[by_q["approximant"] == reference].set_index("pn_order")["phi_end"]
        for approximant, group in by_q.groupby("approximant"):
            if approximant == reference:
                continue
            diff = group.set_index("pn_order")["phi_end"] - ref
            diff = diff.dropna().sort_index()
            ax.semilogy(diff.index, np.abs(diff.values) + 1e-16, marker="o",
                        label=f"{approximant}, q={mass_ratio:g}")
    ax.set_xlabel("PN order")
    ax.set_ylabel(rf"$|\Delta\phi|$ vs {reference}")
    ax.legend()
    savefig(fig, out_path, cfg)
