# go-enrichment-viz/src/go_enrichment_viz/viz.py
from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.cm import ScalarMappable
from matplotlib.colors import LinearSegmentedColormap, Normalize
from matplotlib.figure import Figure

from .config import VizConfig
from .schema import TermTable

logger = logging.getLogger(__name__)

# ggplot-like point sizes (mm-ish diameters) -> matplotlib marker area (pt^2)
_SIZE_TO_AREA = 6.0

PVALUE_LABEL = "-log10(p-value)"


def apply_pub_style(config: VizConfig) -> None:
    """Apply publication-style matplotlib rcParams.

    Notes
    -----
    This mutates global matplotlib rcParams for the current Python process.
    """
    plt.rcParams.update(
        {
            "font.size": config.font_size_axis_text,
            "axes.titlesize": config.font_size_plot_title,
            "axes.titleweight": "bold",
            "axes.labelsize": config.font_size_axis_title,
            "axes.labelweight": "bold",
            "xtick.labelsize": config.font_size_axis_text,
            "ytick.labelsize": config.font_size_axis_text,
            "legend.fontsize": config.font_size_axis_text,
            "axes.linewidth": 1.1,
        }
    )


def gradient_cmap(low: str, high: str, name: str = "low_high") -> LinearSegmentedColormap:
    """Two-colour gradient, equivalent to ggplot's scale_*_gradient(low, high)."""
    return LinearSegmentedColormap.from_list(name, [low, high])


def value_norm(values: np.ndarray) -> Normalize:
    finite = values[np.isfinite(values)]
    vmin = float(finite.min()) if finite.size else 0.0
    vmax = float(finite.max()) if finite.size else 1.0
    if vmax <= vmin:
        vmax = vmin + 1e-9
    return Normalize(vmin=vmin, vmax=vmax)


def scale_sizes(values: np.ndarray, lo: float, hi: float) -> np.ndarray:
    """
    Linearly rescale `values` into [lo, hi] (marker diameters).

    Constant or non-finite inputs map to the midpoint.
    """
    v = np.asarray(values, dtype=float)
    out = np.full(v.shape, (lo + hi) / 2.0)
    finite = np.isfinite(v)
    if not finite.any():
        return out
    vmin = float(v[finite].min())
    vmax = float(v[finite].max())
    if vmax > vmin:
        out[finite] = lo + (v[finite] - vmin) / (vmax - vmin) * (hi - lo)
    return out


def marker_area(diameters: np.ndarray) -> np.ndarray:
    return _SIZE_TO_AREA * np.asarray(diameters, dtype=float) ** 2


def _ordered(df: pd.DataFrame, primary: str, config: VizConfig) -> pd.DataFrame:
    # Ascending primary key (bottom -> top); ties broken by p-value.
    secondary_ascending = config.secondary_sort_order == "asc"
    if primary == "p_value":
        return df.sort_values("p_value", ascending=True, kind="mergesort")
    return df.sort_values(
        [primary, "p_value"], ascending=[True, secondary_ascending], kind="mergesort"
    )


def _require_rows(table: TermTable | None, what: str) -> pd.DataFrame:
    if table is None or table.empty:
        raise ValueError(f"No data available for {what}")
    return table.df.copy()


def plot_barplot(table: TermTable, title: str, config: VizConfig | None = None) -> Figure:
    """
    Horizontal bar chart of gene count per term, coloured by -log10(p).

    Ordering follows `config.barplot_sort_by` (largest value at the top).
    """
    cfg = config or VizConfig()
    df = _require_rows(table, "barplot")
    apply_pub_style(cfg)

    primary = "count" if cfg.barplot_sort_by == "count" else "p_value"
    df = _ordered(df, primary, cfg)

    colors = df["neg_log10_p"].to_numpy(dtype=float)
    cmap = gradient_cmap(cfg.color_low, cfg.color_high)
    norm = value_norm(colors)

    n = len(df)
    fig, ax = plt.subplots(figsize=(cfg.plot_width, cfg.plot_height))
    ax.barh(range(n), df["count"].to_numpy(dtype=float), color=cmap(norm(colors)), height=0.8)
    ax.set_yticks(range(n))
    ax.set_yticklabels(df["term_name"].tolist())
    ax.set_xlabel("Gene Count")
    ax.set_ylabel("GO Term")
    ax.set_title(title)
    ax.grid(axis="x", alpha=0.20)
    for spine in ("top", "right"):
        ax.spines[spine].set_visible(False)

    sm = ScalarMappable(norm=norm, cmap=cmap)
    fig.colorbar(sm, ax=ax, label=PVALUE_LABEL)
    fig.tight_layout()
    return fig


def plot_dotplot(table: TermTable, title: str, config: VizConfig | None = None) -> Figure:
    """
    Dot plot of gene ratio per term.

    Point size encodes gene count (configured size range); colour encodes -log10(p).
    """
    cfg = config or VizConfig()
    df = _require_rows(table, "dotplot")
    apply_pub_style(cfg)

    primary = "gene_ratio" if cfg.dotplot_sort_by == "gene_ratio" else "p_value"
    df = _ordered(df, primary, cfg)

    colors = df["neg_log10_p"].to_numpy(dtype=float)
    counts = df["count"].to_numpy(dtype=float)
    cmap = gradient_cmap(cfg.color_low, cfg.color_high)
    norm = value_norm(colors)
    diam = scale_sizes(counts, cfg.point_size_min, cfg.point_size_max)

    n = len(df)
    fig, ax = plt.subplots(figsize=(cfg.plot_width, cfg.plot_height))
    ax.scatter(
        df["gene_ratio"].to_numpy(dtype=float),
        range(n),
        s=marker_area(diam),
        c=colors,
        cmap=cmap,
        norm=norm,
        edgecolors="none",
    )
    ax.set_yticks(range(n))
    ax.set_yticklabels(df["term_name"].tolist(), fontsize=cfg.font_size_dotplot_y)
    ax.set_xlabel("Gene Ratio")
    ax.set_ylabel("GO Term")
    ax.set_title(title)
    ax.grid(alpha=0.20)

    # size legend: smallest / largest count
    finite = np.isfinite(counts)
    if finite.any():
        lo_c, hi_c = float(counts[finite].min()), float(counts[finite].max())
        legend_counts = [lo_c] if hi_c == lo_c else [lo_c, hi_c]
        legend_diam = scale_sizes(
            np.array(legend_counts), cfg.point_size_min, cfg.point_size_max
        )
        for c, d in zip(legend_counts, legend_diam, strict=True):
            ax.scatter([], [], s=float(marker_area(d)), color="gray", label=f"{c:g}")
        ax.legend(title="Gene Count", loc="lower right", frameon=False)

    sm = ScalarMappable(norm=norm, cmap=cmap)
    fig.colorbar(sm, ax=ax, label=PVALUE_LABEL)
    fig.tight_layout()
    return fig


def save_figure(
    fig: Figure,
    path: str | Path,
    *,
    config: VizConfig | None = None,
    width: float | None = None,
    height: float | None = None,
) -> Path:
    """Write `fig` to `path` (parent dirs created) and close it."""
    cfg = config or VizConfig()
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.set_size_inches(width or cfg.plot_width, height or cfg.plot_height)
    try:
        fig.savefig(out, dpi=int(cfg.output_dpi))
    finally:
        plt.close(fig)
    logger.debug("Figure saved: %s", out)
    return out
