# go-enrichment-viz/src/go_enrichment_viz/viz_network.py
from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.cm import ScalarMappable
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure

from .config import VizConfig
from .network import NetworkScene
from .viz import PVALUE_LABEL, apply_pub_style, gradient_cmap, marker_area, scale_sizes, value_norm

# Labels are drawn only for small networks.
MAX_LABELLED_NODES = 20

SIZE_LABELS = {
    "count": "count",
    "pvalue": "-log10(p-value)",
    "fold_enrichment": "log2(fold enrichment)",
}


def edge_alphas(weights: np.ndarray, lo: float = 0.3, hi: float = 1.0) -> np.ndarray:
    """Map similarity weights onto [lo, hi] opacity (constant weights -> hi)."""
    w = np.asarray(weights, dtype=float)
    if w.size == 0:
        return w
    wmin, wmax = float(w.min()), float(w.max())
    if wmax <= wmin:
        return np.full(w.shape, hi)
    return lo + (w - wmin) / (wmax - wmin) * (hi - lo)


def plot_network(
    scene: NetworkScene,
    title: str = "GO Term Network",
    config: VizConfig | None = None,
) -> Figure:
    """
    Draw a network scene: gray edges (opacity by similarity) under nodes sized by
    the scene's size metric and coloured by -log10(p).
    """
    cfg = config or VizConfig()
    if not scene.nodes:
        raise ValueError("No data available for network graph")
    apply_pub_style(cfg)

    xs = np.array([n.x for n in scene.nodes], dtype=float)
    ys = np.array([n.y for n in scene.nodes], dtype=float)
    sizes = np.array([n.size for n in scene.nodes], dtype=float)
    colors = np.array([n.color for n in scene.nodes], dtype=float)

    fig, ax = plt.subplots(figsize=(cfg.plot_width, cfg.plot_height))

    if scene.edges:
        segments = [((e.x0, e.y0), (e.x1, e.y1)) for e in scene.edges]
        alphas = edge_alphas(np.array([e.weight for e in scene.edges]))
        edge_colors = [(0.70, 0.70, 0.70, float(a)) for a in alphas]
        ax.add_collection(LineCollection(segments, colors=edge_colors, linewidths=0.8, zorder=1))

    cmap = gradient_cmap(cfg.color_low, cfg.color_high)
    norm = value_norm(colors)
    diam = scale_sizes(sizes, cfg.point_size_min, cfg.point_size_max)
    ax.scatter(
        xs, ys, s=marker_area(diam), c=colors, cmap=cmap, norm=norm, alpha=0.8, zorder=2
    )

    if len(scene.nodes) <= MAX_LABELLED_NODES:
        for n, d in zip(scene.nodes, diam, strict=True):
            ax.annotate(
                n.label,
                (n.x, n.y),
                xytext=(0, 0.9 * float(d) + 4),
                textcoords="offset points",
                ha="center",
                va="bottom",
                fontsize=8,
                zorder=3,
            )

    pad = 0.15 * max(float(np.ptp(xs)), float(np.ptp(ys)), 1.0)
    ax.set_xlim(float(xs.min()) - pad, float(xs.max()) + pad)
    ax.set_ylim(float(ys.min()) - pad, float(ys.max()) + pad)
    ax.set_aspect("equal", adjustable="datalim")
    ax.set_axis_off()
    ax.set_title(title)

    fig.colorbar(ScalarMappable(norm=norm, cmap=cmap), ax=ax, label=PVALUE_LABEL, shrink=0.6)
    ax.text(
        0.01,
        0.01,
        f"node size: {SIZE_LABELS.get(scene.size_by, scene.size_by)} | "
        f"layout: {scene.layout} | similarity >= {scene.threshold:.2f}",
        transform=ax.transAxes,
        ha="left",
        va="bottom",
        fontsize=9,
        color="#444444",
    )
    fig.tight_layout()
    return fig
