# go-enrichment-viz/src/go_enrichment_viz/heatmap.py
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.colors import LinearSegmentedColormap, TwoSlopeNorm
from matplotlib.figure import Figure
from scipy.cluster.hierarchy import leaves_list, linkage
from scipy.spatial.distance import pdist

from .config import VizConfig
from .schema import TermTable
from .viz import apply_pub_style

logger = logging.getLogger(__name__)

VALUE_LABELS = {
    "pvalue": "-log10(p-value)",
    "fold_enrichment": "log2(Fold Enrichment)",
    "count": "Gene Count",
}


def _values(df: pd.DataFrame, value_type: str) -> pd.Series:
    if value_type == "fold_enrichment":
        return np.log2(df["fold_enrichment"].astype(float))
    if value_type == "count":
        return df["count"].astype(float)
    return df["neg_log10_p"].astype(float)


def _resolve_value_type(value_type: str) -> str:
    if value_type in VALUE_LABELS:
        return value_type
    logger.warning("Unknown value_type: %s, using pvalue", value_type)
    return "pvalue"


def _named_tables(
    tables: Mapping[str, TermTable | None] | Sequence[TermTable | None],
) -> dict[str, TermTable]:
    if isinstance(tables, Mapping):
        items = list(tables.items())
    else:
        items = [(f"Dataset{i}", t) for i, t in enumerate(tables, start=1)]
    return {str(k): t for k, t in items if t is not None and not t.empty}


def _cluster_order(mat: np.ndarray, axis_name: str) -> np.ndarray:
    # complete linkage on Euclidean distances
    try:
        return leaves_list(linkage(pdist(mat, metric="euclidean"), method="complete"))
    except ValueError as e:
        logger.warning("Failed to cluster %s, using original order (%s)", axis_name, e)
        return np.arange(mat.shape[0])


def build_heatmap_matrix(
    tables: Mapping[str, TermTable | None] | Sequence[TermTable | None],
    *,
    value_type: str = "pvalue",
    cluster_rows: bool = True,
    cluster_cols: bool = True,
) -> pd.DataFrame:
    """
    Terms x datasets matrix of the chosen value (missing combinations -> 0).

    Parameters
    ----------
    tables : mapping of name -> TermTable, or a sequence (named Dataset1..N)
        Empty/None entries are dropped.
    value_type : str
        pvalue (-log10 p), fold_enrichment (log2) or count.
    cluster_rows, cluster_cols : bool
        Reorder by hierarchical clustering when there is more than one row/column.

    Raises
    ------
    ValueError
        If no non-empty table is given.
    """
    named = _named_tables(tables)
    if not named:
        raise ValueError("No data available for heatmap")

    vt = _resolve_value_type(value_type)
    parts = []
    for name, tbl in named.items():
        df = tbl.df
        parts.append(
            pd.DataFrame({"term_name": df["term_name"], "dataset": name, "value": _values(df, vt)})
        )
    long = pd.concat(parts, ignore_index=True)

    # first-seen order for rows/columns before clustering
    row_order = list(dict.fromkeys(long["term_name"]))
    col_order = list(named)
    mat = (
        long.pivot_table(index="term_name", columns="dataset", values="value", aggfunc="max")
        .reindex(index=row_order, columns=col_order)
        .fillna(0.0)
    )

    if cluster_rows and mat.shape[0] > 1:
        mat = mat.iloc[_cluster_order(mat.to_numpy(), "rows")]
    if cluster_cols and mat.shape[1] > 1:
        mat = mat.iloc[:, _cluster_order(mat.to_numpy().T, "columns")]

    mat.attrs["value_type"] = vt
    return mat


def plot_heatmap(
    tables: Mapping[str, TermTable | None] | Sequence[TermTable | None],
    *,
    value_type: str = "pvalue",
    cluster_rows: bool = True,
    cluster_cols: bool = True,
    title: str = "GO Enrichment Heatmap",
    config: VizConfig | None = None,
) -> Figure:
    """Heatmap of one value across datasets (white -> yellow -> red, midpoint at max/2)."""
    cfg = config or VizConfig()
    mat = build_heatmap_matrix(
        tables, value_type=value_type, cluster_rows=cluster_rows, cluster_cols=cluster_cols
    )
    vt = mat.attrs.get("value_type", "pvalue")
    apply_pub_style(cfg)

    values = mat.to_numpy(dtype=float)
    finite = values[np.isfinite(values)]
    vmax = float(finite.max()) if finite.size else 1.0
    vmin = float(finite.min()) if finite.size else 0.0
    if vmax <= 0.0:
        vmax = 1e-9
    vmin = min(vmin, vmax / 2.0 - 1e-9)
    norm = TwoSlopeNorm(vmin=vmin, vcenter=vmax / 2.0, vmax=vmax)
    cmap = LinearSegmentedColormap.from_list("white_yellow_red", ["white", "yellow", "red"])

    n_rows, n_cols = mat.shape
    fig, ax = plt.subplots(figsize=(10 + n_cols * 2, max(4.0, 0.35 * n_rows + 2)))
    im = ax.imshow(values, cmap=cmap, norm=norm, aspect="auto")
    ax.set_xticks(range(n_cols))
    ax.set_xticklabels([str(c) for c in mat.columns], rotation=45, ha="right")
    ax.set_yticks(range(n_rows))
    ax.set_yticklabels([str(r) for r in mat.index])
    ax.set_xticks(np.arange(-0.5, n_cols, 1), minor=True)
    ax.set_yticks(np.arange(-0.5, n_rows, 1), minor=True)
    ax.grid(which="minor", color="white", linewidth=0.5)
    ax.tick_params(which="minor", length=0)
    ax.set_xlabel("Dataset")
    ax.set_ylabel("GO Term")
    ax.set_title(title)
    fig.colorbar(im, ax=ax, label=VALUE_LABELS[vt])
    fig.tight_layout()

    logger.info("Created heatmap with %d GO terms and %d datasets", n_rows, n_cols)
    return fig
