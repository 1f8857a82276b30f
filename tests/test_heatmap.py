# go-enrichment-viz/tests/test_heatmap.py
from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
from matplotlib.figure import Figure

from go_enrichment_viz.heatmap import build_heatmap_matrix, plot_heatmap
from go_enrichment_viz.schema import TermTable


def _tbl(names, ps, counts=None, folds=None) -> TermTable:
    n = len(names)
    return TermTable.from_frame(
        pd.DataFrame(
            {
                "term_name": names,
                "count": counts or [3] * n,
                "p_value": ps,
                "fold_enrichment": folds or [16.0] * n,
            }
        )
    )


A = _tbl(["cell adhesion", "cell migration"], [1e-2, 1e-4])
B = _tbl(["cell migration", "DNA repair"], [1e-3, 1e-5], counts=[4, 7], folds=[32.0, 64.0])


def test_matrix_fills_missing_with_zero_in_input_order():
    mat = build_heatmap_matrix({"A": A, "B": B}, cluster_rows=False, cluster_cols=False)
    assert list(mat.index) == ["cell adhesion", "cell migration", "DNA repair"]
    assert list(mat.columns) == ["A", "B"]
    assert mat.loc["cell adhesion", "A"] == pytest.approx(2.0)
    assert mat.loc["cell migration", "B"] == pytest.approx(3.0)
    assert mat.loc["DNA repair", "A"] == 0.0
    assert mat.attrs["value_type"] == "pvalue"


def test_value_types():
    folds = build_heatmap_matrix(
        [A, B], value_type="fold_enrichment", cluster_rows=False, cluster_cols=False
    )
    assert list(folds.columns) == ["Dataset1", "Dataset2"]
    assert folds.loc["DNA repair", "Dataset2"] == pytest.approx(6.0)

    counts = build_heatmap_matrix(
        [A, B], value_type="count", cluster_rows=False, cluster_cols=False
    )
    assert counts.loc["DNA repair", "Dataset2"] == pytest.approx(7.0)


def test_unknown_value_type_falls_back_to_pvalue(caplog):
    with caplog.at_level(logging.WARNING):
        mat = build_heatmap_matrix({"A": A, "B": B}, value_type="zscore")
    assert mat.attrs["value_type"] == "pvalue"
    assert "Unknown value_type" in caplog.text


def test_clustering_is_a_permutation():
    mat = build_heatmap_matrix({"A": A, "B": B})
    assert sorted(mat.index) == sorted(["cell adhesion", "cell migration", "DNA repair"])
    assert sorted(mat.columns) == ["A", "B"]
    assert np.isfinite(mat.to_numpy()).all()


def test_empty_and_none_tables_dropped():
    empty = TermTable.from_frame(A.df.iloc[0:0])
    mat = build_heatmap_matrix({"A": A, "E": empty, "N": None})
    assert list(mat.columns) == ["A"]
    with pytest.raises(ValueError, match="No data available"):
        build_heatmap_matrix({"E": empty})
    with pytest.raises(ValueError, match="No data available"):
        plot_heatmap([])


def test_plot_heatmap_returns_figure():
    fig = plot_heatmap({"A": A, "B": B}, title="GO Enrichment Heatmap - GOBP Up-regulated")
    try:
        assert isinstance(fig, Figure)
        ax = fig.axes[0]
        assert ax.get_title() == "GO Enrichment Heatmap - GOBP Up-regulated"
        assert len(ax.get_yticklabels()) == 3
    finally:
        plt.close(fig)
