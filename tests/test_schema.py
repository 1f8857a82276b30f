# go-enrichment-viz/tests/test_schema.py
from __future__ import annotations

import math

import pandas as pd
import pytest

from go_enrichment_viz.schema import TERM_COLS, Term, TermTable, as_terms


def _frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "GO Term": ["cell cycle", "DNA repair"],
            "Count": [5, 3],
            "P.value": [1e-4, 0.0],
            "fold_enrichment": [12.0, 30.0],
        }
    )


def test_from_frame_normalizes_aliases_and_derives_columns():
    tbl = TermTable.from_frame(_frame())
    assert list(tbl.df.columns) == TERM_COLS
    assert tbl.df["term_id"].tolist() == ["", ""]
    assert tbl.df["count"].dtype.kind == "i"
    assert tbl.df.loc[0, "neg_log10_p"] == pytest.approx(4.0)
    # p == 0 maps to +inf rather than failing
    assert math.isinf(tbl.df.loc[1, "neg_log10_p"])
    assert tbl.df["gene_ratio"].isna().all()


def test_from_frame_missing_core_column_raises():
    with pytest.raises(ValueError, match="missing core columns"):
        TermTable.from_frame(pd.DataFrame({"term_name": ["x"], "count": [1]}))


def test_from_frame_non_numeric_count_raises():
    df = _frame()
    df["Count"] = ["5", "many"]
    with pytest.raises(ValueError, match="non-numeric"):
        TermTable.from_frame(df)


def test_terms_roundtrip_keeps_order(tmp_path):
    tbl = TermTable.from_frame(_frame())
    terms = tbl.to_terms()
    assert [t.term_name for t in terms] == ["cell cycle", "DNA repair"]
    assert isinstance(terms[0], Term)
    assert terms[0].count == 5

    p = tmp_path / "terms.tsv"
    tbl.write_tsv(str(p))
    back = TermTable.read_tsv(str(p))
    assert back.df["term_name"].tolist() == ["cell cycle", "DNA repair"]
    assert back.df["term_id"].tolist() == ["", ""]
    assert back.df.loc[0, "neg_log10_p"] == pytest.approx(4.0)


def test_from_terms_and_as_terms():
    t = Term(
        term_name="a b",
        term_id="GO:1",
        count=2,
        expected=0.1,
        fold_enrichment=20.0,
        p_value=0.01,
        fdr=0.05,
        gene_ratio=0.1,
        neg_log10_p=2.0,
    )
    tbl = TermTable.from_terms([t, t])
    assert len(tbl) == 2
    assert as_terms(tbl) == (t, t)
    assert as_terms([t]) == (t,)
    assert len(tbl.head(1)) == 1
