# go-enrichment-viz/tests/test_shared.py
from __future__ import annotations

import math
import os

import pytest

from go_enrichment_viz import _shared


def test_split_go_term_extracts_name_and_id():
    name, go_id = _shared.split_go_term("neutrophil aggregation (GO:0070488)")
    assert name == "neutrophil aggregation"
    assert go_id == "GO:0070488"


def test_split_go_term_without_id_keeps_text():
    assert _shared.split_go_term("Unclassified") == ("Unclassified", "")
    assert _shared.split_go_term(None) == ("", "")


def test_term_tokens_casefold_and_single_space_split():
    assert _shared.term_tokens("Cell  Cycle cell") == frozenset({"cell", "cycle"})
    # punctuation is not stripped
    assert "cycle," in _shared.term_tokens("cell cycle, mitotic")
    assert _shared.term_tokens("") == frozenset()


@pytest.mark.parametrize(
    "p, expected",
    [
        (None, "NA"),
        ("NA", "NA"),
        (0.0005, "5.00e-04"),
        (0.05, "0.0500"),
        (0.001, "0.0010"),
    ],
)
def test_format_pvalue(p, expected):
    assert _shared.format_pvalue(p) == expected


def test_to_float_rejects_na_and_non_finite():
    assert _shared.to_float(" 3.5 ") == 3.5
    assert _shared.to_float("na") is None
    assert _shared.to_float("abc") is None
    assert _shared.to_float(math.inf) is None
    assert _shared.to_float(float("nan")) is None


def test_sanitize_file_path(tmp_path):
    p = tmp_path / "a.txt"
    assert _shared.sanitize_file_path(p) == os.path.abspath(str(p))
    with pytest.raises(ValueError, match="directory traversal"):
        _shared.sanitize_file_path("../etc/passwd")
    with pytest.raises(ValueError, match="directory traversal"):
        _shared.sanitize_file_path("data/../../secret.txt")
    # dots inside a file name are not traversal
    assert _shared.sanitize_file_path(tmp_path / "x..v2.txt").endswith("x..v2.txt")
