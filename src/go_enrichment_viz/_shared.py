# go-enrichment-viz/src/go_enrichment_viz/_shared.py
from __future__ import annotations

import math
import os
import re
from typing import Any

import pandas as pd

# -----------------------------------------------------------------------------
# _shared.py (minimal)
# -----------------------------------------------------------------------------
# Purpose:
#   - Centralize parsing rules that affect the record contract and the network.
#   - If these change, term names, similarity edges and layouts may change.
#
# Policy:
#   - Term-name tokenization is deliberately naive (literal space split + casefold).
#   - GO ids are extracted verbatim; names keep their original casing.
# -----------------------------------------------------------------------------


# NA tokens used across layers (string forms).
NA_TOKENS: set[str] = {"", "na", "nan", "none", "NA"}
NA_TOKENS_L: set[str] = {t.lower() for t in NA_TOKENS}

GO_ID_RE = re.compile(r"GO:\d+")
GO_SUFFIX_RE = re.compile(r"\s*\(GO:\d+\)")


def is_na_scalar(x: object) -> bool:
    """
    pd.isna is unsafe for list-like; only treat scalars as NA here.
    """
    if x is None:
        return True
    if isinstance(x, (list, tuple, set, dict)):
        return False
    try:
        return bool(pd.isna(x))
    except (TypeError, ValueError):
        return False


def is_na_token(x: object) -> bool:
    if x is None:
        return True
    return str(x).strip().lower() in NA_TOKENS_L


def to_float(x: Any) -> float | None:
    """Parse a finite float, or None for NA / non-numeric / infinite values."""
    if is_na_scalar(x) or is_na_token(x):
        return None
    try:
        v = float(str(x).strip())
    except ValueError:
        return None
    if not math.isfinite(v):
        return None
    return v


def split_go_term(full_term: object) -> tuple[str, str]:
    """
    Split a PANTHER term cell into (term_name, go_id).

    "neutrophil aggregation (GO:0070488)" -> ("neutrophil aggregation", "GO:0070488")

    Cells without a GO id keep their text as the name and get an empty id.
    """
    s = "" if is_na_scalar(full_term) else str(full_term)
    name = GO_SUFFIX_RE.sub("", s).strip()
    m = GO_ID_RE.search(s)
    return name, (m.group(0) if m else "")


def term_tokens(name: object) -> frozenset[str]:
    """
    Word set used for lexical term similarity.

    NOTE: split on literal single spaces only; no stemming, no stopwords.
    Repeated spaces produce empty tokens, which are dropped.
    """
    s = "" if is_na_scalar(name) else str(name)
    return frozenset(tok for tok in s.casefold().split(" ") if tok)


def format_pvalue(pvalue: object) -> str:
    """Scientific notation below 0.001, fixed 4 decimals otherwise."""
    v = to_float(pvalue)
    if v is None:
        return "NA"
    if v < 0.001:
        return f"{v:.2e}"
    return f"{v:.4f}"


def sanitize_file_path(path: str | os.PathLike[str]) -> str:
    """
    Reject directory traversal and return an absolute, normalized path.

    Raises
    ------
    ValueError
        If the path contains a '..' component.
    """
    s = os.fspath(path)
    # ".." as a whole path component only
    if ".." in re.split(r"[\\/]", s):
        raise ValueError(f"Invalid file path: directory traversal detected: {s}")
    return os.path.abspath(os.path.normpath(s))
