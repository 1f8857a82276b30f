# go-enrichment-viz/src/go_enrichment_viz/adapters/panther.py
from __future__ import annotations

import logging
import re
from pathlib import Path

import numpy as np
import pandas as pd

from .. import _shared
from ..config import VizConfig
from ..schema import TermTable

logger = logging.getLogger(__name__)

PANTHER_SIGNATURE = "PANTHER Overrepresentation Test"

# Header line carries the analysed list size, e.g. "... upload_1 (29) ..."
UPLOAD_COUNT_RE = re.compile(r"upload_1 \((\d+)\)")

# Column order of the data block in PANTHER exports.
PANTHER_COLS = [
    "Full_Term",
    "REFLIST",
    "Count",
    "Expected",
    "Direction",
    "Fold_Enrichment",
    "P.value",
    "FDR",
]


class PantherFormatError(ValueError):
    """Input is not a usable PANTHER enrichment export."""


class NoSignificantTermsError(PantherFormatError):
    """The export parsed fine, but no term survived the filters."""


def _read_lines(path: Path) -> list[str]:
    text = path.read_text(encoding="utf-8-sig", errors="replace")
    return text.splitlines()


def validate_panther_file(path: str | Path, *, config: VizConfig | None = None) -> None:
    """
    Check that `path` looks like a PANTHER export.

    Raises
    ------
    PantherFormatError
        Missing/empty file, too few lines, or (under strict validation) a
        missing PANTHER signature or gene-count header.
    """
    cfg = config or VizConfig()
    p = Path(path)

    if not p.exists():
        raise PantherFormatError(f"File not found: {p}")
    if not p.is_file():
        raise PantherFormatError(f"Not a regular file: {p}")
    if p.stat().st_size == 0:
        raise PantherFormatError(f"File is empty: {p.name}")

    lines = _read_lines(p)
    if len(lines) <= cfg.min_file_lines:
        raise PantherFormatError(
            f"File has insufficient lines ({len(lines)} <= {cfg.min_file_lines}): {p.name}"
        )

    if not any(PANTHER_SIGNATURE in line for line in lines):
        msg = f"File does not appear to be PANTHER format: {p.name}"
        if cfg.strict_validation:
            raise PantherFormatError(msg)
        logger.warning(msg)

    hl = cfg.header_line_number
    if hl <= len(lines) and not UPLOAD_COUNT_RE.search(lines[hl - 1]):
        msg = f"Cannot find gene count in expected header line {hl}: {p.name}"
        if cfg.strict_validation:
            raise PantherFormatError(msg)
        logger.warning(msg)


def parse_total_genes(header_line: str) -> int | None:
    m = UPLOAD_COUNT_RE.search(header_line or "")
    if not m:
        return None
    n = int(m.group(1))
    return n if n > 0 else None


def _parse_fold(x: object, ceiling: float) -> float:
    # "> 100" style readings (and anything non-numeric) become the ceiling
    s = "" if _shared.is_na_scalar(x) else re.sub(r"\s*>\s*", "", str(x))
    v = _shared.to_float(s)
    return float(ceiling) if v is None else v


def panther_rows_to_frame(data_lines: list[str]) -> pd.DataFrame:
    n_cols = len(PANTHER_COLS)
    rows = []
    for line in data_lines:
        parts = line.split("\t")
        if len(parts) < n_cols:
            parts = parts + [""] * (n_cols - len(parts))
        rows.append(parts[:n_cols])
    return pd.DataFrame(rows, columns=PANTHER_COLS, dtype=object)


def read_panther_table(path: str | Path, *, config: VizConfig | None = None) -> TermTable:
    """
    Read a PANTHER Overrepresentation Test export into a ranked TermTable.

    Steps
    -----
    1. validate the file and read the analysed gene total from the header line
    2. parse the tab-separated data block
    3. split "name (GO:nnnnnnn)" into term_name / term_id
    4. map "> 100" style fold enrichment to the configured ceiling
    5. drop rows with non-numeric Count/FDR
    6. keep fold_enrichment >= threshold
    7. derive gene_ratio and neg_log10_p, sort by p-value, keep top N

    Raises
    ------
    PantherFormatError
        The file is not a usable export.
    NoSignificantTermsError
        No data rows, or nothing passed the filters.
    """
    cfg = config or VizConfig()
    p = Path(path)
    validate_panther_file(p, config=cfg)

    lines = _read_lines(p)
    header = lines[cfg.header_line_number - 1] if cfg.header_line_number <= len(lines) else ""
    total_genes = parse_total_genes(header)
    if total_genes is None:
        raise PantherFormatError(f"Cannot extract valid gene count from: {p.name}")
    logger.info("Total genes analyzed: %d", total_genes)

    data_lines = [ln for ln in lines[cfg.data_start_line - 1 :] if ln.strip()]
    if not data_lines:
        raise NoSignificantTermsError(f"No data lines found in: {p.name}")

    raw = panther_rows_to_frame(data_lines)

    split = raw["Full_Term"].map(_shared.split_go_term)
    df = pd.DataFrame(
        {
            "term_name": split.map(lambda t: t[0]),
            "term_id": split.map(lambda t: t[1]),
            "count": raw["Count"].map(_shared.to_float),
            "expected": raw["Expected"].map(_shared.to_float),
            "fold_enrichment": raw["Fold_Enrichment"].map(
                lambda x: _parse_fold(x, cfg.fold_enrichment_ceiling)
            ),
            "p_value": raw["P.value"].map(_shared.to_float),
            "fdr": raw["FDR"].map(_shared.to_float),
        }
    )

    df = df[df["count"].notna() & df["fdr"].notna() & df["p_value"].notna()].copy()
    if df.empty:
        raise NoSignificantTermsError(f"No valid data rows in: {p.name}")

    df = df[df["fold_enrichment"] >= cfg.fold_enrichment_threshold].copy()
    if df.empty:
        raise NoSignificantTermsError(
            "No terms meet fold enrichment threshold "
            f"(>= {cfg.fold_enrichment_threshold:g}): {p.name}"
        )

    df["gene_ratio"] = df["count"].astype(float) / float(total_genes)
    with np.errstate(divide="ignore"):
        df["neg_log10_p"] = -np.log10(df["p_value"].astype(float))

    df = df.sort_values("p_value", kind="mergesort").head(int(cfg.top_n_terms))
    logger.info("Processed %d significant GO terms", len(df))
    top = df.iloc[0]
    logger.debug("Top term: %s (p=%s)", top["term_name"], _shared.format_pvalue(top["p_value"]))
    return TermTable.from_frame(df)
