# go-enrichment-viz/src/go_enrichment_viz/schema.py
from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, fields

import numpy as np
import pandas as pd

from . import _shared

# -----------------------------------------------------------------------------
# TermTable schema gate (tool-facing contract)
# -----------------------------------------------------------------------------
# One row per enriched term, already filtered and ranked by the loader.
#
# Policy:
# - row order is meaningful (network node index, display order)
# - derived columns (gene_ratio, neg_log10_p) are stored, not recomputed per plot
# - TSV round-trips accept a few common header aliases
# -----------------------------------------------------------------------------

TERM_COLS = [
    "term_name",
    "term_id",
    "count",
    "expected",
    "fold_enrichment",
    "p_value",
    "fdr",
    "gene_ratio",
    "neg_log10_p",
]

CORE_REQUIRED_TERM_COLS = ["term_name", "count", "p_value"]

ALIASES = {
    "go_term": "term_name",
    "term": "term_name",
    "name": "term_name",
    "description": "term_name",
    "go_id": "term_id",
    "id": "term_id",
    "gene_count": "count",
    "fold": "fold_enrichment",
    "p.value": "p_value",
    "pvalue": "p_value",
    "pval": "p_value",
    "qval": "fdr",
    "padj": "fdr",
    "neg_log10_pvalue": "neg_log10_p",
}


@dataclass(frozen=True)
class Term:
    term_name: str
    term_id: str
    count: int
    expected: float
    fold_enrichment: float
    p_value: float
    fdr: float
    gene_ratio: float
    neg_log10_p: float


def _clean_str(x: object) -> str:
    return "" if _shared.is_na_scalar(x) else str(x).strip()


def neg_log10(p: float) -> float:
    if p <= 0.0:
        return math.inf
    return -math.log10(p)


@dataclass(frozen=True)
class TermTable:
    df: pd.DataFrame

    def __len__(self) -> int:
        return len(self.df)

    @property
    def empty(self) -> bool:
        return self.df.empty

    @staticmethod
    def _normalize_col(c: str) -> str:
        s = str(c).strip().lstrip("\ufeff")
        s = s.replace(" ", "_").replace("-", "_")
        s = re.sub(r"_+", "_", s)
        return s.lower()

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> TermTable:
        """
        Normalize a DataFrame to the TermTable contract.

        Missing optional columns are filled (term_id "", expected/fdr NA, derived
        neg_log10_p from p_value). gene_ratio cannot be derived without the
        analysed gene total, so it is left NA when absent.
        """
        out = df.copy()
        out.columns = [ALIASES.get(cls._normalize_col(c), cls._normalize_col(c)) for c in df]

        missing = [c for c in CORE_REQUIRED_TERM_COLS if c not in out.columns]
        if missing:
            raise ValueError(
                f"TermTable missing core columns: {missing}. Found={list(df.columns)}"
            )

        if "term_id" not in out.columns:
            out["term_id"] = ""
        for c in ("expected", "fdr", "gene_ratio"):
            if c not in out.columns:
                out[c] = np.nan
        if "fold_enrichment" not in out.columns:
            out["fold_enrichment"] = np.nan

        out["term_name"] = out["term_name"].map(_clean_str)
        out["term_id"] = out["term_id"].map(_clean_str)
        for c in ("count", "expected", "fold_enrichment", "p_value", "fdr", "gene_ratio"):
            out[c] = pd.to_numeric(out[c], errors="coerce")

        if "neg_log10_p" not in out.columns:
            out["neg_log10_p"] = out["p_value"].map(neg_log10)
        else:
            out["neg_log10_p"] = pd.to_numeric(out["neg_log10_p"], errors="coerce")

        bad = out["count"].isna() | out["p_value"].isna()
        if bad.any():
            i = int(out.index[bad][0])
            raise ValueError(f"TermTable: non-numeric count/p_value at row index={i}")

        out["count"] = out["count"].astype(int)
        out = out[TERM_COLS].reset_index(drop=True)
        return cls(df=out)

    @classmethod
    def from_terms(cls, terms: Iterable[Term]) -> TermTable:
        rows = [{f.name: getattr(t, f.name) for f in fields(Term)} for t in terms]
        return cls.from_frame(pd.DataFrame(rows, columns=TERM_COLS))

    def to_terms(self) -> tuple[Term, ...]:
        out: list[Term] = []
        for r in self.df.to_dict("records"):
            out.append(
                Term(
                    term_name=str(r["term_name"]),
                    term_id=str(r["term_id"]),
                    count=int(r["count"]),
                    expected=float(r["expected"]),
                    fold_enrichment=float(r["fold_enrichment"]),
                    p_value=float(r["p_value"]),
                    fdr=float(r["fdr"]),
                    gene_ratio=float(r["gene_ratio"]),
                    neg_log10_p=float(r["neg_log10_p"]),
                )
            )
        return tuple(out)

    def head(self, n: int) -> TermTable:
        return TermTable(df=self.df.head(int(n)).reset_index(drop=True))

    # -------------------------
    # IO
    # -------------------------
    @classmethod
    def read_tsv(cls, path: str) -> TermTable:
        df = pd.read_csv(path, sep="\t", encoding="utf-8-sig")
        return cls.from_frame(df)

    def write_tsv(self, path: str) -> None:
        self.df.to_csv(path, sep="\t", index=False)


def as_terms(terms: TermTable | Sequence[Term]) -> tuple[Term, ...]:
    if isinstance(terms, TermTable):
        return terms.to_terms()
    return tuple(terms)
