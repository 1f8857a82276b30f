# go-enrichment-viz/tests/conftest.py
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_src_on_path() -> None:
    """Allow running tests from a repo checkout without `pip install -e .`."""
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    if src.exists():
        sys.path.insert(0, str(src))


_ensure_src_on_path()


PREAMBLE = [
    "Analysis Type:\tPANTHER Overrepresentation Test (Released 20240226)",
    "Annotation Version and Release Date:\tGO Ontology database DOI:  10.5281/zenodo.10536401",
    "Analyzed List:\tupload_1 (Homo sapiens)",
    "Reference List:\tHomo sapiens (all genes in database)",
    "Test Type:\tFISHER",
    "Correction:\tFDR",
    "Bonferroni count:\t0",
    "",
    "",
    "",
    "",
]

HEADER = (
    "GO biological process complete\tHomo sapiens - REFLIST (20592)\tupload_1 ({n})\t"
    "upload_1 (expected)\tupload_1 (over/under)\tupload_1 (fold Enrichment)\t"
    "upload_1 (raw P-value)\tupload_1 (FDR)"
)

# (full term, reflist, count, expected, direction, fold, p, fdr)
DEFAULT_ROWS = [
    ("neutrophil aggregation (GO:0070488)", 6, 3, 0.01, "+", "> 100", 2.1e-6, 1.5e-3),
    ("regulation of neutrophil aggregation (GO:0070489)", 4, 2, 0.01, "+", "> 100", 8.4e-5, 2.2e-2),
    ("positive regulation of cell migration (GO:0030335)", 480, 6, 0.68, "+", "8.82", 3e-5, 9e-3),
    ("leukocyte chemotaxis (GO:0030595)", 210, 5, 0.30, "+", "16.67", 1.0e-6, 1.0e-3),
    ("defense response to bacterium (GO:0042742)", 300, 4, 0.42, "+", "9.52", 4.0e-4, 4.1e-2),
    ("antimicrobial humoral response (GO:0019730)", 140, 4, 0.20, "+", "20.00", 5.0e-5, 1.1e-2),
]


def write_panther(
    path: Path,
    rows=DEFAULT_ROWS,
    *,
    n_genes: int = 29,
    preamble=PREAMBLE,
    header: str | None = None,
) -> Path:
    lines = list(preamble)
    lines.append(HEADER.format(n=n_genes) if header is None else header)
    for r in rows:
        lines.append("\t".join(str(x) for x in r))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def panther_file(tmp_path: Path) -> Path:
    return write_panther(tmp_path / "Sample_GOBP_Up.txt")
