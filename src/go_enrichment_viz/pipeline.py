# go-enrichment-viz/src/go_enrichment_viz/pipeline.py
from __future__ import annotations

import hashlib
import json
import logging
import platform
import re
import sys
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from .adapters.panther import PantherFormatError, read_panther_table
from .config import VizConfig, load_config
from .heatmap import plot_heatmap
from .network import NetworkFailed, build_network
from .schema import TermTable
from .viz import plot_barplot, plot_dotplot, save_figure
from .viz_network import plot_network

logger = logging.getLogger(__name__)

HEATMAP_CATEGORIES = ("GOBP", "GOCC", "GOMF")
HEATMAP_DIRECTIONS = ("Up", "Down")
HEATMAP_MIN_DATASETS = 2
HEATMAP_HEIGHT = 12.0


@dataclass(frozen=True)
class RunConfig:
    input_dir: str | None = None
    output_dir: str | None = None
    config_path: str | None = None
    heatmaps: bool = True
    networks: bool = True
    run_meta_name: str = "run_meta.json"


@dataclass(frozen=True)
class RunResult:
    run_id: str
    output_dir: str
    n_files: int
    n_processed: int
    n_skipped: int
    artifacts: dict[str, str]
    meta_path: str
    skipped: tuple[str, ...] = field(default_factory=tuple)


def _write_json(path: str | Path, obj: Any) -> None:
    """Atomic-ish JSON write: write temp then replace."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False, default=str)
        f.write("\n")
    tmp.replace(path)


def _sha256_text(s: str) -> str:
    h = hashlib.sha256()
    h.update(s.encode("utf-8"))
    return h.hexdigest()


def _tool_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return str(version("go-enrichment-viz"))
    except PackageNotFoundError:
        return "unknown"


def _env_fingerprint() -> dict[str, Any]:
    return {
        "python": sys.version.replace("\n", " "),
        "platform": platform.platform(),
        "pandas": getattr(pd, "__version__", "unknown"),
        "tool_version": _tool_version(),
    }


def _make_run_id(cfg: RunConfig) -> str:
    payload = json.dumps(asdict(cfg), sort_keys=True, ensure_ascii=False)
    return f"{int(time.time())}_{_sha256_text(payload)[:10]}"


def _mkdir(path: Path) -> None:
    if path.exists() and not path.is_dir():
        raise NotADirectoryError(f"Output path exists but is not a directory: {path}")
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)
        logger.info("Created directory: %s", path)


def list_input_files(input_dir: str | Path, pattern: str) -> list[Path]:
    """Regular files in `input_dir` whose name matches `pattern` (regex search), sorted."""
    d = Path(input_dir)
    if not d.is_dir():
        raise FileNotFoundError(f"Input directory not found: {d}")
    rx = re.compile(pattern)
    return sorted(p for p in d.iterdir() if p.is_file() and rx.search(p.name))


def heatmap_groups(names: list[str]) -> dict[tuple[str, str], list[str]]:
    """
    Group dataset names by `_<CATEGORY>_<Direction>` (e.g. "_GOBP_Up").

    Only groups with at least two datasets are returned; input order is kept.
    """
    groups: dict[tuple[str, str], list[str]] = {}
    for cat in HEATMAP_CATEGORIES:
        for direction in HEATMAP_DIRECTIONS:
            tag = f"_{cat}_{direction}"
            hits = [n for n in names if tag in n]
            if len(hits) >= HEATMAP_MIN_DATASETS:
                groups[(cat, direction)] = hits
    return groups


def _process_file(
    path: Path,
    cfg: VizConfig,
    *,
    networks: bool,
    artifacts: dict[str, str],
) -> TermTable:
    stem = path.stem
    table = read_panther_table(path, config=cfg)
    logger.info("Found %d significant GO terms", len(table))

    terms_path = Path(cfg.output_dir) / f"{stem}_terms.tsv"
    table.write_tsv(str(terms_path))
    artifacts[f"{stem}:terms_tsv"] = str(terms_path)

    title = f"GO Enrichment - {stem}"
    out = save_figure(
        plot_barplot(table, title, cfg), cfg.output_path(path.name, "barplot"), config=cfg
    )
    artifacts[f"{stem}:barplot"] = str(out)
    logger.info("Barplot saved: %s", out)

    out = save_figure(
        plot_dotplot(table, title, cfg), cfg.output_path(path.name, "dotplot"), config=cfg
    )
    artifacts[f"{stem}:dotplot"] = str(out)
    logger.info("Dotplot saved: %s", out)

    if networks:
        result = build_network(
            table,
            similarity_threshold=cfg.network_similarity_threshold,
            layout=cfg.network_layout,
            node_size_by=cfg.network_node_size_by,
            max_terms=cfg.network_max_terms,
            iterations=cfg.network_iterations,
            seed=cfg.network_seed,
        )
        if isinstance(result, NetworkFailed):
            logger.warning("Skipping network for %s: %s", stem, result.reason.message)
        else:
            fig = plot_network(result.scene, f"GO Term Network - {stem}", cfg)
            out = save_figure(fig, cfg.output_path(path.name, "network"), config=cfg)
            artifacts[f"{stem}:network"] = str(out)
            logger.info("Network plot saved: %s", out)

    return table


def _write_heatmaps(
    tables: dict[str, TermTable], cfg: VizConfig, artifacts: dict[str, str]
) -> int:
    n_written = 0
    groups = heatmap_groups(list(tables))
    if groups:
        logger.info("Creating heatmap comparisons...")
    for (cat, direction), names in groups.items():
        fig = plot_heatmap(
            {n: tables[n] for n in names},
            value_type=cfg.heatmap_value_type,
            cluster_rows=cfg.heatmap_cluster_rows,
            cluster_cols=cfg.heatmap_cluster_cols,
            title=f"GO Enrichment Heatmap - {cat} {direction}-regulated",
            config=cfg,
        )
        path = cfg.plot_dir("heatmap") / f"{cat}_{direction}_heatmap.{cfg.output_format}"
        out = save_figure(
            fig, path, config=cfg, width=10.0 + 2.0 * len(names), height=HEATMAP_HEIGHT
        )
        artifacts[f"heatmap:{cat}_{direction}"] = str(out)
        logger.info("Heatmap saved: %s", out)
        n_written += 1
    return n_written


def run_go_pipeline(
    cfg: RunConfig,
    *,
    viz_config: VizConfig | None = None,
    run_id: str | None = None,
) -> RunResult:
    """
    Process every PANTHER export in the input directory.

    Per file: parse + filter, write `<stem>_terms.tsv`, bar plot, dot plot and
    (optionally) the term network. Files that are not usable exports are
    skipped and counted. Afterwards, cross-dataset heatmaps are drawn for each
    GO category/direction group with at least two datasets.

    `run_meta.json` in the output directory records status, counts and artifacts;
    it is written even when the run fails, including a missing or empty input
    directory.
    """
    base = viz_config if viz_config is not None else load_config(cfg.config_path)
    vcfg = base.with_overrides(input_dir=cfg.input_dir, output_dir=cfg.output_dir)

    outdir = Path(vcfg.output_dir)
    _mkdir(outdir)
    for d in vcfg.plot_dirs():
        if d.name == "Heatmaps" and not cfg.heatmaps:
            continue
        if d.name == "Networks" and not cfg.networks:
            continue
        _mkdir(d)

    meta_path = outdir / cfg.run_meta_name
    rid = str(run_id or _make_run_id(cfg))
    meta: dict[str, Any] = {
        "tool": "go-enrichment-viz",
        "cmd": "run",
        "run_id": rid,
        "status": "running",
        "started_epoch": time.time(),
        "config": asdict(cfg),
        "viz_config": vcfg.model_dump(),
        "env": _env_fingerprint(),
        "inputs": {"input_dir": str(vcfg.input_dir), "files": []},
        "counts": {},
        "artifacts": {},
    }
    _write_json(meta_path, meta)

    artifacts: dict[str, str] = meta["artifacts"]
    tables: dict[str, TermTable] = {}
    skipped: list[str] = []
    n_processed = 0

    try:
        files = list_input_files(vcfg.input_dir, vcfg.input_file_pattern)
        if not files:
            raise FileNotFoundError(
                f"No input files matching {vcfg.input_file_pattern!r} found in {vcfg.input_dir}"
            )
        meta["inputs"]["files"] = [str(p) for p in files]
        _write_json(meta_path, meta)
        logger.info("Found %d input files to process", len(files))

        for path in files:
            logger.info("Processing: %s", path.name)
            try:
                table = _process_file(path, vcfg, networks=cfg.networks, artifacts=artifacts)
            except PantherFormatError as e:
                logger.warning("Skipping %s - %s", path.name, e)
                skipped.append(path.name)
                continue
            n_processed += 1
            if cfg.heatmaps:
                tables[path.stem] = table

        n_heatmaps = _write_heatmaps(tables, vcfg, artifacts) if cfg.heatmaps else 0

        meta["counts"] = {
            "files": len(files),
            "processed": n_processed,
            "skipped": len(skipped),
            "heatmaps": n_heatmaps,
        }
        meta["skipped"] = skipped
        meta["status"] = "ok"
        meta["finished_epoch"] = time.time()
        _write_json(meta_path, meta)

    except KeyboardInterrupt:
        meta["status"] = "aborted"
        meta["finished_epoch"] = time.time()
        _write_json(meta_path, meta)
        raise
    except Exception as e:
        meta["status"] = "error"
        meta["finished_epoch"] = time.time()
        meta["error"] = {"type": type(e).__name__, "message": str(e)}
        _write_json(meta_path, meta)
        raise

    logger.info(
        "Processing summary: %d files, %d processed, %d skipped",
        len(files),
        n_processed,
        len(skipped),
    )
    logger.info("Results saved in %s", outdir)

    return RunResult(
        run_id=rid,
        output_dir=str(outdir),
        n_files=len(files),
        n_processed=n_processed,
        n_skipped=len(skipped),
        artifacts=dict(artifacts),
        meta_path=str(meta_path),
        skipped=tuple(skipped),
    )
