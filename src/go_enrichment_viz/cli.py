# go-enrichment-viz/src/go_enrichment_viz/cli.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .adapters.panther import read_panther_table
from .config import VizConfig, load_config
from .network import NetworkFailed, build_network
from .pipeline import RunConfig, run_go_pipeline
from .schema import TermTable
from .viz import save_figure
from .viz_network import plot_network

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# exit code for "ran fine, but no network could be built"
EXIT_NO_NETWORK = 2


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        force=True,
    )


def _read_terms(path: str, cfg: VizConfig) -> TermTable:
    # PANTHER exports are .txt; anything else is read as a terms TSV
    if Path(path).suffix.lower() == ".txt":
        return read_panther_table(path, config=cfg)
    return TermTable.read_tsv(path)


def cmd_run(args: argparse.Namespace) -> int:
    base = load_config(args.config)
    _setup_logging(base.verbose and not args.quiet)

    cfg = RunConfig(
        input_dir=args.input_dir,
        output_dir=args.output_dir,
        config_path=args.config,
        heatmaps=not args.no_heatmaps,
        networks=not args.no_networks,
        run_meta_name=args.run_meta,
    )
    res = run_go_pipeline(cfg, viz_config=base)
    print(
        f"[OK] processed {res.n_processed}/{res.n_files} files "
        f"(skipped {res.n_skipped}); outputs in {res.output_dir}"
    )
    return 0


def cmd_network(args: argparse.Namespace) -> int:
    cfg = load_config(args.config).with_overrides(
        network_similarity_threshold=args.threshold,
        network_layout=args.layout,
        network_node_size_by=args.node_size_by,
        network_max_terms=args.max_terms,
    )
    _setup_logging(cfg.verbose and not args.quiet)

    table = _read_terms(args.input, cfg)
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
        print(f"[NO NETWORK] {result.reason.kind}: {result.reason.message}", file=sys.stderr)
        return EXIT_NO_NETWORK

    title = args.title or f"GO Term Network - {Path(args.input).stem}"
    out = save_figure(plot_network(result.scene, title, cfg), args.output, config=cfg)
    print(
        f"[OK] wrote network ({len(result.scene.nodes)} nodes, "
        f"{len(result.scene.edges)} edges): {out}"
    )
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    print(load_config(args.config).describe(), end="")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="go-enrichment-viz")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser(
        "run", help="Parse PANTHER exports and write bar/dot/network plots and heatmaps"
    )
    p_run.add_argument("--input-dir", default=None, help="Directory with PANTHER .txt exports")
    p_run.add_argument("--output-dir", default=None, help="Output directory")
    p_run.add_argument("--config", default=None, help="Config JSON (overrides defaults)")
    p_run.add_argument("--no-heatmaps", action="store_true", help="Skip cross-dataset heatmaps")
    p_run.add_argument("--no-networks", action="store_true", help="Skip term networks")
    p_run.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    p_run.add_argument(
        "--run-meta", default="run_meta.json", help="Filename for run metadata JSON in output dir"
    )
    p_run.set_defaults(func=cmd_run)

    p_net = sub.add_parser("network", help="Draw the term-similarity network of one dataset")
    p_net.add_argument(
        "--input", required=True, help="PANTHER export (.txt) or terms TSV (*_terms.tsv)"
    )
    p_net.add_argument("--output", required=True, help="Output image path")
    p_net.add_argument("--threshold", type=float, default=None, help="Min Jaccard similarity")
    p_net.add_argument(
        "--layout", default=None, choices=["force", "fr", "kk", "circle", "star"]
    )
    p_net.add_argument(
        "--node-size-by", default=None, choices=["count", "pvalue", "fold_enrichment"]
    )
    p_net.add_argument("--max-terms", type=int, default=None, help="Max terms kept (top rows)")
    p_net.add_argument("--title", default=None, help="Plot title")
    p_net.add_argument("--config", default=None, help="Config JSON (overrides defaults)")
    p_net.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    p_net.set_defaults(func=cmd_network)

    p_cfg = sub.add_parser("config", help="Print the resolved configuration")
    p_cfg.add_argument("--config", default=None, help="Config JSON (overrides defaults)")
    p_cfg.set_defaults(func=cmd_config)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        print("[ABORTED]", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"[ERROR] {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
