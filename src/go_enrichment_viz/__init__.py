# go-enrichment-viz/src/go_enrichment_viz/__init__.py
from __future__ import annotations

from .config import VizConfig, load_config
from .network import NetworkBuilt, NetworkFailed, build_network
from .pipeline import RunConfig, RunResult, run_go_pipeline
from .schema import Term, TermTable

__all__ = [
    "__version__",
    "NetworkBuilt",
    "NetworkFailed",
    "RunConfig",
    "RunResult",
    "Term",
    "TermTable",
    "VizConfig",
    "build_network",
    "load_config",
    "run_go_pipeline",
]

try:
    from importlib.metadata import PackageNotFoundError, version
    __version__ = version("go-enrichment-viz")
except PackageNotFoundError:
    __version__ = "0+unknown"
