# go-enrichment-viz/src/go_enrichment_viz/network.py
from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Literal, NamedTuple, NoReturn

import numpy as np
import pandas as pd

from . import _shared
from .layout import DEFAULT_ITERATIONS, DEFAULT_SEED, compute_layout, normalize_layout_name
from .schema import Term, TermTable, as_terms

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.3
DEFAULT_MAX_TERMS = 100

SizeMetric = Literal["count", "pvalue", "fold_enrichment"]

SIZE_ALIASES: dict[str, SizeMetric] = {
    "count": "count",
    "pvalue": "pvalue",
    "p_value": "pvalue",
    "fold_enrichment": "fold_enrichment",
}


# -------------------------
# Similarity
# -------------------------
class Edge(NamedTuple):
    source: int
    target: int
    similarity: float


def jaccard(a: frozenset[str], b: frozenset[str]) -> float:
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def term_similarity(name_a: str, name_b: str) -> float:
    """Jaccard index of the case-folded word sets of two term names."""
    return jaccard(_shared.term_tokens(name_a), _shared.term_tokens(name_b))


def iter_similar_pairs(names: Sequence[str], threshold: float) -> Iterator[Edge]:
    """
    Yield (i, j, similarity) for i < j with similarity >= threshold.

    Word sets are built once per name; pairs below the threshold are never stored.
    """
    tokens = [_shared.term_tokens(n) for n in names]
    n = len(tokens)
    for i in range(n - 1):
        ti = tokens[i]
        for j in range(i + 1, n):
            sim = jaccard(ti, tokens[j])
            if sim >= threshold:
                yield Edge(i, j, sim)


# -------------------------
# Outcomes
# -------------------------
@dataclass(frozen=True)
class InsufficientTerms:
    n_terms: int
    kind: Literal["insufficient_terms"] = "insufficient_terms"

    @property
    def message(self) -> str:
        return f"Need at least 2 GO terms for network graph (got {self.n_terms})"


@dataclass(frozen=True)
class NoEdgesAboveThreshold:
    threshold: float
    n_terms: int
    kind: Literal["no_edges_above_threshold"] = "no_edges_above_threshold"

    @property
    def message(self) -> str:
        return (
            f"No edges found with similarity >= {self.threshold:.2f} in {self.n_terms} GO terms. "
            "Try lowering the threshold with similarity_threshold parameter."
        )


@dataclass(frozen=True)
class TermCountExceeded:
    n_terms: int
    max_terms: int
    kind: Literal["term_count_exceeded"] = "term_count_exceeded"

    @property
    def message(self) -> str:
        return (
            f"Dataset has {self.n_terms} terms, limiting to top {self.max_terms} for performance. "
            "Increase max_terms if needed."
        )


FailureReason = InsufficientTerms | NoEdgesAboveThreshold


class NetworkError(Exception):
    def __init__(self, reason: FailureReason) -> None:
        super().__init__(reason.message)
        self.reason = reason


class InsufficientTermsError(NetworkError):
    pass


class NoEdgesError(NetworkError):
    pass


def _error_for(reason: FailureReason) -> NetworkError:
    if isinstance(reason, InsufficientTerms):
        return InsufficientTermsError(reason)
    return NoEdgesError(reason)


# -------------------------
# Graph
# -------------------------
@dataclass(frozen=True)
class TermGraph:
    n_nodes: int
    edges: tuple[Edge, ...]
    threshold: float


def build_term_graph(
    names: Sequence[str],
    *,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> TermGraph | FailureReason:
    """
    Threshold pairwise name similarity into an undirected edge set.

    Returns InsufficientTerms for < 2 names and NoEdgesAboveThreshold when
    no pair qualifies; never an empty graph.
    """
    n = len(names)
    if n < 2:
        return InsufficientTerms(n_terms=n)

    logger.info("Computing similarities for %d terms...", n)
    edges = tuple(iter_similar_pairs(names, float(similarity_threshold)))
    if not edges:
        return NoEdgesAboveThreshold(threshold=float(similarity_threshold), n_terms=n)
    return TermGraph(n_nodes=n, edges=edges, threshold=float(similarity_threshold))


# -------------------------
# Scene
# -------------------------
@dataclass(frozen=True)
class SceneNode:
    index: int
    term_id: str
    label: str
    x: float
    y: float
    size: float
    color: float


@dataclass(frozen=True)
class SceneEdge:
    source: int
    target: int
    x0: float
    y0: float
    x1: float
    y1: float
    weight: float


@dataclass(frozen=True)
class NetworkScene:
    nodes: tuple[SceneNode, ...]
    edges: tuple[SceneEdge, ...]
    layout: str
    size_by: SizeMetric
    threshold: float

    def to_frames(self) -> tuple[pd.DataFrame, pd.DataFrame]:
        """(nodes_df, edges_df) for tabular export or plotting."""
        nodes_df = pd.DataFrame(
            [vars(n) for n in self.nodes],
            columns=["index", "term_id", "label", "x", "y", "size", "color"],
        )
        edges_df = pd.DataFrame(
            [vars(e) for e in self.edges],
            columns=["source", "target", "x0", "y0", "x1", "y1", "weight"],
        )
        return nodes_df, edges_df


def normalize_size_by(name: str) -> SizeMetric:
    key = str(name or "").strip().lower()
    if key not in SIZE_ALIASES:
        raise ValueError(f"Unknown node_size_by: {name!r} (use count|pvalue|fold_enrichment)")
    return SIZE_ALIASES[key]


def size_metric(term: Term, size_by: SizeMetric) -> float:
    if size_by == "pvalue":
        return float(term.neg_log10_p)
    if size_by == "fold_enrichment":
        fe = float(term.fold_enrichment)
        return math.log2(fe) if fe > 0 else float("nan")
    return float(term.count)


def assemble_scene(
    terms: Sequence[Term],
    graph: TermGraph,
    positions: np.ndarray,
    *,
    layout: str,
    size_by: SizeMetric,
) -> NetworkScene:
    if len(terms) != graph.n_nodes or positions.shape != (graph.n_nodes, 2):
        raise ValueError(
            f"assemble_scene: {len(terms)} terms, {graph.n_nodes} nodes, "
            f"positions shape {positions.shape}"
        )
    nodes = tuple(
        SceneNode(
            index=k,
            term_id=t.term_id,
            label=t.term_name,
            x=float(positions[k, 0]),
            y=float(positions[k, 1]),
            size=size_metric(t, size_by),
            color=float(t.neg_log10_p),
        )
        for k, t in enumerate(terms)
    )
    edges = tuple(
        SceneEdge(
            source=e.source,
            target=e.target,
            x0=float(positions[e.source, 0]),
            y0=float(positions[e.source, 1]),
            x1=float(positions[e.target, 0]),
            y1=float(positions[e.target, 1]),
            weight=float(e.similarity),
        )
        for e in graph.edges
    )
    return NetworkScene(
        nodes=nodes, edges=edges, layout=layout, size_by=size_by, threshold=graph.threshold
    )


# -------------------------
# Public API
# -------------------------
@dataclass(frozen=True)
class NetworkBuilt:
    scene: NetworkScene
    graph: TermGraph
    truncated: TermCountExceeded | None = None
    ok: Literal[True] = field(default=True, init=False)

    def raise_for_reason(self) -> None:
        return None

    def unwrap(self) -> NetworkScene:
        return self.scene


@dataclass(frozen=True)
class NetworkFailed:
    reason: FailureReason
    truncated: TermCountExceeded | None = None
    ok: Literal[False] = field(default=False, init=False)

    def raise_for_reason(self) -> NoReturn:
        raise _error_for(self.reason)

    def unwrap(self) -> NetworkScene:
        self.raise_for_reason()


NetworkResult = NetworkBuilt | NetworkFailed


def build_network(
    terms: TermTable | Sequence[Term],
    *,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    layout: str = "force",
    node_size_by: str = "count",
    max_terms: int = DEFAULT_MAX_TERMS,
    iterations: int = DEFAULT_ITERATIONS,
    seed: int = DEFAULT_SEED,
) -> NetworkResult:
    """
    Build a term-similarity network with node coordinates.

    Parameters
    ----------
    terms : TermTable or sequence of Term
        Filtered, ranked terms. Row order defines node indices.
    similarity_threshold : float
        Minimum Jaccard similarity of term-name word sets for an edge, in [0, 1].
    layout : str
        circle | star | force (fr and kk are aliases of force).
    node_size_by : str
        count | pvalue | fold_enrichment (neg-log10 p and log2 fold respectively).
    max_terms : int
        Inputs longer than this are cut to the first `max_terms` rows.
    iterations, seed : int
        Force-layout knobs.

    Returns
    -------
    NetworkBuilt or NetworkFailed
        Truncation is reported on either outcome via `.truncated`.
    """
    threshold = float(similarity_threshold)
    if not (0.0 <= threshold <= 1.0):
        raise ValueError(f"similarity_threshold must be in [0, 1], got {similarity_threshold}")
    if int(max_terms) < 1:
        raise ValueError(f"max_terms must be >= 1, got {max_terms}")
    layout_kind = normalize_layout_name(layout)
    size_by = normalize_size_by(node_size_by)

    term_list = as_terms(terms)
    if len(term_list) < 2:
        reason = InsufficientTerms(n_terms=len(term_list))
        logger.warning(reason.message)
        return NetworkFailed(reason=reason)

    truncated: TermCountExceeded | None = None
    if len(term_list) > int(max_terms):
        truncated = TermCountExceeded(n_terms=len(term_list), max_terms=int(max_terms))
        logger.warning(truncated.message)
        term_list = term_list[: int(max_terms)]

    graph = build_term_graph([t.term_name for t in term_list], similarity_threshold=threshold)
    if not isinstance(graph, TermGraph):
        logger.warning(graph.message)
        return NetworkFailed(reason=graph, truncated=truncated)

    logger.info("Created network with %d nodes and %d edges", graph.n_nodes, len(graph.edges))

    positions = compute_layout(
        layout_kind, graph.n_nodes, graph.edges, seed=seed, iterations=iterations
    )
    scene = assemble_scene(term_list, graph, positions, layout=layout_kind, size_by=size_by)
    return NetworkBuilt(scene=scene, graph=graph, truncated=truncated)
