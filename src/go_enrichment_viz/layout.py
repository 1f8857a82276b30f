# go-enrichment-viz/src/go_enrichment_viz/layout.py
from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Literal

import numpy as np

# -----------------------------------------------------------------------------
# Node layouts for the term network
# -----------------------------------------------------------------------------
# Every layout is a pure function of (n_nodes, edges, seed) returning an
# (n, 2) float array; row k is the position of node k.
#
# The force layout is a simplified Fruchterman-Reingold simulation: it runs a
# fixed number of iterations with no energy/convergence test and no collision
# avoidance. Same inputs + same seed -> same coordinates.
#
# Repulsion reads the positions as they were at the start of the iteration
# (all pairs at once), not positions already moved by earlier pairs in the
# same pass, so coordinates differ from an in-place loop over pairs.
# -----------------------------------------------------------------------------

LayoutKind = Literal["force", "circle", "star"]

LAYOUT_ALIASES: dict[str, LayoutKind] = {
    "force": "force",
    "fr": "force",
    "fruchterman_reingold": "force",
    # no separate Kamada-Kawai implementation; served by the force simulation
    "kk": "force",
    "kamada_kawai": "force",
    "circle": "circle",
    "star": "star",
}

DEFAULT_SEED = 42
DEFAULT_ITERATIONS = 50

STAR_RADIUS = 0.8
FORCE_EPS = 0.01
FORCE_REPULSION = 0.1
FORCE_ATTRACTION = 0.01

EdgeLike = tuple[int, int, float]


def normalize_layout_name(name: str) -> LayoutKind:
    key = str(name or "").strip().lower().replace("-", "_")
    if key not in LAYOUT_ALIASES:
        raise ValueError(
            f"Unknown layout: {name!r} (use one of {sorted(set(LAYOUT_ALIASES))})"
        )
    return LAYOUT_ALIASES[key]


def circle_layout(n_nodes: int) -> np.ndarray:
    """Node k at angle 2*pi*k/n on the unit circle."""
    n = int(n_nodes)
    if n <= 0:
        return np.zeros((0, 2), dtype=float)
    angles = 2.0 * math.pi * np.arange(n, dtype=float) / n
    return np.column_stack([np.cos(angles), np.sin(angles)])


def star_layout(n_nodes: int, *, radius: float = STAR_RADIUS) -> np.ndarray:
    """Node 0 at the origin; nodes 1..n-1 evenly spaced on a circle of `radius`."""
    n = int(n_nodes)
    pos = np.zeros((max(n, 0), 2), dtype=float)
    spokes = n - 1
    if spokes <= 0:
        return pos
    angles = 2.0 * math.pi * np.arange(spokes, dtype=float) / spokes
    pos[1:, 0] = radius * np.cos(angles)
    pos[1:, 1] = radius * np.sin(angles)
    return pos


def _standardize(pos: np.ndarray) -> np.ndarray:
    # zero mean / unit sample variance per axis; a constant axis is only centred
    out = pos - pos.mean(axis=0)
    if len(pos) < 2:
        return out
    sd = pos.std(axis=0, ddof=1)
    for k in range(pos.shape[1]):
        if np.isfinite(sd[k]) and sd[k] > 0.0:
            out[:, k] = out[:, k] / sd[k]
    return out


def _repel(pos: np.ndarray) -> np.ndarray:
    # all ordered pairs read the same snapshot; displacement is summed per node
    delta = pos[:, None, :] - pos[None, :, :]
    dist = np.sqrt((delta**2).sum(axis=-1)) + FORCE_EPS
    scale = FORCE_REPULSION / dist**3
    np.fill_diagonal(scale, 0.0)
    return pos + (scale[:, :, None] * delta).sum(axis=1)


def _attract(pos: np.ndarray, edges: list[EdgeLike]) -> None:
    # applied in edge order; later edges see earlier moves
    for i, j, sim in edges:
        dx = pos[j, 0] - pos[i, 0]
        dy = pos[j, 1] - pos[i, 1]
        d = math.hypot(dx, dy) + FORCE_EPS
        step = d * d * FORCE_ATTRACTION * float(sim) / d
        pos[i, 0] += step * dx
        pos[i, 1] += step * dy
        pos[j, 0] -= step * dx
        pos[j, 1] -= step * dy


def force_layout(
    n_nodes: int,
    edges: Iterable[EdgeLike],
    *,
    seed: int = DEFAULT_SEED,
    iterations: int = DEFAULT_ITERATIONS,
) -> np.ndarray:
    """
    Simplified Fruchterman-Reingold layout.

    Parameters
    ----------
    n_nodes : int
        Number of nodes.
    edges : iterable of (i, j, similarity)
        Undirected edges; similarity scales the attraction.
    seed : int
        Seed for the initial uniform placement in [-1, 1]^2.
    iterations : int
        Fixed number of repulsion/attraction/normalization rounds.

    Returns
    -------
    numpy.ndarray
        (n_nodes, 2) coordinates, zero mean and unit variance per axis.

    Notes
    -----
    Per iteration:
      - repulsion: node i moves 0.1/d^2 away from every other node j,
        with d = |p_i - p_j| + 0.01
      - attraction: both endpoints of an edge move d^2 * 0.01 * similarity
        toward each other
      - x and y are standardized independently
    O(n^2) per iteration; callers cap n.
    """
    n = int(n_nodes)
    if n <= 0:
        return np.zeros((0, 2), dtype=float)

    rng = np.random.default_rng(int(seed))
    xs = rng.uniform(-1.0, 1.0, size=n)
    ys = rng.uniform(-1.0, 1.0, size=n)
    pos = np.column_stack([xs, ys])

    edge_list = [(int(i), int(j), float(s)) for i, j, s in edges]
    for i, j, _ in edge_list:
        if not (0 <= i < n and 0 <= j < n):
            raise ValueError(f"Edge ({i}, {j}) out of range for {n} nodes")

    for _ in range(int(iterations)):
        pos = _repel(pos)
        _attract(pos, edge_list)
        pos = _standardize(pos)

    return pos


def compute_layout(
    name: str,
    n_nodes: int,
    edges: Iterable[EdgeLike] = (),
    *,
    seed: int = DEFAULT_SEED,
    iterations: int = DEFAULT_ITERATIONS,
) -> np.ndarray:
    kind = normalize_layout_name(name)
    if kind == "circle":
        return circle_layout(n_nodes)
    if kind == "star":
        return star_layout(n_nodes)
    return force_layout(n_nodes, edges, seed=seed, iterations=iterations)
