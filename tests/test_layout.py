# go-enrichment-viz/tests/test_layout.py
from __future__ import annotations

import math
import statistics

import numpy as np
import pytest

from go_enrichment_viz.layout import (
    circle_layout,
    compute_layout,
    force_layout,
    normalize_layout_name,
    star_layout,
)

EDGES = [(0, 1, 0.5), (1, 2, 1 / 3), (3, 4, 0.25)]


def test_circle_on_unit_circle():
    pos = circle_layout(7)
    assert pos.shape == (7, 2)
    assert np.hypot(pos[:, 0], pos[:, 1]) == pytest.approx(np.ones(7))
    assert pos[0] == pytest.approx([1.0, 0.0])


def test_star_center_and_radius():
    pos = star_layout(6)
    assert pos[0] == pytest.approx([0.0, 0.0])
    assert np.hypot(pos[1:, 0], pos[1:, 1]) == pytest.approx(np.full(5, 0.8))
    # first spoke at angle 0
    assert pos[1] == pytest.approx([0.8, 0.0])


def test_star_single_node():
    pos = star_layout(1)
    assert pos.shape == (1, 2)
    assert pos[0] == pytest.approx([0.0, 0.0])


def test_force_is_deterministic_per_seed():
    a = force_layout(5, EDGES, seed=42)
    b = force_layout(5, EDGES, seed=42)
    c = force_layout(5, EDGES, seed=43)
    assert np.array_equal(a, b)
    assert not np.allclose(a, c)


def test_force_output_is_standardized():
    pos = force_layout(8, EDGES, seed=1)
    assert pos.shape == (8, 2)
    assert np.isfinite(pos).all()
    assert pos.mean(axis=0) == pytest.approx([0.0, 0.0], abs=1e-9)
    assert pos.std(axis=0, ddof=1) == pytest.approx([1.0, 1.0])


def test_force_zero_iterations_is_seeded_uniform():
    pos = force_layout(4, [], seed=3, iterations=0)
    rng = np.random.default_rng(3)
    xs = rng.uniform(-1.0, 1.0, size=4)
    ys = rng.uniform(-1.0, 1.0, size=4)
    assert np.array_equal(pos, np.column_stack([xs, ys]))


def test_force_single_node_at_origin():
    pos = force_layout(1, [])
    assert pos == pytest.approx(np.zeros((1, 2)))


def test_force_rejects_out_of_range_edges():
    with pytest.raises(ValueError, match="out of range"):
        force_layout(3, [(0, 3, 0.5)])


def test_layout_aliases():
    assert normalize_layout_name("FR") == "force"
    assert normalize_layout_name("kk") == "force"
    assert normalize_layout_name("circle") == "circle"
    with pytest.raises(ValueError, match="Unknown layout"):
        normalize_layout_name("grid")
    assert np.array_equal(compute_layout("fr", 5, EDGES), compute_layout("force", 5, EDGES))
    assert np.array_equal(compute_layout("star", 4), star_layout(4))


def _force_by_hand(n, edges, *, seed, iterations):
    """Plain-loop force layout: repel from a snapshot, attract per edge, standardize."""
    rng = np.random.default_rng(seed)
    xs = list(rng.uniform(-1.0, 1.0, size=n))
    ys = list(rng.uniform(-1.0, 1.0, size=n))
    for _ in range(iterations):
        mx = [0.0] * n
        my = [0.0] * n
        for i in range(n):
            for j in range(n):
                if i == j:
                    continue
                dx, dy = xs[i] - xs[j], ys[i] - ys[j]
                d = math.hypot(dx, dy) + 0.01
                mx[i] += 0.1 / d**2 * dx / d
                my[i] += 0.1 / d**2 * dy / d
        xs = [x + m for x, m in zip(xs, mx, strict=True)]
        ys = [y + m for y, m in zip(ys, my, strict=True)]
        for i, j, s in edges:
            dx, dy = xs[j] - xs[i], ys[j] - ys[i]
            d = math.hypot(dx, dy) + 0.01
            f = d * d * 0.01 * s
            xs[i] += f * dx / d
            ys[i] += f * dy / d
            xs[j] -= f * dx / d
            ys[j] -= f * dy / d
        xs = [(x - statistics.fmean(xs)) / statistics.stdev(xs) for x in xs]
        ys = [(y - statistics.fmean(ys)) / statistics.stdev(ys) for y in ys]
    return np.column_stack([xs, ys])


@pytest.mark.parametrize("iterations", [1, 2])
def test_force_matches_hand_computed_steps(iterations):
    got = force_layout(5, EDGES, seed=11, iterations=iterations)
    want = _force_by_hand(5, EDGES, seed=11, iterations=iterations)
    assert np.allclose(got, want, rtol=0.0, atol=1e-12)

