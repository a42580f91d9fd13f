"""Tests for world placement and collision relaxation."""

from datetime import datetime, timezone

import numpy as np
import pytest
from scipy.spatial.distance import pdist

from pixelspace.engine.config import LayoutConfig
from pixelspace.engine.layout import place, relax_collisions, world_spread
from pixelspace.models.item import Position
from tests.conftest import BLANK, make_item

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _items(n: int):
    return [make_item(f"d{i}", BLANK, minutes_ago=n - i) for i in range(n)]


def test_world_spread():
    cfg = LayoutConfig()
    assert world_spread(4, cfg) == 300.0
    assert world_spread(100, cfg) == pytest.approx(600.0)
    assert world_spread(100, LayoutConfig(density_multiplier=2.0)) == pytest.approx(1200.0)


def test_place_empty():
    assert place([], np.zeros((0, 2))) == {}


def test_cluster_mode_fills_spread():
    items = _items(3)
    emb = np.array([[0.0, 0.0], [10.0, 5.0], [5.0, 10.0]])
    positions = place(items, emb)
    assert set(positions) == {"d0", "d1", "d2"}
    assert all(isinstance(p, Position) for p in positions.values())
    xs = [p.x for p in positions.values()]
    ys = [p.y for p in positions.values()]
    assert min(xs) == pytest.approx(-150.0)
    assert max(xs) == pytest.approx(150.0)
    assert min(ys) == pytest.approx(-150.0)
    assert max(ys) == pytest.approx(150.0)


def test_cluster_mode_zero_width_axis():
    items = _items(3)
    emb = np.array([[0.0, 1.0], [100.0, 1.0], [200.0, 1.0]])
    positions = place(items, emb)
    assert all(p.y == 0.0 for p in positions.values())


def test_single_item_at_origin():
    positions = place(_items(1), [[3.0, 4.0]])
    assert positions["d0"] == Position(0.0, 0.0)


def test_timeline_mode_orders_by_time():
    items = [
        make_item("old", BLANK, minutes_ago=60),
        make_item("mid", BLANK, minutes_ago=30),
        make_item("new", BLANK, minutes_ago=0),
    ]
    emb = np.array([[9.0, 0.0], [0.0, 1.0], [-9.0, 2.0]])
    positions = place(items, emb, mode="timeline", now=NOW)
    assert positions["old"].x == pytest.approx(-150.0)
    assert positions["mid"].x == pytest.approx(0.0)
    assert positions["new"].x == pytest.approx(150.0)
    # y spans 0.6 * spread
    assert positions["old"].y == pytest.approx(-90.0)
    assert positions["new"].y == pytest.approx(90.0)


def test_unknown_mode_rejected():
    with pytest.raises(ValueError, match="Unknown layout mode"):
        place(_items(2), np.zeros((2, 2)), mode="spiral")


def test_embedding_length_mismatch():
    with pytest.raises(ValueError):
        place(_items(3), np.zeros((2, 2)))


def test_min_spacing_after_placement():
    rng = np.random.default_rng(0)
    items = _items(40)
    emb = rng.normal(size=(40, 2))
    emb[:10] = 0.0  # ten coincident points
    positions = place(items, emb, config=LayoutConfig(relaxation_passes=200))
    pts = np.array(list(positions.values()))
    assert pdist(pts).min() >= 36.0 - 1e-6


def test_relax_pushes_pair_to_exact_spacing():
    pts = np.array([[0.0, 0.0], [10.0, 0.0]])
    relax_collisions(pts, 36.0)
    assert np.linalg.norm(pts[1] - pts[0]) == pytest.approx(36.0)
    # symmetric about the midpoint
    np.testing.assert_allclose(pts.mean(axis=0), [5.0, 0.0])


def test_relax_coincident_points_separated():
    pts = np.zeros((2, 2))
    relax_collisions(pts, 36.0, rng=np.random.default_rng(1))
    assert np.linalg.norm(pts[1] - pts[0]) == pytest.approx(36.0)


def test_relax_stops_early_when_nothing_overlaps():
    pts = np.array([[0.0, 0.0], [100.0, 0.0], [0.0, 100.0]])
    before = pts.copy()
    assert relax_collisions(pts, 36.0, passes=8) == 1
    np.testing.assert_array_equal(pts, before)


def test_relax_idempotent_at_convergence():
    rng = np.random.default_rng(3)
    pts = rng.normal(scale=30.0, size=(30, 2))
    passes = relax_collisions(pts, 36.0, passes=200, rng=rng)
    assert passes < 200
    settled = pts.copy()
    assert relax_collisions(pts, 36.0, passes=8, rng=rng) == 1
    np.testing.assert_array_equal(pts, settled)
