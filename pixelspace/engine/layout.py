"""Layout post-processor — raw 2-D embedding to non-overlapping world positions.

cluster   both embedding axes stretched over a square of side ``spread``
timeline  x by creation time (oldest left, now right), y from the embedding

Either way the points then go through a few passes of grid-hashed collision
relaxation so no two drawings sit closer than ``min_spacing``.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timezone

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.config import LayoutConfig
from pixelspace.models.item import Item, Position, PositionMap
from pixelspace.utils.math_helpers import remap_range

logger = logging.getLogger(__name__)

LAYOUT_MODES = ("cluster", "timeline")

# Distances within this of min_spacing count as resolved.
_SPACING_EPS = 1e-6


def world_spread(n: int, config: LayoutConfig) -> float:
    return max(math.sqrt(n) * config.base_spacing * config.density_multiplier, config.min_spread)


def place(
    items: Sequence[Item],
    embedding: NDArray[np.float64] | Sequence[Sequence[float]],
    mode: str = "cluster",
    config: LayoutConfig | None = None,
    now: datetime | None = None,
    rng: np.random.Generator | None = None,
) -> PositionMap:
    """Positions for items, index-aligned with embedding rows."""
    config = config or LayoutConfig()
    if mode not in LAYOUT_MODES:
        raise ValueError(f"Unknown layout mode: {mode!r} (expected one of {LAYOUT_MODES})")

    n = len(items)
    coords = np.asarray(embedding, dtype=np.float64).reshape(-1, 2) if n else np.zeros((0, 2))
    if len(coords) != n:
        raise ValueError(f"embedding has {len(coords)} rows for {n} items")
    if n == 0:
        return {}

    spread = world_spread(n, config)
    if mode == "cluster":
        xs = remap_range(coords[:, 0], spread)
        ys = remap_range(coords[:, 1], spread)
    else:
        xs = _timeline_x(items, spread, now)
        ys = remap_range(coords[:, 1], spread * config.timeline_y_scale)

    points = np.column_stack([xs, ys])
    moved = relax_collisions(points, config.min_spacing, config.relaxation_passes, rng)
    logger.debug("Placed %d items (%s, spread=%.0f, %d relaxation passes)", n, mode, spread, moved)

    return {item.id: Position(float(x), float(y)) for item, (x, y) in zip(items, points)}


def timeline_x(
    item: Item,
    items: Sequence[Item],
    config: LayoutConfig | None = None,
    now: datetime | None = None,
) -> float:
    """Timeline x of one item against a set of items, as place() would compute it."""
    config = config or LayoutConfig()
    everyone = [i for i in items if i.id != item.id] + [item]
    return float(_timeline_x(everyone, world_spread(len(everyone), config), now)[-1])


def _timeline_x(items: Sequence[Item], spread: float, now: datetime | None) -> NDArray[np.float64]:
    stamps = np.array([item.created_at.timestamp() for item in items], dtype=np.float64)
    end = (now or datetime.now(timezone.utc)).timestamp()
    start = float(stamps.min())
    span = end - start
    if span <= 0:
        return np.zeros(len(items), dtype=np.float64)
    return (stamps - start) / span * spread - spread / 2.0


def relax_collisions(
    points: NDArray[np.float64],
    min_spacing: float,
    passes: int = 8,
    rng: np.random.Generator | None = None,
) -> int:
    """Push overlapping points apart in place. Returns the number of passes run.

    Each pass buckets points into a uniform grid of cell size min_spacing and
    only compares points in the 3x3 surrounding cells. Every overlapping pair
    is separated symmetrically to exactly min_spacing. Stops after the first
    pass that moves nothing.
    """
    n = len(points)
    if n < 2 or min_spacing <= 0:
        return 0
    rng = rng or np.random.default_rng(0)
    threshold = min_spacing - _SPACING_EPS

    for pass_no in range(1, passes + 1):
        cells: dict[tuple[int, int], list[int]] = defaultdict(list)
        for idx in range(n):
            cells[_cell(points[idx], min_spacing)].append(idx)

        moves = 0
        for idx in range(n):
            cx, cy = _cell(points[idx], min_spacing)
            for gx in (cx - 1, cx, cx + 1):
                for gy in (cy - 1, cy, cy + 1):
                    for other in cells.get((gx, gy), ()):
                        if other <= idx:
                            continue
                        if _separate(points, idx, other, min_spacing, threshold, rng):
                            moves += 1

        if moves == 0:
            return pass_no
        logger.debug("Relaxation pass %d: %d pairs separated", pass_no, moves)
    return passes


def _cell(point: NDArray[np.float64], size: float) -> tuple[int, int]:
    return int(math.floor(point[0] / size)), int(math.floor(point[1] / size))


def _separate(
    points: NDArray[np.float64],
    i: int,
    j: int,
    min_spacing: float,
    threshold: float,
    rng: np.random.Generator,
) -> bool:
    delta = points[j] - points[i]
    dist = float(math.hypot(delta[0], delta[1]))
    if dist >= threshold:
        return False
    if dist < 1e-9:
        angle = rng.random() * 2.0 * math.pi
        direction = np.array([math.cos(angle), math.sin(angle)])
    else:
        direction = delta / dist
    push = (min_spacing - dist) / 2.0
    points[i] -= direction * push
    points[j] += direction * push
    return True
