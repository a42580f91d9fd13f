"""E.02 — Color Adjacency.

8x8 co-occurrence of colors in orthogonally adjacent cells, counted in both
directions and normalized to sum to 1. Captures which colors touch which.
"""

from __future__ import annotations

import numpy as np

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import Variant, feature_group
from pixelspace.palette import NUM_COLORS


@feature_group(
    id="E.02",
    variant=Variant.ENHANCED,
    name="color_adjacency",
    size=NUM_COLORS * NUM_COLORS,
    description="Orthogonal color co-occurrence matrix",
)
def color_adjacency(ctx: GridContext) -> None:
    g = ctx.grid
    co = np.zeros((NUM_COLORS, NUM_COLORS), dtype=np.float64)

    # Horizontal then vertical neighbor pairs
    for a, b in ((g[:, :-1], g[:, 1:]), (g[:-1, :], g[1:, :])):
        np.add.at(co, (a.ravel(), b.ravel()), 1.0)
        np.add.at(co, (b.ravel(), a.ravel()), 1.0)

    total = co.sum()
    if total > 0:
        co /= total
    ctx.groups["color_adjacency"] = co.ravel()
