"""E.04 — Structural Scalars.

Six shape descriptors of the inked region:
fill ratio, edge density, bbox aspect / 2, bbox coverage, centroid
dispersion, non-background ratio. All resolve to 0 for an empty drawing.
"""

from __future__ import annotations

import numpy as np

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import Variant, feature_group
from pixelspace.palette import GRID_SIZE, TOTAL_PIXELS
from pixelspace.utils.math_helpers import safe_ratio

# Orthogonal neighbor pairs on a 16x16 grid: 2 * 16 * 15.
_ADJACENT_PAIRS = 2 * GRID_SIZE * (GRID_SIZE - 1)
# Aspect ratios above 2:1 saturate; halving maps the clipped value into [0, 1].
_ASPECT_CAP = 2.0
# Farthest a cell can sit from the grid center: half the cell-center diagonal.
_MAX_DISPERSION = np.sqrt(2.0) * (GRID_SIZE - 1) / 2


@feature_group(
    id="E.04",
    variant=Variant.ENHANCED,
    name="structure",
    size=6,
    description="Fill, edges, bounding box and dispersion scalars",
)
def structure(ctx: GridContext) -> None:
    if ctx.is_empty or ctx.bbox is None:
        ctx.groups["structure"] = np.zeros(6, dtype=np.float64)
        return

    g = ctx.grid
    n = ctx.foreground_count

    r0, c0, r1, c1 = ctx.bbox
    height = r1 - r0 + 1
    width = c1 - c0 + 1
    bbox_area = width * height

    changes = np.count_nonzero(g[:, :-1] != g[:, 1:]) + np.count_nonzero(g[:-1, :] != g[1:, :])

    rows, cols = np.nonzero(ctx.mask)
    cy, cx = ctx.centroid
    dispersion = float(np.mean(np.hypot(rows - cy, cols - cx)))

    ctx.groups["structure"] = np.array(
        [
            safe_ratio(n, bbox_area),
            changes / _ADJACENT_PAIRS,
            min(safe_ratio(width, height), _ASPECT_CAP) / 2.0,
            bbox_area / TOTAL_PIXELS,
            min(dispersion / _MAX_DISPERSION, 1.0),
            n / TOTAL_PIXELS,
        ],
        dtype=np.float64,
    )
