"""I.01 — Recenter.

Shift the perceptual value grid so the ink-weighted centroid of the
non-background cells lands on the grid center. Cells shifted in from
outside are background (value 0). Removes translation.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import Variant, feature_group
from pixelspace.palette import GRID_SIZE

_CENTER = (GRID_SIZE - 1) / 2


def shift_grid(values: NDArray[np.float64], dy: int, dx: int) -> NDArray[np.float64]:
    """Translate a 2-D array by whole cells, filling vacated cells with 0."""
    out = np.zeros_like(values)
    h, w = values.shape
    if abs(dy) >= h or abs(dx) >= w:
        return out
    src_r = slice(max(0, -dy), h - max(0, dy))
    dst_r = slice(max(0, dy), h - max(0, -dy))
    src_c = slice(max(0, -dx), w - max(0, dx))
    dst_c = slice(max(0, dx), w - max(0, -dx))
    out[dst_r, dst_c] = values[src_r, src_c]
    return out


@feature_group(
    id="I.01",
    variant=Variant.INVARIANT,
    name="recenter",
    description="Center the drawing on its weighted ink centroid",
)
def recenter(ctx: GridContext) -> None:
    values = ctx.values
    weights = np.where(ctx.mask, values, 0.0)
    total = float(weights.sum())
    if total <= 0:
        ctx.recentered = values.copy()
        return

    rows, cols = np.indices(values.shape)
    cy = float((rows * weights).sum()) / total
    cx = float((cols * weights).sum()) / total
    dy = int(round(_CENTER - cy))
    dx = int(round(_CENTER - cx))
    ctx.recentered = shift_grid(values, dy, dx)
