"""E.01 — Color Histogram.

Fraction of cells per palette color. Always sums to 1.
"""

from __future__ import annotations

import numpy as np

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import Variant, feature_group
from pixelspace.palette import NUM_COLORS, TOTAL_PIXELS


@feature_group(
    id="E.01",
    variant=Variant.ENHANCED,
    name="color_histogram",
    size=NUM_COLORS,
    description="Per-color cell fractions",
)
def color_histogram(ctx: GridContext) -> None:
    counts = np.bincount(ctx.grid.ravel(), minlength=NUM_COLORS)
    ctx.groups["color_histogram"] = counts.astype(np.float64) / TOTAL_PIXELS
