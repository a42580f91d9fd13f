"""E.05 — Connected Components.

Label 4-connected regions of ink (any non-background color) and report the
capped component count plus largest, smallest and mean component size as a
fraction of all inked cells.
"""

from __future__ import annotations

import numpy as np
from skimage.measure import label

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import Variant, feature_group

# Beyond ten separate blobs a drawing reads as "scattered"; the count saturates.
_MAX_COMPONENTS = 10


@feature_group(
    id="E.05",
    variant=Variant.ENHANCED,
    name="components",
    size=4,
    description="Connected component count and size ratios",
)
def components(ctx: GridContext) -> None:
    if ctx.is_empty:
        ctx.groups["components"] = np.zeros(4, dtype=np.float64)
        return

    labels, count = label(ctx.mask, connectivity=1, background=0, return_num=True)
    sizes = np.bincount(labels.ravel())[1:]
    total = float(sizes.sum())

    ctx.groups["components"] = np.array(
        [
            min(count, _MAX_COMPONENTS) / _MAX_COMPONENTS,
            sizes.max() / total,
            sizes.min() / total,
            sizes.mean() / total,
        ],
        dtype=np.float64,
    )
