"""E.06 — Spatial Density.

Ink density of each 4x4 block on a 4x4 block layout (16 values, row-major).
"""

from __future__ import annotations

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import Variant, feature_group
from pixelspace.palette import GRID_SIZE

_BLOCKS = 4
_BLOCK = GRID_SIZE // _BLOCKS


@feature_group(
    id="E.06",
    variant=Variant.ENHANCED,
    name="spatial_density",
    size=_BLOCKS * _BLOCKS,
    description="4x4 block non-background density",
)
def spatial_density(ctx: GridContext) -> None:
    blocks = ctx.mask.reshape(_BLOCKS, _BLOCK, _BLOCKS, _BLOCK).mean(axis=(1, 3))
    ctx.groups["spatial_density"] = blocks.ravel().astype(float)
