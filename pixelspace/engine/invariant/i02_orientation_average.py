"""I.02 — Orientation Average.

Generate the 8 dihedral orientations of the recentered grid (4 rotations,
each with and without a horizontal flip), downsample each to 8x8 by 2x2
block means and average them. Removes rotation and reflection.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import Variant, feature_group
from pixelspace.palette import GRID_SIZE

_OUT = GRID_SIZE // 2


def downsample(values: NDArray[np.float64]) -> NDArray[np.float64]:
    return values.reshape(_OUT, 2, _OUT, 2).mean(axis=(1, 3))


def orientations(values: NDArray[np.float64]) -> list[NDArray[np.float64]]:
    variants: list[NDArray[np.float64]] = []
    for k in range(4):
        rotated = np.rot90(values, k)
        variants.append(rotated)
        variants.append(np.fliplr(rotated))
    return variants


@feature_group(
    id="I.02",
    variant=Variant.INVARIANT,
    name="orientation_average",
    size=_OUT * _OUT,
    weighted=False,
    dependencies=["I.01"],
    description="Average of 8 downsampled orientations",
)
def orientation_average(ctx: GridContext) -> None:
    if ctx.recentered is None:
        raise ValueError("recentered grid missing; I.01 must run first")
    stacked = np.stack([downsample(v) for v in orientations(ctx.recentered)])
    ctx.groups["orientation_average"] = stacked.mean(axis=0).ravel()
