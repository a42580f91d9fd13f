"""E.03 — Symmetry Scores.

Compare the grid with its horizontal mirror, vertical mirror, transpose and
180° rotation. Score = fraction of cells that agree among cells where either
side holds ink. An empty drawing scores 0 on every axis.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import Variant, feature_group
from pixelspace.palette import BACKGROUND


def _match_score(grid: NDArray[np.int64], transformed: NDArray[np.int64]) -> float:
    inked = (grid != BACKGROUND) | (transformed != BACKGROUND)
    n = int(inked.sum())
    if n == 0:
        return 0.0
    return float(np.count_nonzero(grid[inked] == transformed[inked])) / n


@feature_group(
    id="E.03",
    variant=Variant.ENHANCED,
    name="symmetry",
    size=4,
    description="Horizontal, vertical, diagonal and rotational symmetry",
)
def symmetry(ctx: GridContext) -> None:
    g = ctx.grid
    ctx.groups["symmetry"] = np.array(
        [
            _match_score(g, np.fliplr(g)),  # horizontal: left/right mirror
            _match_score(g, np.flipud(g)),  # vertical: top/bottom mirror
            _match_score(g, g.T),           # diagonal: main-diagonal mirror
            _match_score(g, np.rot90(g, 2)),
        ],
        dtype=np.float64,
    )
