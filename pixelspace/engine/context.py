"""GridContext — the state object flowing through all feature groups of one drawing.

Per-group outputs → GridContext.groups (keyed by group name)
Shared geometry   → cached properties on the context
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pixelspace.palette import (
    BACKGROUND,
    GRID_SIZE,
    NUM_COLORS,
    PERCEPTUAL_VALUES,
    TOTAL_PIXELS,
    convert_legacy_pixels,
    is_legacy_bw_format,
)

logger = logging.getLogger(__name__)


def _valid_index(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, np.integer)):
        return 0 <= value < NUM_COLORS
    if isinstance(value, (float, np.floating)):
        return math.isfinite(value) and float(value).is_integer() and 0 <= value < NUM_COLORS
    return False


def sanitize_pixels(pixels: Iterable[Any] | None) -> NDArray[np.int64]:
    """Coerce anything pixel-like into a valid 256-cell index array.

    Too short → padded with background, too long → truncated, invalid
    entries → background. Never raises.
    """
    try:
        values = list(pixels) if pixels is not None else []
    except TypeError:
        values = []

    if is_legacy_bw_format(values):
        values = convert_legacy_pixels(values)

    out = np.full(TOTAL_PIXELS, BACKGROUND, dtype=np.int64)
    replaced = 0
    for i, v in enumerate(values[:TOTAL_PIXELS]):
        if _valid_index(v):
            out[i] = int(v)
        else:
            replaced += 1

    if len(values) != TOTAL_PIXELS or replaced:
        logger.debug(
            "Sanitized pixels: length %d -> %d, %d invalid entries replaced",
            len(values),
            TOTAL_PIXELS,
            replaced,
        )
    return out


@dataclass
class GridContext:
    """Shared state for extracting one drawing's feature vector."""

    # 16x16 color indices, row-major (row = y, col = x)
    grid: NDArray[np.int64] = field(
        default_factory=lambda: np.full((GRID_SIZE, GRID_SIZE), BACKGROUND, dtype=np.int64)
    )

    # Intermediate state for the Invariant variant
    recentered: NDArray[np.float64] | None = None

    # --- Outputs ---
    groups: dict[str, NDArray[np.float64]] = field(default_factory=dict)
    completed_groups: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_pixels(cls, pixels: Iterable[Any] | None) -> "GridContext":
        return cls(grid=sanitize_pixels(pixels).reshape(GRID_SIZE, GRID_SIZE))

    @cached_property
    def mask(self) -> NDArray[np.bool_]:
        """True where a cell is not background."""
        return self.grid != BACKGROUND

    @cached_property
    def values(self) -> NDArray[np.float64]:
        """Perceptual ink value per cell (background = 0)."""
        return PERCEPTUAL_VALUES[self.grid]

    @property
    def foreground_count(self) -> int:
        return int(self.mask.sum())

    @property
    def is_empty(self) -> bool:
        return self.foreground_count == 0

    @cached_property
    def bbox(self) -> tuple[int, int, int, int] | None:
        """(row_min, col_min, row_max, col_max) of foreground cells, inclusive."""
        if self.is_empty:
            return None
        rows = np.flatnonzero(self.mask.any(axis=1))
        cols = np.flatnonzero(self.mask.any(axis=0))
        return (int(rows[0]), int(cols[0]), int(rows[-1]), int(cols[-1]))

    @cached_property
    def centroid(self) -> tuple[float, float]:
        """Unweighted (row, col) centroid of foreground cells; grid center when empty."""
        if self.is_empty:
            center = (GRID_SIZE - 1) / 2
            return (center, center)
        rows, cols = np.nonzero(self.mask)
        return (float(rows.mean()), float(cols.mean()))

    @property
    def pixels(self) -> list[int]:
        return [int(v) for v in self.grid.ravel()]
