"""Palette and grid constants shared by the feature extractor and codecs.

Drawings are 16x16 grids of color indices into an 8-color palette. Index 1
(White) is the background: an untouched cell of the editor.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

GRID_SIZE = 16
TOTAL_PIXELS = GRID_SIZE * GRID_SIZE
NUM_COLORS = 8

COLOR_BLACK = 0
COLOR_WHITE = 1
BACKGROUND = COLOR_WHITE

# Legacy drawings stored 8-bit grayscale: 0 = black, 255 = white.
_LEGACY_WHITE = 255
_LEGACY_THRESHOLD = 127


@dataclass(frozen=True)
class Color:
    name: str
    r: int
    g: int
    b: int

    @property
    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @property
    def luminance(self) -> float:
        """Rec. 601 luma in [0, 255]."""
        return 0.299 * self.r + 0.587 * self.g + 0.114 * self.b


PALETTE: tuple[Color, ...] = (
    Color("Black", 0, 0, 0),
    Color("White", 255, 255, 255),
    Color("Blue", 41, 98, 255),
    Color("Sky", 86, 204, 242),
    Color("Red", 235, 64, 52),
    Color("Pink", 255, 128, 191),
    Color("Green", 46, 160, 67),
    Color("Mint", 152, 236, 190),
)

# Perceptual "ink" value per color: 0 for the white background, 1 for black.
PERCEPTUAL_VALUES: NDArray[np.float64] = np.array(
    [1.0 - c.luminance / 255.0 for c in PALETTE], dtype=np.float64
)


def is_legacy_bw_format(pixels: list[int] | tuple[int, ...]) -> bool:
    """True when every value is 0 or 255 and at least one is 255."""
    seen_white = False
    for v in pixels:
        if v == _LEGACY_WHITE:
            seen_white = True
        elif v != 0:
            return False
    return seen_white


def convert_legacy_pixels(pixels: list[int] | tuple[int, ...]) -> list[int]:
    """Map grayscale values onto Black/White palette indices."""
    return [COLOR_BLACK if v <= _LEGACY_THRESHOLD else COLOR_WHITE for v in pixels]


def default_pixels() -> list[int]:
    """An empty (all-background) drawing."""
    return [BACKGROUND] * TOTAL_PIXELS
