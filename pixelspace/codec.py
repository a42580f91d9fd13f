"""Text formats for pixel drawings.

pixel_grid   — 16 rows of 16 characters, one character per cell
pixel_string — 256 digit characters, row-major
"""

from __future__ import annotations

from pixelspace.palette import COLOR_WHITE, GRID_SIZE, NUM_COLORS, PALETTE, TOTAL_PIXELS

# '.' = empty (white) and '#' = filled (black)
GRID_CHAR_MAP: dict[str, int] = {
    ".": COLOR_WHITE,
    " ": COLOR_WHITE,
    "_": COLOR_WHITE,
    "#": 0,
    "X": 0,
    "b": 2,
    "s": 3,
    "r": 4,
    "p": 5,
    "g": 6,
    "m": 7,
    "B": 2,
    "S": 3,
    "R": 4,
    "P": 5,
    "G": 6,
    "M": 7,
}
GRID_CHARS_DISPLAY = (
    "'.'=White, '#'=Black, 'b'=Blue, 's'=Sky, 'r'=Red, 'p'=Pink, 'g'=Green, 'm'=Mint"
)


class PixelFormatError(ValueError):
    """Raised when a text drawing cannot be decoded."""


def grid_char(index: int) -> str:
    """Canonical grid character for a palette index."""
    if index == 0:
        return "#"
    if index == COLOR_WHITE:
        return "."
    return PALETTE[index].name[0].lower()


def parse_pixel_grid(grid: list[str]) -> list[int]:
    if len(grid) != GRID_SIZE:
        raise PixelFormatError(
            f"pixel_grid must have exactly {GRID_SIZE} rows, got {len(grid)}"
        )
    pixels: list[int] = []
    for y, row in enumerate(grid):
        if len(row) != GRID_SIZE:
            raise PixelFormatError(
                f"pixel_grid row {y} must have exactly {GRID_SIZE} characters, got {len(row)}"
            )
        for x, ch in enumerate(row):
            index = GRID_CHAR_MAP.get(ch)
            if index is None:
                raise PixelFormatError(
                    f"pixel_grid row {y} col {x}: unknown character {ch!r}. "
                    f"Valid chars: {GRID_CHARS_DISPLAY}"
                )
            pixels.append(index)
    return pixels


def parse_pixel_string(text: str) -> list[int]:
    if len(text) != TOTAL_PIXELS:
        raise PixelFormatError(
            f"pixel_string must be exactly {TOTAL_PIXELS} characters, got {len(text)}"
        )
    pixels: list[int] = []
    for i, ch in enumerate(text):
        if not ch.isdigit() or int(ch) >= NUM_COLORS:
            raise PixelFormatError(
                f"pixel_string char {i}: {ch!r} is not a valid color index (0-{NUM_COLORS - 1})"
            )
        pixels.append(int(ch))
    return pixels


def validate_pixels(pixels: list[int]) -> None:
    """Strict check for stored drawings. The feature extractor is lenient instead."""
    if len(pixels) != TOTAL_PIXELS:
        raise PixelFormatError(
            f"pixels array must have exactly {TOTAL_PIXELS} elements, got {len(pixels)}"
        )
    for i, v in enumerate(pixels):
        if isinstance(v, bool) or not isinstance(v, int) or not 0 <= v < NUM_COLORS:
            raise PixelFormatError(
                f"pixels[{i}]: {v} is not a valid color index (0-{NUM_COLORS - 1})"
            )


def format_pixel_grid(pixels: list[int]) -> list[str]:
    validate_pixels(pixels)
    return [
        "".join(grid_char(pixels[y * GRID_SIZE + x]) for x in range(GRID_SIZE))
        for y in range(GRID_SIZE)
    ]
