"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from pixelspace.codec import parse_pixel_grid
from pixelspace.engine.pipeline import register_feature_groups
from pixelspace.models.item import Item

register_feature_groups()


# Sample drawings in pixel_grid text form

SMILEY_GRID = [
    "................",
    "....########....",
    "..##........##..",
    ".#............#.",
    ".#...##..##...#.",
    "#....##..##....#",
    "#..............#",
    "#..............#",
    "#..r........r..#",
    "#...r......r...#",
    ".#...rrrrrr...#.",
    ".#............#.",
    "..##........##..",
    "....########....",
    "................",
    "................",
]

# Symmetric under a 180-degree turn, but not under either mirror.
PINWHEEL_GRID = [
    "................",
    "................",
    "..bbbb..........",
    "..bbbb..........",
    "......gg........",
    "......gg........",
    "................",
    "....rr...#......",
    "......#...rr....",
    "................",
    "........gg......",
    "........gg......",
    "..........bbbb..",
    "..........bbbb..",
    "................",
    "................",
]

HOUSE_GRID = [
    "................",
    ".......##.......",
    "......####......",
    ".....######.....",
    "....########....",
    "...##########...",
    "....rrrrrrrr....",
    "....r......r....",
    "....r..bb..r....",
    "....r..bb..r....",
    "....r......r....",
    "....r..gg..r....",
    "....r..gg..r....",
    "....rrrrrrrr....",
    "gggggggggggggggg",
    "................",
]

SMILEY = parse_pixel_grid(SMILEY_GRID)
PINWHEEL = parse_pixel_grid(PINWHEEL_GRID)
HOUSE = parse_pixel_grid(HOUSE_GRID)
BLANK = [1] * 256


def single_pixel(index: int, color: int = 0) -> list[int]:
    pixels = [1] * 256
    pixels[index] = color
    return pixels


def filled_square(row: int, col: int, size: int, color: int = 0) -> list[int]:
    pixels = [1] * 256
    for r in range(row, min(row + size, 16)):
        for c in range(col, min(col + size, 16)):
            pixels[r * 16 + c] = color
    return pixels


def make_item(item_id: str, pixels: list[int], minutes_ago: float = 0.0) -> Item:
    created = datetime(2026, 1, 1, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago)
    return Item(id=item_id, pixels=tuple(pixels), created_at=created)


def clustered_vectors(seed: int = 0, per_cluster: int = 12, dims: int = 102) -> np.ndarray:
    """Three well-separated Gaussian blobs, rows grouped by cluster."""
    rng = np.random.default_rng(seed)
    centers = rng.normal(0.0, 10.0, size=(3, dims))
    blobs = [c + rng.normal(0.0, 0.3, size=(per_cluster, dims)) for c in centers]
    return np.vstack(blobs)


@pytest.fixture
def smiley() -> list[int]:
    return list(SMILEY)


@pytest.fixture
def pinwheel() -> list[int]:
    return list(PINWHEEL)


@pytest.fixture
def house() -> list[int]:
    return list(HOUSE)


@pytest.fixture
def blank() -> list[int]:
    return list(BLANK)
