"""Incremental projector — place one new drawing near its most similar neighbors.

No graph and no optimizer: cosine similarity against the existing vectors,
a similarity²-weighted mean of the best positions, and a small offset derived
from the drawing itself so near-duplicates do not land on the same spot.
"""

from __future__ import annotations

import hashlib
import logging
import math
from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.config import IncrementalConfig, LayoutConfig
from pixelspace.engine.context import sanitize_pixels
from pixelspace.models.item import Position
from pixelspace.palette import BACKGROUND
from pixelspace.utils.math_helpers import cosine_similarities

logger = logging.getLogger(__name__)


def pixel_offset(
    pixels: NDArray[np.int64],
    config: IncrementalConfig,
    min_spacing: float,
) -> tuple[float, float]:
    """Deterministic (dx, dy) from a hash of the sanitized pixels."""
    digest = hashlib.blake2b(pixels.astype(np.uint8).tobytes(), digest_size=8).digest()
    angle_frac = int.from_bytes(digest[:4], "big") / 2**32
    radius_frac = int.from_bytes(digest[4:], "big") / 2**32

    lo = config.offset_min_fraction * min_spacing
    hi = config.offset_max_fraction * min_spacing
    angle = angle_frac * 2.0 * math.pi
    radius = lo + radius_frac * (hi - lo)
    return radius * math.cos(angle), radius * math.sin(angle)


def project(
    pixels: Iterable[Any] | None,
    vector: Sequence[float] | NDArray[np.float64],
    existing_positions: Sequence[Position],
    existing_vectors: Sequence[Sequence[float]] | NDArray[np.float64],
    config: IncrementalConfig | None = None,
    min_spacing: float | None = None,
) -> Position | None:
    """Position for a new drawing, or None when a full recompute is needed.

    existing_positions and existing_vectors are index-aligned. None is returned
    for an all-background drawing, an empty existing set, or when no existing
    drawing is positively similar. The offset radius scales with min_spacing,
    which defaults to the layout's.
    """
    config = config or IncrementalConfig()
    if min_spacing is None:
        min_spacing = LayoutConfig().min_spacing
    clean = sanitize_pixels(pixels)
    if np.all(clean == BACKGROUND):
        logger.debug("Incremental projection skipped: empty drawing")
        return None
    if len(existing_positions) == 0:
        return None
    if len(existing_positions) != len(existing_vectors):
        raise ValueError(
            f"{len(existing_positions)} positions for {len(existing_vectors)} vectors"
        )

    matrix = np.asarray(existing_vectors, dtype=np.float64)
    sims = cosine_similarities(np.asarray(vector, dtype=np.float64), matrix)

    k = min(config.top_k, len(sims))
    top = np.argsort(-sims, kind="stable")[:k]
    top = top[sims[top] > 0]
    if len(top) == 0:
        logger.debug("Incremental projection skipped: no similar neighbor")
        return None

    coords = np.array([existing_positions[i] for i in top], dtype=np.float64)
    w = sims[top] ** 2
    x, y = (coords * w[:, None]).sum(axis=0) / w.sum()

    dx, dy = pixel_offset(clean, config, min_spacing)
    logger.debug("Incremental projection from %d neighbors (best similarity %.3f)", len(top), sims[top[0]])
    return Position(float(x + dx), float(y + dy))
