"""Math helpers — safe ratios, cosine similarity, range remapping. No engine imports."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, 0.0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return float(numerator) / float(denominator)


def cosine_similarities(query: NDArray[np.float64], matrix: NDArray[np.float64]) -> NDArray[np.float64]:
    """Cosine similarity of one vector against each row of a matrix, in [-1, 1].

    Zero vectors score 0 against everything.
    """
    q_norm = float(np.linalg.norm(query))
    row_norms = np.linalg.norm(matrix, axis=1)
    denom = row_norms * q_norm
    dots = matrix @ query
    out = np.zeros(len(matrix), dtype=np.float64)
    nonzero = denom > 1e-12
    out[nonzero] = dots[nonzero] / denom[nonzero]
    return out


def remap_range(values: NDArray[np.float64], spread: float) -> NDArray[np.float64]:
    """Linearly map values onto [-spread/2, spread/2]. A constant input maps to 0."""
    if len(values) == 0:
        return np.zeros(0, dtype=np.float64)
    lo = float(np.min(values))
    hi = float(np.max(values))
    span = hi - lo
    if span < 1e-12:
        return np.zeros(len(values), dtype=np.float64)
    return (values - lo) / span * spread - spread / 2.0
