"""PCA by power iteration with deflation.

Small inputs only (at most 64 dims): the covariance matrix is formed
explicitly and the leading eigenvectors are pulled out one at a time.
Orthogonality between components is only as good as float precision after
deflation, which is enough for an embedding aid.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


def n_components_for(n: int, dims: int, max_components: int = 16) -> int:
    return max(0, min(max_components, dims, n - 1))


def power_iteration(
    matrix: NDArray[np.float64],
    iterations: int,
    rng: np.random.Generator,
) -> tuple[float, NDArray[np.float64]]:
    """Dominant (eigenvalue, unit eigenvector) of a symmetric matrix."""
    v = rng.standard_normal(len(matrix))
    v /= np.linalg.norm(v) or 1.0
    for _ in range(iterations):
        w = matrix @ v
        norm = float(np.linalg.norm(w))
        if norm < 1e-12:
            # Remaining spectrum is zero; any unit vector is an eigenvector.
            break
        v = w / norm
    eigenvalue = float(v @ matrix @ v)
    return eigenvalue, v


def pca(
    data: NDArray[np.float64],
    max_components: int = 16,
    iterations: int = 100,
    rng: np.random.Generator | None = None,
) -> NDArray[np.float64]:
    """Project centered data onto its top min(max_components, dims, n-1) components."""
    rng = rng or np.random.default_rng()
    n, dims = data.shape
    k = n_components_for(n, dims, max_components)
    if k == 0:
        return np.zeros((n, 0), dtype=np.float64)

    centered = data - data.mean(axis=0)
    cov = centered.T @ centered / max(n - 1, 1)

    components = np.empty((k, dims), dtype=np.float64)
    eigenvalues: list[float] = []
    for c in range(k):
        eigenvalue, v = power_iteration(cov, iterations, rng)
        components[c] = v
        eigenvalues.append(eigenvalue)
        cov = cov - eigenvalue * np.outer(v, v)

    logger.debug("PCA: %d -> %d dims, leading eigenvalues %s", dims, k, np.round(eigenvalues[:3], 4))
    return centered @ components.T
