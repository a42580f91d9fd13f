"""Affinity and neighbor graphs for the two projectors.

t-SNE  — dense pairwise squared distances → Gaussian conditionals with a
         per-point bandwidth matched to the target perplexity → symmetric P.
UMAP   — optional sparse random projection → k nearest neighbors → fuzzy
         membership strength per edge, deduplicated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy import sparse
from scipy.spatial import cKDTree
from scipy.spatial.distance import cdist

logger = logging.getLogger(__name__)

_SIGMA_MIN = 1e-10
_SIGMA_MAX = 1e10
# Probabilities below this are ignored in the entropy sum (log of ~0).
_ENTROPY_FLOOR = 1e-10


@dataclass
class AffinityGraph:
    """Symmetric weighted edges over item indices (head[i] -- tail[i], weight[i])."""

    n: int
    head: NDArray[np.int64]
    tail: NDArray[np.int64]
    weights: NDArray[np.float64]

    @property
    def n_edges(self) -> int:
        return len(self.head)


# ---------------------------------------------------------------------------
# t-SNE affinities
# ---------------------------------------------------------------------------


def pairwise_sq_distances(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """Full symmetric matrix of squared Euclidean distances, zero diagonal."""
    dist = cdist(data, data, metric="sqeuclidean")
    np.fill_diagonal(dist, 0.0)
    return dist


def effective_perplexity(configured: float, n: int) -> float:
    """min(configured, floor((n-1)/3)), never below 1 so log(perplexity) stays finite."""
    return max(1.0, min(float(configured), float((n - 1) // 3)))


def _row_probabilities(dist_row: NDArray[np.float64], i: int, sigma: float) -> NDArray[np.float64]:
    p = np.exp(-dist_row / (2.0 * sigma * sigma))
    p[i] = 0.0
    total = p.sum()
    if total > 0:
        p /= total
    return p


def _entropy(p: NDArray[np.float64]) -> float:
    nz = p[p > _ENTROPY_FLOOR]
    return float(-np.sum(nz * np.log(nz)))


def conditional_probabilities(
    distances: NDArray[np.float64],
    perplexity: float,
    max_steps: int = 50,
    tolerance: float = 1e-5,
) -> NDArray[np.float64]:
    """P(j|i) per row, with each row's Gaussian bandwidth found by bisection.

    The bandwidth is searched so the row's entropy (natural log) equals
    log(perplexity).
    """
    n = len(distances)
    target = math.log(perplexity)
    P = np.zeros((n, n), dtype=np.float64)

    for i in range(n):
        lo, hi, sigma = _SIGMA_MIN, _SIGMA_MAX, 1.0
        row = _row_probabilities(distances[i], i, sigma)
        for _ in range(max_steps):
            row = _row_probabilities(distances[i], i, sigma)
            entropy = _entropy(row)
            if abs(entropy - target) < tolerance:
                break
            if entropy > target:
                hi = sigma
                sigma = (sigma + lo) / 2.0
            else:
                lo = sigma
                sigma = (sigma + hi) / 2.0
        P[i] = row

    return P


def symmetrize(conditional: NDArray[np.float64]) -> NDArray[np.float64]:
    """(P(j|i) + P(i|j)) / 2N, then normalized to sum to 1."""
    n = len(conditional)
    P = (conditional + conditional.T) / (2.0 * n)
    np.fill_diagonal(P, 0.0)
    total = P.sum()
    if total > 0:
        P /= total
    return P


def tsne_affinities(
    data: NDArray[np.float64],
    perplexity: float,
    max_steps: int = 50,
    tolerance: float = 1e-5,
) -> NDArray[np.float64]:
    n = len(data)
    perp = effective_perplexity(perplexity, n)
    logger.debug("t-SNE affinities: n=%d perplexity=%.2f (configured %.2f)", n, perp, perplexity)
    distances = pairwise_sq_distances(data)
    return symmetrize(conditional_probabilities(distances, perp, max_steps, tolerance))


# ---------------------------------------------------------------------------
# UMAP neighbor graph
# ---------------------------------------------------------------------------


def random_projection_matrix(
    from_dim: int,
    to_dim: int,
    rng: np.random.Generator,
) -> sparse.csr_matrix:
    """Sparse ternary (to_dim x from_dim) matrix: ±sqrt(3)/sqrt(to_dim) w.p. 1/6 each, else 0."""
    scale = math.sqrt(3.0) / math.sqrt(to_dim)
    r = rng.random((to_dim, from_dim))
    values = np.zeros((to_dim, from_dim), dtype=np.float64)
    values[r < 1.0 / 6.0] = scale
    values[(r >= 1.0 / 6.0) & (r < 2.0 / 6.0)] = -scale
    return sparse.csr_matrix(values)


def random_projection(
    data: NDArray[np.float64],
    target_dim: int,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Project rows down to target_dim; returns data unchanged when already small enough."""
    dims = data.shape[1]
    if dims <= target_dim:
        return data
    matrix = random_projection_matrix(dims, target_dim, rng)
    return np.asarray(matrix.dot(data.T).T)


def effective_k(configured: int, n: int, cap: int = 15) -> int:
    return max(1, min(configured, (n - 1) // 2, cap))


def knn(data: NDArray[np.float64], k: int) -> tuple[NDArray[np.int64], NDArray[np.float64]]:
    """k nearest neighbors of each row (self excluded), ascending Euclidean distance."""
    n = len(data)
    k = min(k, n - 1)
    tree = cKDTree(data)
    # k + 1 >= 2, so query returns (n, k + 1) arrays
    dists, idx = tree.query(data, k=k + 1)

    indices = np.empty((n, k), dtype=np.int64)
    distances = np.empty((n, k), dtype=np.float64)
    for i in range(n):
        # Duplicate points can push self out of column 0.
        keep = idx[i] != i
        row_idx = idx[i][keep][:k]
        row_dist = dists[i][keep][:k]
        indices[i] = row_idx
        distances[i] = row_dist
    return indices, distances


def membership_strengths(
    indices: NDArray[np.int64],
    distances: NDArray[np.float64],
) -> AffinityGraph:
    """exp(-(d - rho) / sigma) per neighbor edge, symmetric duplicates dropped."""
    n = len(indices)
    head: list[int] = []
    tail: list[int] = []
    weights: list[float] = []
    seen: set[tuple[int, int]] = set()

    for i in range(n):
        local = distances[i]
        rho = float(local[0]) if len(local) > 0 else 0.0
        sigma = 1.0
        if len(local) > 1:
            sigma = float(local[-1]) - rho
            if sigma <= 0:
                sigma = 1.0

        for j, d in zip(indices[i], local):
            j = int(j)
            key = (i, j) if i < j else (j, i)
            if key in seen:
                continue
            seen.add(key)
            head.append(i)
            tail.append(j)
            weights.append(math.exp(-max(0.0, float(d) - rho) / sigma))

    return AffinityGraph(
        n=n,
        head=np.array(head, dtype=np.int64),
        tail=np.array(tail, dtype=np.int64),
        weights=np.array(weights, dtype=np.float64),
    )
