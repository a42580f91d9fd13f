"""UMAPOptimizer — fuzzy k-NN graph layout by stochastic edge sampling.

Steps:
  1. Sparse random projection to 32 dims (102-dim enhanced vectors)
  2. k nearest neighbors, k = min(nNeighbors, (N-1)//2, 15)
  3. Membership strength per edge, symmetric duplicates dropped
  4. Random init, then up to 50 epochs of attract / repel updates
"""

from __future__ import annotations

import time

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.reduction.affinity import (
    AffinityGraph,
    effective_k,
    knn,
    membership_strengths,
    random_projection,
)
from pixelspace.engine.reduction.optimizer import EmbeddingOptimizer
from pixelspace.models.messages import UMAPConfig

# Keeps the curve terms finite when two points coincide.
_DIST_EPS = 0.001


def curve_parameters(min_dist: float) -> tuple[float, float]:
    """Closed-form (a, b) fit of the low-dimensional similarity curve."""
    a = 1.929 - 3.52 * min_dist + 5.73 * min_dist * min_dist
    b = 0.7915 + 0.2045 * min_dist
    return a, b


class UMAPOptimizer(EmbeddingOptimizer):
    name = "umap"

    def __init__(self, params: UMAPConfig | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.params = params or UMAPConfig()

    def _trivial(self, n: int) -> NDArray[np.float64] | None:
        trivial = super()._trivial(n)
        if trivial is not None:
            return trivial
        if n <= self.config.small_dataset_threshold:
            self.log(f"Small dataset ({n} points), using random layout")
            return (self.rng.random((n, 2)) - 0.5) * self.config.small_dataset_spread
        return None

    def _optimize(self, data: NDArray[np.float64]) -> NDArray[np.float64]:
        cfg = self.config
        n = len(data)

        t0 = time.perf_counter()
        projected = random_projection(data, cfg.projection_dim, self.rng)
        self.log(f"Projection {data.shape[1]}D -> {projected.shape[1]}D in {(time.perf_counter() - t0) * 1000:.1f}ms")

        t0 = time.perf_counter()
        k = effective_k(self.params.n_neighbors, n, cfg.max_neighbors)
        indices, distances = knn(projected, k)
        graph = membership_strengths(indices, distances)
        self.log(f"k-NN graph (k={k}, {graph.n_edges} edges) in {(time.perf_counter() - t0) * 1000:.1f}ms")

        init = (self.rng.random((n, 2)) - 0.5) * cfg.umap_init_scale
        epochs = min(self.params.n_epochs, cfg.max_epochs)

        t0 = time.perf_counter()
        embedding = self._optimize_layout(init, graph, epochs)
        self.log(f"Layout optimized ({epochs} epochs) in {(time.perf_counter() - t0) * 1000:.1f}ms")
        return embedding

    def _optimize_layout(
        self,
        init: NDArray[np.float64],
        graph: AffinityGraph,
        epochs: int,
    ) -> NDArray[np.float64]:
        cfg = self.config
        n = graph.n
        a, b = curve_parameters(self.params.min_dist)
        clip = cfg.grad_clip
        rate = cfg.negative_sample_rate

        order = np.argsort(-graph.weights, kind="stable")
        heads = graph.head[order].tolist()
        tails = graph.tail[order].tolist()
        n_edges = len(heads)

        # Plain float lists: per-edge scalar updates on ndarrays are far slower.
        Y = init.tolist()

        for epoch in range(epochs):
            alpha = 1.0 - epoch / epochs
            negatives = self.rng.integers(0, n, size=(n_edges, 2, rate)).tolist()

            for e in range(n_edges):
                i, j = heads[e], tails[e]
                yi, yj = Y[i], Y[j]

                dx = yi[0] - yj[0]
                dy = yi[1] - yj[1]
                dist_sq = dx * dx + dy * dy + _DIST_EPS
                coef = (-2.0 * a * b * dist_sq ** (b - 1.0)) / (1.0 + a * dist_sq**b)
                grad = max(-clip, min(clip, coef))
                yi[0] += alpha * grad * dx
                yi[1] += alpha * grad * dy
                yj[0] -= alpha * grad * dx
                yj[1] -= alpha * grad * dy

                for endpoint, samples in ((yi, negatives[e][0]), (yj, negatives[e][1])):
                    for s in samples:
                        if s == i or s == j:
                            continue
                        ys = Y[s]
                        dx = endpoint[0] - ys[0]
                        dy = endpoint[1] - ys[1]
                        dist_sq = dx * dx + dy * dy + _DIST_EPS
                        coef = (2.0 * b) / ((_DIST_EPS + dist_sq) * (1.0 + a * dist_sq**b))
                        grad = max(-clip, min(clip, coef))
                        endpoint[0] += alpha * grad * dx
                        endpoint[1] += alpha * grad * dy

            self.iterations_run = epoch + 1
            if epoch % cfg.umap_progress_every == 0 or epoch == epochs - 1:
                self.log(f"Epoch {epoch + 1}/{epochs} (alpha={alpha:.3f})")
                self.progress(epoch + 1, epochs)

        return np.array(Y, dtype=np.float64)
