"""TSNEOptimizer — probability matching with momentum gradient descent.

PCA first (at most 16 components), then Gaussian affinities at the target
perplexity, then Student-t affinities in 2-D pulled toward them with early
exaggeration and a momentum switch.
"""

from __future__ import annotations

import time

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.reduction.affinity import tsne_affinities
from pixelspace.engine.reduction.optimizer import EmbeddingOptimizer
from pixelspace.engine.reduction.pca import pca
from pixelspace.models.messages import TSNEConfig


class TSNEOptimizer(EmbeddingOptimizer):
    name = "tsne"

    def __init__(self, params: TSNEConfig | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.params = params or TSNEConfig()

    def _optimize(self, data: NDArray[np.float64]) -> NDArray[np.float64]:
        cfg = self.config
        params = self.params
        n = len(data)

        t0 = time.perf_counter()
        reduced = pca(data, cfg.pca_max_components, cfg.pca_power_iterations, self.rng)
        self.log(f"PCA {data.shape[1]}D -> {reduced.shape[1]}D in {(time.perf_counter() - t0) * 1000:.1f}ms")

        t0 = time.perf_counter()
        P = tsne_affinities(reduced, params.perplexity, cfg.perplexity_search_steps, cfg.perplexity_tolerance)
        self.log(f"Affinities computed in {(time.perf_counter() - t0) * 1000:.1f}ms")

        Y = (self.rng.random((n, 2)) - 0.5) * cfg.tsne_init_scale
        velocity = np.zeros_like(Y)
        total = params.iterations

        t0 = time.perf_counter()
        for it in range(total):
            exaggeration = cfg.early_exaggeration if it < cfg.early_exaggeration_iters else 1.0
            momentum = cfg.initial_momentum if it < cfg.momentum_switch_iter else cfg.final_momentum

            grad = self._gradient(P, Y, exaggeration)
            velocity = momentum * velocity - params.learning_rate * grad
            Y = Y + velocity
            Y = Y - Y.mean(axis=0)
            self.iterations_run = it + 1

            if it % cfg.tsne_progress_every == 0 or it == total - 1:
                self.progress(it + 1, total)

        self.log(f"Gradient descent ({total} iterations) in {(time.perf_counter() - t0) * 1000:.1f}ms")
        return Y

    @staticmethod
    def _gradient(P: NDArray[np.float64], Y: NDArray[np.float64], exaggeration: float) -> NDArray[np.float64]:
        """dKL/dY = 4 Σ_j (p_ij·ex − q_ij) · num_ij · (y_i − y_j)."""
        sq = np.sum(Y * Y, axis=1)
        d2 = np.maximum(sq[:, None] + sq[None, :] - 2.0 * Y @ Y.T, 0.0)
        num = 1.0 / (1.0 + d2)
        np.fill_diagonal(num, 0.0)
        Q = num / num.sum()
        PQ = (P * exaggeration - Q) * num
        return 4.0 * (np.diag(PQ.sum(axis=1)) - PQ) @ Y
