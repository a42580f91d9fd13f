"""EmbeddingOptimizer — shared lifecycle of the two projectors.

INITIALIZED → ITERATING → CONVERGED. ``run`` never raises: a failure inside
the algorithm is logged and replaced with a uniform random layout so the
visualization always has something to show.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Sequence

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.config import ReductionConfig

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
LogCallback = Callable[[str], None]


class OptimizerState(enum.Enum):
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"


class EmbeddingOptimizer:
    """Base class. Subclasses implement ``_optimize`` and may extend ``_trivial``."""

    name = "optimizer"

    def __init__(
        self,
        config: ReductionConfig | None = None,
        seed: int | None = None,
        progress_callback: ProgressCallback | None = None,
        log_callback: LogCallback | None = None,
    ) -> None:
        self.config = config or ReductionConfig()
        self.rng = np.random.default_rng(seed)
        self.progress_callback = progress_callback
        self.log_callback = log_callback
        self.state = OptimizerState.INITIALIZED
        self.iterations_run = 0
        self.used_fallback = False

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def run(self, vectors: Sequence[Sequence[float]] | NDArray[np.float64]) -> NDArray[np.float64]:
        """2-D embedding, one row per input vector, read-only once returned."""
        n = len(vectors)
        self.log(f"Starting with {n} vectors")

        trivial = self._trivial(n)
        if trivial is not None:
            return self._finish(trivial, n)

        self.state = OptimizerState.ITERATING
        try:
            data = np.asarray(vectors, dtype=np.float64).reshape(n, -1)
            embedding = self._optimize(data)
            if not np.all(np.isfinite(embedding)):
                raise FloatingPointError("non-finite coordinates in embedding")
        except Exception:
            logger.exception("%s optimization failed; using random fallback", self.name)
            self.log("Optimization failed, using random fallback")
            self.used_fallback = True
            embedding = self._fallback(n)
        return self._finish(embedding, n)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _trivial(self, n: int) -> NDArray[np.float64] | None:
        """Fixed layouts for sizes too small to optimize; None means optimize."""
        if n == 0:
            self.log("Empty dataset, returning []")
            return np.zeros((0, 2), dtype=np.float64)
        if n == 1:
            self.log("Single point, returning [[0, 0]]")
            return np.zeros((1, 2), dtype=np.float64)
        if n == 2:
            self.log("Two points, returning fixed positions")
            off = self.config.fixed_pair_offset
            return np.array([[-off, 0.0], [off, 0.0]], dtype=np.float64)
        return None

    def _optimize(self, data: NDArray[np.float64]) -> NDArray[np.float64]:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _fallback(self, n: int) -> NDArray[np.float64]:
        spread = self.config.fallback_spread
        return self.rng.random((n, 2)) * spread - spread / 2.0

    def _finish(self, embedding: NDArray[np.float64], n: int) -> NDArray[np.float64]:
        out = np.array(embedding, dtype=np.float64).reshape(n, 2)
        out.setflags(write=False)
        self.state = OptimizerState.CONVERGED
        return out

    def progress(self, iteration: int, total: int) -> None:
        if self.progress_callback is not None:
            self.progress_callback(iteration, total)

    def log(self, message: str) -> None:
        logger.debug("[%s] %s", self.name, message)
        if self.log_callback is not None:
            self.log_callback(message)
