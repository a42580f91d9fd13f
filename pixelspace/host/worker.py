"""Computation host — runs projector requests off the event loop.

One dedicated worker thread per generation. Everything the worker produces
travels back as a HostMessage through an asyncio.Queue, fed from the thread
with ``loop.call_soon_threadsafe``; the loop side never blocks on the worker.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.config import ReductionConfig
from pixelspace.engine.reduction import create_optimizer
from pixelspace.models.messages import (
    ComputeRequest,
    DoneMessage,
    HostMessage,
    LogMessage,
    ProgressMessage,
    ProjectorConfig,
)

logger = logging.getLogger(__name__)

Emit = Callable[[HostMessage], None]


def _safe_emit(emit: Emit, message: HostMessage) -> None:
    try:
        emit(message)
    except Exception:
        logger.exception("Failed to deliver %s message for request %d", message.type, message.request_id)


def run_request(
    request: ComputeRequest,
    emit: Emit,
    config: ReductionConfig | None = None,
    seed: int | None = None,
) -> DoneMessage:
    """Run one request to completion, emitting progress/log and exactly one done.

    Never raises: the optimizer already degrades to a random layout, and
    anything escaping it here is handled the same way.
    """
    rid = request.request_id
    n = len(request.vectors)
    start = time.perf_counter()

    def on_progress(iteration: int, total: int) -> None:
        _safe_emit(emit, ProgressMessage(request_id=rid, iteration=iteration, total_iterations=total))

    def on_log(message: str) -> None:
        _safe_emit(emit, LogMessage(request_id=rid, message=message))

    try:
        optimizer = create_optimizer(
            request.config,
            config=config,
            seed=seed,
            progress_callback=on_progress,
            log_callback=on_log,
        )
        embedding = optimizer.run(request.vectors)
        iterations = optimizer.iterations_run
    except Exception:
        logger.exception("Request %d failed outside the optimizer; using random fallback", rid)
        spread = (config or ReductionConfig()).fallback_spread
        embedding = np.random.default_rng(seed).random((n, 2)) * spread - spread / 2.0
        iterations = 0

    elapsed = (time.perf_counter() - start) * 1000
    logger.info("Request %d (%s, %d vectors) done in %.1fms", rid, request.config.algorithm, n, elapsed)

    done = DoneMessage(
        request_id=rid,
        embeddings=[(float(x), float(y)) for x, y in embedding],
        iterations=iterations,
    )
    _safe_emit(emit, done)
    return done


class ComputationHost:
    """Single background worker plus the message queue the event loop reads."""

    def __init__(self, config: ReductionConfig | None = None, seed: int | None = None) -> None:
        self.config = config or ReductionConfig()
        self.seed = seed
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[HostMessage] | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._generation = 0
        self._last_request_id = 0
        self._terminate_callbacks: list[Callable[[], None]] = []

    @property
    def running(self) -> bool:
        return self._executor is not None

    @property
    def generation(self) -> int:
        return self._generation

    def start(self) -> None:
        """Create the worker. Must be called from the event loop thread."""
        if self._executor is not None:
            return
        self._loop = asyncio.get_running_loop()
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=f"pixelspace-host-{self._generation}",
        )
        logger.debug("Computation host started (generation %d)", self._generation)

    def submit(
        self,
        vectors: Sequence[Sequence[float]] | NDArray[np.float64],
        config: ProjectorConfig,
    ) -> int:
        """Queue a request on the worker and return its request id."""
        if self._executor is None:
            self.start()
        assert self._executor is not None and self._loop is not None

        self._last_request_id += 1
        rid = self._last_request_id
        request = ComputeRequest(
            request_id=rid,
            vectors=np.asarray(vectors, dtype=np.float64).tolist() if len(vectors) else [],
            config=config,
        )

        loop = self._loop
        generation = self._generation

        def emit(message: HostMessage) -> None:
            loop.call_soon_threadsafe(self._deliver, generation, message)

        loop.run_in_executor(self._executor, run_request, request, emit, self.config, self.seed)
        logger.debug("Submitted request %d (%s, %d vectors)", rid, config.algorithm, len(request.vectors))
        return rid

    def _deliver(self, generation: int, message: HostMessage) -> None:
        if generation != self._generation or self._queue is None:
            logger.debug("Dropped %s from terminated generation %d", message.type, generation)
            return
        self._queue.put_nowait(message)

    def poll(self) -> list[HostMessage]:
        """Every message already delivered, without waiting."""
        messages: list[HostMessage] = []
        if self._queue is None:
            return messages
        while True:
            try:
                messages.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return messages

    async def next_message(self) -> HostMessage:
        if self._queue is None:
            raise RuntimeError("Computation host has not been started")
        return await self._queue.get()

    def on_terminate(self, callback: Callable[[], None]) -> None:
        """Call callback after every terminate(); its pending requests will never report."""
        self._terminate_callbacks.append(callback)

    def terminate(self) -> None:
        """Discard the worker. A request still running finishes unobserved."""
        self._generation += 1
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        dropped = len(self.poll())
        logger.debug("Computation host terminated (%d queued messages dropped)", dropped)
        for callback in self._terminate_callbacks:
            callback()

    def restart(self) -> None:
        self.terminate()
        self.start()
