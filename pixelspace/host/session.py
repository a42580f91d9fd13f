"""LayoutSession — the event-loop side of the layout engine.

Owns the items, their cached feature vectors and the current PositionMap.
New drawings are placed incrementally while that stays cheap; otherwise a
debounced full recompute is sent to the ComputationHost. Results that no
longer describe the current item set are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.config import IncrementalConfig, LayoutConfig
from pixelspace.engine.incremental import project
from pixelspace.engine.layout import LAYOUT_MODES, place, timeline_x
from pixelspace.engine.pipeline import FeaturePipeline
from pixelspace.engine.registry import Variant
from pixelspace.engine.weights import DEFAULT_WEIGHTS, FeatureWeights
from pixelspace.host.worker import ComputationHost
from pixelspace.models.item import Item, Position, PositionMap
from pixelspace.models.messages import (
    DoneMessage,
    HostMessage,
    LogMessage,
    ProgressMessage,
    ProjectorConfig,
    UMAPConfig,
)

logger = logging.getLogger(__name__)

PositionsCallback = Callable[[PositionMap], None]


class LayoutSession:
    def __init__(
        self,
        host: ComputationHost,
        projector: ProjectorConfig | None = None,
        layout_mode: str = "cluster",
        weights: FeatureWeights | None = None,
        layout_config: LayoutConfig | None = None,
        incremental_config: IncrementalConfig | None = None,
        debounce_seconds: float = 0.5,
        on_positions: PositionsCallback | None = None,
    ) -> None:
        if layout_mode not in LAYOUT_MODES:
            raise ValueError(f"Unknown layout mode: {layout_mode!r}")
        self.host = host
        self.projector: ProjectorConfig = projector or UMAPConfig()
        self.layout_mode = layout_mode
        self.weights = weights or DEFAULT_WEIGHTS
        self.layout_config = layout_config or LayoutConfig()
        self.incremental_config = incremental_config or IncrementalConfig()
        self.debounce_seconds = debounce_seconds
        self.on_positions = on_positions

        self.items: dict[str, Item] = {}
        self.positions: PositionMap = {}
        self.progress: tuple[int, int] | None = None
        self.new_since_recompute = 0

        self._pipeline = FeaturePipeline(weights=self.weights)
        self._vectors: dict[str, NDArray[np.float64]] = {}
        self._timer: asyncio.TimerHandle | None = None
        self._latest_request: int | None = None
        self._snapshots: dict[int, tuple[str, ...]] = {}

        host.on_terminate(self._host_terminated)

    # ------------------------------------------------------------------
    # Vectors
    # ------------------------------------------------------------------

    @property
    def variant(self) -> Variant:
        """UMAP lays out enhanced vectors, t-SNE the orientation-invariant ones."""
        return Variant.ENHANCED if isinstance(self.projector, UMAPConfig) else Variant.INVARIANT

    def vector_for(self, item: Item) -> NDArray[np.float64]:
        vec = self._vectors.get(item.id)
        if vec is None:
            vec = self._pipeline.extract(item.pixels, self.variant)
            self._vectors[item.id] = vec
        return vec

    def set_weights(self, weights: FeatureWeights) -> None:
        self.weights = weights
        self._pipeline = FeaturePipeline(weights=weights)
        self._vectors.clear()
        if self.items:
            self.schedule_recompute()

    def set_projector(self, projector: ProjectorConfig) -> None:
        self.projector = projector
        self._vectors.clear()
        if self.items:
            self.schedule_recompute()

    def set_layout_mode(self, mode: str) -> None:
        if mode not in LAYOUT_MODES:
            raise ValueError(f"Unknown layout mode: {mode!r}")
        self.layout_mode = mode
        if self.items:
            self.schedule_recompute()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def add_item(self, item: Item) -> Position | None:
        """Register a drawing. Returns its position when placed incrementally."""
        self.items[item.id] = item
        self._vectors.pop(item.id, None)

        if self.positions and self.new_since_recompute < self.incremental_config.max_new_items:
            placed = [i for i in self.positions if i != item.id and i in self.items]
            position = project(
                item.pixels,
                self.vector_for(item),
                [self.positions[i] for i in placed],
                [self.vector_for(self.items[i]) for i in placed],
                self.incremental_config,
                self.layout_config.min_spacing,
            )
            if position is not None:
                if self.layout_mode == "timeline":
                    # Newest drawings enter at the "now" edge; only y comes from similarity.
                    x = timeline_x(item, list(self.items.values()), self.layout_config)
                    position = Position(x, position.y)
                self.positions[item.id] = position
                self.new_since_recompute += 1
                logger.debug("Placed %s incrementally at (%.1f, %.1f)", item.id, *position)
                self._publish()
                return position

        self.schedule_recompute()
        return None

    def remove_item(self, item_id: str) -> None:
        if self.items.pop(item_id, None) is None:
            return
        self._vectors.pop(item_id, None)
        if self.positions.pop(item_id, None) is not None:
            self._publish()
        self.schedule_recompute()

    # ------------------------------------------------------------------
    # Recompute
    # ------------------------------------------------------------------

    def schedule_recompute(self) -> None:
        """(Re)arm the debounce timer for a full recompute."""
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self.recompute)

    def recompute(self) -> int | None:
        """Submit a full recompute now. Returns the request id, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        snapshot = tuple(self.items)
        if not snapshot:
            self._latest_request = None
            self.positions = {}
            self.new_since_recompute = 0
            self._publish()
            return None

        vectors = [self.vector_for(self.items[i]) for i in snapshot]
        rid = self.host.submit(vectors, self.projector)
        self._latest_request = rid
        self._snapshots[rid] = snapshot
        self.progress = (0, 0)
        logger.info("Full recompute %d submitted (%d items, %s)", rid, len(snapshot), self.projector.algorithm)
        return rid

    @property
    def computing(self) -> bool:
        return self._latest_request is not None and self._latest_request in self._snapshots

    def _host_terminated(self) -> None:
        """Results of requests in flight will never arrive; resubmit if one was pending."""
        pending = self.computing
        self._snapshots.clear()
        self._latest_request = None
        self.progress = None
        if pending and self.items:
            logger.info("Computation host terminated mid-request; rescheduling recompute")
            self.schedule_recompute()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def pump(self) -> int:
        """Handle every message already delivered; returns how many layouts were applied."""
        return sum(self.handle_message(m) for m in self.host.poll())

    async def wait_for_layout(self) -> None:
        """Handle messages until no recompute is pending or in flight."""
        loop = asyncio.get_running_loop()
        while True:
            if self.computing:
                self.handle_message(await self.host.next_message())
            elif self._timer is not None:
                await asyncio.sleep(max(self._timer.when() - loop.time(), 0.0))
            else:
                return

    def handle_message(self, message: HostMessage) -> bool:
        """Apply one host message. True when a new layout was applied."""
        if isinstance(message, ProgressMessage):
            if message.request_id == self._latest_request:
                self.progress = (message.iteration, message.total_iterations)
            return False
        if isinstance(message, LogMessage):
            logger.debug("[request %d] %s", message.request_id, message.message)
            return False
        if isinstance(message, DoneMessage):
            return self._apply(message)
        return False

    def _apply(self, done: DoneMessage) -> bool:
        snapshot = self._snapshots.pop(done.request_id, None)
        if snapshot is None or done.request_id != self._latest_request:
            logger.debug("Discarded stale result for request %d", done.request_id)
            return False
        if snapshot != tuple(self.items):
            # Items changed while computing; the next recompute covers them.
            logger.debug("Discarded result for request %d: item set changed", done.request_id)
            self.schedule_recompute()
            return False

        items = [self.items[i] for i in snapshot]
        self.positions = place(items, done.embeddings, self.layout_mode, self.layout_config)
        self.new_since_recompute = 0
        self.progress = None
        logger.info("Applied layout %d (%d items, %d iterations)", done.request_id, len(items), done.iterations)
        self._publish()
        return True

    def _publish(self) -> None:
        if self.on_positions is not None:
            self.on_positions(dict(self.positions))
