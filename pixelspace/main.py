"""Session factory — configuration, logging and wiring of the layout engine."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from dotenv import load_dotenv

from pixelspace.config import settings
from pixelspace.engine.config import IncrementalConfig
from pixelspace.engine.layout import place
from pixelspace.engine.pipeline import FeaturePipeline, register_feature_groups
from pixelspace.engine.reduction import create_optimizer
from pixelspace.engine.registry import Variant
from pixelspace.engine.weights import FeatureWeights
from pixelspace.host import ComputationHost, LayoutSession
from pixelspace.host.session import PositionsCallback
from pixelspace.models.item import Item, PositionMap
from pixelspace.models.messages import ProjectorConfig, TSNEConfig, UMAPConfig

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.pixelspace_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger(__name__)


def projector_from_name(name: str) -> ProjectorConfig:
    key = name.strip().lower().replace("-", "")
    if key == "umap":
        return UMAPConfig()
    if key == "tsne":
        return TSNEConfig()
    raise ValueError(f"Unknown projector: {name!r} (expected 'umap' or 'tsne')")


def create_session(
    host: ComputationHost | None = None,
    on_positions: PositionsCallback | None = None,
    **overrides: Any,
) -> LayoutSession:
    """LayoutSession wired to a ComputationHost, configured from settings.

    Keyword overrides are passed straight to LayoutSession.
    """
    # Import all feature-group modules to trigger registration
    register_feature_groups()

    options: dict[str, Any] = {
        "projector": projector_from_name(settings.pixelspace_projector),
        "layout_mode": settings.pixelspace_layout_mode,
        "debounce_seconds": settings.pixelspace_debounce_seconds,
        "incremental_config": IncrementalConfig(max_new_items=settings.pixelspace_incremental_max_new_items),
    }
    options.update(overrides)

    logger.info(
        "Creating layout session (env=%s, projector=%s, mode=%s)",
        settings.pixelspace_env,
        options["projector"].algorithm,
        options["layout_mode"],
    )
    return LayoutSession(host or ComputationHost(), on_positions=on_positions, **options)


def compute_layout(
    items: Sequence[Item],
    projector: ProjectorConfig | None = None,
    mode: str = "cluster",
    weights: FeatureWeights | None = None,
    seed: int | None = None,
) -> PositionMap:
    """Blocking one-shot layout of a fixed item set, without a host or session."""
    projector = projector or projector_from_name(settings.pixelspace_projector)
    variant = Variant.ENHANCED if isinstance(projector, UMAPConfig) else Variant.INVARIANT
    pipeline = FeaturePipeline(weights=weights)
    vectors = [pipeline.extract(item.pixels, variant) for item in items]
    embedding = create_optimizer(projector, seed=seed).run(vectors)
    return place(items, embedding, mode)
