"""Feature pipeline — runs one variant's feature groups in order and concatenates them."""

from __future__ import annotations

import importlib
import logging
import pkgutil
import time
from collections.abc import Iterable
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import FeatureGroupSpec, FeatureRegistry, Variant, get_registry
from pixelspace.engine.weights import DEFAULT_WEIGHTS, FeatureWeights

logger = logging.getLogger(__name__)

_GROUP_PACKAGES = ("pixelspace.engine.enhanced", "pixelspace.engine.invariant")
_registered = False


def register_feature_groups() -> None:
    """Import all feature-group modules so @feature_group decorators fire."""
    global _registered
    if _registered:
        return
    for package_name in _GROUP_PACKAGES:
        package = importlib.import_module(package_name)
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package_name}.{module_name}")
    _registered = True


class FeaturePipeline:
    """Orchestrates feature extraction for one variant."""

    def __init__(
        self,
        registry: FeatureRegistry | None = None,
        weights: FeatureWeights | None = None,
    ) -> None:
        if registry is None:
            register_feature_groups()
        self.registry = registry or get_registry()
        self.weights = weights or DEFAULT_WEIGHTS

    def run(self, ctx: GridContext, variant: Variant) -> GridContext:
        """Run every step of the variant. A failing group is recorded, not raised."""
        for spec in self.registry.resolve_order(variant):
            t0 = time.perf_counter()
            try:
                spec.fn(ctx)
                self._check_output(ctx, spec)
                ctx.completed_groups.add(spec.id)
                elapsed = (time.perf_counter() - t0) * 1000
                logger.debug("  %s completed in %.2fms", spec.id, elapsed)
            except Exception as e:
                ctx.errors[spec.id] = str(e)
                ctx.groups.pop(spec.name, None)
                logger.warning("  %s FAILED: %s", spec.id, e)
        return ctx

    def vector(self, ctx: GridContext, variant: Variant) -> NDArray[np.float64]:
        """Concatenate the weighted outputs of a variant already run on ctx.

        Groups that failed contribute zeros of their declared size.
        """
        parts: list[NDArray[np.float64]] = []
        for spec in self.registry.get_variant(variant):
            if spec.size == 0:
                continue
            values = ctx.groups.get(spec.name)
            if values is None:
                values = np.zeros(spec.size, dtype=np.float64)
            weight = self.weights.get(spec.name) if spec.weighted else 1.0
            parts.append(values * weight)
        if not parts:
            return np.zeros(0, dtype=np.float64)
        return np.concatenate(parts)

    def extract(self, pixels: Iterable[Any] | None, variant: Variant | str) -> NDArray[np.float64]:
        variant = Variant(variant)
        ctx = self.run(GridContext.from_pixels(pixels), variant)
        return self.vector(ctx, variant)

    @staticmethod
    def _check_output(ctx: GridContext, spec: FeatureGroupSpec) -> None:
        if spec.size == 0:
            return
        values = ctx.groups.get(spec.name)
        if values is None:
            raise ValueError(f"group {spec.name} produced no output")
        if values.shape != (spec.size,):
            raise ValueError(f"group {spec.name} produced shape {values.shape}, expected ({spec.size},)")
        if not np.all(np.isfinite(values)):
            raise ValueError(f"group {spec.name} produced non-finite values")


def extract(
    pixels: Iterable[Any] | None,
    variant: Variant | str = Variant.ENHANCED,
    weights: FeatureWeights | None = None,
) -> NDArray[np.float64]:
    """Feature vector for one drawing: 102 values (enhanced) or 64 (invariant)."""
    return FeaturePipeline(weights=weights).extract(pixels, variant)


def extract_groups(
    pixels: Iterable[Any] | None,
    variant: Variant | str = Variant.ENHANCED,
) -> dict[str, NDArray[np.float64]]:
    """Unweighted per-group outputs, keyed by group name."""
    pipeline = FeaturePipeline()
    ctx = pipeline.run(GridContext.from_pixels(pixels), Variant(variant))
    return dict(ctx.groups)


def vector_size(variant: Variant | str) -> int:
    register_feature_groups()
    return get_registry().output_size(Variant(variant))
