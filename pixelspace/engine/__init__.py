"""PixelSpace layout engine: features, reduction, layout, incremental placement."""

from pixelspace.engine.registry import feature_group, Variant, get_registry
from pixelspace.engine.context import GridContext
from pixelspace.engine.pipeline import FeaturePipeline, extract, extract_groups, vector_size
from pixelspace.engine.weights import FeatureWeights
from pixelspace.engine.layout import place, relax_collisions
from pixelspace.engine.incremental import project

__all__ = [
    "feature_group",
    "Variant",
    "get_registry",
    "GridContext",
    "FeaturePipeline",
    "FeatureWeights",
    "extract",
    "extract_groups",
    "vector_size",
    "place",
    "relax_collisions",
    "project",
]
