"""PixelSpace — lay out 16x16 pixel drawings on a 2D canvas by visual similarity."""

from pixelspace.codec import (
    PixelFormatError,
    format_pixel_grid,
    parse_pixel_grid,
    parse_pixel_string,
    validate_pixels,
)
from pixelspace.engine import FeatureWeights, Variant, extract, extract_groups, place, project
from pixelspace.host import ComputationHost, LayoutSession
from pixelspace.models import Item, Position, PositionMap, TSNEConfig, UMAPConfig

__version__ = "0.1.0"

__all__ = [
    "ComputationHost",
    "FeatureWeights",
    "Item",
    "LayoutSession",
    "PixelFormatError",
    "Position",
    "PositionMap",
    "TSNEConfig",
    "UMAPConfig",
    "Variant",
    "extract",
    "extract_groups",
    "format_pixel_grid",
    "parse_pixel_grid",
    "parse_pixel_string",
    "place",
    "project",
    "validate_pixels",
]
