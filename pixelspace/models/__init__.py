"""Boundary models: items, positions and host messages."""

from pixelspace.models.item import Item, Position, PositionMap
from pixelspace.models.messages import (
    ComputeRequest,
    DoneMessage,
    HostMessage,
    LogMessage,
    ProgressMessage,
    ProjectorConfig,
    TSNEConfig,
    UMAPConfig,
)

__all__ = [
    "Item",
    "Position",
    "PositionMap",
    "ComputeRequest",
    "DoneMessage",
    "HostMessage",
    "LogMessage",
    "ProgressMessage",
    "ProjectorConfig",
    "TSNEConfig",
    "UMAPConfig",
]
