"""Item and position models exchanged with collaborators."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Item(BaseModel):
    """One drawing. Pixel values are kept as delivered; the extractor sanitizes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Opaque drawing identifier")
    pixels: tuple[int, ...] = Field(..., description="Row-major 16x16 color indices")
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    name: str = ""
    creator: str = ""


class Position(NamedTuple):
    x: float
    y: float


PositionMap = dict[str, Position]
