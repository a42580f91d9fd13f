"""Feature-group registry — every group is a standalone function registered via decorator.

Usage:
    @feature_group(id="E.01", variant=Variant.ENHANCED, name="color_histogram", size=8)
    def color_histogram(ctx: GridContext) -> None:
        ctx.groups["color_histogram"] = np.bincount(ctx.grid.ravel(), minlength=8) / 256

Groups are concatenated in id order. A step with size 0 only prepares state
on the context for later steps of the same variant.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from pixelspace.engine.context import GridContext

logger = logging.getLogger(__name__)


class Variant(str, enum.Enum):
    ENHANCED = "enhanced"
    INVARIANT = "invariant"


@dataclass
class FeatureGroupSpec:
    id: str
    variant: Variant
    name: str
    fn: Callable[["GridContext"], None]
    size: int = 0
    weighted: bool = True
    dependencies: list[str] = field(default_factory=list)
    description: str = ""


class FeatureRegistry:
    """Singleton registry of all feature groups."""

    def __init__(self) -> None:
        self._groups: dict[str, FeatureGroupSpec] = {}

    def register(self, spec: FeatureGroupSpec) -> None:
        if spec.id in self._groups:
            raise ValueError(f"Duplicate feature group ID: {spec.id}")
        self._groups[spec.id] = spec
        logger.debug("Registered feature group %s (%s)", spec.id, spec.variant.value)

    def get(self, group_id: str) -> FeatureGroupSpec:
        return self._groups[group_id]

    def get_variant(self, variant: Variant) -> list[FeatureGroupSpec]:
        specs = [s for s in self._groups.values() if s.variant == variant]
        return sorted(specs, key=lambda s: s.id)

    def output_size(self, variant: Variant) -> int:
        return sum(s.size for s in self.get_variant(variant))

    def resolve_order(self, variant: Variant) -> list[FeatureGroupSpec]:
        """Topological sort of one variant's steps, ties broken by id."""
        pool = {s.id: s for s in self.get_variant(variant)}

        # Kahn's algorithm
        in_degree: dict[str, int] = {gid: 0 for gid in pool}
        for gid, spec in pool.items():
            for dep in spec.dependencies:
                if dep in pool:
                    in_degree[gid] += 1

        queue = sorted([gid for gid, d in in_degree.items() if d == 0])
        ordered: list[FeatureGroupSpec] = []

        while queue:
            gid = queue.pop(0)
            ordered.append(pool[gid])
            for other_id, other_spec in pool.items():
                if gid in other_spec.dependencies:
                    in_degree[other_id] -= 1
                    if in_degree[other_id] == 0:
                        queue.append(other_id)
                        queue.sort()

        if len(ordered) != len(pool):
            missing = set(pool.keys()) - {s.id for s in ordered}
            raise ValueError(f"Circular dependency detected among: {missing}")

        return ordered

    @property
    def count(self) -> int:
        return len(self._groups)


# Module-level singleton
_registry = FeatureRegistry()


def get_registry() -> FeatureRegistry:
    return _registry


def feature_group(
    *,
    id: str,
    variant: Variant,
    name: str,
    size: int = 0,
    weighted: bool = True,
    dependencies: list[str] | None = None,
    description: str = "",
):
    """Decorator to register a feature-group function."""

    def decorator(fn: Callable[["GridContext"], None]):
        spec = FeatureGroupSpec(
            id=id,
            variant=variant,
            name=name,
            fn=fn,
            size=size,
            weighted=weighted,
            dependencies=dependencies or [],
            description=description,
        )
        _registry.register(spec)
        return fn

    return decorator
