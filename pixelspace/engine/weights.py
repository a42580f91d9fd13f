"""FeatureWeights — per-group scale factors for the Enhanced feature vector."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields


@dataclass(frozen=True)
class FeatureWeights:
    """Immutable weights; 0 removes a group's influence without changing the length."""

    color_histogram: float = 1.0
    color_adjacency: float = 1.0
    symmetry: float = 1.0
    structure: float = 1.0
    components: float = 1.0
    spatial_density: float = 1.0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0:
                raise ValueError(f"weight {f.name} must be >= 0, got {value}")

    def get(self, group: str) -> float:
        # Groups without a weight field are unweighted.
        return float(getattr(self, group, 1.0))

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


DEFAULT_WEIGHTS = FeatureWeights()
