"""Dimensionality reduction: affinity graphs, PCA and the two 2-D projectors."""

from pixelspace.engine.reduction.optimizer import EmbeddingOptimizer, OptimizerState
from pixelspace.engine.reduction.tsne import TSNEOptimizer
from pixelspace.engine.reduction.umap import UMAPOptimizer
from pixelspace.models.messages import ProjectorConfig, TSNEConfig, UMAPConfig


def create_optimizer(params: ProjectorConfig, **kwargs) -> EmbeddingOptimizer:
    """Optimizer instance for a request config (UMAPConfig or TSNEConfig)."""
    if isinstance(params, UMAPConfig):
        return UMAPOptimizer(params, **kwargs)
    if isinstance(params, TSNEConfig):
        return TSNEOptimizer(params, **kwargs)
    raise ValueError(f"Unknown projector config: {type(params).__name__}")


__all__ = [
    "EmbeddingOptimizer",
    "OptimizerState",
    "TSNEOptimizer",
    "UMAPOptimizer",
    "create_optimizer",
]
