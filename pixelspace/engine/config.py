"""Engine configuration — tunables for reduction, layout and incremental placement."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ReductionConfig:
    """Constants of the two projectors that are not part of the request config."""

    # Trivial-size handling
    fixed_pair_offset: float = 5.0
    small_dataset_threshold: int = 5  # UMAP: <=5 points skips the graph entirely
    small_dataset_spread: float = 20.0
    fallback_spread: float = 100.0

    # t-SNE
    pca_max_components: int = 16
    pca_power_iterations: int = 100
    perplexity_search_steps: int = 50
    perplexity_tolerance: float = 1e-5
    tsne_init_scale: float = 0.01
    early_exaggeration: float = 4.0
    early_exaggeration_iters: int = 100
    initial_momentum: float = 0.5
    final_momentum: float = 0.8
    momentum_switch_iter: int = 250
    tsne_progress_every: int = 25

    # UMAP
    projection_dim: int = 32
    max_neighbors: int = 15
    max_epochs: int = 50
    umap_init_scale: float = 10.0
    negative_sample_rate: int = 5
    grad_clip: float = 4.0
    umap_progress_every: int = 10


@dataclass
class LayoutConfig:
    """World-space sizing and collision relaxation."""

    base_spacing: float = 60.0
    density_multiplier: float = 1.0
    min_spread: float = 300.0
    min_spacing: float = 36.0
    relaxation_passes: int = 8
    timeline_y_scale: float = 0.6


@dataclass
class IncrementalConfig:
    """Nearest-neighbor placement of new items between full recomputes."""

    top_k: int = 5
    # Above this many new items since the last recompute, recompute instead.
    max_new_items: int = 5
    offset_min_fraction: float = 0.25  # of LayoutConfig.min_spacing
    offset_max_fraction: float = 0.75
