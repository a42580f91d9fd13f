"""Tests for the feature-group registry."""

import pytest

from pixelspace.engine.context import GridContext
from pixelspace.engine.registry import FeatureGroupSpec, FeatureRegistry, Variant, get_registry


def _noop(ctx: GridContext) -> None:
    pass


def test_register_and_get():
    reg = FeatureRegistry()
    spec = FeatureGroupSpec(id="E.01", variant=Variant.ENHANCED, name="a", fn=_noop, size=3)
    reg.register(spec)
    assert reg.get("E.01") is spec
    assert reg.count == 1


def test_duplicate_id_rejected():
    reg = FeatureRegistry()
    reg.register(FeatureGroupSpec(id="E.01", variant=Variant.ENHANCED, name="a", fn=_noop))
    with pytest.raises(ValueError, match="Duplicate"):
        reg.register(FeatureGroupSpec(id="E.01", variant=Variant.ENHANCED, name="b", fn=_noop))


def test_get_variant_sorted_by_id():
    reg = FeatureRegistry()
    reg.register(FeatureGroupSpec(id="E.02", variant=Variant.ENHANCED, name="b", fn=_noop))
    reg.register(FeatureGroupSpec(id="I.01", variant=Variant.INVARIANT, name="c", fn=_noop))
    reg.register(FeatureGroupSpec(id="E.01", variant=Variant.ENHANCED, name="a", fn=_noop))
    assert [s.id for s in reg.get_variant(Variant.ENHANCED)] == ["E.01", "E.02"]
    assert [s.id for s in reg.get_variant(Variant.INVARIANT)] == ["I.01"]


def test_resolve_order_with_deps():
    reg = FeatureRegistry()
    reg.register(FeatureGroupSpec(id="I.01", variant=Variant.INVARIANT, name="b", fn=_noop, dependencies=["I.02"]))
    reg.register(FeatureGroupSpec(id="I.02", variant=Variant.INVARIANT, name="a", fn=_noop))
    ids = [s.id for s in reg.resolve_order(Variant.INVARIANT)]
    assert ids == ["I.02", "I.01"]


def test_resolve_order_cycle():
    reg = FeatureRegistry()
    reg.register(FeatureGroupSpec(id="E.01", variant=Variant.ENHANCED, name="a", fn=_noop, dependencies=["E.02"]))
    reg.register(FeatureGroupSpec(id="E.02", variant=Variant.ENHANCED, name="b", fn=_noop, dependencies=["E.01"]))
    with pytest.raises(ValueError, match="Circular"):
        reg.resolve_order(Variant.ENHANCED)


def test_global_registry_sizes():
    reg = get_registry()
    assert reg.output_size(Variant.ENHANCED) == 102
    assert reg.output_size(Variant.INVARIANT) == 64
    names = [s.name for s in reg.get_variant(Variant.ENHANCED)]
    assert names == [
        "color_histogram",
        "color_adjacency",
        "symmetry",
        "structure",
        "components",
        "spatial_density",
    ]
