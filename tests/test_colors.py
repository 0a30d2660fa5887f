"""Tests for TypeColorAssigner class."""

import pytest

from dgraph_lens.colors import DEFAULT_COLOR, PALETTE, TypeColorAssigner


def test_first_seen_order():
    """Test types get palette colors in first-seen order."""
    assigner = TypeColorAssigner()

    assert assigner.color_for("Person") == PALETTE[0]
    assert assigner.color_for("City") == PALETTE[1]
    assert assigner.color_for("Person") == PALETTE[0]
    assert assigner.pointer == 2
    assert list(assigner.assignments) == ["Person", "City"]


def test_missing_type_uses_default():
    """Test untyped entities get the neutral default."""
    assigner = TypeColorAssigner()

    assert assigner.color_for(None) == DEFAULT_COLOR
    assert assigner.color_for("") == DEFAULT_COLOR
    assert len(assigner) == 0
    assert assigner.pointer == 0


def test_palette_wraps_around():
    """Test the pointer wraps when types outnumber colors."""
    assigner = TypeColorAssigner(palette=["#111111", "#222222"])

    colors = [assigner.color_for(name) for name in ("A", "B", "C")]

    assert colors == ["#111111", "#222222", "#111111"]
    assert "C" in assigner


def test_independent_assigners():
    """Test separate passes do not share state."""
    first = TypeColorAssigner()
    first.color_for("Person")

    second = TypeColorAssigner()
    assert second.color_for("City") == PALETTE[0]


def test_empty_palette_rejected():
    """Test an empty palette is a configuration error."""
    with pytest.raises(ValueError):
        TypeColorAssigner(palette=[])
