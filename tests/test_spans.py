"""
Tests for the span data model, canonical attribute text, and the span arena.
"""

import math

import pytest

from engine.spans import SpanArena, value_to_text


@pytest.mark.parametrize(
    "value, text",
    [
        (None, "empty"),
        ("abc", "abc"),
        (True, "true"),
        (False, "false"),
        (42, "42"),
        (-7, "-7"),
        (3.0, "3"),
        (0.25, "0.25"),
        (math.nan, "NaN"),
        (math.inf, "inf"),
        (b"\x00\xff", "[0, 255]"),
        ([1, "a", None], "[1, a, empty]"),
        ({"k": 1}, "{k: 1}"),
    ],
)
def test_value_to_text(value, text):
    assert value_to_text(value) == text


def test_span_rejects_negative_duration(make_span):
    with pytest.raises(ValueError):
        make_span("a", 2, 1)


def test_span_defaults_original_name_and_shifts(make_span):
    span = make_span("a", 1.0, 1.5)
    assert span.original_name == "a"
    assert span.duration == pytest.approx(0.5)
    moved = span.shifted_to(4.0)
    assert (moved.start_time, moved.end_time) == (4.0, 4.5)
    assert span.start_time == 1.0


def test_arena_roots_children_and_flatten_order(make_span):
    root = make_span("root", 0, 10)
    child = make_span("child", 1, 2, parent=root)
    grandchild = make_span("grandchild", 1, 1.5, parent=child)
    other = make_span("other", 3, 4)
    arena = SpanArena([root, child, grandchild, other])

    assert [s.span_id for s in arena.roots()] == [root.span_id, other.span_id]
    assert arena.children_of(root.span_id) == [child]
    assert [s.name for s in arena.flatten()] == ["root", "child", "grandchild", "other"]
    assert not arena.is_root(child.span_id)


def test_arena_orphan_is_root(make_span):
    orphan = make_span("orphan", 0, 1, parent="missing")
    arena = SpanArena([orphan])
    assert arena.is_root(orphan.span_id)
    assert arena.flatten() == [orphan]


def test_arena_rejects_duplicates_and_reparenting(make_span):
    span = make_span("a", 0, 1, span_id="dup")
    arena = SpanArena([span])
    with pytest.raises(ValueError):
        arena.add(span)
    with pytest.raises(ValueError):
        arena.replace(make_span("a", 0, 1, span_id="dup", parent="p"))


def test_arena_copy_is_independent(make_span):
    span = make_span("a", 0, 1)
    arena = SpanArena([span])
    clone = arena.copy()
    clone.replace(span.shifted_to(5.0))
    assert arena.get(span.span_id).start_time == 0.0
    assert clone.get(span.span_id).start_time == 5.0


def test_span_names_sorted_case_insensitively(make_span):
    arena = SpanArena([make_span("beta", 0, 1), make_span("Alpha", 0, 1), make_span("beta", 1, 2)])
    assert arena.span_names() == ["Alpha", "beta"]
