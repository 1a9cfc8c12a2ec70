"""
Tests for match conditions and span selectors.
"""

import pytest

from engine.enums import ConditionKind
from engine.selectors import MatchCondition, SpanSelector
from engine.spans import Span


@pytest.mark.parametrize(
    "condition, value, expected",
    [
        (MatchCondition.any(), "anything", True),
        (MatchCondition.none(), "anything", False),
        (MatchCondition.equal_to("a"), "a", True),
        (MatchCondition.equal_to("a"), "ab", False),
        (MatchCondition.not_equal_to("a"), "b", True),
        (MatchCondition.not_equal_to("a"), "a", False),
        (MatchCondition.contains("chunk"), "apply_new_chunk", True),
        (MatchCondition.contains("chunk"), "produce_block", False),
    ],
)
def test_condition_semantics(condition, value, expected):
    assert condition.matches(value) is expected


def test_condition_accepts_tagged_documents():
    assert MatchCondition.model_validate("Any").kind is ConditionKind.any
    cond = MatchCondition.model_validate({"EqualTo": "height"})
    assert cond.kind is ConditionKind.equal_to
    assert cond.value == "height"
    cond = MatchCondition.model_validate({"kind": "Contains", "value": "x"})
    assert cond.matches("axb")


def test_condition_describe():
    assert MatchCondition.any().describe() == "Any"
    assert MatchCondition.equal_to("h").describe() == "EqualTo('h')"


def test_selector_matches_name_node_and_attributes(make_span):
    span = make_span("produce_block", 0, 1, node="bp", height=10, shard_id=0)
    selector = SpanSelector(
        span_name_condition=MatchCondition.equal_to("produce_block"),
        node_name_condition=MatchCondition.equal_to("bp"),
        attribute_conditions=[("height", MatchCondition.equal_to("10"))],
    )
    assert selector.matches(span)

    assert not selector.model_copy(
        update={"node_name_condition": MatchCondition.equal_to("other")}
    ).matches(span)
    assert not selector.with_attribute_condition("height", MatchCondition.equal_to("11")).matches(span)


def test_selector_missing_attribute_never_matches(make_span):
    span = make_span("produce_block", 0, 1)
    selector = SpanSelector().with_attribute_condition("height", MatchCondition.any())
    assert not selector.matches(span)
    assert not SpanSelector().with_attribute_condition("height", MatchCondition.not_equal_to("1")).matches(span)


def test_selector_uses_original_name(make_span):
    span = Span(
        span_id="x", name="display name", original_name="raw_name",
        node=make_span.node("n1"), start_time=0.0, end_time=1.0,
    )
    assert SpanSelector.equal_name("raw_name").matches(span)
    assert not SpanSelector.equal_name("display name").matches(span)


def test_attribute_values_compare_as_canonical_text(make_span):
    span = make_span("a", 0, 1, flag=True, missing=None, ratio=2.0, raw=b"\x01\x02")
    sel = SpanSelector()
    assert sel.with_attribute_condition("flag", MatchCondition.equal_to("true")).matches(span)
    assert sel.with_attribute_condition("missing", MatchCondition.equal_to("empty")).matches(span)
    assert sel.with_attribute_condition("ratio", MatchCondition.equal_to("2")).matches(span)
    assert sel.with_attribute_condition("raw", MatchCondition.equal_to("[1, 2]")).matches(span)


def test_required_name():
    assert SpanSelector.equal_name("x").required_name() == "x"
    assert SpanSelector().required_name() is None
