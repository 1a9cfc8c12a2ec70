"""
Tests for attribute relations, relation documents, legacy upgrades, and views.
"""

import uuid

import pytest

from engine.enums import AttributeRelationOp, MatchType, RelationNodesConfig
from engine.relations import AttributeRelation, Relation, RelationV0, RelationView, load_relation, make_uuid_from_seed
from engine.relations.models import parse_i64
from engine.selectors import SpanSelector


def _height(op):
    return AttributeRelation(from_attribute="height", to_attribute="height", relation=op)


def test_equal_compares_canonical_text(make_span):
    a = make_span("a", 0, 1, height=5)
    b = make_span("b", 2, 3, height="5")
    c = make_span("c", 2, 3, height=6)
    assert _height(AttributeRelationOp.equal).matches(a, b)
    assert not _height(AttributeRelationOp.equal).matches(a, c)


def test_one_and_two_greater(make_span):
    a = make_span("a", 0, 1, height=5)
    assert _height(AttributeRelationOp.one_greater).matches(a, make_span("b", 2, 3, height=6))
    assert not _height(AttributeRelationOp.one_greater).matches(a, make_span("b", 2, 3, height=7))
    assert _height(AttributeRelationOp.two_greater).matches(a, make_span("b", 2, 3, height=7))


def test_numeric_relations_reject_non_integers_and_overflow(make_span):
    rel = _height(AttributeRelationOp.one_greater)
    assert not rel.matches(make_span("a", 0, 1, height="five"), make_span("b", 2, 3, height="6"))
    assert not rel.matches(make_span("a", 0, 1, height=4.5), make_span("b", 2, 3, height=5.5))
    top = 2 ** 63 - 1
    assert not rel.matches(make_span("a", 0, 1, height=top), make_span("b", 2, 3, height=str(top)))


def test_missing_attribute_never_matches(make_span):
    rel = _height(AttributeRelationOp.equal)
    assert not rel.matches(make_span("a", 0, 1), make_span("b", 2, 3, height=1))


def test_parse_i64_bounds():
    assert parse_i64("-9223372036854775808") == -(2 ** 63)
    assert parse_i64("9223372036854775808") is None
    assert parse_i64("+12") == 12
    assert parse_i64("1e3") is None


def test_relation_nodes_config(make_span):
    a = make_span("a", 0, 1, node="n1")
    b_same = make_span("b", 2, 3, node="n1")
    b_other = make_span("b", 2, 3, node="n2")
    rel = Relation(from_selector=SpanSelector.equal_name("a"), to_selector=SpanSelector.equal_name("b"))

    same = rel.model_copy(update={"nodes_config": RelationNodesConfig.same_node})
    diff = rel.model_copy(update={"nodes_config": RelationNodesConfig.different_node})
    assert rel.matches(a, b_same) and rel.matches(a, b_other)
    assert same.matches(a, b_same) and not same.matches(a, b_other)
    assert diff.matches(a, b_other) and not diff.matches(a, b_same)


def test_relation_document_with_legacy_field_names_and_tagged_conditions():
    rel = load_relation({
        "name": "witness",
        "from_span_selector": {"span_name_condition": {"EqualTo": "send"}},
        "to_span_selector": {
            "span_name_condition": {"EqualTo": "validate"},
            "attribute_conditions": [["shard_id", {"NotEqualTo": "3"}]],
        },
        "attribute_relations": [{"from_attribute": "height", "to_attribute": "height", "relation": "OneGreater"}],
        "max_time_diff": 2.0,
        "match_type": "MatchClosest",
    })
    assert rel.from_selector.required_name() == "send"
    assert rel.to_selector.attribute_conditions[0][0] == "shard_id"
    assert rel.attribute_relations[0].relation is AttributeRelationOp.one_greater
    assert rel.match_type is MatchType.match_closest
    assert rel.min_time_diff == 0.0


def test_v0_upgrade_preserves_fields():
    rid = uuid.uuid4()
    legacy = {
        "id": str(rid),
        "name": "old",
        "from_span_name": "a",
        "to_span_name": "b",
        "max_time_diff": 1.5,
        "nodes_config": "SameNode",
    }
    rel = load_relation(legacy)
    assert isinstance(rel, Relation)
    assert rel.id == rid
    assert rel.description == ""
    assert rel.from_selector == SpanSelector.equal_name("a")
    assert rel.to_selector == SpanSelector.equal_name("b")
    assert rel.max_time_diff == 1.5
    assert rel.min_time_diff == 0.0
    assert rel.nodes_config is RelationNodesConfig.same_node
    assert RelationV0.model_validate(legacy).upgrade().same_rule_as(rel)


def test_same_rule_ignores_id():
    a = Relation(name="x", from_selector=SpanSelector.equal_name("a"))
    b = Relation(name="x", from_selector=SpanSelector.equal_name("a"))
    assert a.id != b.id
    assert a.same_rule_as(b)
    assert not a.same_rule_as(b.model_copy(update={"max_time_diff": 1.0}))


def test_seeded_ids_are_stable():
    assert make_uuid_from_seed("seed") == make_uuid_from_seed("seed")
    assert make_uuid_from_seed("seed") != make_uuid_from_seed("other")


def test_view_enabling():
    rels = [Relation(), Relation()]
    view = RelationView.enabling(rels, name="v")
    assert view.enabled_relations == [r.id for r in rels]
    assert not view.is_builtin


def test_invalid_relation_document_raises():
    with pytest.raises(ValueError):
        load_relation({"match_type": "Sometimes"})
