"""
Relation matcher tests covering temporal windows, cardinality, node locality, and result indexing.
"""

import logging
import uuid

import pytest

from engine.enums import AttributeRelationOp, MatchType, RelationNodesConfig
from engine.relations import AttributeRelation, Relation, RelationView, find_relations
from engine.selectors import MatchCondition, SpanSelector
from engine.spans import SpanArena


def _rel(from_name="a", to_name="b", **kwargs):
    return Relation(
        name=f"{from_name} -> {to_name}",
        from_selector=SpanSelector.equal_name(from_name),
        to_selector=SpanSelector.equal_name(to_name),
        **kwargs,
    )


def _match(relations, spans, view=None):
    view = view or RelationView.enabling(relations)
    return find_relations(relations, view, SpanArena(spans))


def test_match_all_counts_every_pair_in_window(make_span):
    a1 = make_span("a", 0.0, 1.0)
    a2 = make_span("a", 0.5, 1.5)
    b1 = make_span("b", 2.0, 3.0)
    b2 = make_span("b", 2.5, 3.0)
    b3 = make_span("b", 9.0, 9.5)

    result = _match([_rel(max_time_diff=5.0)], [a1, a2, b1, b2, b3])

    assert len(result) == 4
    assert {(i.from_span_id, i.to_span_id) for i in result.instances} == {
        (a1.span_id, b1.span_id), (a1.span_id, b2.span_id),
        (a2.span_id, b1.span_id), (a2.span_id, b2.span_id),
    }


def test_to_span_must_start_after_from_end(make_span):
    a = make_span("a", 0.0, 2.0)
    overlapping = make_span("b", 1.0, 3.0)
    touching = make_span("b", 2.0, 3.0)
    result = _match([_rel()], [a, overlapping, touching])
    assert [i.to_span_id for i in result.instances] == [touching.span_id]


def test_negative_min_time_diff_admits_overlap(make_span):
    a = make_span("a", 0.0, 2.0)
    b = make_span("b", 1.995, 3.0)
    assert len(_match([_rel()], [a, b])) == 0
    assert len(_match([_rel(min_time_diff=-0.010)], [a, b])) == 1


def test_max_time_diff_is_measured_between_starts(make_span):
    a = make_span("a", 0.0, 1.0)
    inside = make_span("b", 5.0, 6.0)
    outside = make_span("b", 5.01, 6.0)
    result = _match([_rel(max_time_diff=5.0)], [a, inside, outside])
    assert [i.to_span_id for i in result.instances] == [inside.span_id]


def test_match_closest_picks_earliest_satisfying_target(make_span):
    a = make_span("a", 0.0, 1.0, height=1)
    wrong = make_span("b", 1.1, 1.2, height=9)
    first = make_span("b", 1.5, 1.6, height=1)
    later = make_span("b", 2.0, 2.1, height=1)
    rel = _rel(
        match_type=MatchType.match_closest,
        attribute_relations=[AttributeRelation(from_attribute="height", to_attribute="height")],
    )
    result = _match([rel], [a, later, wrong, first])
    assert [(i.from_span_id, i.to_span_id) for i in result.instances] == [(a.span_id, first.span_id)]


def test_match_closest_yields_at_most_one_per_source(make_span):
    spans = [make_span("a", float(i), float(i) + 0.1) for i in range(3)]
    spans += [make_span("b", 10.0 + i, 10.5 + i) for i in range(3)]
    result = _match([_rel(match_type=MatchType.match_closest)], spans)
    assert len(result) == 3
    assert len({i.from_span_id for i in result.instances}) == 3


def test_nodes_config_restricts_pairs(make_span):
    a = make_span("a", 0, 1, node="n1")
    b_same = make_span("b", 2, 3, node="n1")
    b_other = make_span("b", 2, 3, node="n2")
    spans = [a, b_same, b_other]

    same = _match([_rel(nodes_config=RelationNodesConfig.same_node)], spans)
    diff = _match([_rel(nodes_config=RelationNodesConfig.different_node)], spans)
    assert [i.to_span_id for i in same.instances] == [b_same.span_id]
    assert [i.to_span_id for i in diff.instances] == [b_other.span_id]


def test_attribute_relation_one_greater(make_span):
    post = make_span("post", 0, 1, height=10)
    nxt = make_span("pre", 2, 3, height=11)
    same = make_span("pre", 2, 3, height=10)
    rel = _rel(
        "post", "pre",
        attribute_relations=[AttributeRelation(
            from_attribute="height", to_attribute="height", relation=AttributeRelationOp.one_greater,
        )],
    )
    result = _match([rel], [post, nxt, same])
    assert [i.to_span_id for i in result.instances] == [nxt.span_id]


def test_descendants_are_matched(make_span):
    root = make_span("root", 0, 10)
    a = make_span("a", 1, 2, parent=root)
    b = make_span("b", 3, 4, parent=a)
    result = _match([_rel()], [root, a, b])
    assert result.triples() == {(a.span_id, b.span_id, result.instances[0].relation_id)}


def test_unknown_view_ids_are_skipped(make_span):
    rel = _rel()
    view = RelationView(name="v", enabled_relations=[uuid.uuid4(), rel.id])
    result = _match([rel], [make_span("a", 0, 1), make_span("b", 2, 3)], view=view)
    assert len(result) == 1


def test_disabled_relations_do_not_match(make_span):
    rel = _rel()
    result = _match([rel], [make_span("a", 0, 1), make_span("b", 2, 3)], view=RelationView(name="none"))
    assert len(result) == 0


def test_matching_is_idempotent(make_span):
    spans = [make_span("a", 0, 1), make_span("a", 0.5, 1.5), make_span("b", 2, 3), make_span("b", 4, 5)]
    rels = [_rel(), _rel(match_type=MatchType.match_closest)]
    first = _match(rels, spans)
    second = _match(rels, spans)
    assert first.triples() == second.triples()
    assert len(first.triples()) == len(first)


def test_side_table_indexes_both_endpoints(make_span):
    a = make_span("a", 0, 1)
    b1 = make_span("b", 2, 3)
    b2 = make_span("b", 3, 4)
    result = _match([_rel()], [a, b1, b2])
    assert [i.to_span_id for i in result.outgoing_relations(a.span_id)] == [b1.span_id, b2.span_id]
    assert [i.from_span_id for i in result.incoming_relations(b2.span_id)] == [a.span_id]
    assert result.outgoing_relations(b1.span_id) == []


def test_never_pairs_a_span_with_itself(make_span):
    rel = Relation(
        from_selector=SpanSelector.equal_name("a"),
        to_selector=SpanSelector.equal_name("a"),
        min_time_diff=-10.0,
    )
    a1 = make_span("a", 0, 1)
    a2 = make_span("a", 0.5, 1.5)
    result = _match([rel], [a1, a2])
    assert all(i.from_span_id != i.to_span_id for i in result.instances)
    assert len(result) == 2


def test_multi_name_selector_processes_every_group(make_span, caplog):
    rel = Relation(
        name="wide",
        from_selector=SpanSelector(span_name_condition=MatchCondition.contains("send")),
        to_selector=SpanSelector.equal_name("validate"),
    )
    spans = [
        make_span("send_witness", 0, 1),
        make_span("send_endorsement", 0, 1),
        make_span("validate", 2, 3),
    ]
    with caplog.at_level(logging.WARNING, logger="engine.relations.matcher"):
        result = _match([rel], spans)
    assert len(result) == 2
    assert any("several span names" in r.message for r in caplog.records)
