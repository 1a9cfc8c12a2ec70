"""
Theoretical model tests: builders, relation de-duplication, and scheduling of the model catalog.
"""

import pytest

from config import TAG_BLOCK_PRODUCTION
from engine.enums import AttributeRelationOp, RelationNodesConfig
from engine.schedule import RelationBuilder, SpanBuilder, TheoreticalModel, all_models, get_model
from engine.schedule.models import realistic_model, very_optimistic_model


def test_span_builder_builds_parent_first_with_tag():
    spans = (
        SpanBuilder("validate", "v1", 0.4)
        .with_attribute("height", 3)
        .with_child(SpanBuilder("apply", "v1", 0.2).with_attribute("height", 2))
        .build()
    )
    parent, child = spans
    assert parent.parent_id is None
    assert child.parent_id == parent.span_id
    assert parent.start_time == 1.0
    assert parent.end_time == pytest.approx(1.4)
    assert parent.attributes[TAG_BLOCK_PRODUCTION] == "true"
    assert parent.attributes["height"] == "3"
    assert child.attributes["height"] == "2"


def test_relation_builder_ids_are_content_derived():
    first = RelationBuilder("a", "b").attribute_one_greater("height").same_node().build()
    again = RelationBuilder("a", "b").attribute_one_greater("height").same_node().build()
    other = RelationBuilder("a", "b").attribute_equal("height").build()

    assert first.id == again.id
    assert first.id != other.id
    assert first.nodes_config is RelationNodesConfig.same_node
    assert first.attribute_relations[0].relation is AttributeRelationOp.one_greater
    assert first.is_builtin


def test_relation_builder_selector_attributes(make_span):
    rel = RelationBuilder("a", "b").from_attribute_equal("kind", True).to_attribute_equal("shard", 2).build()
    assert rel.matches(make_span("a", 0, 1, kind=True), make_span("b", 2, 3, shard=2))
    assert not rel.matches(make_span("a", 0, 1, kind=False), make_span("b", 2, 3, shard=2))


def test_model_deduplicates_relations():
    model = TheoreticalModel("m", "test")
    model.add_relation(RelationBuilder("a", "b").attribute_equal("height"))
    model.add_relation(RelationBuilder("a", "b").attribute_equal("height"))
    model.add_relation(RelationBuilder("a", "b").attribute_one_greater("height"))
    assert len(model.relations) == 2


def test_small_model_schedules_in_order():
    model = TheoreticalModel("m", "test")
    for height in (1, 2):
        model.add_span(SpanBuilder("produce", "p", 0.1).with_attribute("height", height))
        model.add_span(SpanBuilder("apply", "p", 0.4).with_attribute("height", height))
        model.add_relation(RelationBuilder("produce", "apply").attribute_equal("height"))
        model.add_relation(RelationBuilder("apply", "produce").attribute_one_greater("height"))

    result, relations = model.finalize()

    assert result.converged
    assert len(relations) == 2
    ordered = sorted(result.spans(), key=lambda s: s.start_time)
    assert [(s.name, s.attributes["height"]) for s in ordered] == [
        ("produce", "1"), ("apply", "1"), ("produce", "2"), ("apply", "2"),
    ]
    assert ordered[-1].end_time == pytest.approx(2.0)


@pytest.mark.parametrize(
    "name", ["stateless_validation", "optimistic_block", "optimistic_witness", "very_optimistic"]
)
def test_catalog_models_converge(name):
    model = get_model(name, heights=3)
    result, relations = model.finalize()

    assert result.converged
    assert result.edges
    for from_id, to_id in result.edges:
        assert result.arena.get(to_id).start_time >= result.arena.get(from_id).end_time
    for span in result.spans():
        for child in result.arena.children_of(span.span_id):
            assert child.start_time == span.start_time
    assert len(relations) == len(get_model(name, heights=1).relations)


def test_catalog_listing_and_unknown_model():
    assert [m.name for m in all_models(heights=1)] == [
        "stateless_validation", "optimistic_block", "optimistic_witness", "very_optimistic", "realistic",
    ]
    assert get_model("missing") is None


def _assert_schedule_consistent(result):
    assert result.converged
    assert result.edges
    for from_id, to_id in result.edges:
        assert result.arena.get(to_id).start_time >= result.arena.get(from_id).end_time


def test_very_optimistic_flags_relax_dependencies():
    default = very_optimistic_model(heights=3)
    relaxed = very_optimistic_model(heights=3, earlier_prepare_transactions=True, apply_after_previous_preprocess=True)

    default_names = {r.name for r in default.relations}
    assert "postprocess_block -> apply_chunk_optimistic" in default_names
    assert "preprocess_block -> apply_chunk_optimistic" not in default_names
    assert "preprocess_block -> apply_chunk_optimistic" in {r.name for r in relaxed.relations}

    default_result, _ = default.finalize()
    relaxed_result, _ = relaxed.finalize()
    _assert_schedule_consistent(relaxed_result)
    default_end = max(s.end_time for s in default_result.spans())
    relaxed_end = max(s.end_time for s in relaxed_result.spans())
    assert relaxed_end <= default_end


def test_realistic_model_is_seeded_and_converges():
    model = realistic_model(heights=2, node_count=4)
    again = realistic_model(heights=2, node_count=4)

    producers = [s.node.name for s in model.spans if s.name == "produce_block_on_head"]
    assert producers == [s.node.name for s in again.spans if s.name == "produce_block_on_head"]
    assert len(producers) == 2
    # the block producer never receives its own block
    for height, producer in zip(("1", "2"), producers):
        receivers = {
            s.node.name for s in model.spans if s.name == "receive_block" and s.attributes["height"] == height
        }
        assert producer not in receivers
        assert len(receivers) == 3

    witnessed = {
        (s.node.name, s.attributes["shard_id"])
        for s in model.spans
        if s.name == "receive_witness" and s.attributes["height"] == "1"
    }
    assert {shard for _, shard in witnessed} == {"0", "1", "2", "3"}

    result, _ = model.finalize()
    _assert_schedule_consistent(result)
    assert model.description == "Matches current 4 shard/node forknet benchmark"
