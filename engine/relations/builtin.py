"""
Built-in relation catalog for block production traces and the built-in views that enable subsets of it.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import List, Sequence

from config import settings
from engine.enums import AttributeRelationOp, MatchType, RelationNodesConfig
from engine.relations.models import AttributeRelation, Relation, RelationView, make_uuid_from_seed
from engine.selectors import MatchCondition, SpanSelector

SAME = RelationNodesConfig.same_node
ALL = RelationNodesConfig.all_nodes


def _attrs(*specs: str) -> List[AttributeRelation]:
    # "height" -> Equal, "height+1" -> OneGreater
    out: List[AttributeRelation] = []
    for spec in specs:
        if spec.endswith("+1"):
            name = spec[:-2]
            out.append(AttributeRelation(from_attribute=name, to_attribute=name, relation=AttributeRelationOp.one_greater))
        else:
            out.append(AttributeRelation(from_attribute=spec, to_attribute=spec, relation=AttributeRelationOp.equal))
    return out


def _apply_chunk(block_type: str) -> SpanSelector:
    return SpanSelector(
        span_name_condition=MatchCondition.equal_to("apply_new_chunk"),
        attribute_conditions=[
            ("apply_reason", MatchCondition.equal_to("UpdateTrackedShard")),
            ("block_type", MatchCondition.equal_to(block_type)),
        ],
    )


def _builtin(
    seed: str,
    name: str,
    from_selector: SpanSelector,
    to_selector: SpanSelector,
    attributes: Sequence[str],
    nodes_config: RelationNodesConfig,
    min_time_diff: float = 0.0,
) -> Relation:
    return Relation(
        id=make_uuid_from_seed(seed),
        name=name,
        description="",
        from_selector=from_selector,
        to_selector=to_selector,
        attribute_relations=_attrs(*attributes),
        max_time_diff=settings.relation_default_max_time_diff,
        min_time_diff=min_time_diff,
        nodes_config=nodes_config,
        match_type=MatchType.match_all,
        is_builtin=True,
    )


def _named(seed: str, from_name: str, to_name: str, attributes: Sequence[str], nodes_config: RelationNodesConfig,
           name: str = "") -> Relation:
    return _builtin(
        seed, name or f"{from_name} -> {to_name}",
        SpanSelector.equal_name(from_name), SpanSelector.equal_name(to_name),
        attributes, nodes_config,
    )


def produce_block_on_head_to_preprocess_block() -> Relation:
    return _named("produce_block_on_head -> preprocess_block", "produce_block_on_head", "preprocess_block",
                  ["height"], ALL)


def preprocess_block_to_postprocess_ready_block() -> Relation:
    return _named("pre-post-process block", "preprocess_block", "postprocess_ready_block", ["height"], SAME)


def postprocess_ready_block_to_produce_block_on_head() -> Relation:
    return _named("postprocess_ready_block -> produce_block_on_head", "postprocess_ready_block",
                  "produce_block_on_head", ["height+1"], SAME)


def postprocess_ready_block_to_next_preprocess_block() -> Relation:
    return _named("post-pre-process block", "postprocess_ready_block", "preprocess_block", ["height+1"], SAME,
                  name="postprocess_ready_block to next preprocess_block")


def preprocess_block_to_apply_new_chunk() -> Relation:
    return _builtin("preprocess_block -> apply_new_chunk", "preprocess_block -> apply_new_chunk",
                    SpanSelector.equal_name("preprocess_block"), _apply_chunk("Normal"), ["height"], SAME)


def apply_new_chunk_normal_to_postprocess_ready_block() -> Relation:
    name = "apply_new_chunk(normal) -> postprocess_ready_block"
    return _builtin(name, name, _apply_chunk("Normal"), SpanSelector.equal_name("postprocess_ready_block"),
                    ["height"], SAME)


def apply_new_chunk_optimistic_to_postprocess_ready_block() -> Relation:
    name = "apply_new_chunk(optimistic) -> postprocess_ready_block"
    return _builtin(name, name, _apply_chunk("Optimistic"), SpanSelector.equal_name("postprocess_ready_block"),
                    ["height"], SAME)


def postprocess_ready_block_to_produce_chunk() -> Relation:
    return _named("postprocess_ready_block -> produce_chunk", "postprocess_ready_block", "produce_chunk",
                  ["height+1"], SAME)


def produce_chunk_to_send_chunk_state_witness() -> Relation:
    return _named("produce_chunk -> send_chunk_state_witness", "produce_chunk", "send_chunk_state_witness",
                  ["height", "shard_id"], SAME)


def send_chunk_state_witness_to_validate_chunk_state_witness() -> Relation:
    return _named("send-validate witness", "send_chunk_state_witness", "validate_chunk_state_witness",
                  ["height", "shard_id"], ALL)


def validate_chunk_state_witness_to_send_chunk_endorsement() -> Relation:
    return _named("validate_chunk_state_witness -> send_chunk_endorsement", "validate_chunk_state_witness",
                  "send_chunk_endorsement", ["height", "shard_id"], SAME)


def send_chunk_endorsement_to_validate_chunk_endorsement() -> Relation:
    return _named("send-validate chunk endorsement", "send_chunk_endorsement", "validate_chunk_endorsement",
                  ["height", "shard_id", "validator"], ALL)


def validate_chunk_endorsement_to_produce_block_on_head() -> Relation:
    return _named("validate_chunk_endorsement -> produce_block_on_head", "validate_chunk_endorsement",
                  "produce_block_on_head", ["height"], SAME)


def postprocess_ready_block_to_produce_optimistic_block_on_head() -> Relation:
    return _named("postprocess_ready_block -> produce_optimistic_block_on_head", "postprocess_ready_block",
                  "produce_optimistic_block_on_head", ["height+1"], SAME)


def produce_optimistic_block_on_head_to_process_optimistic_block() -> Relation:
    return _named("produce optimistic -> preprocess optimistic", "produce_optimistic_block_on_head",
                  "process_optimistic_block", ["height"], ALL)


def process_optimistic_block_to_apply_new_chunk_optimistic() -> Relation:
    # apply_new_chunk may start a few ms before the process_optimistic_block that spawns it
    name = "process_optimistic_block -> apply_new_chunk(optimistic)"
    return _builtin(name, name, SpanSelector.equal_name("process_optimistic_block"), _apply_chunk("Optimistic"),
                    ["height"], SAME, min_time_diff=-0.010)


def builtin_relations() -> List[Relation]:
    return [
        produce_block_on_head_to_preprocess_block(),
        preprocess_block_to_postprocess_ready_block(),
        postprocess_ready_block_to_produce_block_on_head(),
        postprocess_ready_block_to_next_preprocess_block(),
        preprocess_block_to_apply_new_chunk(),
        apply_new_chunk_normal_to_postprocess_ready_block(),
        apply_new_chunk_optimistic_to_postprocess_ready_block(),
        postprocess_ready_block_to_produce_chunk(),
        produce_chunk_to_send_chunk_state_witness(),
        send_chunk_state_witness_to_validate_chunk_state_witness(),
        validate_chunk_state_witness_to_send_chunk_endorsement(),
        send_chunk_endorsement_to_validate_chunk_endorsement(),
        validate_chunk_endorsement_to_produce_block_on_head(),
        postprocess_ready_block_to_produce_optimistic_block_on_head(),
        produce_optimistic_block_on_head_to_process_optimistic_block(),
        process_optimistic_block_to_apply_new_chunk_optimistic(),
    ]


def builtin_relation_views() -> List[RelationView]:
    block_production = [
        produce_block_on_head_to_preprocess_block(),
        preprocess_block_to_postprocess_ready_block(),
        postprocess_ready_block_to_produce_block_on_head(),
        postprocess_ready_block_to_next_preprocess_block(),
        preprocess_block_to_apply_new_chunk(),
        apply_new_chunk_normal_to_postprocess_ready_block(),
        apply_new_chunk_optimistic_to_postprocess_ready_block(),
        postprocess_ready_block_to_produce_chunk(),
        produce_chunk_to_send_chunk_state_witness(),
        validate_chunk_state_witness_to_send_chunk_endorsement(),
        validate_chunk_endorsement_to_produce_block_on_head(),
        postprocess_ready_block_to_produce_optimistic_block_on_head(),
        produce_optimistic_block_on_head_to_process_optimistic_block(),
        process_optimistic_block_to_apply_new_chunk_optimistic(),
    ]
    return [
        RelationView(name="No relations", enabled_relations=[], is_builtin=True),
        RelationView(
            name="Pre-Post Process Block",
            enabled_relations=[preprocess_block_to_postprocess_ready_block().id],
            is_builtin=True,
        ),
        RelationView(
            name="Send-Receive Witness",
            enabled_relations=[send_chunk_state_witness_to_validate_chunk_state_witness().id],
            is_builtin=True,
        ),
        RelationView(
            name="Send-Validate Chunk Endorsement",
            enabled_relations=[send_chunk_endorsement_to_validate_chunk_endorsement().id],
            is_builtin=True,
        ),
        RelationView(
            name="Block production without witness and endorsement distribution",
            enabled_relations=[r.id for r in block_production],
            is_builtin=True,
        ),
        RelationView(
            name="All builtin Relations",
            enabled_relations=[r.id for r in builtin_relations()],
            is_builtin=True,
        ),
    ]
