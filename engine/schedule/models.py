"""
Catalog of theoretical block production models used to simulate idealized timelines.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

import numpy as np

from config import settings
from engine.schedule.builders import RelationBuilder, SpanBuilder, TheoreticalModel

# operation timings in seconds
SHORT_OPERATION_TIME = 0.010
APPLY_CHUNK_TIME = 0.400
PREPARE_TRANSACTIONS_TIME = 0.100
POSTPROCESS_BLOCK_TIME = 0.100
DISTRIBUTE_WITNESS_TIME = 0.150
SEND_CHUNK_ENDORSEMENT_TIME = 0.010
SEND_OUTGOING_RECEIPTS_TIME = 0.050
VALIDATE_NEW_CHUNK_TIME = 0.030

# shards each node validates in the realistic model
REALISTIC_VALIDATED_SHARDS = 6

BLOCK_PRODUCER = "block_producer"
CHUNK_PRODUCER = "chunk_producer"
CHUNK_VALIDATOR = "chunk_validator"
NODES = (BLOCK_PRODUCER, CHUNK_PRODUCER, CHUNK_VALIDATOR)


def _heights(heights: Optional[int]) -> range:
    if heights is None:
        heights = settings.theoretical_heights
    return range(1, heights + 1)


def _add_block_processing(model: TheoreticalModel, height: int, applied_chunk: str) -> None:
    model.add_span(SpanBuilder("produce_block", BLOCK_PRODUCER, SHORT_OPERATION_TIME).with_attribute("height", height))
    model.add_relation(RelationBuilder("send_chunk_endorsement", "produce_block").attribute_equal("height"))

    for node in NODES:
        model.add_span(SpanBuilder("preprocess_block", node, SHORT_OPERATION_TIME).with_attribute("height", height))
    model.add_relation(RelationBuilder("produce_block", "preprocess_block").attribute_equal("height"))

    for node in NODES:
        model.add_span(SpanBuilder("postprocess_block", node, POSTPROCESS_BLOCK_TIME).with_attribute("height", height))
    model.add_relation(
        RelationBuilder("preprocess_block", "postprocess_block").attribute_equal("height").same_node()
    )
    model.add_relation(
        RelationBuilder(applied_chunk, "postprocess_block").attribute_equal("height").same_node()
    )


def _add_witness_and_endorsement(model: TheoreticalModel, height: int, applied_chunk: str) -> None:
    model.add_span(
        SpanBuilder("send_chunk_state_witness", CHUNK_PRODUCER, DISTRIBUTE_WITNESS_TIME).with_attribute("height", height)
    )
    model.add_relation(
        RelationBuilder("produce_chunk", "send_chunk_state_witness").attribute_equal("height").same_node()
    )
    model.add_relation(
        RelationBuilder(applied_chunk, "send_chunk_state_witness").attribute_one_greater("height").same_node()
    )

    model.add_span(
        SpanBuilder("validate_chunk_state_witness", CHUNK_VALIDATOR, APPLY_CHUNK_TIME)
        .with_attribute("height", height)
        .with_child(SpanBuilder("apply_chunk", CHUNK_VALIDATOR, APPLY_CHUNK_TIME).with_attribute("height", height - 1))
    )
    model.add_relation(
        RelationBuilder("send_chunk_state_witness", "validate_chunk_state_witness").attribute_equal("height")
    )
    model.add_relation(
        RelationBuilder("postprocess_block", "validate_chunk_state_witness").attribute_one_greater("height").same_node()
    )

    model.add_span(
        SpanBuilder("send_chunk_endorsement", CHUNK_VALIDATOR, SEND_CHUNK_ENDORSEMENT_TIME).with_attribute("height", height)
    )
    model.add_relation(
        RelationBuilder("validate_chunk_state_witness", "send_chunk_endorsement").attribute_equal("height").same_node()
    )


def _add_process_optimistic_block(model: TheoreticalModel, height: int) -> None:
    model.add_span(
        SpanBuilder("process_optimistic_block", CHUNK_PRODUCER, SHORT_OPERATION_TIME).with_attribute("height", height)
    )
    model.add_relation(
        RelationBuilder("produce_optimistic_block", "process_optimistic_block").attribute_equal("height")
    )


def _add_optimistic_witness_validation(model: TheoreticalModel, height: int, validate_time: float) -> None:
    """Chunk producer ships an optimistic witness right after applying; validators re-apply it ahead of the
    official witness, which then only needs a short validation."""
    model.add_span(
        SpanBuilder("send_optimistic_witness", CHUNK_PRODUCER, DISTRIBUTE_WITNESS_TIME).with_attribute("height", height)
    )
    model.add_relation(
        RelationBuilder("apply_chunk_optimistic", "send_optimistic_witness").attribute_equal("height").same_node()
    )

    model.add_span(
        SpanBuilder("send_chunk_state_witness", CHUNK_PRODUCER, DISTRIBUTE_WITNESS_TIME).with_attribute("height", height)
    )
    model.add_relation(
        RelationBuilder("produce_chunk", "send_chunk_state_witness").attribute_equal("height").same_node()
    )
    model.add_relation(
        RelationBuilder("apply_chunk_optimistic", "send_chunk_state_witness").attribute_one_greater("height").same_node()
    )

    model.add_span(
        SpanBuilder("apply_optimistic_witness", CHUNK_VALIDATOR, APPLY_CHUNK_TIME)
        .with_attribute("height", height)
        .with_child(SpanBuilder("apply_chunk_optimistic", CHUNK_VALIDATOR, APPLY_CHUNK_TIME).with_attribute("height", height))
    )
    model.add_relation(
        RelationBuilder("send_optimistic_witness", "apply_optimistic_witness").attribute_equal("height")
    )

    model.add_span(
        SpanBuilder("validate_chunk_state_witness", CHUNK_VALIDATOR, validate_time).with_attribute("height", height)
    )
    model.add_relation(
        RelationBuilder("send_chunk_state_witness", "validate_chunk_state_witness").attribute_equal("height")
    )
    model.add_relation(
        RelationBuilder("postprocess_block", "validate_chunk_state_witness").attribute_one_greater("height").same_node()
    )
    model.add_relation(
        RelationBuilder("apply_optimistic_witness", "validate_chunk_state_witness")
        .attribute_one_greater("height")
        .same_node()
    )

    model.add_span(
        SpanBuilder("send_chunk_endorsement", CHUNK_VALIDATOR, SEND_CHUNK_ENDORSEMENT_TIME).with_attribute("height", height)
    )
    model.add_relation(
        RelationBuilder("validate_chunk_state_witness", "send_chunk_endorsement").attribute_equal("height").same_node()
    )


def stateless_validation_model(heights: Optional[int] = None) -> TheoreticalModel:
    model = TheoreticalModel("stateless_validation", "Basic stateless validation")
    for height in _heights(heights):
        _add_block_processing(model, height, "apply_chunk")

        model.add_span(
            SpanBuilder("produce_chunk", CHUNK_PRODUCER, PREPARE_TRANSACTIONS_TIME).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("postprocess_block", "produce_chunk").attribute_one_greater("height").same_node()
        )

        model.add_span(SpanBuilder("apply_chunk", CHUNK_PRODUCER, APPLY_CHUNK_TIME).with_attribute("height", height))
        model.add_relation(
            RelationBuilder("preprocess_block", "apply_chunk").attribute_equal("height").same_node()
        )
        model.add_relation(RelationBuilder("produce_chunk", "apply_chunk").attribute_equal("height"))

        _add_witness_and_endorsement(model, height, "apply_chunk")
    return model


def optimistic_block_model(heights: Optional[int] = None) -> TheoreticalModel:
    model = TheoreticalModel("optimistic_block", "Stateless validation with optimistic block")
    for height in _heights(heights):
        _add_block_processing(model, height, "apply_chunk_optimistic")

        model.add_span(
            SpanBuilder("produce_optimistic_block", BLOCK_PRODUCER, SHORT_OPERATION_TIME).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("postprocess_block", "produce_optimistic_block").attribute_one_greater("height").same_node()
        )

        _add_process_optimistic_block(model, height)

        model.add_span(
            SpanBuilder("produce_chunk", CHUNK_PRODUCER, PREPARE_TRANSACTIONS_TIME).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("postprocess_block", "produce_chunk").attribute_one_greater("height").same_node()
        )

        model.add_span(
            SpanBuilder("apply_chunk_optimistic", CHUNK_PRODUCER, APPLY_CHUNK_TIME).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("process_optimistic_block", "apply_chunk_optimistic").attribute_equal("height").same_node()
        )
        model.add_relation(RelationBuilder("produce_chunk", "apply_chunk_optimistic").attribute_equal("height"))

        _add_witness_and_endorsement(model, height, "apply_chunk_optimistic")
    return model


def optimistic_witness_model(heights: Optional[int] = None) -> TheoreticalModel:
    model = TheoreticalModel(
        "optimistic_witness", "Stateless validation with optimistic block and optimistic chunk witness"
    )
    for height in _heights(heights):
        _add_block_processing(model, height, "apply_chunk_optimistic")

        model.add_span(
            SpanBuilder("produce_optimistic_block", BLOCK_PRODUCER, SHORT_OPERATION_TIME).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("postprocess_block", "produce_optimistic_block").attribute_one_greater("height").same_node()
        )
        _add_process_optimistic_block(model, height)

        model.add_span(
            SpanBuilder("produce_chunk", CHUNK_PRODUCER, PREPARE_TRANSACTIONS_TIME).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("postprocess_block", "produce_chunk").attribute_one_greater("height").same_node()
        )

        model.add_span(
            SpanBuilder("apply_chunk_optimistic", CHUNK_PRODUCER, APPLY_CHUNK_TIME).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("process_optimistic_block", "apply_chunk_optimistic").attribute_equal("height").same_node()
        )
        model.add_relation(RelationBuilder("produce_chunk", "apply_chunk_optimistic").attribute_equal("height"))

        _add_optimistic_witness_validation(model, height, VALIDATE_NEW_CHUNK_TIME)
    return model


def very_optimistic_model(
    heights: Optional[int] = None,
    earlier_prepare_transactions: bool = False,
    optimistic_block_after_preprocess: bool = False,
    optimistic_block_after_optimistic_block: bool = False,
    apply_after_previous_preprocess: bool = False,
    apply_after_previous_previous_preprocess: bool = False,
) -> TheoreticalModel:
    """
    Optimistic block, optimistic chunk and optimistic witness together.

    The keyword flags relax individual dependencies further:
    earlier_prepare_transactions prepares transactions on state two heights back,
    optimistic_block_after_preprocess produces the optimistic block once the previous block is preprocessed,
    optimistic_block_after_optimistic_block chains optimistic blocks off each other,
    apply_after_previous_preprocess and apply_after_previous_previous_preprocess let chunk application start
    after the previous (or the one before it) block is preprocessed instead of postprocessed.
    """
    model = TheoreticalModel(
        "very_optimistic",
        "Stateless validation with a lot of optimistic execution to achieve maximum throughput",
    )
    for height in _heights(heights):
        _add_block_processing(model, height, "apply_chunk_optimistic")

        model.add_span(
            SpanBuilder("produce_optimistic_block", BLOCK_PRODUCER, SHORT_OPERATION_TIME).with_attribute("height", height)
        )
        if optimistic_block_after_optimistic_block:
            model.add_relation(
                RelationBuilder("produce_optimistic_block", "produce_optimistic_block")
                .attribute_one_greater("height")
                .same_node()
            )
            model.add_relation(
                RelationBuilder("preprocess_block", "produce_optimistic_block").attribute_two_greater("height").same_node()
            )
        elif optimistic_block_after_preprocess:
            model.add_relation(
                RelationBuilder("preprocess_block", "produce_optimistic_block").attribute_one_greater("height").same_node()
            )
        else:
            model.add_relation(
                RelationBuilder("postprocess_block", "produce_optimistic_block")
                .attribute_one_greater("height")
                .same_node()
            )
        _add_process_optimistic_block(model, height)

        model.add_span(
            SpanBuilder("prepare_transactions", CHUNK_PRODUCER, PREPARE_TRANSACTIONS_TIME).with_attribute("height", height)
        )
        prepare_after = RelationBuilder("apply_chunk_optimistic", "prepare_transactions")
        if earlier_prepare_transactions:
            prepare_after.attribute_two_greater("height")
        else:
            prepare_after.attribute_one_greater("height")
        model.add_relation(prepare_after.same_node())

        model.add_span(
            SpanBuilder("send_outgoing_receipts", CHUNK_PRODUCER, SEND_OUTGOING_RECEIPTS_TIME)
            .with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("apply_chunk_optimistic", "send_outgoing_receipts").attribute_equal("height").same_node()
        )

        model.add_span(SpanBuilder("produce_chunk", CHUNK_PRODUCER, SHORT_OPERATION_TIME).with_attribute("height", height))
        model.add_relation(
            RelationBuilder("postprocess_block", "produce_chunk").attribute_one_greater("height").same_node()
        )
        model.add_relation(
            RelationBuilder("prepare_transactions", "produce_chunk").attribute_equal("height").same_node()
        )

        model.add_span(
            SpanBuilder("produce_optimistic_chunk", CHUNK_PRODUCER, SHORT_OPERATION_TIME).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("prepare_transactions", "produce_optimistic_chunk").attribute_equal("height").same_node()
        )

        model.add_span(
            SpanBuilder("apply_chunk_optimistic", CHUNK_PRODUCER, APPLY_CHUNK_TIME).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("process_optimistic_block", "apply_chunk_optimistic").attribute_equal("height").same_node()
        )
        model.add_relation(
            RelationBuilder("produce_optimistic_chunk", "apply_chunk_optimistic").attribute_equal("height")
        )
        model.add_relation(
            RelationBuilder("send_outgoing_receipts", "apply_chunk_optimistic").attribute_one_greater("height").same_node()
        )
        model.add_relation(
            RelationBuilder("apply_chunk_optimistic", "apply_chunk_optimistic").attribute_one_greater("height").same_node()
        )
        if apply_after_previous_previous_preprocess:
            model.add_relation(
                RelationBuilder("preprocess_block", "apply_chunk_optimistic").attribute_two_greater("height").same_node()
            )
        elif apply_after_previous_preprocess:
            model.add_relation(
                RelationBuilder("preprocess_block", "apply_chunk_optimistic").attribute_one_greater("height").same_node()
            )
        else:
            model.add_relation(
                RelationBuilder("postprocess_block", "apply_chunk_optimistic").attribute_one_greater("height").same_node()
            )

        _add_optimistic_witness_validation(model, height, SHORT_OPERATION_TIME)
    return model


def _validated_shards(shard_id: int, shard_count: int) -> List[int]:
    start = REALISTIC_VALIDATED_SHARDS * shard_id
    return [(start + i) % shard_count for i in range(REALISTIC_VALIDATED_SHARDS)]


def realistic_model(
    heights: Optional[int] = None,
    node_count: Optional[int] = None,
    seed: Optional[int] = None,
) -> TheoreticalModel:
    """
    One shard per node, a random block producer per height and a random fifth of the nodes running slow
    for chunk application and witness handling. Every node validates six consecutive shards.

    The random draws come from a numpy generator seeded with ``seed``, so a given seed always yields the same model.
    """
    if node_count is None:
        node_count = settings.theoretical_realistic_nodes
    if seed is None:
        seed = settings.theoretical_realistic_seed
    nodes = [f"node{i}" for i in range(node_count)]
    rng = np.random.default_rng(seed)

    model = TheoreticalModel("realistic", f"Matches current {node_count} shard/node forknet benchmark")
    for height in _heights(heights):
        block_producer = nodes[int(rng.integers(node_count))]

        model.add_span(SpanBuilder("produce_block_on_head", block_producer, 0.001).with_attribute("height", height))
        model.add_relation(
            RelationBuilder("postprocess_ready_block", "produce_block_on_head").attribute_one_greater("height")
        )
        # TODO: replace with a per-shard endorsement threshold instead of waiting on every endorsement
        model.add_relation(RelationBuilder("send_chunk_endorsement", "produce_block_on_head").attribute_equal("height"))

        model.add_span(
            SpanBuilder("produce_optimistic_block_on_head", block_producer, 0.0002).with_attribute("height", height)
        )
        model.add_relation(
            RelationBuilder("postprocess_ready_block", "produce_optimistic_block_on_head").attribute_one_greater("height")
        )
        model.add_relation(
            RelationBuilder("produce_chunk_internal", "produce_optimistic_block_on_head")
            .attribute_equal("height")
            .same_node()
        )
        model.add_relation(
            RelationBuilder("persist_and_distribute_encoded_chunk", "produce_optimistic_block_on_head")
            .attribute_equal("height")
            .same_node()
        )

        # node i tracks shard i
        for shard_id, node in enumerate(nodes):
            is_slow = int(rng.integers(5)) == 0

            if node != block_producer:
                model.add_span(SpanBuilder("receive_block", node, 0.005).with_attribute("height", height))
                model.add_relation(RelationBuilder("produce_block_on_head", "receive_block").attribute_equal("height"))

            model.add_span(SpanBuilder("preprocess_block", node, 0.035).with_attribute("height", height))
            model.add_relation(RelationBuilder("produce_block_on_head", "preprocess_block").attribute_equal("height"))
            model.add_relation(RelationBuilder("receive_block", "preprocess_block").attribute_equal("height").same_node())
            model.add_relation(
                RelationBuilder("postprocess_ready_block", "preprocess_block").attribute_one_greater("height").same_node()
            )

            model.add_span(SpanBuilder("postprocess_ready_block", node, 0.270).with_attribute("height", height))
            model.add_relation(
                RelationBuilder("preprocess_block", "postprocess_ready_block").attribute_equal("height").same_node()
            )
            model.add_relation(
                RelationBuilder("apply_new_chunk", "postprocess_ready_block").attribute_equal("height").same_node()
            )

            model.add_span(
                SpanBuilder("produce_chunk_internal", node, 0.170)
                .with_attribute("height", height)
                .with_attribute("shard_id", shard_id)
            )
            model.add_relation(
                RelationBuilder("postprocess_ready_block", "produce_chunk_internal")
                .attribute_one_greater("height")
                .same_node()
            )

            model.add_span(
                SpanBuilder("send_chunk_state_witness", node, 0.030)
                .with_attribute("height", height)
                .with_attribute("shard_id", shard_id)
            )
            model.add_relation(
                RelationBuilder("produce_chunk_internal", "send_chunk_state_witness")
                .attribute_equal("height")
                .attribute_equal("shard_id")
                .same_node()
            )

            model.add_span(
                SpanBuilder("persist_and_distribute_encoded_chunk", node, 0.160)
                .with_attribute("height", height)
                .with_attribute("shard_id", shard_id)
            )
            model.add_relation(
                RelationBuilder("produce_chunk_internal", "persist_and_distribute_encoded_chunk")
                .attribute_equal("height")
                .attribute_equal("shard_id")
                .same_node()
            )
            model.add_relation(
                RelationBuilder("send_chunk_state_witness", "persist_and_distribute_encoded_chunk")
                .attribute_equal("height")
                .attribute_equal("shard_id")
                .same_node()
            )

            for chunk_shard in range(node_count):
                model.add_span(
                    SpanBuilder("receive_chunk", node, 0.080)
                    .with_attribute("height", height)
                    .with_attribute("shard_id", chunk_shard)
                )
                model.add_relation(
                    RelationBuilder("persist_and_distribute_encoded_chunk", "receive_chunk")
                    .attribute_equal("height")
                    .attribute_equal("shard_id")
                )

                model.add_span(
                    SpanBuilder("chunk_completed", node, 0.001)
                    .with_attribute("height", height)
                    .with_attribute("shard_id", chunk_shard)
                )
                model.add_relation(
                    RelationBuilder("persist_and_distribute_encoded_chunk", "chunk_completed")
                    .attribute_equal("height")
                    .attribute_equal("shard_id")
                )
                model.add_relation(
                    RelationBuilder("receive_chunk", "chunk_completed")
                    .attribute_equal("height")
                    .attribute_equal("shard_id")
                    .same_node()
                )

            if node != block_producer:
                model.add_span(SpanBuilder("receive_optimistic_block", node, 0.030).with_attribute("height", height))
                model.add_relation(
                    RelationBuilder("produce_optimistic_block_on_head", "receive_optimistic_block")
                    .attribute_equal("height")
                )

            model.add_span(SpanBuilder("process_optimistic_block", node, 0.070).with_attribute("height", height))
            model.add_relation(
                RelationBuilder("receive_optimistic_block", "process_optimistic_block")
                .attribute_equal("height")
                .same_node()
            )
            model.add_relation(
                RelationBuilder("postprocess_ready_block", "process_optimistic_block")
                .attribute_one_greater("height")
                .same_node()
            )
            model.add_relation(
                RelationBuilder("produce_optimistic_block_on_head", "process_optimistic_block").attribute_equal("height")
            )
            model.add_relation(
                RelationBuilder("chunk_completed", "process_optimistic_block").attribute_equal("height").same_node()
            )

            model.add_span(
                SpanBuilder("apply_new_chunk", node, 0.600 if is_slow else 0.475)
                .with_attribute("height", height)
                .with_attribute("shard_id", shard_id)
            )
            model.add_relation(
                RelationBuilder("process_optimistic_block", "apply_new_chunk").attribute_equal("height").same_node()
            )

            for validated_shard in _validated_shards(shard_id, node_count):
                model.add_span(
                    SpanBuilder("receive_witness", node, 0.350 if is_slow else 0.220)
                    .with_attribute("height", height)
                    .with_attribute("shard_id", validated_shard)
                )
                model.add_relation(
                    RelationBuilder("send_chunk_state_witness", "receive_witness")
                    .attribute_equal("height")
                    .attribute_equal("shard_id")
                )

                model.add_span(
                    SpanBuilder("validate_chunk_state_witness", node, 0.800 if is_slow else 0.600)
                    .with_attribute("height", height)
                    .with_attribute("shard_id", validated_shard)
                )
                model.add_relation(
                    RelationBuilder("receive_witness", "validate_chunk_state_witness")
                    .attribute_equal("height")
                    .attribute_equal("shard_id")
                    .same_node()
                )
                model.add_relation(
                    RelationBuilder("postprocess_ready_block", "validate_chunk_state_witness")
                    .attribute_one_greater("height")
                    .attribute_equal("shard_id")
                    .same_node()
                )

                model.add_span(
                    SpanBuilder("send_chunk_endorsement", node, 0.0001)
                    .with_attribute("height", height)
                    .with_attribute("shard_id", validated_shard)
                )
                model.add_relation(
                    RelationBuilder("validate_chunk_state_witness", "send_chunk_endorsement")
                    .attribute_equal("height")
                    .attribute_equal("shard_id")
                    .same_node()
                )
    return model


MODEL_FACTORIES: Dict[str, Callable[..., TheoreticalModel]] = {
    "stateless_validation": stateless_validation_model,
    "optimistic_block": optimistic_block_model,
    "optimistic_witness": optimistic_witness_model,
    "very_optimistic": very_optimistic_model,
    "realistic": realistic_model,
}


def all_models(heights: Optional[int] = None) -> List[TheoreticalModel]:
    return [factory(heights) for factory in MODEL_FACTORIES.values()]


def get_model(name: str, heights: Optional[int] = None) -> Optional[TheoreticalModel]:
    factory = MODEL_FACTORIES.get(name)
    if factory is None:
        return None
    return factory(heights)
