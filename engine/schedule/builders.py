"""
Builders for theoretical schedule models: unscheduled spans, the relations that order them, and the model container
that schedules them with the fixpoint scheduler.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import uuid
from typing import Any, Iterable, List, Optional, Set, Tuple, Union

from config import TAG_BLOCK_PRODUCTION, settings
from engine.enums import AttributeRelationOp, MatchType, RelationNodesConfig
from engine.relations.models import AttributeRelation, Relation, make_uuid_from_seed
from engine.schedule.scheduler import ScheduleResult, schedule_spans
from engine.selectors import MatchCondition, SpanSelector
from engine.spans.model import Node, Span, value_to_text


class SpanBuilder:
    def __init__(self, name: str, node: str, length: float) -> None:
        self.name = name
        self.node = node
        self.length = length
        self.attributes: List[Tuple[str, str]] = []
        self.children: List[SpanBuilder] = []
        self.with_attribute(TAG_BLOCK_PRODUCTION, True)

    def with_attribute(self, key: str, value: Any) -> SpanBuilder:
        self.attributes.append((key, value_to_text(value)))
        return self

    def with_child(self, child: SpanBuilder) -> SpanBuilder:
        # children only decorate their parent; they never take part in scheduling
        self.children.append(child)
        return self

    def build(self, parent_id: Optional[str] = None) -> List[Span]:
        """Build this span and its descendants, parent first."""
        start = settings.theoretical_default_start_time
        span = Span(
            span_id=uuid.uuid4().hex,
            name=self.name,
            node=Node(name=self.node),
            start_time=start,
            end_time=start + self.length,
            attributes=dict(self.attributes),
            parent_id=parent_id,
        )
        out = [span]
        for child in self.children:
            out.extend(child.build(parent_id=span.span_id))
        return out


class RelationBuilder:
    def __init__(self, from_span: str, to_span: str) -> None:
        self._relation = Relation(
            name=f"{from_span} -> {to_span}",
            description="",
            from_selector=SpanSelector.equal_name(from_span),
            to_selector=SpanSelector.equal_name(to_span),
            nodes_config=RelationNodesConfig.all_nodes,
            match_type=MatchType.match_all,
            is_builtin=True,
        )

    def _with_attribute_relation(self, attr_name: str, op: AttributeRelationOp) -> RelationBuilder:
        rel = AttributeRelation(from_attribute=attr_name, to_attribute=attr_name, relation=op)
        self._relation = self._relation.model_copy(
            update={"attribute_relations": [*self._relation.attribute_relations, rel]}
        )
        return self

    def attribute_equal(self, attr_name: str) -> RelationBuilder:
        return self._with_attribute_relation(attr_name, AttributeRelationOp.equal)

    def attribute_one_greater(self, attr_name: str) -> RelationBuilder:
        return self._with_attribute_relation(attr_name, AttributeRelationOp.one_greater)

    def attribute_two_greater(self, attr_name: str) -> RelationBuilder:
        return self._with_attribute_relation(attr_name, AttributeRelationOp.two_greater)

    def from_attribute_equal(self, attr_name: str, value: Any) -> RelationBuilder:
        selector = self._relation.from_selector.with_attribute_condition(
            attr_name, MatchCondition.equal_to(value_to_text(value))
        )
        self._relation = self._relation.model_copy(update={"from_selector": selector})
        return self

    def to_attribute_equal(self, attr_name: str, value: Any) -> RelationBuilder:
        selector = self._relation.to_selector.with_attribute_condition(
            attr_name, MatchCondition.equal_to(value_to_text(value))
        )
        self._relation = self._relation.model_copy(update={"to_selector": selector})
        return self

    def same_node(self) -> RelationBuilder:
        self._relation = self._relation.model_copy(update={"nodes_config": RelationNodesConfig.same_node})
        return self

    def build(self) -> Relation:
        seed = self._relation.model_dump_json(exclude={"id"})
        return self._relation.model_copy(update={"id": make_uuid_from_seed(seed)})


class TheoreticalModel:
    def __init__(self, name: str, description: str) -> None:
        self.name = name
        self.description = description
        self._spans: List[Span] = []
        self._relations: List[Relation] = []
        self._rule_keys: Set[str] = set()

    @property
    def spans(self) -> List[Span]:
        return list(self._spans)

    @property
    def relations(self) -> List[Relation]:
        return list(self._relations)

    def add_span(self, span: Union[SpanBuilder, Span, Iterable[Span]]) -> None:
        if isinstance(span, SpanBuilder):
            self._spans.extend(span.build())
        elif isinstance(span, Span):
            self._spans.append(span)
        else:
            self._spans.extend(span)

    def add_relation(self, relation: Union[RelationBuilder, Relation]) -> None:
        if isinstance(relation, RelationBuilder):
            relation = relation.build()
        key = relation.model_dump_json(exclude={"id"})
        if key in self._rule_keys:
            return
        self._rule_keys.add(key)
        self._relations.append(relation)

    def finalize(self, max_iterations: Optional[int] = None) -> Tuple[ScheduleResult, List[Relation]]:
        result = schedule_spans(self._spans, self._relations, max_iterations=max_iterations)
        return result, self.relations
