"""
Rule definition models: attribute relations, relations, legacy relations, views, and matched relation instances.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import hashlib
import re
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, Field

from engine.enums import AttributeRelationOp, MatchType, RelationNodesConfig
from engine.selectors.selector import SpanSelector
from engine.spans.model import Span

_I64_MIN = -(2 ** 63)
_I64_MAX = 2 ** 63 - 1
_INT_RE = re.compile(r"^[+-]?[0-9]+$")


def make_uuid_from_seed(seed: str) -> uuid.UUID:
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return uuid.UUID(bytes=digest[:16])


def parse_i64(text: str) -> Optional[int]:
    if not _INT_RE.match(text):
        return None
    value = int(text)
    if value < _I64_MIN or value > _I64_MAX:
        return None
    return value


class AttributeRelation(BaseModel):
    from_attribute: str
    to_attribute: str
    relation: AttributeRelationOp = AttributeRelationOp.equal

    def matches(self, from_span: Span, to_span: Span) -> bool:
        from_text = from_span.attribute_text(self.from_attribute)
        to_text = to_span.attribute_text(self.to_attribute)
        if from_text is None or to_text is None:
            return False

        if self.relation is AttributeRelationOp.equal:
            return from_text == to_text

        from_num = parse_i64(from_text)
        to_num = parse_i64(to_text)
        if from_num is None or to_num is None:
            return False
        shifted = from_num + self.relation.offset()
        if shifted > _I64_MAX:
            return False
        return shifted == to_num


class Relation(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = ""
    description: str = ""
    from_selector: SpanSelector = Field(
        default_factory=SpanSelector,
        validation_alias=AliasChoices("from_selector", "from_span_selector"),
    )
    to_selector: SpanSelector = Field(
        default_factory=SpanSelector,
        validation_alias=AliasChoices("to_selector", "to_span_selector"),
    )
    attribute_relations: List[AttributeRelation] = Field(default_factory=list)
    max_time_diff: Optional[float] = None
    min_time_diff: float = 0.0
    nodes_config: RelationNodesConfig = RelationNodesConfig.all_nodes
    match_type: MatchType = MatchType.match_all
    is_builtin: bool = False

    def nodes_allowed(self, from_span: Span, to_span: Span) -> bool:
        if self.nodes_config is RelationNodesConfig.same_node:
            return from_span.node.name == to_span.node.name
        if self.nodes_config is RelationNodesConfig.different_node:
            return from_span.node.name != to_span.node.name
        return True

    def matches(self, from_span: Span, to_span: Span) -> bool:
        if not self.from_selector.matches(from_span):
            return False
        if not self.to_selector.matches(to_span):
            return False
        for attribute_relation in self.attribute_relations:
            if not attribute_relation.matches(from_span, to_span):
                return False
        return self.nodes_allowed(from_span, to_span)

    def same_rule_as(self, other: Relation) -> bool:
        return self.model_dump(exclude={"id"}) == other.model_dump(exclude={"id"})


class RelationV0(BaseModel):
    """Flat rule format that names spans directly instead of using selectors."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = ""
    from_span_name: str
    to_span_name: str
    attribute_relations: List[AttributeRelation] = Field(default_factory=list)
    max_time_diff: Optional[float] = None
    nodes_config: RelationNodesConfig = RelationNodesConfig.all_nodes
    match_type: MatchType = MatchType.match_all
    is_builtin: bool = False

    def upgrade(self) -> Relation:
        return Relation(
            id=self.id,
            name=self.name,
            description="",
            from_selector=SpanSelector.equal_name(self.from_span_name),
            to_selector=SpanSelector.equal_name(self.to_span_name),
            attribute_relations=[a.model_copy() for a in self.attribute_relations],
            max_time_diff=self.max_time_diff,
            nodes_config=self.nodes_config,
            match_type=self.match_type,
            is_builtin=self.is_builtin,
        )


def load_relation(data: Mapping[str, Any]) -> Relation:
    if "from_span_name" in data or "to_span_name" in data:
        return RelationV0.model_validate(data).upgrade()
    return Relation.model_validate(data)


class RelationView(BaseModel):
    name: str
    enabled_relations: List[uuid.UUID] = Field(default_factory=list)
    is_builtin: bool = False

    @classmethod
    def enabling(cls, relations: List[Relation], name: str = "tmp") -> RelationView:
        return cls(name=name, enabled_relations=[r.id for r in relations])


@dataclass(frozen=True)
class RelationInstance:
    from_span_id: str
    to_span_id: str
    relation: Relation

    @property
    def relation_id(self) -> uuid.UUID:
        return self.relation.id


def index_relations(relations: List[Relation]) -> Dict[uuid.UUID, Relation]:
    catalog: Dict[uuid.UUID, Relation] = {}
    for relation in relations:
        catalog.setdefault(relation.id, relation)
    return catalog
