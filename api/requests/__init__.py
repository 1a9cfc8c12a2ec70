"""
Request models for API endpoints: span snapshots, rule definitions, and analysis parameters.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from engine.dependency import DependencyAnalysisRequest
from engine.relations import Relation, RelationView, builtin_relations, load_relation
from engine.spans import Node, Span, SpanArena


class SpanPayload(BaseModel):
    span_id: str
    parent_id: Optional[str] = None
    name: str
    original_name: Optional[str] = None
    node: str
    node_attributes: Dict[str, Any] = Field(default_factory=dict)
    start_time: float
    end_time: float
    attributes: Dict[str, Any] = Field(default_factory=dict)
    children: List[SpanPayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_times(self) -> SpanPayload:
        if self.end_time < self.start_time:
            raise ValueError(f"span {self.span_id!r}: end_time must not precede start_time")
        return self


def spans_to_arena(payloads: List[SpanPayload]) -> SpanArena:
    nodes: Dict[str, Node] = {}
    arena = SpanArena()

    def _add(payload: SpanPayload, parent_id: Optional[str]) -> None:
        node = nodes.get(payload.node)
        if node is None:
            node = nodes[payload.node] = Node(name=payload.node, attributes=dict(payload.node_attributes))
        arena.add(Span(
            span_id=payload.span_id,
            name=payload.name,
            original_name=payload.original_name or payload.name,
            node=node,
            start_time=payload.start_time,
            end_time=payload.end_time,
            attributes=dict(payload.attributes),
            parent_id=payload.parent_id if payload.parent_id is not None else parent_id,
        ))
        for child in payload.children:
            _add(child, payload.span_id)

    for payload in payloads:
        _add(payload, None)
    return arena


class RelationSetRequest(BaseModel):
    spans: List[SpanPayload] = Field(default_factory=list)
    # current or legacy (from_span_name/to_span_name) rule documents
    relations: List[Dict[str, Any]] = Field(default_factory=list)
    include_builtin: bool = False

    def load_relations(self) -> List[Relation]:
        loaded = [load_relation(r) for r in self.relations]
        if self.include_builtin:
            loaded.extend(builtin_relations())
        return loaded


class MatchRelationsRequest(RelationSetRequest):
    view: Optional[RelationView] = None


class ScheduleRequest(RelationSetRequest):
    max_iterations: Optional[int] = Field(default=None, ge=1)


class DependencyRequest(BaseModel):
    spans: List[SpanPayload] = Field(default_factory=list)
    analysis: DependencyAnalysisRequest


class ParseDescriptionRequest(BaseModel):
    description: str
    base: Optional[DependencyAnalysisRequest] = None


class SpanDurationsRequest(BaseModel):
    spans: List[SpanPayload] = Field(default_factory=list)
    span_name: str
    attribute_filter: str = ""
