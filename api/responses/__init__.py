"""
Response models for API endpoints and their construction from engine results.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np
from pydantic import BaseModel, Field, model_serializer

from engine.analysis import SpanDurationResult, SpanDurationStatistics
from engine.dependency import DependencyAnalysisResult, DependencyLink, NodeDependencyMetrics, Statistics
from engine.enums import ScheduleStatus
from engine.relations import Relation, RelationInstance, RelationMatchResult, RelationView
from engine.schedule import ScheduleResult


def _coerce(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _coerce(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_coerce(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


class NpModel(BaseModel):

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> Any:
        return _coerce(handler(self))


class StatisticsOut(NpModel):
    count: int = 0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0

    @classmethod
    def from_stats(cls, stats: Statistics) -> StatisticsOut:
        return cls(**stats.summary())


class RelationInstanceOut(NpModel):
    from_span_id: str
    to_span_id: str
    relation_id: str
    relation_name: str

    @classmethod
    def from_instance(cls, instance: RelationInstance) -> RelationInstanceOut:
        return cls(
            from_span_id=instance.from_span_id,
            to_span_id=instance.to_span_id,
            relation_id=str(instance.relation_id),
            relation_name=instance.relation.name,
        )


class SpanRelationsOut(NpModel):
    outgoing: List[int] = Field(default_factory=list)
    incoming: List[int] = Field(default_factory=list)


class RelationMatchResponse(NpModel):
    count: int
    instances: List[RelationInstanceOut]
    # indexes into ``instances`` per span id
    per_span: Dict[str, SpanRelationsOut]

    @classmethod
    def from_result(cls, result: RelationMatchResult) -> RelationMatchResponse:
        per_span: Dict[str, SpanRelationsOut] = {}
        for i, instance in enumerate(result.instances):
            per_span.setdefault(instance.from_span_id, SpanRelationsOut()).outgoing.append(i)
            per_span.setdefault(instance.to_span_id, SpanRelationsOut()).incoming.append(i)
        return cls(
            count=len(result.instances),
            instances=[RelationInstanceOut.from_instance(i) for i in result.instances],
            per_span=per_span,
        )


class LinkOut(NpModel):
    source_span_ids: List[str]
    target_span_ids: List[str]
    delay_seconds: float

    @classmethod
    def from_link(cls, link: Optional[DependencyLink]) -> Optional[LinkOut]:
        if link is None:
            return None
        return cls(
            source_span_ids=[s.span_id for s in link.source_spans],
            target_span_ids=[t.span_id for t in link.target_spans],
            delay_seconds=link.delay_seconds,
        )


class NodeMetricsOut(NpModel):
    statistics: StatisticsOut
    links: List[LinkOut]
    min_delay_link: Optional[LinkOut] = None
    max_delay_link: Optional[LinkOut] = None

    @classmethod
    def from_metrics(cls, metrics: NodeDependencyMetrics) -> NodeMetricsOut:
        return cls(
            statistics=StatisticsOut.from_stats(metrics.link_delay_statistics),
            links=[LinkOut.from_link(l) for l in metrics.links],
            min_delay_link=LinkOut.from_link(metrics.min_delay_link),
            max_delay_link=LinkOut.from_link(metrics.max_delay_link),
        )


class DependencyAnalysisResponse(NpModel):
    source_name: str
    target_name: str
    threshold: int
    metadata_field: Optional[str]
    scope: str
    timing_strategy: str
    group_by_attribute: Optional[str]
    group_aggregation: str
    cardinality: str
    consumption_policy: str
    description: str
    per_node_results: Dict[str, NodeMetricsOut]
    overall_stats: StatisticsOut
    overall_min_delay_link: Optional[LinkOut] = None
    overall_max_delay_link: Optional[LinkOut] = None
    duration_ms: float

    @classmethod
    def from_result(cls, result: DependencyAnalysisResult, description: str) -> DependencyAnalysisResponse:
        return cls(
            source_name=result.source_name,
            target_name=result.target_name,
            threshold=result.threshold,
            metadata_field=result.metadata_field,
            scope=result.scope.value,
            timing_strategy=result.timing_strategy.value,
            group_by_attribute=result.group_by_attribute,
            group_aggregation=result.group_aggregation.value,
            cardinality=result.cardinality.value,
            consumption_policy=result.consumption_policy.value,
            description=description,
            per_node_results={
                node: NodeMetricsOut.from_metrics(m) for node, m in sorted(result.per_node_results.items())
            },
            overall_stats=StatisticsOut.from_stats(result.overall_stats),
            overall_min_delay_link=LinkOut.from_link(result.overall_min_delay_link),
            overall_max_delay_link=LinkOut.from_link(result.overall_max_delay_link),
            duration_ms=result.duration_ms,
        )


class DurationStatsOut(NpModel):
    statistics: StatisticsOut
    min_span_id: Optional[str] = None
    max_span_id: Optional[str] = None

    @classmethod
    def from_stats(cls, stats: SpanDurationStatistics) -> DurationStatsOut:
        return cls(
            statistics=StatisticsOut.from_stats(stats.duration_stats),
            min_span_id=stats.min_span.span_id if stats.min_span else None,
            max_span_id=stats.max_span.span_id if stats.max_span else None,
        )


class SpanDurationResponse(NpModel):
    span_name: str
    attribute_filter: str
    per_node_stats: Dict[str, DurationStatsOut]
    overall_stats: DurationStatsOut

    @classmethod
    def from_result(cls, result: SpanDurationResult) -> SpanDurationResponse:
        return cls(
            span_name=result.span_name,
            attribute_filter=result.attribute_filter,
            per_node_stats={n: DurationStatsOut.from_stats(s) for n, s in sorted(result.per_node_stats.items())},
            overall_stats=DurationStatsOut.from_stats(result.overall_stats),
        )


class ScheduledSpanOut(NpModel):
    span_id: str
    parent_id: Optional[str] = None
    name: str
    node: str
    start_time: float
    end_time: float
    attributes: Dict[str, Any] = Field(default_factory=dict)


class ScheduleResponse(NpModel):
    status: ScheduleStatus
    iterations: int
    edge_count: int
    spans: List[ScheduledSpanOut]
    relations: List[Relation] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ScheduleResult, relations: Optional[List[Relation]] = None) -> ScheduleResponse:
        return cls(
            status=result.status,
            iterations=result.iterations,
            edge_count=len(result.edges),
            spans=[
                ScheduledSpanOut(
                    span_id=s.span_id,
                    parent_id=s.parent_id,
                    name=s.name,
                    node=s.node.name,
                    start_time=s.start_time,
                    end_time=s.end_time,
                    attributes=dict(s.attributes),
                )
                for s in result.spans()
            ],
            relations=list(relations or []),
        )


class BuiltinCatalogResponse(NpModel):
    relations: List[Relation]
    views: List[RelationView]


class ModelSummary(NpModel):
    name: str
    description: str
    span_count: int
    relation_count: int
