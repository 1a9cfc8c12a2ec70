"""
Ad-hoc dependency analysis between two span names: greedily groups a threshold count of preceding source spans per
target span (or following targets per source in 1-to-N mode), per node or across nodes, and aggregates link delays.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from pydantic import BaseModel, Field

from config import settings
from engine.dependency.statistics import Statistics
from engine.enums import (
    AnalysisCardinality,
    ConsumptionPolicy,
    GroupAggregationStrategy,
    SourceScope,
    SourceTimingStrategy,
)
from engine.errors import DependencyAnalysisError
from engine.spans.model import Span, SpanArena

log = logging.getLogger(__name__)


class DependencyAnalysisRequest(BaseModel):
    source_name: Optional[str] = None
    target_name: Optional[str] = None
    threshold: int = Field(default=settings.analyzer_default_threshold, ge=1)
    # comma-separated attribute names whose values must agree between source and target
    metadata_field: Optional[str] = None
    source_scope: SourceScope = SourceScope.same_node
    timing_strategy: SourceTimingStrategy = SourceTimingStrategy.earliest_first
    group_by_attribute: Optional[str] = None
    group_aggregation: GroupAggregationStrategy = GroupAggregationStrategy.first_completed_group
    cardinality: AnalysisCardinality = AnalysisCardinality.n_to_one
    consumption_policy: ConsumptionPolicy = ConsumptionPolicy.potential

    def linking_attributes(self) -> List[str]:
        if not self.metadata_field:
            return []
        return [a.strip() for a in self.metadata_field.split(",") if a.strip()]

    def group_key(self) -> Optional[str]:
        key = (self.group_by_attribute or "").strip()
        return key or None


@dataclass(frozen=True)
class DependencyLink:
    source_spans: Tuple[Span, ...]
    target_spans: Tuple[Span, ...]
    delay_seconds: float


@dataclass
class NodeDependencyMetrics:
    link_delay_statistics: Statistics = field(default_factory=Statistics)
    links: List[DependencyLink] = field(default_factory=list)
    min_delay_link: Optional[DependencyLink] = None
    max_delay_link: Optional[DependencyLink] = None

    def record(self, link: DependencyLink) -> None:
        stats = self.link_delay_statistics
        stats.add_value(link.delay_seconds)
        self.links.append(link)
        # ties resolve to the most recently recorded link
        if stats.count == 1 or link.delay_seconds == stats.min:
            self.min_delay_link = link
        if stats.count == 1 or link.delay_seconds == stats.max:
            self.max_delay_link = link


@dataclass
class DependencyAnalysisResult:
    source_name: str
    target_name: str
    threshold: int
    metadata_field: Optional[str]
    scope: SourceScope
    timing_strategy: SourceTimingStrategy
    group_by_attribute: Optional[str]
    group_aggregation: GroupAggregationStrategy
    cardinality: AnalysisCardinality
    consumption_policy: ConsumptionPolicy
    per_node_results: Dict[str, NodeDependencyMetrics] = field(default_factory=dict)
    duration_ms: float = 0.0
    overall_stats: Statistics = field(default_factory=Statistics)
    overall_min_delay_link: Optional[DependencyLink] = None
    overall_max_delay_link: Optional[DependencyLink] = None

    def total_links(self) -> int:
        return sum(len(m.links) for m in self.per_node_results.values())


def _spans_named(universe: Sequence[Span], name: str) -> List[Span]:
    return sorted((s for s in universe if s.original_name == name), key=lambda s: s.start_time)


def _by_node(spans: Iterable[Span]) -> Dict[str, List[Span]]:
    grouped: Dict[str, List[Span]] = defaultdict(list)
    for span in spans:
        grouped[span.node.name].append(span)
    return dict(grouped)


def _prepare(
    spans: Union[SpanArena, Iterable[Span]],
    request: DependencyAnalysisRequest,
) -> Tuple[List[Span], List[Span]]:
    if not request.source_name:
        raise DependencyAnalysisError("Source span not selected")
    if not request.target_name:
        raise DependencyAnalysisError("Target span not selected")
    if request.source_name == request.target_name:
        raise DependencyAnalysisError("Source and target span names must differ")

    universe = SpanArena.of(spans).flatten()
    sources = _spans_named(universe, request.source_name)
    targets = _spans_named(universe, request.target_name)
    if not sources:
        raise DependencyAnalysisError(f"No spans found with name '{request.source_name}'")
    if not targets:
        raise DependencyAnalysisError(f"No spans found with name '{request.target_name}'")

    group_key = request.group_key()
    if group_key is not None:
        if request.cardinality is AnalysisCardinality.n_to_one:
            role, name, checked = "source", request.source_name, sources
        else:
            role, name, checked = "target", request.target_name, targets
        if not any(group_key in s.attributes for s in checked):
            raise DependencyAnalysisError(
                f"The 'Group By Attribute' ('{group_key}') was not found in any {role} spans named "
                f"'{name}', or no such {role} spans have this attribute."
            )
    return sources, targets


def _attributes_agree(a: Span, b: Span, keys: Sequence[str]) -> bool:
    for key in keys:
        a_text = a.attribute_text(key)
        if a_text is None or a_text != b.attribute_text(key):
            return False
    return True


def _take(request: DependencyAnalysisRequest, candidates: List[Span]) -> List[Span]:
    k = request.threshold
    if request.timing_strategy is SourceTimingStrategy.latest_first:
        return candidates[len(candidates) - k:]
    return candidates[:k]


def _select(
    request: DependencyAnalysisRequest,
    candidates: List[Span],
) -> Optional[Dict[str, List[Span]]]:
    """Pick the linked group out of the eligible candidates.

    Returns the selection bucketed by group-by value (a single ``""`` bucket
    when grouping is off), or ``None`` when the threshold cannot be met. With
    grouping every bucket present among the candidates must reach the
    threshold on its own.
    """
    group_key = request.group_key()
    if group_key is None:
        if len(candidates) < request.threshold:
            return None
        return {"": _take(request, candidates)}

    buckets: Dict[str, List[Span]] = defaultdict(list)
    for span in candidates:
        value = span.attribute_text(group_key)
        if value is not None:
            buckets[value].append(span)
    if not buckets:
        return None

    selected: Dict[str, List[Span]] = {}
    for value, members in buckets.items():
        if len(members) < request.threshold:
            return None
        selected[value] = _take(request, members)
    return selected


def _n_to_one_delay(request: DependencyAnalysisRequest, selected: Dict[str, List[Span]], target: Span) -> float:
    if (
        request.group_key() is not None
        and request.group_aggregation is GroupAggregationStrategy.first_completed_group
    ):
        completed = min(max(s.end_time for s in members) for members in selected.values())
        return target.start_time - completed
    return target.start_time - max(s.end_time for members in selected.values() for s in members)


def _link_targets(
    request: DependencyAnalysisRequest,
    targets: Sequence[Span],
    pool: Sequence[Span],
    consumed: Set[str],
) -> NodeDependencyMetrics:
    """Form N-to-1 links for the targets of one node, mutating ``consumed``."""
    metrics = NodeDependencyMetrics()
    keys = request.linking_attributes()
    exhaust_potential = (
        request.consumption_policy is ConsumptionPolicy.potential
        and request.source_scope is SourceScope.same_node
    )
    linked_targets: Set[str] = set()

    for target in targets:
        if target.span_id in linked_targets:
            continue
        if keys and any(k not in target.attributes for k in keys):
            continue

        potential = [
            s for s in pool
            if s.span_id not in consumed
            and s.end_time < target.start_time
            and _attributes_agree(s, target, keys)
        ]

        selected = _select(request, potential)
        if selected is not None:
            group = [s for members in selected.values() for s in members]
            if max(s.end_time for s in group) < target.start_time:
                metrics.record(DependencyLink(
                    source_spans=tuple(group),
                    target_spans=(target,),
                    delay_seconds=_n_to_one_delay(request, selected, target),
                ))
                linked_targets.add(target.span_id)
                consumed.update(s.span_id for s in group)

        if exhaust_potential:
            consumed.update(s.span_id for s in potential)

    return metrics


def _link_sources(
    request: DependencyAnalysisRequest,
    sources: Sequence[Span],
    pool: Sequence[Span],
    consumed: Set[str],
) -> NodeDependencyMetrics:
    """Form 1-to-N links for the sources of one node, mutating ``consumed``."""
    metrics = NodeDependencyMetrics()
    keys = request.linking_attributes()

    for source in sources:
        if keys and any(k not in source.attributes for k in keys):
            continue

        potential = [
            t for t in pool
            if t.span_id not in consumed
            and t.start_time >= source.end_time
            and _attributes_agree(source, t, keys)
        ]
        selected = _select(request, potential)
        if selected is None:
            continue

        group = [t for members in selected.values() for t in members]
        metrics.record(DependencyLink(
            source_spans=(source,),
            target_spans=tuple(group),
            delay_seconds=max(t.start_time for t in group) - source.end_time,
        ))
        consumed.update(t.span_id for t in group)

    return metrics


def _analyze_n_to_one(
    request: DependencyAnalysisRequest,
    sources: List[Span],
    targets: List[Span],
) -> Dict[str, NodeDependencyMetrics]:
    sources_by_node = _by_node(sources)
    targets_by_node = _by_node(targets)
    same_node = request.source_scope is SourceScope.same_node

    if same_node:
        nodes = sorted(n for n in sources_by_node if n in targets_by_node)
    else:
        nodes = sorted(targets_by_node)

    global_consumed: Set[str] = set()
    results: Dict[str, NodeDependencyMetrics] = {}
    for node in nodes:
        pool = sources_by_node[node] if same_node else sources
        consumed = global_consumed if same_node else set()
        metrics = _link_targets(request, targets_by_node[node], pool, consumed)
        if metrics.links:
            results[node] = metrics
    return results


def _analyze_one_to_n(
    request: DependencyAnalysisRequest,
    sources: List[Span],
    targets: List[Span],
) -> Dict[str, NodeDependencyMetrics]:
    sources_by_node = _by_node(sources)
    targets_by_node = _by_node(targets)
    same_node = request.source_scope is SourceScope.same_node

    if same_node:
        nodes = sorted(n for n in sources_by_node if n in targets_by_node)
    else:
        nodes = sorted(sources_by_node)

    global_consumed: Set[str] = set()
    results: Dict[str, NodeDependencyMetrics] = {}
    for node in nodes:
        pool = targets_by_node[node] if same_node else targets
        consumed = global_consumed if same_node else set()
        metrics = _link_sources(request, sources_by_node[node], pool, consumed)
        if metrics.links:
            results[node] = metrics
    return results


def analyze_dependencies(
    spans: Union[SpanArena, Iterable[Span]],
    request: DependencyAnalysisRequest,
) -> DependencyAnalysisResult:
    started = time.perf_counter()
    sources, targets = _prepare(spans, request)

    if request.cardinality is AnalysisCardinality.n_to_one:
        per_node = _analyze_n_to_one(request, sources, targets)
    else:
        per_node = _analyze_one_to_n(request, sources, targets)

    overall = NodeDependencyMetrics()
    for node in sorted(per_node):
        for link in per_node[node].links:
            overall.record(link)

    result = DependencyAnalysisResult(
        source_name=request.source_name or "",
        target_name=request.target_name or "",
        threshold=request.threshold,
        metadata_field=request.metadata_field,
        scope=request.source_scope,
        timing_strategy=request.timing_strategy,
        group_by_attribute=request.group_key(),
        group_aggregation=request.group_aggregation,
        cardinality=request.cardinality,
        consumption_policy=request.consumption_policy,
        per_node_results=per_node,
        duration_ms=(time.perf_counter() - started) * 1000.0,
        overall_stats=overall.link_delay_statistics,
        overall_min_delay_link=overall.min_delay_link,
        overall_max_delay_link=overall.max_delay_link,
    )
    log.info(
        "dependency %r -> %r (%s, %s): %d links on %d nodes in %.1f ms",
        result.source_name, result.target_name, request.cardinality.label(), request.source_scope.label(),
        result.total_links(), len(per_node), result.duration_ms,
    )
    return result
