"""
Fixpoint scheduler: assigns consistent start times to an unscheduled span set by repeatedly pushing each matched
dependent span past the end of the span it depends on, until no dependency is violated.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from config import settings
from engine.enums import ScheduleStatus
from engine.relations.matcher import find_relations
from engine.relations.models import Relation, RelationView
from engine.spans.model import Span, SpanArena

log = logging.getLogger(__name__)


@dataclass
class ScheduleResult:
    arena: SpanArena
    status: ScheduleStatus
    iterations: int
    edges: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.status is ScheduleStatus.converged

    def spans(self) -> List[Span]:
        return self.arena.flatten()


def _dependency_edges(arena: SpanArena, relations: List[Relation], min_time_diff: float) -> List[Tuple[str, str]]:
    relaxed = [r.model_copy(update={"min_time_diff": min_time_diff}) for r in relations]
    matches = find_relations(relaxed, RelationView.enabling(relaxed, name="schedule"), arena)

    edges: List[Tuple[str, str]] = []
    seen: Set[Tuple[str, str]] = set()
    for instance in matches.instances:
        edge = (instance.from_span_id, instance.to_span_id)
        # children do not take part in dependency propagation
        if not (arena.is_root(edge[0]) and arena.is_root(edge[1])):
            continue
        if edge not in seen:
            seen.add(edge)
            edges.append(edge)
    return edges


def _has_violation(current: List[Span], outgoing: Dict[int, List[int]]) -> bool:
    return any(
        current[v].start_time < current[u].end_time
        for u, targets in outgoing.items()
        for v in targets
    )


def _align_children(arena: SpanArena, parent: Span) -> None:
    for child in arena.children_of(parent.span_id):
        moved = child.shifted_to(parent.start_time)
        arena.replace(moved)
        _align_children(arena, moved)


def schedule_spans(
    spans: Union[SpanArena, Iterable[Span]],
    relations: List[Relation],
    max_iterations: Optional[int] = None,
    min_time_diff: Optional[float] = None,
) -> ScheduleResult:
    if max_iterations is None:
        max_iterations = settings.scheduler_max_iterations
    if min_time_diff is None:
        min_time_diff = settings.scheduler_min_time_diff

    arena = SpanArena.of(spans).copy()
    edges = _dependency_edges(arena, relations, min_time_diff)

    roots = arena.roots()
    position = {span.span_id: i for i, span in enumerate(roots)}
    outgoing: Dict[int, List[int]] = defaultdict(list)
    for from_id, to_id in edges:
        outgoing[position[from_id]].append(position[to_id])

    current: List[Span] = list(roots)
    iterations = 0
    status = ScheduleStatus.converged
    updated = True
    while updated:
        if iterations >= max_iterations:
            if _has_violation(current, outgoing):
                status = ScheduleStatus.unconverged
            break
        iterations += 1
        updated = False
        for u in range(len(current)):
            for v in outgoing.get(u, ()):
                if current[v].start_time < current[u].end_time:
                    current[v] = current[v].shifted_to(current[u].end_time)
                    updated = True

    for span in current:
        arena.replace(span)
    for span in current:
        _align_children(arena, span)

    if status is ScheduleStatus.unconverged:
        log.warning(
            "schedule did not converge after %d passes over %d edges; the relation graph is likely cyclic",
            iterations, len(edges),
        )
    else:
        log.info("schedule converged after %d passes over %d edges", iterations, len(edges))
    return ScheduleResult(arena=arena, status=status, iterations=iterations, edges=edges)
