"""
Relation matcher: finds (from, to) span pairs satisfying the enabled relations of a view, honoring the temporal
window, attribute relations, node locality, and match cardinality of each relation.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple, Union

import numpy as np

from engine.enums import MatchType
from engine.relations.models import Relation, RelationInstance, RelationView, index_relations
from engine.spans.model import Span, SpanArena

log = logging.getLogger(__name__)


@dataclass
class RelationMatchResult:
    instances: List[RelationInstance] = field(default_factory=list)
    outgoing: Dict[str, List[RelationInstance]] = field(default_factory=dict)
    incoming: Dict[str, List[RelationInstance]] = field(default_factory=dict)

    def record(self, instance: RelationInstance) -> None:
        self.instances.append(instance)
        self.outgoing.setdefault(instance.from_span_id, []).append(instance)
        self.incoming.setdefault(instance.to_span_id, []).append(instance)

    def outgoing_relations(self, span_id: str) -> List[RelationInstance]:
        return list(self.outgoing.get(span_id, []))

    def incoming_relations(self, span_id: str) -> List[RelationInstance]:
        return list(self.incoming.get(span_id, []))

    def triples(self) -> Set[Tuple[str, str, uuid.UUID]]:
        return {(i.from_span_id, i.to_span_id, i.relation_id) for i in self.instances}

    def __len__(self) -> int:
        return len(self.instances)


@dataclass
class _NameGroup:
    spans: List[Span]
    starts: np.ndarray


def group_spans_by_name(spans: Iterable[Span]) -> Dict[str, List[Span]]:
    groups: Dict[str, List[Span]] = defaultdict(list)
    for span in spans:
        groups[span.original_name].append(span)
    return {name: sorted(members, key=lambda s: s.start_time) for name, members in groups.items()}


def _build_groups(spans: Iterable[Span]) -> Dict[str, _NameGroup]:
    return {
        name: _NameGroup(spans=members, starts=np.array([s.start_time for s in members], dtype=float))
        for name, members in group_spans_by_name(spans).items()
    }


def _resolve_names(relation: Relation, names: List[str]) -> Tuple[List[str], List[str]]:
    from_names = [n for n in names if relation.from_selector.matches_name(n)]
    to_names = [n for n in names if relation.to_selector.matches_name(n)]
    if len(from_names) > 1 or len(to_names) > 1:
        log.warning(
            "relation %r selects several span names (from=%s, to=%s); matching every group",
            relation.name or str(relation.id), from_names, to_names,
        )
    return from_names, to_names


def _match_group_pair(
    relation: Relation,
    from_group: _NameGroup,
    to_group: _NameGroup,
    result: RelationMatchResult,
) -> None:
    to_spans = to_group.spans
    for from_span in from_group.spans:
        lower_bound = from_span.end_time + relation.min_time_diff
        first = int(np.searchsorted(to_group.starts, lower_bound, side="left"))
        for to_span in to_spans[first:]:
            if (
                relation.max_time_diff is not None
                and to_span.start_time - from_span.start_time > relation.max_time_diff
            ):
                break
            if to_span.span_id == from_span.span_id:
                continue
            if not relation.matches(from_span, to_span):
                continue

            result.record(RelationInstance(
                from_span_id=from_span.span_id,
                to_span_id=to_span.span_id,
                relation=relation,
            ))
            if relation.match_type is MatchType.match_closest:
                break


def find_relations(
    relations: List[Relation],
    view: RelationView,
    spans: Union[SpanArena, Iterable[Span]],
) -> RelationMatchResult:
    started = time.perf_counter()
    arena = SpanArena.of(spans)
    groups = _build_groups(arena.flatten())
    names = sorted(groups)
    catalog = index_relations(relations)

    result = RelationMatchResult()
    for relation_id in view.enabled_relations:
        relation = catalog.get(relation_id)
        if relation is None:
            log.debug("view %r references unknown relation %s; skipping", view.name, relation_id)
            continue

        from_names, to_names = _resolve_names(relation, names)
        for from_name in from_names:
            for to_name in to_names:
                _match_group_pair(relation, groups[from_name], groups[to_name], result)

    log.info(
        "Found %d relation instances across %d spans in %.1f ms",
        len(result.instances), len(arena), (time.perf_counter() - started) * 1000.0,
    )
    return result
