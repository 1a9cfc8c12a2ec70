"""
Duration statistics for all spans of one name, per node and overall, with an optional attribute filter.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from engine.dependency.statistics import Statistics
from engine.errors import DependencyAnalysisError
from engine.spans.model import Span, SpanArena


@dataclass
class SpanDurationStatistics:
    duration_stats: Statistics = field(default_factory=Statistics)
    min_span: Optional[Span] = None
    max_span: Optional[Span] = None

    def add_span(self, span: Span) -> None:
        self.duration_stats.add_value(span.duration)
        if self.max_span is None or span.duration > self.max_span.duration:
            self.max_span = span
        if self.min_span is None or span.duration < self.min_span.duration:
            self.min_span = span


@dataclass
class SpanDurationResult:
    span_name: str
    attribute_filter: str
    per_node_stats: Dict[str, SpanDurationStatistics] = field(default_factory=dict)
    overall_stats: SpanDurationStatistics = field(default_factory=SpanDurationStatistics)


def parse_attribute_filter(text: str) -> List[Tuple[str, Optional[str]]]:
    terms: List[Tuple[str, Optional[str]]] = []
    for spec in text.split(","):
        spec = spec.strip()
        if not spec:
            continue
        if "=" in spec:
            name, expected = spec.split("=", 1)
            terms.append((name.strip(), expected.strip()))
        else:
            terms.append((spec, None))
    return terms


def span_matches_filter(span: Span, terms: List[Tuple[str, Optional[str]]]) -> bool:
    for name, expected in terms:
        actual = span.attribute_text(name)
        if actual is None:
            return False
        if expected is not None and actual != expected:
            return False
    return True


def analyze_span_durations(
    spans: Union[SpanArena, Iterable[Span]],
    span_name: str,
    attribute_filter: str = "",
) -> SpanDurationResult:
    terms = parse_attribute_filter(attribute_filter)
    matching = [
        s for s in SpanArena.of(spans).flatten()
        if s.original_name == span_name and span_matches_filter(s, terms)
    ]
    if not matching:
        raise DependencyAnalysisError(f"No spans found with name '{span_name}'")

    result = SpanDurationResult(span_name=span_name, attribute_filter=attribute_filter)
    for span in matching:
        result.overall_stats.add_span(span)
        result.per_node_stats.setdefault(span.node.name, SpanDurationStatistics()).add_span(span)
    return result
