"""
Span data model: nodes, immutable spans, canonical attribute text, and the id-addressed arena that owns one
analysis invocation's span tree.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Union

from config import EMPTY_VALUE_TEXT

AttributeValue = Union[None, str, bool, int, float, bytes, list, dict]


def value_to_text(value: Any) -> str:
    if value is None:
        return EMPTY_VALUE_TEXT
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (bytes, bytearray)):
        return "[" + ", ".join(str(b) for b in value) + "]"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(value_to_text(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{k}: {value_to_text(v)}" for k, v in value.items()) + "}"
    return str(value)


@dataclass(frozen=True)
class Node:
    name: str
    attributes: Dict[str, AttributeValue] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Span:
    span_id: str
    name: str
    node: Node
    start_time: float
    end_time: float
    attributes: Dict[str, AttributeValue] = field(default_factory=dict)
    parent_id: Optional[str] = None
    original_name: str = ""

    def __post_init__(self) -> None:
        if not self.original_name:
            object.__setattr__(self, "original_name", self.name)
        if self.end_time < self.start_time:
            raise ValueError(
                f"span {self.span_id!r} ends before it starts ({self.end_time} < {self.start_time})"
            )

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def node_name(self) -> str:
        return self.node.name

    def attribute_text(self, key: str) -> Optional[str]:
        if key not in self.attributes:
            return None
        return value_to_text(self.attributes[key])

    def with_times(self, start_time: float, end_time: float) -> Span:
        return replace(self, start_time=start_time, end_time=end_time)

    def shifted_to(self, start_time: float) -> Span:
        return self.with_times(start_time, start_time + self.duration)


class SpanArena:
    """Owns the spans of one analysis invocation.

    Spans are addressed by ``span_id``. Containment is stored as ordered id
    lists derived from ``parent_id``; a span whose parent is not in the arena
    is a root. Spans themselves are immutable, so derived arenas (for example a
    rescheduled copy) share span values and only swap entries via ``replace``.
    """

    def __init__(self, spans: Iterable[Span] = ()) -> None:
        self._spans: Dict[str, Span] = {}
        self._children: Dict[str, List[str]] = defaultdict(list)
        for span in spans:
            self.add(span)

    @classmethod
    def of(cls, spans: Union[SpanArena, Iterable[Span]]) -> SpanArena:
        if isinstance(spans, SpanArena):
            return spans
        arena = cls()
        for span in spans:
            if span.span_id not in arena:
                arena.add(span)
        return arena

    def add(self, span: Span) -> None:
        if span.span_id in self._spans:
            raise ValueError(f"duplicate span id {span.span_id!r}")
        self._spans[span.span_id] = span
        if span.parent_id is not None:
            self._children[span.parent_id].append(span.span_id)

    def get(self, span_id: str) -> Span:
        return self._spans[span_id]

    def replace(self, span: Span) -> None:
        current = self._spans.get(span.span_id)
        if current is None:
            raise KeyError(span.span_id)
        if current.parent_id != span.parent_id:
            raise ValueError(f"cannot re-parent span {span.span_id!r}")
        self._spans[span.span_id] = span

    def copy(self) -> SpanArena:
        other = SpanArena()
        other._spans = dict(self._spans)
        other._children = defaultdict(list, {k: list(v) for k, v in self._children.items()})
        return other

    def __contains__(self, span_id: object) -> bool:
        return span_id in self._spans

    def __len__(self) -> int:
        return len(self._spans)

    def __iter__(self) -> Iterator[Span]:
        return iter(list(self._spans.values()))

    def is_root(self, span_id: str) -> bool:
        parent = self._spans[span_id].parent_id
        return parent is None or parent not in self._spans

    def roots(self) -> List[Span]:
        return [s for s in self._spans.values() if self.is_root(s.span_id)]

    def children_of(self, span_id: str) -> List[Span]:
        return [self._spans[c] for c in self._children.get(span_id, []) if c in self._spans]

    def walk(self, span_id: str, seen: Optional[Set[str]] = None) -> List[Span]:
        if seen is None:
            seen = set()
        out: List[Span] = []
        stack = [span_id]
        while stack:
            current = stack.pop()
            if current in seen or current not in self._spans:
                continue
            seen.add(current)
            out.append(self._spans[current])
            stack.extend(reversed(self._children.get(current, [])))
        return out

    def flatten(self) -> List[Span]:
        seen: Set[str] = set()
        out: List[Span] = []
        for root in self.roots():
            out.extend(self.walk(root.span_id, seen))
        return out

    def span_names(self) -> List[str]:
        names = {s.original_name for s in self._spans.values()}
        return sorted(names, key=lambda n: (n.lower(), n))
