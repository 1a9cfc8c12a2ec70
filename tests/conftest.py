import os
import sys
import itertools

import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from engine.spans import Node, Span


class SpanFactory:
    """Builds spans with sequential ids and shared node objects."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._nodes = {}

    def node(self, name):
        if name not in self._nodes:
            self._nodes[name] = Node(name=name)
        return self._nodes[name]

    def __call__(self, name, start, end, node="n1", parent=None, span_id=None, **attributes):
        return Span(
            span_id=span_id or f"s{next(self._ids)}",
            name=name,
            node=self.node(node),
            start_time=float(start),
            end_time=float(end),
            attributes=attributes,
            parent_id=parent.span_id if isinstance(parent, Span) else parent,
        )


@pytest.fixture
def make_span():
    return SpanFactory()
