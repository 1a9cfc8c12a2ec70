"""
Fixpoint scheduler tests: dependency propagation, convergence, child alignment, and cyclic graphs.
"""

import logging

from engine.enums import ScheduleStatus
from engine.relations import Relation
from engine.schedule import schedule_spans
from engine.selectors import SpanSelector
from engine.spans import SpanArena


def _rel(from_name, to_name):
    return Relation(
        name=f"{from_name} -> {to_name}",
        from_selector=SpanSelector.equal_name(from_name),
        to_selector=SpanSelector.equal_name(to_name),
    )


def _chain(make_span):
    return [
        make_span("c", 0.0, 0.5),
        make_span("b", 0.0, 2.0),
        make_span("a", 0.0, 1.0),
    ]


def test_chain_is_pushed_forward(make_span):
    spans = _chain(make_span)
    result = schedule_spans(spans, [_rel("a", "b"), _rel("b", "c")])

    assert result.status is ScheduleStatus.converged
    assert result.converged
    by_name = {s.name: s for s in result.spans()}
    assert (by_name["a"].start_time, by_name["a"].end_time) == (0.0, 1.0)
    assert (by_name["b"].start_time, by_name["b"].end_time) == (1.0, 3.0)
    assert (by_name["c"].start_time, by_name["c"].end_time) == (3.0, 3.5)


def test_converged_schedule_satisfies_every_edge(make_span):
    spans = _chain(make_span) + [make_span("b", 0.0, 0.25, node="n2")]
    result = schedule_spans(spans, [_rel("a", "b"), _rel("b", "c")])
    assert result.converged
    for from_id, to_id in result.edges:
        assert result.arena.get(to_id).start_time >= result.arena.get(from_id).end_time


def test_durations_preserved_and_input_untouched(make_span):
    spans = _chain(make_span)
    arena = SpanArena(spans)
    result = schedule_spans(arena, [_rel("a", "b"), _rel("b", "c")])
    for span in spans:
        assert result.arena.get(span.span_id).duration == span.duration
        assert arena.get(span.span_id).start_time == 0.0


def test_duplicate_relations_yield_single_edge(make_span):
    spans = [make_span("a", 0, 1), make_span("b", 0, 1)]
    result = schedule_spans(spans, [_rel("a", "b"), _rel("a", "b")])
    assert len(result.edges) == 1


def test_cycle_reports_unconverged(make_span, caplog):
    spans = [make_span("a", 0, 1), make_span("b", 0, 1)]
    with caplog.at_level(logging.WARNING, logger="engine.schedule.scheduler"):
        result = schedule_spans(spans, [_rel("a", "b"), _rel("b", "a")], max_iterations=25)
    assert result.status is ScheduleStatus.unconverged
    assert result.iterations == 25
    assert any("did not converge" in r.message for r in caplog.records)


def test_fix_on_last_allowed_pass_is_converged(make_span, caplog):
    a = make_span("a", 0, 1)
    b = make_span("b", 0, 1)
    with caplog.at_level(logging.INFO, logger="engine.schedule.scheduler"):
        result = schedule_spans([a, b], [_rel("a", "b")], max_iterations=1)
    assert result.status is ScheduleStatus.converged
    assert result.iterations == 1
    assert result.arena.get(b.span_id).start_time == 1.0
    assert not any("did not converge" in r.message for r in caplog.records)


def test_children_follow_parent_and_do_not_propagate(make_span):
    a = make_span("a", 0.0, 1.0)
    parent = make_span("b", 0.0, 2.0)
    child = make_span("x", 0.0, 0.5, parent=parent)
    grandchild = make_span("y", 0.0, 0.1, parent=child)
    other = make_span("z", 0.0, 1.0)

    result = schedule_spans(
        [a, parent, child, grandchild, other],
        [_rel("a", "b"), _rel("x", "z"), _rel("a", "x")],
    )

    assert result.edges == [(a.span_id, parent.span_id)]
    assert result.arena.get(parent.span_id).start_time == 1.0
    assert result.arena.get(child.span_id).start_time == 1.0
    assert result.arena.get(child.span_id).end_time == 1.5
    assert result.arena.get(grandchild.span_id).start_time == 1.0
    assert result.arena.get(other.span_id).start_time == 0.0
