"""
Span duration analysis exports.
"""

from engine.analysis.durations import SpanDurationResult, SpanDurationStatistics, analyze_span_durations

__all__ = ["SpanDurationResult", "SpanDurationStatistics", "analyze_span_durations"]
