from typing import Any, Dict, List

from fastapi import APIRouter

from api.requests import SpanDurationsRequest, SpanPayload, spans_to_arena
from api.responses import SpanDurationResponse
from api.routes.exception import handle_exceptions
from engine.analysis import analyze_span_durations

router = APIRouter(tags=["Spans"])


@router.post("/spans/durations", summary="Per-node duration statistics for one span name")
@handle_exceptions
async def span_durations(req: SpanDurationsRequest) -> SpanDurationResponse:
    result = analyze_span_durations(spans_to_arena(req.spans), req.span_name, req.attribute_filter)
    return SpanDurationResponse.from_result(result)


@router.post("/spans/names", summary="Unique span names in a snapshot")
@handle_exceptions
async def span_names(spans: List[SpanPayload]) -> Dict[str, Any]:
    arena = spans_to_arena(spans)
    return {"count": len(arena), "names": arena.span_names()}
