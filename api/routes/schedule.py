from typing import List, Optional

from fastapi import APIRouter, HTTPException

from api.requests import ScheduleRequest, spans_to_arena
from api.responses import ModelSummary, ScheduleResponse
from api.routes.exception import handle_exceptions
from engine.schedule import all_models, get_model, schedule_spans

router = APIRouter(tags=["Schedule"])


@router.post("/schedule", summary="Derive a consistent schedule for unscheduled spans")
@handle_exceptions
async def schedule(req: ScheduleRequest) -> ScheduleResponse:
    relations = req.load_relations()
    result = schedule_spans(spans_to_arena(req.spans), relations, max_iterations=req.max_iterations)
    return ScheduleResponse.from_result(result)


@router.get("/schedule/models", summary="Available theoretical models")
@handle_exceptions
async def list_models(heights: Optional[int] = None) -> List[ModelSummary]:
    if heights is not None and heights < 1:
        raise HTTPException(status_code=400, detail="heights must be at least 1")
    return [
        ModelSummary(
            name=m.name,
            description=m.description,
            span_count=len(m.spans),
            relation_count=len(m.relations),
        )
        for m in all_models(heights)
    ]


@router.get("/schedule/models/{name}", summary="Schedule a theoretical model")
@handle_exceptions
async def run_model(name: str, heights: Optional[int] = None) -> ScheduleResponse:
    if heights is not None and heights < 1:
        raise HTTPException(status_code=400, detail="heights must be at least 1")
    model = get_model(name, heights)
    if model is None:
        raise HTTPException(status_code=404, detail=f"Unknown model '{name}'")
    result, relations = model.finalize()
    return ScheduleResponse.from_result(result, relations)
