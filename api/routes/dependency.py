from fastapi import APIRouter

from api.requests import DependencyRequest, ParseDescriptionRequest, spans_to_arena
from api.responses import DependencyAnalysisResponse
from api.routes.exception import handle_exceptions
from engine.dependency import DependencyAnalysisRequest, analyze_dependencies, format_description, parse_description

router = APIRouter(tags=["Dependency"])


@router.post("/dependency/analyze", summary="Group source spans per target span and aggregate link delays")
@handle_exceptions
async def analyze(req: DependencyRequest) -> DependencyAnalysisResponse:
    result = analyze_dependencies(spans_to_arena(req.spans), req.analysis)
    return DependencyAnalysisResponse.from_result(result, format_description(req.analysis))


@router.post("/dependency/parse-description", summary="Rebuild analysis parameters from a description line")
@handle_exceptions
async def parse(req: ParseDescriptionRequest) -> DependencyAnalysisRequest:
    return parse_description(req.description, base=req.base)
