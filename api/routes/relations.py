from fastapi import APIRouter

from api.requests import MatchRelationsRequest, spans_to_arena
from api.responses import BuiltinCatalogResponse, RelationMatchResponse
from api.routes.exception import handle_exceptions
from engine.relations import RelationView, builtin_relation_views, builtin_relations, find_relations

router = APIRouter(tags=["Relations"])


@router.post("/relations/match", summary="Match relation rules against a span snapshot")
@handle_exceptions
async def match_relations(req: MatchRelationsRequest) -> RelationMatchResponse:
    arena = spans_to_arena(req.spans)
    relations = req.load_relations()
    view = req.view or RelationView.enabling(relations, name="request")
    return RelationMatchResponse.from_result(find_relations(relations, view, arena))


@router.get("/relations/builtin", summary="Built-in relation catalog and views")
@handle_exceptions
async def builtin_catalog() -> BuiltinCatalogResponse:
    return BuiltinCatalogResponse(relations=builtin_relations(), views=builtin_relation_views())
