"""
Node Kind API Routes.

Lists the node kinds the engine can dispatch, along with the config
fields editors should render for each.
"""

from fastapi import APIRouter, Depends, HTTPException

from nodeflow.api.dependencies import get_service
from nodeflow.api.schemas import (
    ConfigFieldResponse,
    ErrorResponse,
    NodeKindListResponse,
    NodeKindResponse,
)
from nodeflow.handlers.node_configs import get_config_fields
from nodeflow.handlers.registry import NodeHandler
from nodeflow.services import WorkflowService


router = APIRouter(prefix="/nodes", tags=["Nodes"])


def _kind_response(handler: NodeHandler) -> NodeKindResponse:
    return NodeKindResponse(
        kind=handler.kind,
        description=handler.description,
        is_async=handler.is_async,
        config_fields=[ConfigFieldResponse(**f.to_dict()) for f in get_config_fields(handler.kind)],
    )


@router.get(
    "/",
    response_model=NodeKindListResponse,
)
async def list_node_kinds(service: WorkflowService = Depends(get_service)) -> NodeKindListResponse:
    """List all registered node kinds."""
    kinds = [_kind_response(handler) for handler in service.registry]
    return NodeKindListResponse(node_kinds=kinds, total=len(kinds))


@router.get(
    "/{kind}",
    response_model=NodeKindResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_node_kind(kind: str, service: WorkflowService = Depends(get_service)) -> NodeKindResponse:
    """Get a node kind and its config fields."""
    handler = service.registry.get(kind)
    if handler is None:
        raise HTTPException(
            status_code=404,
            detail=f"Node type '{kind}' not found. "
                   f"Available types: {[h.kind for h in service.registry]}"
        )
    return _kind_response(handler)
