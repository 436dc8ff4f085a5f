"""
Workflow API Routes.

Endpoints for creating, importing, exporting and running workflows.
"""

from typing import Any, Dict
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from nodeflow.api.dependencies import get_service
from nodeflow.api.routes.runs import result_to_response
from nodeflow.api.schemas import (
    ErrorResponse,
    RunRequest,
    RunResponse,
    WorkflowCreateRequest,
    WorkflowInfoResponse,
    WorkflowListResponse,
)
from nodeflow.engine.errors import EngineBusyError, ValidationError
from nodeflow.engine.graph import graph_errors, resolve_execution_order, to_mermaid
from nodeflow.engine.models import Workflow
from nodeflow.services import WorkflowService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["Workflows"])


def _workflow_info(
    workflow: Workflow,
    service: WorkflowService,
    include_mermaid: bool = False,
) -> WorkflowInfoResponse:
    """Convert a stored workflow to an API response."""
    order = []
    if not graph_errors(workflow.nodes, workflow.edges):
        order = resolve_execution_order(workflow.nodes, workflow.edges)

    return WorkflowInfoResponse(
        id=workflow.id,
        name=workflow.name,
        description=workflow.description,
        node_count=len(workflow.nodes),
        edge_count=len(workflow.edges),
        nodes=workflow.nodes,
        edges=workflow.edges,
        created_at=workflow.created_at.isoformat(),
        updated_at=workflow.updated_at.isoformat(),
        execution_order=order,
        warnings=service.config_warnings(workflow.nodes),
        mermaid_diagram=to_mermaid(workflow) if include_mermaid else None,
    )


async def _get_or_404(service: WorkflowService, workflow_id: str) -> Workflow:
    workflow = await service.get_workflow(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    return workflow


# ============================================================
# Workflow CRUD Endpoints
# ============================================================

@router.post(
    "/",
    response_model=WorkflowInfoResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid workflow graph"},
    }
)
async def create_workflow(
    request: WorkflowCreateRequest,
    service: WorkflowService = Depends(get_service),
) -> WorkflowInfoResponse:
    """
    Create a new workflow.

    The graph must be non-empty, reference only its own nodes and be
    acyclic. Unset required config is reported as `warnings`.
    """
    try:
        workflow = await service.create_workflow(
            name=request.name,
            nodes=request.nodes,
            edges=request.edges,
            description=request.description,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _workflow_info(workflow, service)


@router.get(
    "/",
    response_model=WorkflowListResponse,
)
async def list_workflows(service: WorkflowService = Depends(get_service)) -> WorkflowListResponse:
    """List all stored workflows."""
    workflows = [_workflow_info(workflow, service) for workflow in await service.list_workflows()]
    return WorkflowListResponse(workflows=workflows, total=len(workflows))


@router.post(
    "/import",
    response_model=WorkflowInfoResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed workflow document"},
    }
)
async def import_workflow(
    document: Dict[str, Any],
    service: WorkflowService = Depends(get_service),
) -> WorkflowInfoResponse:
    """Import a workflow from its exported JSON document."""
    try:
        workflow = await service.import_workflow(document)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _workflow_info(workflow, service)


@router.get(
    "/{workflow_id}",
    response_model=WorkflowInfoResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_service),
) -> WorkflowInfoResponse:
    """Get a workflow, including its Mermaid diagram."""
    workflow = await _get_or_404(service, workflow_id)
    return _workflow_info(workflow, service, include_mermaid=True)


@router.get(
    "/{workflow_id}/export",
    responses={404: {"model": ErrorResponse}},
)
async def export_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_service),
) -> Dict[str, Any]:
    """Export a workflow as a JSON document that can be imported again."""
    document = await service.export_workflow(workflow_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    return document


@router.delete(
    "/{workflow_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_service),
):
    """Delete a workflow."""
    deleted = await service.delete_workflow(workflow_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")


# ============================================================
# Execution Endpoints
# ============================================================

@router.post(
    "/{workflow_id}/run",
    response_model=RunResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid workflow graph"},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "Another run is in progress"},
    }
)
async def run_workflow(
    workflow_id: str,
    request: RunRequest,
    service: WorkflowService = Depends(get_service),
) -> RunResponse:
    """
    Execute a stored workflow.

    Nodes run one at a time in dependency order; the first failing node
    halts the run. The stored workflow's nodes are updated with the
    outcome.
    """
    workflow = await _get_or_404(service, workflow_id)

    try:
        result = await service.run_workflow(workflow, request.input_data)
    except EngineBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    updated = await service.get_workflow(workflow_id)
    return result_to_response(result, workflow_id=workflow_id, nodes=updated.nodes if updated else None)
