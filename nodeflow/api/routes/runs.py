"""
Run API Routes.

Endpoints for running unsaved graphs, stopping the in-flight run and
inspecting recorded runs.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
import logging

from nodeflow.api.dependencies import get_service
from nodeflow.api.schemas import (
    EngineStatusResponse,
    ErrorResponse,
    GraphRunRequest,
    NodeResultResponse,
    RunListResponse,
    RunResponse,
    StopResponse,
)
from nodeflow.engine.errors import EngineBusyError, ValidationError
from nodeflow.engine.executor import RunResult, apply_results
from nodeflow.engine.models import WorkflowNode
from nodeflow.services import WorkflowService
from nodeflow.storage.memory import StoredRun


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/runs", tags=["Runs"])


def result_to_response(
    result: RunResult,
    workflow_id: Optional[str] = None,
    nodes: Optional[List[WorkflowNode]] = None,
) -> RunResponse:
    """Convert a RunResult to an API response."""
    data = result.to_dict()
    return RunResponse(
        run_id=data["run_id"],
        workflow_id=workflow_id,
        status=data["status"],
        results=[NodeResultResponse.model_validate(r) for r in data["results"]],
        logs=data["logs"],
        nodes=nodes,
        error=data["error"],
        started_at=data["started_at"],
        completed_at=data["completed_at"],
        total_duration_ms=data["total_duration_ms"],
    )


def stored_to_response(stored: StoredRun) -> RunResponse:
    """Convert a stored run to an API response."""
    data = stored.to_dict()
    return RunResponse(
        run_id=data["run_id"],
        workflow_id=data["workflow_id"],
        status=data["status"],
        results=[NodeResultResponse.model_validate(r) for r in data["results"]],
        logs=data["logs"],
        error=data["error"],
        started_at=data["started_at"],
        completed_at=data["completed_at"],
        total_duration_ms=data["total_duration_ms"],
    )


# ============================================================
# Execution Endpoints
# ============================================================

@router.post(
    "/",
    response_model=RunResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid graph"},
        409: {"model": ErrorResponse, "description": "Another run is in progress"},
    }
)
async def run_graph(
    request: GraphRunRequest,
    service: WorkflowService = Depends(get_service),
) -> RunResponse:
    """
    Execute a graph without storing it.

    A node that fails is reported in the results with status `error`;
    the request itself still succeeds.
    """
    try:
        result = await service.run_graph(request.nodes, request.edges, request.input_data)
    except EngineBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return result_to_response(result, nodes=apply_results(request.nodes, result.results))


@router.post(
    "/stop",
    response_model=StopResponse,
)
async def stop_run(service: WorkflowService = Depends(get_service)) -> StopResponse:
    """Stop the in-flight run before it dispatches its next node."""
    stopped = service.stop()
    message = "Stop requested" if stopped else "No workflow is running"
    logger.info(message)
    return StopResponse(stopped=stopped, message=message)


@router.get(
    "/status",
    response_model=EngineStatusResponse,
)
async def engine_status(service: WorkflowService = Depends(get_service)) -> EngineStatusResponse:
    """Whether a run is currently in flight."""
    return EngineStatusResponse(is_running=service.is_running)


# ============================================================
# Run History Endpoints
# ============================================================

@router.get(
    "/",
    response_model=RunListResponse,
)
async def list_runs(
    workflow_id: Optional[str] = None,
    service: WorkflowService = Depends(get_service),
) -> RunListResponse:
    """List all runs, optionally filtered by workflow_id."""
    runs = [stored_to_response(stored) for stored in await service.list_runs(workflow_id)]
    return RunListResponse(runs=runs, total=len(runs))


@router.get(
    "/{run_id}",
    response_model=RunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_run(run_id: str, service: WorkflowService = Depends(get_service)) -> RunResponse:
    """Get a recorded run."""
    stored = await service.get_run(run_id)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Run '{run_id}' not found")
    return stored_to_response(stored)
