"""
Pydantic Schemas for API Request/Response Models.

Node and edge bodies reuse the engine's own models, so the API accepts
and returns the same JSON shape as workflow import/export.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from nodeflow.engine.models import WorkflowEdge, WorkflowNode


_EXAMPLE_NODES = [
    {
        "id": "input-1",
        "type": "data-input",
        "position": {"x": 100, "y": 100},
        "data": {"label": "Topic", "config": {"inputType": "text"}},
    },
    {
        "id": "llm-1",
        "type": "llm-task",
        "position": {"x": 300, "y": 100},
        "data": {"label": "Write", "config": {"prompt": "Write a short post about the topic"}},
    },
]

_EXAMPLE_EDGES = [{"id": "e1-2", "source": "input-1", "target": "llm-1"}]


# ============================================================
# Workflow Schemas
# ============================================================

class WorkflowCreateRequest(BaseModel):
    """Request to create a new workflow."""
    name: str = Field("Untitled Workflow", description="Name of the workflow")
    description: Optional[str] = Field(None, description="What this workflow does")
    nodes: List[WorkflowNode] = Field(..., description="Nodes of the workflow")
    edges: List[WorkflowEdge] = Field(default_factory=list, description="Directed edges between nodes")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Quick Post",
                "description": "Turn a topic into a post",
                "nodes": _EXAMPLE_NODES,
                "edges": _EXAMPLE_EDGES,
            }
        }


class WorkflowInfoResponse(BaseModel):
    """Information about a stored workflow."""
    id: str
    name: str
    description: Optional[str] = None
    node_count: int
    edge_count: int
    nodes: List[WorkflowNode]
    edges: List[WorkflowEdge]
    created_at: str
    updated_at: str
    execution_order: List[str] = Field(default_factory=list, description="Dispatch order of the nodes")
    warnings: Dict[str, List[str]] = Field(default_factory=dict, description="Config problems per node id")
    mermaid_diagram: Optional[str] = Field(None, description="Mermaid diagram of the workflow")


class WorkflowListResponse(BaseModel):
    """List of workflows."""
    workflows: List[WorkflowInfoResponse]
    total: int


# ============================================================
# Run Schemas
# ============================================================

class RunRequest(BaseModel):
    """Request to run a stored workflow."""
    input_data: Any = Field(None, description="Initial input for the run")

    class Config:
        json_schema_extra = {
            "example": {
                "input_data": {"text": "AI trends 2024"}
            }
        }


class GraphRunRequest(BaseModel):
    """Request to run a graph without storing it."""
    nodes: List[WorkflowNode] = Field(..., description="Nodes of the graph")
    edges: List[WorkflowEdge] = Field(default_factory=list, description="Directed edges between nodes")
    input_data: Any = Field(None, description="Initial input for the run")

    class Config:
        json_schema_extra = {
            "example": {
                "nodes": _EXAMPLE_NODES,
                "edges": _EXAMPLE_EDGES,
                "input_data": "AI trends 2024",
            }
        }


class NodeResultResponse(BaseModel):
    """Outcome of one attempted node."""
    node_id: str = Field(..., alias="nodeId")
    status: str
    output_data: Any = Field(None, alias="outputData")
    error: Optional[str] = None
    execution_time: int = Field(..., alias="executionTime", description="Handler time in milliseconds")
    logs: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class RunResponse(BaseModel):
    """Outcome of a workflow run."""
    run_id: str
    workflow_id: Optional[str] = None
    status: str
    results: List[NodeResultResponse] = Field(default_factory=list)
    logs: List[str] = Field(default_factory=list)
    nodes: Optional[List[WorkflowNode]] = Field(None, description="Nodes with run results applied")
    error: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    total_duration_ms: Optional[float] = None


class RunListResponse(BaseModel):
    """List of runs."""
    runs: List[RunResponse]
    total: int


class StopResponse(BaseModel):
    """Result of a stop request."""
    stopped: bool
    message: str


class EngineStatusResponse(BaseModel):
    """Whether the engine is busy."""
    is_running: bool


# ============================================================
# Node Kind Schemas
# ============================================================

class ConfigFieldResponse(BaseModel):
    """A configurable parameter of a node kind."""
    name: str
    type: str
    label: str
    required: bool = False
    default: Any = None
    options: List[str] = Field(default_factory=list)
    placeholder: Optional[str] = None
    description: str = ""


class NodeKindResponse(BaseModel):
    """A registered node kind."""
    kind: str
    description: str
    is_async: bool
    config_fields: List[ConfigFieldResponse] = Field(default_factory=list)


class NodeKindListResponse(BaseModel):
    """List of registered node kinds."""
    node_kinds: List[NodeKindResponse]
    total: int


# ============================================================
# Error Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
