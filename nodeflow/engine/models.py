"""
Graph Model for the Workflow Engine.

Typed node and edge records that make up a workflow. The field names and
aliases mirror the JSON shape used for workflow import/export, so a
workflow survives a dump/load round trip with its ids, kinds, configs
and positions intact.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from enum import Enum
import uuid


class NodeKind(str, Enum):
    """Built-in node kinds."""
    WEB_SCRAPING = "web-scraping"
    STRUCTURED_OUTPUT = "structured-output"
    EMBEDDING_GENERATOR = "embedding-generator"
    SIMILARITY_SEARCH = "similarity-search"
    LLM_TASK = "llm-task"
    DATA_INPUT = "data-input"
    DATA_OUTPUT = "data-output"


class NodeStatus(str, Enum):
    """Runtime status of a node."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


def kind_key(kind: Any) -> str:
    """Normalize a node kind (enum member or string) to its string value."""
    if isinstance(kind, Enum):
        return str(kind.value)
    return str(kind)


class Position(BaseModel):
    """Canvas position of a node. Carried for export fidelity only."""
    x: float = 0
    y: float = 0


class NodeData(BaseModel):
    """
    Per-node payload.

    Attributes:
        label: Display label
        status: Last known runtime status
        config: Kind-specific parameters (url, prompt, schema, topK, ...)
        input_data / output_data / error / execution_time: Last run details,
            filled in by `apply_results`
    """

    label: str = ""
    status: NodeStatus = NodeStatus.IDLE
    config: Dict[str, Any] = Field(default_factory=dict)
    input_data: Optional[Any] = Field(None, alias="inputData")
    output_data: Optional[Any] = Field(None, alias="outputData")
    error: Optional[str] = None
    execution_time: Optional[int] = Field(None, alias="executionTime")

    class Config:
        populate_by_name = True


class WorkflowNode(BaseModel):
    """
    A typed processing step in a workflow.

    `kind` is kept as a plain string so that kinds registered at runtime
    are representable; an unknown kind is reported when the node is
    dispatched, not when it is built.
    """

    id: str
    kind: str = Field(..., alias="type")
    position: Position = Field(default_factory=Position)
    data: NodeData = Field(default_factory=NodeData)

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        return value

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        if not value:
            raise ValueError("Node id cannot be empty")
        return value

    @property
    def config(self) -> Dict[str, Any]:
        return self.data.config

    @property
    def status(self) -> NodeStatus:
        return self.data.status

    @property
    def label(self) -> str:
        return self.data.label or self.id

    @classmethod
    def create(
        cls,
        node_id: str,
        kind: Any,
        config: Optional[Dict[str, Any]] = None,
        label: str = "",
        x: float = 0,
        y: float = 0,
    ) -> "WorkflowNode":
        """Build a fresh (idle) node."""
        return cls(
            id=node_id,
            kind=kind,
            position=Position(x=x, y=y),
            data=NodeData(label=label, config=dict(config or {})),
        )


class WorkflowEdge(BaseModel):
    """A directed dependency: `target` consumes `source`'s output."""

    id: str
    source: str
    target: str
    source_handle: Optional[str] = Field(None, alias="sourceHandle")
    target_handle: Optional[str] = Field(None, alias="targetHandle")

    class Config:
        populate_by_name = True
        frozen = True

    @classmethod
    def connect(cls, source: str, target: str, edge_id: Optional[str] = None) -> "WorkflowEdge":
        """Build an edge, deriving an id from its endpoints if none is given."""
        return cls(id=edge_id or f"e-{source}-{target}", source=source, target=target)


class Workflow(BaseModel):
    """A named set of nodes and edges."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Untitled Workflow"
    description: Optional[str] = None
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")
    updated_at: datetime = Field(default_factory=datetime.now, alias="updatedAt")

    class Config:
        populate_by_name = True

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_export(self) -> Dict[str, Any]:
        """Serialize to the import/export JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_export(cls, data: Dict[str, Any]) -> "Workflow":
        """Load a workflow from the import/export JSON shape."""
        return cls.model_validate(data)
