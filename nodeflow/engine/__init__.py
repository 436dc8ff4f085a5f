"""
Engine package - Core workflow execution components.
"""

from nodeflow.engine.errors import WorkflowError, ValidationError, HandlerError, EngineBusyError
from nodeflow.engine.models import NodeKind, NodeStatus, WorkflowNode, WorkflowEdge, Workflow
from nodeflow.engine.graph import validate_graph, resolve_execution_order
from nodeflow.engine.run_log import RunLog
from nodeflow.engine.executor import (
    WorkflowExecutor,
    ExecutionResult,
    RunResult,
    RunStatus,
    DataFlowMode,
    apply_results,
    execute_workflow,
)

__all__ = [
    "WorkflowError",
    "ValidationError",
    "HandlerError",
    "EngineBusyError",
    "NodeKind",
    "NodeStatus",
    "WorkflowNode",
    "WorkflowEdge",
    "Workflow",
    "validate_graph",
    "resolve_execution_order",
    "RunLog",
    "WorkflowExecutor",
    "ExecutionResult",
    "RunResult",
    "RunStatus",
    "DataFlowMode",
    "apply_results",
    "execute_workflow",
]
