"""
Async Workflow Executor.

The executor validates a workflow graph, derives its dispatch order,
runs each node through the handler registered for its kind, and returns
an ordered list of per-node results together with the run's log.

Runs are strictly sequential: a node is dispatched only after the
previous node's handler has returned, and the first failure halts the
run.
"""

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import inspect
import logging
import time

from nodeflow.engine.errors import EngineBusyError, HandlerError, ValidationError
from nodeflow.engine.graph import predecessors, resolve_execution_order, validate_graph
from nodeflow.engine.models import NodeStatus, WorkflowEdge, WorkflowNode
from nodeflow.engine.run_log import RunLog

if TYPE_CHECKING:
    from nodeflow.handlers.registry import HandlerRegistry


logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Outcome of a workflow run."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DataFlowMode(str, Enum):
    """What a node receives as input data."""
    INITIAL = "initial"    # Every node gets the run's initial input
    UPSTREAM = "upstream"  # Nodes get their direct predecessors' outputs


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one attempted node."""
    node_id: str
    status: NodeStatus
    execution_time_ms: int
    output_data: Any = None
    error: Optional[str] = None
    logs: Tuple[str, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.status == NodeStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "status": self.status.value,
            "outputData": self.output_data,
            "error": self.error,
            "executionTime": self.execution_time_ms,
            "logs": list(self.logs),
        }


@dataclass(frozen=True)
class RunResult:
    """
    Result of a workflow run.

    `results` holds one entry per attempted node, in dispatch order. A node
    with no entry was never reached. Iterating a RunResult yields
    ``(results, logs)``.
    """
    run_id: str
    status: RunStatus
    results: Tuple[ExecutionResult, ...] = ()
    logs: Tuple[str, ...] = ()
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    total_duration_ms: Optional[float] = None

    def __iter__(self) -> Iterator[Any]:
        return iter((list(self.results), list(self.logs)))

    def result_for(self, node_id: str) -> Optional[ExecutionResult]:
        for result in self.results:
            if result.node_id == node_id:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "results": [result.to_dict() for result in self.results],
            "logs": list(self.logs),
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "total_duration_ms": self.total_duration_ms,
        }


@dataclass(frozen=True)
class NodeEvent:
    """Progress notification emitted while a run is in flight."""
    type: str  # "node_started" | "node_finished"
    run_id: str
    node_id: str
    status: NodeStatus
    result: Optional[ExecutionResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "run_id": self.run_id,
            "node_id": self.node_id,
            "status": self.status.value,
            "result": self.result.to_dict() if self.result else None,
        }


EventCallback = Callable[[NodeEvent], Union[None, Awaitable[None]]]


class WorkflowExecutor:
    """
    Async workflow executor.

    Executes a node/edge graph, handling:
    - Validation before anything is dispatched
    - Deterministic topological ordering
    - Per-node status, timing and error capture
    - Halting on the first failure
    - Cooperative cancellation between nodes

    One executor runs one workflow at a time; a second `run` while one is
    in flight raises EngineBusyError.

    Usage:
        executor = WorkflowExecutor(create_default_registry())
        results, logs = await executor.run(nodes, edges, {"url": "..."})
    """

    def __init__(
        self,
        registry: Optional["HandlerRegistry"] = None,
        data_flow: Union[DataFlowMode, str] = DataFlowMode.INITIAL,
    ):
        """
        Initialize the executor.

        Args:
            registry: Handler registry (a default registry if not provided)
            data_flow: What each node receives as input data
        """
        if registry is None:
            from nodeflow.handlers.registry import create_default_registry
            registry = create_default_registry()

        self.registry = registry
        self.data_flow = DataFlowMode(data_flow)

        # Execution state
        self._run_log = RunLog()
        self._node_status: Dict[str, NodeStatus] = {}
        self._running = False
        self._cancelled = False

    @property
    def is_running(self) -> bool:
        """Whether a run is currently in flight."""
        return self._running

    @property
    def logs(self) -> List[str]:
        """Log entries of the current (or last) run."""
        return list(self._run_log.snapshot())

    def node_status(self, node_id: str) -> Optional[NodeStatus]:
        """Status of a node in the current (or last) run."""
        return self._node_status.get(node_id)

    def cancel(self) -> bool:
        """
        Request that the run stop before dispatching its next node.

        The node currently in flight is allowed to finish.

        Returns:
            True if a run was in flight
        """
        if not self._running:
            return False
        self._cancelled = True
        self._run_log.log("Stop requested")
        return True

    async def run(
        self,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
        input_data: Any = None,
        run_id: Optional[str] = None,
        on_event: Optional[EventCallback] = None,
    ) -> RunResult:
        """
        Execute a workflow.

        Args:
            nodes: Workflow nodes
            edges: Workflow edges
            input_data: Initial input for the run
            run_id: Optional run ID (generated if not provided)
            on_event: Optional callback for node progress (sync or async)

        Returns:
            RunResult with the ordered per-node results and the run log

        Raises:
            EngineBusyError: If another run is in flight
            ValidationError: If the graph is empty, dangling or cyclic
        """
        if self._running:
            raise EngineBusyError("A workflow run is already in progress")

        self._running = True
        self._cancelled = False
        self._run_log = RunLog(run_id)
        self._node_status = {node.id: NodeStatus.IDLE for node in nodes}

        run_id = self._run_log.run_id
        started_at = datetime.now()
        start_time = time.monotonic()
        results: List[ExecutionResult] = []

        try:
            self._run_log.log(f"Starting workflow run with {len(nodes)} nodes and {len(edges)} edges")

            try:
                validate_graph(nodes, edges)
                order = resolve_execution_order(nodes, edges)
            except ValidationError as e:
                self._run_log.log(str(e), logging.ERROR)
                raise

            self._run_log.log(f"Execution order: {' -> '.join(order)}")

            nodes_by_id = {node.id: node for node in nodes}
            upstream = predecessors(nodes, edges)
            outputs: Dict[str, Any] = {}
            status = RunStatus.COMPLETED
            error: Optional[str] = None

            for node_id in order:
                # Check cancellation
                if self._cancelled:
                    self._run_log.log(f"Workflow cancelled before node {node_id}")
                    status = RunStatus.CANCELLED
                    break

                node = nodes_by_id[node_id]
                node_input = self._node_input(node_id, input_data, upstream, outputs)
                result = await self._execute_node(node, node_input, run_id, on_event)
                results.append(result)

                if not result.is_success:
                    self._run_log.log(f"Error in node {node_id}: {result.error}", logging.ERROR)
                    status = RunStatus.FAILED
                    error = result.error
                    break

                outputs[node_id] = result.output_data

            if status == RunStatus.COMPLETED:
                self._run_log.log(f"Workflow completed: {len(results)} nodes succeeded")

            return RunResult(
                run_id=run_id,
                status=status,
                results=tuple(results),
                logs=self._run_log.snapshot(),
                error=error,
                started_at=started_at,
                completed_at=datetime.now(),
                total_duration_ms=(time.monotonic() - start_time) * 1000,
            )
        finally:
            self._running = False

    def _node_input(
        self,
        node_id: str,
        input_data: Any,
        upstream: Dict[str, List[str]],
        outputs: Dict[str, Any],
    ) -> Any:
        """Input data for a node under the configured data flow mode."""
        if self.data_flow == DataFlowMode.INITIAL:
            return input_data

        parents = upstream.get(node_id, [])
        if not parents:
            return input_data
        if len(parents) == 1:
            return outputs.get(parents[0])
        return {parent: outputs.get(parent) for parent in parents}

    async def _execute_node(
        self,
        node: WorkflowNode,
        input_data: Any,
        run_id: str,
        on_event: Optional[EventCallback],
    ) -> ExecutionResult:
        """Execute a single node and build its result."""
        self._node_status[node.id] = NodeStatus.RUNNING
        self._run_log.log(f"Executing node: {node.label} ({node.kind})")
        await self._emit(on_event, NodeEvent("node_started", run_id, node.id, NodeStatus.RUNNING))

        output_data = None
        error: Optional[str] = None
        elapsed = 0.0

        try:
            handler = self.registry.resolve(node.kind)
            node_start = time.monotonic()
            try:
                output_data = await handler(input_data, dict(node.config))
            finally:
                elapsed = time.monotonic() - node_start
        except HandlerError as e:
            error = str(e)
        except Exception as e:
            logger.exception(f"Node {node.id} raised an unexpected error")
            error = str(e) or type(e).__name__

        execution_time_ms = max(0, int(round(elapsed * 1000)))

        if error is None:
            status = NodeStatus.SUCCESS
            self._run_log.log(f"Node {node.label} completed successfully in {execution_time_ms}ms")
        else:
            status = NodeStatus.ERROR
            self._run_log.log(f"Node {node.label} failed: {error}", logging.ERROR)

        self._node_status[node.id] = status
        result = ExecutionResult(
            node_id=node.id,
            status=status,
            execution_time_ms=execution_time_ms,
            output_data=output_data,
            error=error,
            logs=self._run_log.snapshot(),
        )

        await self._emit(on_event, NodeEvent("node_finished", run_id, node.id, status, result))
        return result

    async def _emit(self, on_event: Optional[EventCallback], event: NodeEvent) -> None:
        if on_event is None:
            return
        try:
            outcome = on_event(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(f"Event callback failed: {e}")


def apply_results(
    nodes: Sequence[WorkflowNode],
    results: Sequence[ExecutionResult],
) -> List[WorkflowNode]:
    """
    Compose run results into fresh copies of the nodes.

    Nodes with a result take its status, output, error and timing; nodes
    without one (not reached) are reset to idle. The given nodes are not
    modified.
    """
    by_id = {result.node_id: result for result in results}
    updated = []

    for node in nodes:
        result = by_id.get(node.id)
        if result is None:
            data = node.data.model_copy(update={
                "status": NodeStatus.IDLE,
                "output_data": None,
                "error": None,
                "execution_time": None,
            })
        else:
            data = node.data.model_copy(update={
                "status": result.status,
                "output_data": result.output_data,
                "error": result.error,
                "execution_time": result.execution_time_ms,
            })
        updated.append(node.model_copy(update={"data": data}))

    return updated


async def execute_workflow(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
    input_data: Any = None,
    registry: Optional["HandlerRegistry"] = None,
    data_flow: Union[DataFlowMode, str] = DataFlowMode.INITIAL,
    run_id: Optional[str] = None,
) -> RunResult:
    """
    Convenience function to execute a workflow with a fresh executor.

    Args:
        nodes: Workflow nodes
        edges: Workflow edges
        input_data: Initial input data
        registry: Handler registry (default built-ins if not provided)
        data_flow: Data flow mode
        run_id: Optional run ID

    Returns:
        RunResult
    """
    executor = WorkflowExecutor(registry, data_flow)
    return await executor.run(nodes, edges, input_data, run_id=run_id)
