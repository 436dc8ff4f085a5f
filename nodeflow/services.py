"""
Workflow Service.

Ties the engine to storage: workflows are validated before they are
stored, runs are recorded as they start and finish, and run results are
written back onto the stored workflow's nodes.

One service is created per application (see `nodeflow.main.create_app`)
and owns exactly one executor, so a process serves one run at a time.
"""

from typing import Any, Dict, List, Optional, Sequence
import asyncio
import logging
import uuid

from pydantic import ValidationError as ModelValidationError

from nodeflow.config import settings
from nodeflow.engine.errors import EngineBusyError, ValidationError
from nodeflow.engine.executor import EventCallback, RunResult, RunStatus, WorkflowExecutor, apply_results
from nodeflow.engine.graph import validate_graph
from nodeflow.engine.models import Workflow, WorkflowEdge, WorkflowNode
from nodeflow.handlers.node_configs import missing_required
from nodeflow.handlers.registry import HandlerRegistry, create_default_registry
from nodeflow.storage.memory import RunStorage, StoredRun, WorkflowStorage
from nodeflow.workflows.templates import register_templates


logger = logging.getLogger(__name__)


class WorkflowService:
    """
    Application-level facade over the executor and the stores.

    Usage:
        service = WorkflowService()
        workflow = await service.create_workflow("Demo", nodes, edges)
        result = await service.run_workflow(workflow, {"topic": "AI"})
    """

    def __init__(
        self,
        registry: Optional[HandlerRegistry] = None,
        data_flow: Optional[str] = None,
    ):
        self.registry = registry or create_default_registry()
        self.executor = WorkflowExecutor(self.registry, data_flow or settings.DATA_FLOW_MODE)
        self.workflows = WorkflowStorage()
        self.runs = RunStorage()

    @property
    def is_running(self) -> bool:
        return self.executor.is_running

    # ============================================================
    # Workflows
    # ============================================================

    async def create_workflow(
        self,
        name: str,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
        description: Optional[str] = None,
        workflow_id: Optional[str] = None,
    ) -> Workflow:
        """
        Validate and store a new workflow.

        Raises:
            ValidationError: If the graph is empty, dangling or cyclic
        """
        validate_graph(nodes, edges)

        workflow = Workflow(
            name=name,
            description=description,
            nodes=list(nodes),
            edges=list(edges),
        )
        if workflow_id:
            workflow = workflow.model_copy(update={"id": workflow_id})

        await self.workflows.save(workflow)
        logger.info(f"Created workflow: {workflow.id} ({workflow.name})")
        return workflow

    async def import_workflow(self, data: Dict[str, Any]) -> Workflow:
        """
        Load a workflow from its export JSON and store it.

        An imported workflow keeps its id, replacing any stored workflow
        with the same id.

        Raises:
            ValidationError: If the document is malformed or the graph invalid
        """
        try:
            workflow = Workflow.from_export(data)
        except ModelValidationError as e:
            raise ValidationError([
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ])

        validate_graph(workflow.nodes, workflow.edges)
        await self.workflows.save(workflow)
        logger.info(f"Imported workflow: {workflow.id} ({workflow.name})")
        return workflow

    async def export_workflow(self, workflow_id: str) -> Optional[Dict[str, Any]]:
        workflow = await self.workflows.get(workflow_id)
        if workflow is None:
            return None
        return workflow.to_export()

    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        return await self.workflows.get(workflow_id)

    async def list_workflows(self) -> List[Workflow]:
        return await self.workflows.list_all()

    async def delete_workflow(self, workflow_id: str) -> bool:
        deleted = await self.workflows.delete(workflow_id)
        if deleted:
            logger.info(f"Deleted workflow: {workflow_id}")
        return deleted

    def config_warnings(self, nodes: Sequence[WorkflowNode]) -> Dict[str, List[str]]:
        """
        Required config fields left unset, per node.

        These are warnings, not errors: a node may still receive what it
        needs from its input data at run time.
        """
        warnings: Dict[str, List[str]] = {}
        for node in nodes:
            messages = [f"Missing required config: {name}" for name in missing_required(node.kind, node.config)]
            if node.kind not in self.registry:
                messages.append(f"Unknown node type: {node.kind}")
            if messages:
                warnings[node.id] = messages
        return warnings

    async def seed_templates(self) -> int:
        """Store the example workflows. Returns how many were stored."""
        templates = await register_templates(self.workflows)
        return len(templates)

    # ============================================================
    # Runs
    # ============================================================

    async def run_workflow(
        self,
        workflow: Workflow,
        input_data: Any = None,
        run_id: Optional[str] = None,
        on_event: Optional[EventCallback] = None,
    ) -> RunResult:
        """
        Execute a stored workflow and write the outcome back onto its nodes.

        Results are only written if the stored workflow still has the same
        nodes and edges when the run ends.

        Raises:
            EngineBusyError: If another run is in flight
            ValidationError: If the workflow's graph is invalid
        """
        result = await self._execute(workflow.id, workflow.nodes, workflow.edges, input_data, run_id, on_event)

        # Re-read: the workflow may have been replaced or deleted while running
        current = await self.workflows.get(workflow.id)
        if current is None:
            logger.info(f"Workflow {workflow.id} was deleted during run {result.run_id}, results not stored")
            return result
        if not _same_graph(current, workflow):
            logger.warning(f"Workflow {workflow.id} changed during run {result.run_id}, results not stored")
            return result

        updated = current.model_copy(update={"nodes": apply_results(current.nodes, result.results)})
        await self.workflows.update(updated)
        return result

    async def run_graph(
        self,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
        input_data: Any = None,
        run_id: Optional[str] = None,
        on_event: Optional[EventCallback] = None,
    ) -> RunResult:
        """Execute an unsaved graph. The run is recorded without a workflow id."""
        return await self._execute(None, nodes, edges, input_data, run_id, on_event)

    async def _execute(
        self,
        workflow_id: Optional[str],
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
        input_data: Any,
        run_id: Optional[str],
        on_event: Optional[EventCallback],
    ) -> RunResult:
        if self.executor.is_running:
            raise EngineBusyError("A workflow run is already in progress")

        run_id = run_id or str(uuid.uuid4())
        await self.runs.create(run_id, workflow_id, input_data)

        try:
            result = await self.executor.run(nodes, edges, input_data, run_id=run_id, on_event=on_event)
        except ValidationError as e:
            await self.runs.fail(run_id, str(e), logs=self.executor.logs)
            raise
        except asyncio.CancelledError:
            await self.runs.finish(
                run_id,
                status=RunStatus.CANCELLED.value,
                results=[],
                logs=self.executor.logs,
                error="Run was cancelled",
            )
            logger.warning(f"Run {run_id} was cancelled by its caller")
            raise
        except Exception as e:
            await self.runs.fail(run_id, str(e))
            raise

        await self.runs.finish(
            run_id,
            status=result.status.value,
            results=[node_result.to_dict() for node_result in result.results],
            logs=list(result.logs),
            error=result.error,
            total_duration_ms=result.total_duration_ms,
        )
        logger.info(f"Run {run_id} finished with status {result.status.value}")
        return result

    def stop(self) -> bool:
        """Ask the in-flight run to stop before its next node."""
        return self.executor.cancel()

    async def get_run(self, run_id: str) -> Optional[StoredRun]:
        return await self.runs.get(run_id)

    async def list_runs(self, workflow_id: Optional[str] = None) -> List[StoredRun]:
        if workflow_id:
            return await self.runs.list_by_workflow(workflow_id)
        return await self.runs.list_all()


def _same_graph(a: Workflow, b: Workflow) -> bool:
    """True when both workflows have the same node ids and edge ids, in order."""
    return (
        [n.id for n in a.nodes] == [n.id for n in b.nodes]
        and [e.id for e in a.edges] == [e.id for e in b.edges]
    )
