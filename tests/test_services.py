"""
Tests for the WorkflowService.
"""

import pytest
import asyncio

from nodeflow.engine.errors import EngineBusyError, ValidationError
from nodeflow.engine.models import NodeKind, NodeStatus, WorkflowEdge, WorkflowNode
from nodeflow.handlers.registry import HandlerRegistry
from nodeflow.services import WorkflowService
from nodeflow.workflows import get_template


def chain():
    nodes = [
        WorkflowNode.create("input", NodeKind.DATA_INPUT),
        WorkflowNode.create("scrape", NodeKind.WEB_SCRAPING),
        WorkflowNode.create("output", NodeKind.DATA_OUTPUT),
    ]
    edges = [WorkflowEdge.connect("input", "scrape"), WorkflowEdge.connect("scrape", "output")]
    return nodes, edges


def gated_service(gate: asyncio.Event, started: asyncio.Event) -> WorkflowService:
    """Service whose "gated" handler blocks until the gate opens."""
    registry = HandlerRegistry()

    @registry.register("gated")
    async def gated(input_data, config):
        started.set()
        await gate.wait()
        return "done"

    return WorkflowService(registry)


class TestWorkflowService:
    """Tests for workflow storage and runs through the service."""

    @pytest.mark.asyncio
    async def test_create_rejects_invalid_graph(self):
        """Test that invalid graphs are never stored."""
        service = WorkflowService()
        a = WorkflowNode.create("a", NodeKind.DATA_INPUT)

        with pytest.raises(ValidationError):
            await service.create_workflow("Cyclic", [a], [WorkflowEdge.connect("a", "a")])

        assert await service.list_workflows() == []

    @pytest.mark.asyncio
    async def test_run_updates_stored_nodes(self):
        """Test that run results are written back onto the workflow."""
        service = WorkflowService()
        nodes, edges = chain()
        workflow = await service.create_workflow("Chain", nodes, edges)

        result = await service.run_workflow(workflow, "hello")
        stored = await service.get_workflow(workflow.id)

        assert result.status.value == "failed"
        assert [n.status for n in stored.nodes] == [NodeStatus.SUCCESS, NodeStatus.ERROR, NodeStatus.IDLE]

        run = await service.get_run(result.run_id)
        assert run.workflow_id == workflow.id
        assert run.status == "failed"
        assert [r["nodeId"] for r in run.results] == ["input", "scrape"]

    @pytest.mark.asyncio
    async def test_invalid_inline_graph_recorded_as_failed(self):
        """Test that a graph failing validation leaves a failed run record."""
        service = WorkflowService()

        with pytest.raises(ValidationError):
            await service.run_graph([], [], run_id="empty-run")

        run = await service.get_run("empty-run")
        assert run.status == "failed"
        assert run.results == []
        assert "Workflow must have at least one node" in run.error

    @pytest.mark.asyncio
    async def test_busy(self):
        """Test that the service serves one run at a time."""
        gate, started = asyncio.Event(), asyncio.Event()
        service = gated_service(gate, started)
        task = asyncio.create_task(service.run_graph([WorkflowNode.create("a", "gated")], []))
        await started.wait()

        assert service.is_running
        with pytest.raises(EngineBusyError):
            await service.run_graph([WorkflowNode.create("b", "gated")], [])

        gate.set()
        await task
        assert not service.is_running
        assert service.stop() is False

    @pytest.mark.asyncio
    async def test_import_export(self):
        """Test that an exported workflow imports unchanged."""
        service = WorkflowService()
        nodes, edges = chain()
        workflow = await service.create_workflow("Chain", nodes, edges, description="demo")

        document = await service.export_workflow(workflow.id)
        document["id"] = "copy"
        imported = await service.import_workflow(document)

        assert imported.id == "copy"
        assert imported.description == "demo"
        assert [n.id for n in imported.nodes] == ["input", "scrape", "output"]
        assert await service.export_workflow("missing") is None

    @pytest.mark.asyncio
    async def test_import_malformed(self):
        """Test that malformed documents raise ValidationError."""
        service = WorkflowService()

        with pytest.raises(ValidationError) as exc_info:
            await service.import_workflow({"name": "Broken", "nodes": [{"type": "data-input"}]})

        assert any("id" in error for error in exc_info.value.errors)

    @pytest.mark.asyncio
    async def test_seed_templates(self):
        """Test that the example workflows are stored and valid."""
        service = WorkflowService()
        count = await service.seed_templates()

        assert count == 6
        template = await service.get_workflow("content-marketing-automation")
        assert template is not None

        result = await service.run_workflow(template, "AI trends")
        assert result.status.value == "completed"
        assert len(result.results) == 5

    def test_config_warnings(self):
        """Test warnings for unset required config and unknown kinds."""
        service = WorkflowService()
        nodes = [
            WorkflowNode.create("scrape", NodeKind.WEB_SCRAPING),
            WorkflowNode.create("input", NodeKind.DATA_INPUT),
            WorkflowNode.create("odd", "mystery"),
        ]

        assert service.config_warnings(nodes) == {
            "scrape": ["Missing required config: url"],
            "odd": ["Unknown node type: mystery"],
        }


class TestRunBookkeeping:
    """Tests for what a run leaves behind when the world changes under it."""

    @pytest.mark.asyncio
    async def test_reimport_during_run_is_kept(self):
        """Test that a workflow replaced mid-run is not overwritten by stale results."""
        gate, started = asyncio.Event(), asyncio.Event()
        service = gated_service(gate, started)
        v1 = await service.create_workflow("v1", [WorkflowNode.create("a", "gated")], [])

        task = asyncio.create_task(service.run_workflow(v1))
        await started.wait()

        await service.import_workflow({
            "id": v1.id,
            "name": "v2",
            "nodes": [{"id": "a", "type": "data-input"}, {"id": "b", "type": "data-output"}],
            "edges": [{"id": "e1", "source": "a", "target": "b"}],
        })
        gate.set()
        result = await task

        stored = await service.get_workflow(v1.id)
        assert result.status.value == "completed"
        assert stored.name == "v2"
        assert [n.id for n in stored.nodes] == ["a", "b"]
        assert len(stored.edges) == 1
        assert all(n.status == NodeStatus.IDLE for n in stored.nodes)

    @pytest.mark.asyncio
    async def test_delete_during_run_is_kept(self):
        """Test that a workflow deleted mid-run stays deleted."""
        gate, started = asyncio.Event(), asyncio.Event()
        service = gated_service(gate, started)
        workflow = await service.create_workflow("Doomed", [WorkflowNode.create("a", "gated")], [])

        task = asyncio.create_task(service.run_workflow(workflow))
        await started.wait()

        assert await service.delete_workflow(workflow.id) is True
        gate.set()
        result = await task

        assert await service.get_workflow(workflow.id) is None
        run = await service.get_run(result.run_id)
        assert run.status == "completed"

    @pytest.mark.asyncio
    async def test_same_graph_edit_still_updated(self):
        """Test that a rename mid-run keeps the rename and gets the results."""
        gate, started = asyncio.Event(), asyncio.Event()
        service = gated_service(gate, started)
        workflow = await service.create_workflow("Before", [WorkflowNode.create("a", "gated")], [])

        task = asyncio.create_task(service.run_workflow(workflow))
        await started.wait()

        document = await service.export_workflow(workflow.id)
        document["name"] = "After"
        await service.import_workflow(document)
        gate.set()
        await task

        stored = await service.get_workflow(workflow.id)
        assert stored.name == "After"
        assert stored.nodes[0].status == NodeStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_cancelled_task_closes_run(self):
        """Test that cancelling the awaiting task records the run as cancelled."""
        gate, started = asyncio.Event(), asyncio.Event()
        service = gated_service(gate, started)

        task = asyncio.create_task(
            service.run_graph([WorkflowNode.create("a", "gated")], [], run_id="cancelled-run")
        )
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        run = await service.get_run("cancelled-run")
        assert run.status == "cancelled"
        assert run.results == []
        assert run.error == "Run was cancelled"
        assert run.completed_at is not None
        assert any("Starting workflow run" in entry for entry in run.logs)
        assert not service.is_running


class TestTemplates:
    """Tests for looking up example workflows."""

    def test_get_template(self):
        """Test fetching one template by id."""
        template = get_template("lead-qualification")

        assert template.name == "AI Lead Qualification"
        assert len(template.nodes) == 5
        assert len(template.edges) == 4
        assert template.nodes[0].kind == "data-input"

    def test_get_template_returns_fresh_copy(self):
        """Test that each lookup builds a new workflow."""
        assert get_template("email-automation") is not get_template("email-automation")

    def test_get_unknown_template(self):
        """Test a template id that doesn't exist."""
        assert get_template("nope") is None
