"""
In-Memory Storage for NodeFlow.

Provides asyncio-safe storage for workflows and execution runs.
Nothing survives a restart.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import asyncio
from dataclasses import dataclass, field

from nodeflow.engine.models import Workflow


@dataclass
class StoredRun:
    """A stored execution run."""
    run_id: str
    workflow_id: Optional[str]
    status: str
    input_data: Any = None
    results: List[Dict[str, Any]] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    total_duration_ms: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "workflow_id": self.workflow_id,
            "status": self.status,
            "input_data": self.input_data,
            "results": self.results,
            "logs": self.logs,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "total_duration_ms": self.total_duration_ms,
            "error": self.error,
        }


class WorkflowStorage:
    """
    In-memory storage for workflows, keyed by workflow id.
    """

    def __init__(self):
        self._workflows: Dict[str, Workflow] = {}
        self._lock = asyncio.Lock()

    async def save(self, workflow: Workflow) -> Workflow:
        """Save (or overwrite) a workflow."""
        async with self._lock:
            self._workflows[workflow.id] = workflow
            return workflow

    async def get(self, workflow_id: str) -> Optional[Workflow]:
        """Get a workflow by ID."""
        async with self._lock:
            return self._workflows.get(workflow_id)

    async def update(self, workflow: Workflow) -> Optional[Workflow]:
        """Replace an existing workflow, bumping its updated_at."""
        async with self._lock:
            if workflow.id not in self._workflows:
                return None
            stored = workflow.model_copy(update={"updated_at": datetime.now()})
            self._workflows[workflow.id] = stored
            return stored

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        async with self._lock:
            if workflow_id in self._workflows:
                del self._workflows[workflow_id]
                return True
            return False

    async def list_all(self) -> List[Workflow]:
        """List all stored workflows."""
        async with self._lock:
            return list(self._workflows.values())

    def __len__(self) -> int:
        return len(self._workflows)


class RunStorage:
    """
    In-memory storage for execution runs.
    """

    def __init__(self):
        self._runs: Dict[str, StoredRun] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        run_id: str,
        workflow_id: Optional[str],
        input_data: Any = None,
    ) -> StoredRun:
        """
        Create a new run record in the running state.

        Args:
            run_id: Unique run identifier
            workflow_id: Associated workflow ID (None for inline graphs)
            input_data: Initial input data

        Returns:
            The stored run
        """
        async with self._lock:
            stored = StoredRun(
                run_id=run_id,
                workflow_id=workflow_id,
                status="running",
                input_data=input_data,
            )
            self._runs[run_id] = stored
            return stored

    async def get(self, run_id: str) -> Optional[StoredRun]:
        """Get a run by ID."""
        async with self._lock:
            return self._runs.get(run_id)

    async def finish(
        self,
        run_id: str,
        status: str,
        results: List[Dict[str, Any]],
        logs: List[str],
        error: Optional[str] = None,
        total_duration_ms: Optional[float] = None,
    ) -> Optional[StoredRun]:
        """Record the outcome of a run (completed, failed or cancelled)."""
        async with self._lock:
            if run_id not in self._runs:
                return None
            stored = self._runs[run_id]
            stored.status = status
            stored.results = results
            stored.logs = logs
            stored.error = error
            stored.total_duration_ms = total_duration_ms
            stored.completed_at = datetime.now()
            return stored

    async def fail(self, run_id: str, error: str, logs: Optional[List[str]] = None) -> Optional[StoredRun]:
        """Mark a run as failed without any node results."""
        async with self._lock:
            if run_id not in self._runs:
                return None
            stored = self._runs[run_id]
            stored.status = "failed"
            stored.error = error
            if logs is not None:
                stored.logs = logs
            stored.completed_at = datetime.now()
            return stored

    async def list_all(self) -> List[StoredRun]:
        """List all runs."""
        async with self._lock:
            return list(self._runs.values())

    async def list_by_workflow(self, workflow_id: str) -> List[StoredRun]:
        """List all runs for a specific workflow."""
        async with self._lock:
            return [r for r in self._runs.values() if r.workflow_id == workflow_id]

    def __len__(self) -> int:
        return len(self._runs)
