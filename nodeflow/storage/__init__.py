"""
Storage package - In-memory storage for workflows and runs.
"""

from nodeflow.storage.memory import StoredRun, WorkflowStorage, RunStorage

__all__ = [
    "StoredRun",
    "WorkflowStorage",
    "RunStorage",
]
