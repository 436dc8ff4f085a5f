"""
Error taxonomy for the workflow engine.
"""

from typing import List, Optional


class WorkflowError(Exception):
    """Base class for all engine errors."""


class ValidationError(WorkflowError):
    """
    The graph is malformed (empty, duplicate ids, dangling edge, cycle).
    
    Raised before any node executes; a run that fails validation
    produces no results.
    """
    
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Graph validation failed: " + "; ".join(self.errors))


class HandlerError(WorkflowError):
    """A node's precondition is unmet, or its kind has no handler."""
    
    def __init__(self, message: str, kind: Optional[str] = None):
        self.kind = kind
        super().__init__(message)


class EngineBusyError(WorkflowError):
    """A run was requested while another run is still in flight."""
