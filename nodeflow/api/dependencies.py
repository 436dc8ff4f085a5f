"""
Shared route dependencies.
"""

from fastapi import Request

from nodeflow.services import WorkflowService


def get_service(request: Request) -> WorkflowService:
    """The WorkflowService of the running application."""
    return request.app.state.service
