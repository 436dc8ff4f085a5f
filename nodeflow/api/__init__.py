"""
API package - FastAPI routes and schemas.
"""

from nodeflow.api.routes import nodes, runs, websocket, workflows

__all__ = ["nodes", "runs", "websocket", "workflows"]
