"""
Handlers package - Handler registry and built-in node handlers.
"""

from nodeflow.handlers.registry import HandlerRegistry, NodeHandler, create_default_registry

__all__ = [
    "HandlerRegistry",
    "NodeHandler",
    "create_default_registry",
]
