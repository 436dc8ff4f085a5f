"""
Node Handler Registry.

Maps a node kind to the function that performs that node's work. A
handler takes ``(input_data, config)`` and returns the node's output; it
may be a plain function or a coroutine function, and signals an unmet
precondition by raising HandlerError.

Real integrations replace the built-in stand-ins by registering a new
function for the same kind; the engine never needs to change.
"""

from typing import Any, Callable, Dict, Iterator, List, Optional
from dataclasses import dataclass
import asyncio
import functools
import inspect
import logging

from nodeflow.engine.errors import HandlerError
from nodeflow.engine.models import kind_key


logger = logging.getLogger(__name__)


HandlerFunc = Callable[[Any, Dict[str, Any]], Any]


@dataclass
class NodeHandler:
    """
    A registered handler.

    Attributes:
        kind: Node kind this handler serves
        func: The callable (sync or async)
        description: Human-readable description
    """
    kind: str
    func: HandlerFunc
    description: str = ""

    @property
    def is_async(self) -> bool:
        """Check if the handler is an async function."""
        return asyncio.iscoroutinefunction(self.func)

    async def __call__(self, input_data: Any, config: Dict[str, Any]) -> Any:
        """
        Invoke the handler.

        Sync handlers run in the default executor so they do not block
        the event loop.
        """
        if self.is_async:
            return await self.func(input_data, config)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None,
            functools.partial(self.func, input_data, config)
        )
        if inspect.isawaitable(result):
            result = await result
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Serialize handler metadata."""
        return {
            "kind": self.kind,
            "description": self.description,
            "async": self.is_async,
        }


class HandlerRegistry:
    """
    Registry of node handlers keyed by node kind.

    Usage:
        registry = HandlerRegistry()

        @registry.register("uppercase")
        def uppercase(input_data, config):
            return {"text": str(input_data).upper()}

        # Later
        handler = registry.resolve("uppercase")
        result = await handler("hello", {})
    """

    def __init__(self):
        self._handlers: Dict[str, NodeHandler] = {}

    def register(self, kind: Any, description: str = "") -> Callable:
        """
        Decorator to register a function as the handler for `kind`.

        Args:
            kind: Node kind (NodeKind member or string)
            description: Handler description (defaults to docstring)

        Returns:
            Decorator function
        """
        def decorator(func: HandlerFunc) -> HandlerFunc:
            self.register_handler(kind, func, description)
            return func

        return decorator

    def register_handler(self, kind: Any, func: HandlerFunc, description: str = "") -> NodeHandler:
        """
        Register (or replace) the handler for a node kind.

        Args:
            kind: Node kind
            func: Handler callable taking (input_data, config)
            description: Handler description

        Returns:
            The registered NodeHandler
        """
        if not callable(func):
            raise ValueError(f"Handler for kind '{kind_key(kind)}' must be callable")

        key = kind_key(kind)
        handler = NodeHandler(
            kind=key,
            func=func,
            description=(description or func.__doc__ or "").strip(),
        )
        if key in self._handlers:
            logger.info(f"Replacing handler for node kind: {key}")
        self._handlers[key] = handler
        logger.debug(f"Registered handler for node kind: {key}")
        return handler

    def get(self, kind: Any) -> Optional[NodeHandler]:
        """Get a handler by kind, or None."""
        return self._handlers.get(kind_key(kind))

    def resolve(self, kind: Any) -> NodeHandler:
        """
        Get the handler for a kind.

        Raises:
            HandlerError: If no handler is registered for the kind
        """
        handler = self.get(kind)
        if handler is None:
            raise HandlerError(f"Unknown node type: {kind_key(kind)}", kind=kind_key(kind))
        return handler

    def remove(self, kind: Any) -> bool:
        """Remove a handler from the registry."""
        key = kind_key(kind)
        if key in self._handlers:
            del self._handlers[key]
            return True
        return False

    def list_handlers(self) -> List[Dict[str, Any]]:
        """List all registered handlers with their metadata."""
        return [handler.to_dict() for handler in self._handlers.values()]

    def has(self, kind: Any) -> bool:
        """Check if a handler is registered for the kind."""
        return kind_key(kind) in self._handlers

    def __contains__(self, kind: Any) -> bool:
        return self.has(kind)

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[NodeHandler]:
        return iter(self._handlers.values())


def create_default_registry() -> HandlerRegistry:
    """Create a registry holding the seven built-in handlers."""
    from nodeflow.handlers.builtin import BUILTIN_HANDLERS

    registry = HandlerRegistry()
    for kind, func in BUILTIN_HANDLERS.items():
        registry.register_handler(kind, func)
    return registry
