"""
Tool registry for Modo.

This module provides the handler interface every AI-callable tool implements and a registry to
look handlers up by name.  The registry is a flat table: new tools are added by registering a
handler, never by branching in the turn router.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    ClassVar,
    Dict,
    Iterable,
    List,
    Mapping,
    Set,
)

from modo.core.schema import ToolSchema

logger = logging.getLogger(__name__)


class ToolHandler(ABC):
    """
    Implementation behind one tool name.

    Handlers come in two flavours:

    * notification handlers (``terminal = False``) start their work and later publish a
      :class:`~modo.core.schema.ResultPayload` on the notification bus;
    * terminal handlers (``terminal = True``) return their result directly and end the exchange
      without another AI round-trip (the plan-generation tools).
    """

    name: ClassVar[str]
    description: ClassVar[str] = ""
    parameters: ClassVar[Mapping[str, Any]] = {"type": "object", "properties": {}}
    strict: ClassVar[bool | None] = None
    terminal: ClassVar[bool] = False

    @abstractmethod
    async def execute(self, arguments: str, request_id: str) -> Any:
        """Run the tool with its JSON *arguments*; *request_id* tags any published result."""

    def schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description=self.description,
            parameters=dict(self.parameters),
            strict=self.strict,
        )


class FunctionRegistry:
    """
    Maps tool names to handler instances.

    At most one handler is kept per name; registering a name again replaces the previous handler
    without raising.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, ToolHandler] = {}

    def register(self, name: str, handler: ToolHandler) -> None:
        """
        Register *handler* under *name*.

        Parameters
        ----------
        name: str
            The tool name the AI backend will use.
        handler: ToolHandler
            The implementation.  Any handler previously registered under *name* is replaced.
        """
        if name in self._handlers:
            logger.debug("Replacing handler for '%s'", name)
        self._handlers[name] = handler
        logger.info("Registered handler for: %s", name)

    def register_many(self, handlers: Iterable[ToolHandler]) -> None:
        """Register each handler under its own ``name``."""
        for handler in handlers:
            self.register(handler.name, handler)

    def has(self, name: str) -> bool:
        return name in self._handlers

    def resolve(self, name: str) -> ToolHandler | None:
        """Return the handler for *name*, or *None* if nothing is registered."""
        return self._handlers.get(name)

    def names(self) -> Set[str]:
        return set(self._handlers)

    def schemas(self) -> List[ToolSchema]:
        """Tool schemas of every registered handler, sorted by name."""
        return [self._handlers[name].schema() for name in sorted(self._handlers)]

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
