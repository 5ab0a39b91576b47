"""Dispatches tool calls to handlers registered in a :class:`FunctionRegistry` and wraps errors."""

import logging
from typing import Any

from modo.core.errors import (
    ExecutionFailed,
    HandlerNotFound,
    InvalidArguments,
    ModoError,
)
from modo.tools import FunctionRegistry

logger = logging.getLogger(__name__)


class FunctionCallDispatcher:
    """Looks a tool up by name and invokes its handler."""

    def __init__(self, registry: FunctionRegistry) -> None:
        self._registry = registry

    async def dispatch(self, name: str, arguments: str, request_id: str) -> Any:
        """
        Look up *name* in the registry and invoke it with *arguments*.

        Parameters
        ----------
        name:
            The registered tool name.
        arguments:
            JSON argument string produced by the AI backend, passed verbatim to the handler.
        request_id:
            Correlation token the handler attaches to any result it publishes.

        Returns
        -------
        Any
            Whatever the handler returns.  Notification handlers return once their work has
            started; their result arrives on the bus.

        Raises
        ------
        HandlerNotFound
            If no handler is registered under *name*.
        InvalidArguments
            If the handler could not parse *arguments*.
        ExecutionFailed
            If the handler raised any other untyped exception.  Typed :class:`ModoError`
            subclasses raised by the handler propagate unchanged.
        """
        handler = self._registry.resolve(name)
        if handler is None:
            raise HandlerNotFound(name)

        logger.info("Handling function call: %s (requestId: %s)", name, request_id)
        try:
            result = await handler.execute(arguments or "{}", request_id)
        except InvalidArguments as exc:
            logger.warning("Invalid arguments for '%s': %s", name, exc.details)
            if exc.name is None:
                exc.name = name
            raise
        except ModoError as exc:
            # Already typed (ExecutionFailed, plan decoding errors, ...)
            logger.error("Function call failed: %s - %s", name, exc)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unhandled error in handler '%s'", name)
            raise ExecutionFailed(name, str(exc)) from exc

        logger.info("Function call completed: %s", name)
        return result
