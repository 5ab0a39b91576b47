"""
AI backend interface for Modo.

This module is the only place that *directly* calls an LLM.  Everything else (turn router, tools,
plans) stays model-agnostic and talks in :class:`BackendRequest` / :class:`BackendReply`.

We support two back-ends out of the box:

1. **OpenAI** chat completions with ``tools`` / ``tool_choice``.
2. **Anthropic** messages with ``tool_use`` / ``tool_result`` blocks.

Additional providers can be added by subclassing :class:`AIBackend` and registering via
:func:`register_backend`.  Provider failures are translated to the typed errors in
:mod:`modo.core.errors`; nothing here retries.
"""

import json
import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Tuple,
    Type,
)

from modo.config import settings
from modo.core.errors import (
    AuthenticationFailed,
    BackendConnectionError,
    BackendError,
    BackendTimeout,
    InvalidResponse,
    RateLimitExceeded,
)
from modo.core.schema import (
    BackendReply,
    BackendRequest,
    Candidate,
    Role,
    ToolInvocation,
    Turn,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_BACKEND_REGISTRY: dict[str, Type["AIBackend"]] = {}


def register_backend(name: str) -> Callable:
    """Decorator to register a backend class under *name*."""

    def wrapper(cls: Type["AIBackend"]) -> Type["AIBackend"]:
        _BACKEND_REGISTRY[name] = cls
        return cls

    return wrapper


def load_backend(name: str | None = None) -> "AIBackend":
    """
    Factory that returns an instantiated backend.

    Fallback order:
    1. *name* arg
    2. ``settings.BACKEND`` env option
    3. default: ``"openai"``
    """

    target = name or getattr(settings, "BACKEND", "openai")
    cls = _BACKEND_REGISTRY.get(target.lower())
    if cls is None:
        raise ValueError(f"Backend '{target}' is not registered.")
    return cls()


def _translate_sdk_error(sdk: Any, exc: Exception) -> BackendError:
    """Map an OpenAI/Anthropic SDK exception (both share the hierarchy) to a typed error."""
    status = getattr(exc, "status_code", None)
    # APITimeoutError subclasses APIConnectionError, so test it first
    if isinstance(exc, sdk.APITimeoutError):
        return BackendTimeout(str(exc))
    if isinstance(exc, sdk.APIConnectionError):
        return BackendConnectionError(str(exc))
    if isinstance(exc, (sdk.AuthenticationError, sdk.PermissionDeniedError)):
        return AuthenticationFailed(str(exc), status)
    if isinstance(exc, sdk.RateLimitError):
        return RateLimitExceeded(str(exc), status)
    return BackendError(str(exc), status)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class AIBackend(ABC):
    """Abstract backend that turns a conversation into one completion."""

    @abstractmethod
    async def complete(self, request: BackendRequest) -> BackendReply:
        """Return the backend's reply to *request*."""


# ---------------------------------------------------------------------------
# Concrete backends
# ---------------------------------------------------------------------------
@register_backend("openai")
class OpenAIBackend(AIBackend):
    """OpenAI chat-completions backend using the tools API."""

    def __init__(self, client: Any = None, model: str | None = None) -> None:
        self._client = client
        self.model = model or settings.OPENAI_MODEL

    def _get_client(self) -> Any:
        if self._client is None:
            import openai  # pylint: disable=import-outside-toplevel

            self._client = openai.AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY, timeout=settings.BACKEND_TIMEOUT, max_retries=0
            )
        return self._client

    @staticmethod
    def to_messages(turns: List[Turn]) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = []
        for turn in turns:
            if turn.role is Role.TOOL_RESULT:
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": turn.tool_call_id or turn.name,
                        "content": turn.text,
                    }
                )
            elif turn.tool_call is not None:
                call = turn.tool_call
                messages.append(
                    {
                        "role": "assistant",
                        "content": None,
                        "tool_calls": [
                            {
                                "id": call.call_id or turn.tool_call_id,
                                "type": "function",
                                "function": {"name": call.name, "arguments": call.arguments},
                            }
                        ],
                    }
                )
            else:
                messages.append({"role": turn.role.value, "content": turn.content})
        return messages

    @staticmethod
    def tool_choice(choice: str) -> Any:
        if choice in {"auto", "none", "required"}:
            return choice
        return {"type": "function", "function": {"name": choice}}

    @staticmethod
    def parse_completion(completion: Any) -> BackendReply:
        candidates = []
        for choice in completion.choices or []:
            message = choice.message
            call = None
            if message.tool_calls:
                first = message.tool_calls[0]
                call = ToolInvocation(
                    name=first.function.name,
                    arguments=first.function.arguments or "{}",
                    call_id=first.id,
                )
            elif getattr(message, "function_call", None):
                # Legacy function_call format
                call = ToolInvocation(
                    name=message.function_call.name,
                    arguments=message.function_call.arguments or "{}",
                )
            candidates.append(
                Candidate(content=message.content, tool_call=call, finish_reason=choice.finish_reason)
            )
        return BackendReply(candidates=candidates, model=getattr(completion, "model", None))

    async def complete(self, request: BackendRequest) -> BackendReply:
        import openai  # pylint: disable=import-outside-toplevel

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": self.to_messages(list(request.turns)),
            "temperature": settings.TEMPERATURE,
            "max_tokens": request.max_tokens or settings.MAX_TOKENS,
        }
        if request.tools:
            kwargs["tools"] = [{"type": "function", "function": t.to_function()} for t in request.tools]
            kwargs["tool_choice"] = self.tool_choice(request.tool_choice)
            if request.parallel_tool_calls is not None:
                kwargs["parallel_tool_calls"] = request.parallel_tool_calls

        logger.debug("Sending %d messages to OpenAI (%s)", len(kwargs["messages"]), self.model)
        try:
            completion = await self._get_client().chat.completions.create(**kwargs)
        except openai.OpenAIError as exc:
            logger.error("OpenAI request error: %s", exc)
            raise _translate_sdk_error(openai, exc) from exc

        try:
            return self.parse_completion(completion)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.error("Failed to parse OpenAI completion: %s", exc)
            raise InvalidResponse(str(exc)) from exc


@register_backend("anthropic")
class AnthropicBackend(AIBackend):
    """Anthropic Claude backend using tool-use content blocks."""

    def __init__(self, client: Any = None, model: str | None = None) -> None:
        self._client = client
        self.model = model or settings.ANTHROPIC_MODEL

    def _get_client(self) -> Any:
        if self._client is None:
            import anthropic  # pylint: disable=import-outside-toplevel

            self._client = anthropic.AsyncAnthropic(
                api_key=settings.ANTHROPIC_API_KEY, timeout=settings.BACKEND_TIMEOUT, max_retries=0
            )
        return self._client

    @staticmethod
    def to_messages(turns: List[Turn]) -> Tuple[str, List[Dict[str, Any]]]:
        """Split *turns* into Anthropic's ``system`` string and ``messages`` list."""
        system_parts: List[str] = []
        messages: List[Dict[str, Any]] = []
        for turn in turns:
            if turn.role is Role.SYSTEM:
                system_parts.append(turn.text)
            elif turn.role is Role.TOOL_RESULT:
                messages.append(
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "tool_result",
                                "tool_use_id": turn.tool_call_id or turn.name,
                                "content": turn.text,
                            }
                        ],
                    }
                )
            elif turn.tool_call is not None:
                call = turn.tool_call
                try:
                    arguments = json.loads(call.arguments or "{}")
                except json.JSONDecodeError:
                    arguments = {"raw": call.arguments}
                messages.append(
                    {
                        "role": "assistant",
                        "content": [
                            {
                                "type": "tool_use",
                                "id": call.call_id or turn.tool_call_id,
                                "name": call.name,
                                "input": arguments,
                            }
                        ],
                    }
                )
            else:
                messages.append({"role": turn.role.value, "content": turn.content})
        return "\n\n".join(system_parts), messages

    @staticmethod
    def tool_choice(choice: str) -> Dict[str, Any]:
        if choice in {"auto", "none"}:
            return {"type": choice}
        if choice == "required":
            return {"type": "any"}
        return {"type": "tool", "name": choice}

    @staticmethod
    def parse_message(message: Any) -> BackendReply:
        texts: List[str] = []
        call = None
        for block in message.content or []:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use" and call is None:
                call = ToolInvocation(name=block.name, arguments=json.dumps(block.input), call_id=block.id)
        content = "".join(texts) or None
        return BackendReply(
            candidates=[Candidate(content=content, tool_call=call, finish_reason=message.stop_reason)],
            model=getattr(message, "model", None),
        )

    async def complete(self, request: BackendRequest) -> BackendReply:
        import anthropic  # pylint: disable=import-outside-toplevel

        system, messages = self.to_messages(list(request.turns))
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": request.max_tokens or settings.MAX_TOKENS,
            "messages": messages,
            "temperature": min(settings.TEMPERATURE, 1.0),
        }
        if system:
            kwargs["system"] = system
        if request.tools:
            kwargs["tools"] = [
                {"name": t.name, "description": t.description, "input_schema": t.parameters}
                for t in request.tools
            ]
            tool_choice = self.tool_choice(request.tool_choice)
            if request.parallel_tool_calls is False and tool_choice["type"] != "none":
                tool_choice["disable_parallel_tool_use"] = True
            kwargs["tool_choice"] = tool_choice

        logger.debug("Sending %d messages to Anthropic (%s)", len(messages), self.model)
        try:
            message = await self._get_client().messages.create(**kwargs)
        except anthropic.AnthropicError as exc:
            logger.error("Anthropic request error: %s", exc)
            raise _translate_sdk_error(anthropic, exc) from exc

        try:
            return self.parse_message(message)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.error("Failed to parse Anthropic message: %s", exc)
            raise InvalidResponse(str(exc)) from exc
