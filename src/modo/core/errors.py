"""
Typed failures surfaced by the orchestrator.

Every error a caller can see derives from :class:`ModoError`.  Besides the technical message, each
class carries a short user-facing message, a recovery hint and whether retrying makes sense, so
the presentation layer can map failures without inspecting strings.
"""

from typing import ClassVar


class ModoError(RuntimeError):
    """Base class for orchestrator failures."""

    user_message: ClassVar[str] = "An unknown error occurred, please try again."
    recovery_hint: ClassVar[str] = "If the problem persists, please contact customer service."
    recoverable: ClassVar[bool] = True


# ---------------------------------------------------------------------------
# Function-call errors
# ---------------------------------------------------------------------------
class HandlerNotFound(ModoError):
    """Raised when no handler is registered for a tool name."""

    user_message = "Unknown operation requested."
    recovery_hint = "Please try again later."
    recoverable = False

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Handler not found for function: {name}")


class InvalidArguments(ModoError):
    """Raised when a handler cannot parse the arguments the backend produced."""

    user_message = "Sorry, there was an error executing the operation."
    recovery_hint = "Please try again."

    def __init__(self, details: str, name: str | None = None) -> None:
        self.name = name
        self.details = details
        super().__init__(f"Invalid function arguments: {details}")


class ExecutionFailed(ModoError):
    """Raised when a handler fails while running."""

    user_message = "Sorry, there was an error executing the operation."
    recovery_hint = "Please check your network connection or try again later."

    def __init__(self, name: str, details: str) -> None:
        self.name = name
        self.details = details
        super().__init__(f"Function execution failed: {name}: {details}")


class ChainDepthExceeded(ModoError):
    """Raised when the backend keeps chaining tool calls past the configured limit."""

    user_message = "Sorry, I couldn't finish that request."
    recovery_hint = "Please try a simpler request."
    recoverable = False

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Tool-call chain exceeded {limit} calls")


class CoordinatorBusy(ModoError):
    """Raised when an exchange is started while another is still in flight."""

    user_message = "Still working on your previous message."
    recovery_hint = "Please wait for the current reply."


# ---------------------------------------------------------------------------
# Backend reply errors
# ---------------------------------------------------------------------------
class InvalidResponse(ModoError):
    """The AI backend returned something that is not a usable reply."""

    user_message = "Sorry, I couldn't generate a response."

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Server returned an invalid response: {reason}")


class EmptyResponse(ModoError):
    """The AI backend replied with neither text nor a tool invocation."""

    user_message = "Sorry, I couldn't generate a response."
    recovery_hint = "Please try again."

    def __init__(self) -> None:
        super().__init__("Server returned an empty response")


# ---------------------------------------------------------------------------
# Backend transport errors
# ---------------------------------------------------------------------------
class BackendError(ModoError):
    """Generic failure reported by the AI backend service."""

    user_message = "Service connection failed, please try again."

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class BackendConnectionError(BackendError):
    """The AI backend could not be reached."""

    user_message = "Network connection error, please check your network settings."
    recovery_hint = "Please check your network connection and try again."


class BackendTimeout(BackendError):
    """The AI backend did not answer in time."""

    user_message = "Request timeout, please try again."
    recovery_hint = "Network is slow, please try again later."


class AuthenticationFailed(BackendError):
    """The AI backend rejected our credentials."""

    user_message = "Authentication failed, please login again."
    recovery_hint = "Please login again."
    recoverable = False


class RateLimitExceeded(BackendError):
    """The AI backend throttled the request."""

    user_message = "Request too frequent, please try again later."
    recovery_hint = "Please try again later."


# ---------------------------------------------------------------------------
# Legacy plan decoding errors
# ---------------------------------------------------------------------------
class DecodeError(ModoError):
    """Base class for plan decoding failures."""

    user_message = "Had trouble generating that plan. Please try again."
    recovery_hint = "Please try again."


class DecodingFailed(DecodeError):
    """The plan payload is not structurally valid."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to parse plan: {detail}")


class EmptyPlan(DecodeError):
    """The plan payload is valid but contains no exercise or meal."""

    def __init__(self, kind: str = "plan") -> None:
        self.kind = kind
        super().__init__(f"AI returned incomplete {kind}.")


class TruncatedResponse(DecodeError):
    """The plan payload was cut off before its closing brace."""

    user_message = "The plan was too large and got cut off. Please try asking for fewer days."

    def __init__(self, length: int) -> None:
        self.length = length
        super().__init__(f"Plan payload appears truncated after {length} characters")
