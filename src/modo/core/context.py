"""Per-request ambient values (current user) shared with tool handlers."""

from contextvars import ContextVar

current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)
"""Id of the user the running exchange belongs to; copied into tasks spawned from it."""
