"""
Pydantic models for Modo API requests and responses.
This module defines the request and response schemas used by the Modo API.
"""

from typing import (
    Any,
    Dict,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class SessionResponse(BaseModel):
    """Response with session information."""

    session_id: str


class ChatRequest(BaseModel):
    """Incoming user message."""

    message: str = Field(..., min_length=1, description="User message for the coach")
    session_id: Optional[str] = Field(None, description="Session ID for conversation context")
    user_id: Optional[str] = Field(None, description="Owner of the tasks the coach may touch")


class ChatResponse(BaseModel):
    """API response returned to the caller."""

    reply: str
    message_type: str = "text"  # text, workout_plan, nutrition_plan, multi_day_plan, error
    plan: Dict[str, Any] | None = None
    session_id: str
    error: Optional[str] = None  # Recovery hint when message_type is "error"
    recoverable: Optional[bool] = None
