"""
Schema definitions for backend <-> coordinator <-> tool messages.

These data models serve as the contract between the AI backend, the turn router, and individual
tool handlers.  We keep them separate from runtime logic so they can be imported anywhere without
side-effects.
"""

import json
from enum import Enum
from typing import (
    Any,
    Dict,
    List,
    Literal,
    Optional,
    Sequence,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)
from pydantic_core import to_jsonable_python


class Role(str, Enum):
    """Author of a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_RESULT = "tool-result"


class ToolInvocation(BaseModel):
    """A named tool call requested by the AI backend."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Registered tool name")
    arguments: str = Field("{}", description="Tool arguments as a JSON string")
    call_id: Optional[str] = Field(None, description="Provider id pairing the call with its result")


class Turn(BaseModel):
    """One immutable message in the conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str | List[Dict[str, Any]] = ""
    name: Optional[str] = None  # Tool name for tool-result turns
    tool_call: Optional[ToolInvocation] = None
    tool_call_id: Optional[str] = None

    @classmethod
    def system(cls, text: str) -> "Turn":
        return cls(role=Role.SYSTEM, content=text)

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(role=Role.USER, content=text)

    @classmethod
    def assistant(cls, text: str) -> "Turn":
        return cls(role=Role.ASSISTANT, content=text)

    @classmethod
    def invocation(cls, call: ToolInvocation) -> "Turn":
        """Assistant turn that stands for a tool call rather than an answer."""
        return cls(role=Role.ASSISTANT, content="", tool_call=call, tool_call_id=call.call_id)

    @classmethod
    def tool_result(cls, name: str, content: str, tool_call_id: str | None = None) -> "Turn":
        return cls(role=Role.TOOL_RESULT, content=content, name=name, tool_call_id=tool_call_id)

    @property
    def text(self) -> str:
        """Plain-text view of the content (structured parts are joined)."""
        if isinstance(self.content, str):
            return self.content
        return "".join(str(part.get("text", "")) for part in self.content)


class ResultPayload(BaseModel):
    """Outcome of a tool handler, published on the notification bus."""

    request_id: str
    success: bool
    data: Any = None
    error: Optional[str] = None

    def to_tool_content(self) -> str:
        """Render the payload as the content of a tool-result turn."""
        if not self.success:
            return json.dumps({"success": False, "error": self.error or "Unknown error"})
        if self.data is None:
            return json.dumps({"success": True})
        return json.dumps(to_jsonable_python(self.data))


class ToolSchema(BaseModel):
    """Tool definition advertised to the AI backend."""

    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})
    strict: Optional[bool] = None

    def to_function(self) -> Dict[str, Any]:
        """OpenAI-style ``function`` object."""
        function: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }
        if self.strict is not None:
            function["strict"] = self.strict
        return function


class BackendRequest(BaseModel):
    """Everything the AI backend needs for one completion."""

    turns: Sequence[Turn]
    tools: List[ToolSchema] = Field(default_factory=list)
    tool_choice: str = "auto"  # "auto", "none" or a tool name to force
    max_tokens: Optional[int] = None
    parallel_tool_calls: Optional[bool] = None


class Candidate(BaseModel):
    """One completion candidate: free text, a tool invocation, or (invalidly) neither."""

    content: Optional[str] = None
    tool_call: Optional[ToolInvocation] = None
    finish_reason: Optional[str] = None


class BackendReply(BaseModel):
    """Completion returned by the AI backend."""

    candidates: List[Candidate] = Field(default_factory=list)
    model: Optional[str] = None


ExchangeKind = Literal["text", "plan"]


class ExchangeResult(BaseModel):
    """Terminal outcome of one conversational exchange."""

    kind: ExchangeKind
    text: str = ""
    plan: Any = None
    turns: List[Turn] = Field(default_factory=list)
