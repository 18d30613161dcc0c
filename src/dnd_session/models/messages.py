"""Chat message types exchanged with the LLM transport.

The shapes mirror the OpenAI chat completions wire format so messages can
be handed to the SDK with ``to_openai()`` and no further translation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from dnd_session.models.enums import MessageRole


class ToolCallFunction(BaseModel):
    """Function name and raw JSON arguments of a tool call."""

    model_config = ConfigDict(frozen=True)

    name: str
    arguments: str = "{}"


class ToolCall(BaseModel):
    """A tool invocation requested by the LLM."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["function"] = "function"
    function: ToolCallFunction


class LLMMessage(BaseModel):
    """One chat message.

    Attributes:
        role: Message role.
        content: Message text (may be empty on tool-call messages).
        timestamp: Set on late system blocks so the narrator can order them.
        tool_calls: Tool calls on assistant messages.
        tool_call_id: Call being answered on tool messages.
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str = ""
    timestamp: datetime | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    def to_openai(self) -> dict[str, Any]:
        """Convert to the dict shape the chat completions API expects.

        Returns:
            Message dict without the local timestamp.
        """
        message: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [tc.model_dump() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            message["tool_call_id"] = self.tool_call_id
        return message


class LLMUsage(BaseModel):
    """Token accounting reported by the endpoint."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class LLMResponse(BaseModel):
    """A chat completion reduced to what the session engine needs."""

    content: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)
    usage: LLMUsage | None = None
    model: str | None = None


__all__ = [
    "ToolCallFunction",
    "ToolCall",
    "LLMMessage",
    "LLMUsage",
    "LLMResponse",
]
