"""LLM transport port and the OpenAI-compatible client."""

from __future__ import annotations

from dnd_session.llm.client import LLMClient, OpenAIChatClient, ToolChoice


__all__ = ["LLMClient", "OpenAIChatClient", "ToolChoice"]
