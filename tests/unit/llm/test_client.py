"""Tests for the OpenAI-compatible chat client."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from dnd_session.core.config import AIProviderSettings
from dnd_session.core.exceptions import (
    AIConnectionError,
    AIResponseError,
    ConfigurationError,
)
from dnd_session.llm.client import OpenAIChatClient
from dnd_session.models.enums import MessageRole
from dnd_session.models.messages import LLMMessage, ToolCall, ToolCallFunction


_REQUEST = httpx.Request("POST", "https://llm.example.test/v1/chat/completions")


def _completion(
    content: str | None = "The door creaks open.",
    tool_calls: list[Any] | None = None,
    *,
    usage: Any = None,
) -> SimpleNamespace:
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage, model="test-model")


def _sdk_tool_call(call_id: str, name: str, arguments: str | None) -> SimpleNamespace:
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


@pytest.fixture
def settings() -> AIProviderSettings:
    """Settings with a single attempt so failures surface immediately."""
    return AIProviderSettings(_env_file=None, api_key="sk-test", model="test-model", max_retries=1)


@pytest.fixture
def sdk() -> MagicMock:
    """Stand-in for the OpenAI SDK client."""
    return MagicMock()


class TestChat:
    """Tests for OpenAIChatClient.chat."""

    def test_plain_reply(self, settings: AIProviderSettings, sdk: MagicMock) -> None:
        """Test content, usage and model are carried over."""
        sdk.chat.completions.create.return_value = _completion(
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=5, total_tokens=17)
        )
        client = OpenAIChatClient(settings, client=sdk)

        response = client.chat([LLMMessage(role=MessageRole.USER, content="Open the door")])

        assert response.content == "The door creaks open."
        assert response.tool_calls == []
        assert response.usage is not None
        assert response.usage.total_tokens == 17
        assert response.model == "test-model"

    def test_request_shape(self, settings: AIProviderSettings, sdk: MagicMock) -> None:
        """Test messages are sent in wire format with the tool policy."""
        sdk.chat.completions.create.return_value = _completion()
        client = OpenAIChatClient(settings, client=sdk)
        tools = [{"type": "function", "function": {"name": "start_combat"}}]
        call = ToolCall(id="call_1", function=ToolCallFunction(name="start_combat"))

        client.chat(
            [
                LLMMessage(role=MessageRole.SYSTEM, content="You are the DM"),
                LLMMessage(role=MessageRole.ASSISTANT, tool_calls=[call]),
                LLMMessage(role=MessageRole.TOOL, content="{}", tool_call_id="call_1"),
            ],
            tools=tools,
            tool_choice="auto",
        )

        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["tools"] == tools
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["messages"][0] == {"role": "system", "content": "You are the DM"}
        assert kwargs["messages"][1]["tool_calls"][0]["function"]["name"] == "start_combat"
        assert kwargs["messages"][2]["tool_call_id"] == "call_1"

    def test_tool_choice_needs_tools(self, settings: AIProviderSettings, sdk: MagicMock) -> None:
        """Test tool_choice is dropped when no tools are offered."""
        sdk.chat.completions.create.return_value = _completion()
        client = OpenAIChatClient(settings, client=sdk)

        client.chat([LLMMessage(role=MessageRole.USER, content="hi")], tool_choice="auto")

        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert "tools" not in kwargs
        assert "tool_choice" not in kwargs

    def test_tool_calls_parsed(self, settings: AIProviderSettings, sdk: MagicMock) -> None:
        """Test SDK tool calls become ToolCall models."""
        sdk.chat.completions.create.return_value = _completion(
            content=None,
            tool_calls=[
                _sdk_tool_call("call_9", "request_ability_check", '{"ability": "strength"}'),
                _sdk_tool_call("call_10", "start_combat", None),
            ],
        )
        client = OpenAIChatClient(settings, client=sdk)

        response = client.chat([LLMMessage(role=MessageRole.USER, content="attack")])

        assert response.content == ""
        assert [tc.id for tc in response.tool_calls] == ["call_9", "call_10"]
        assert response.tool_calls[0].function.arguments == '{"ability": "strength"}'
        assert response.tool_calls[1].function.arguments == "{}"

    def test_no_choices(self, settings: AIProviderSettings, sdk: MagicMock) -> None:
        """Test an empty choice list is a response error."""
        sdk.chat.completions.create.return_value = SimpleNamespace(choices=[], usage=None, model=None)
        client = OpenAIChatClient(settings, client=sdk)

        with pytest.raises(AIResponseError, match="no choices"):
            client.chat([LLMMessage(role=MessageRole.USER, content="hi")])


class TestErrors:
    """Tests for SDK error translation."""

    def test_missing_api_key(self) -> None:
        """Test building the SDK client without a key fails."""
        client = OpenAIChatClient(AIProviderSettings(_env_file=None, api_key=None))

        with pytest.raises(ConfigurationError) as exc_info:
            client.chat([LLMMessage(role=MessageRole.USER, content="hi")])

        assert exc_info.value.details["config_key"] == "api_key"

    def test_connection_error(self, settings: AIProviderSettings, sdk: MagicMock) -> None:
        """Test connection failures become AIConnectionError."""
        sdk.chat.completions.create.side_effect = openai.APIConnectionError(request=_REQUEST)
        client = OpenAIChatClient(settings, client=sdk)

        with pytest.raises(AIConnectionError) as exc_info:
            client.chat([LLMMessage(role=MessageRole.USER, content="hi")])

        assert exc_info.value.details["model"] == "test-model"

    def test_status_error(self, settings: AIProviderSettings, sdk: MagicMock) -> None:
        """Test rejected requests become AIResponseError with the status."""
        response = httpx.Response(400, request=_REQUEST)
        sdk.chat.completions.create.side_effect = openai.BadRequestError(
            "bad request", response=response, body=None
        )
        client = OpenAIChatClient(settings, client=sdk)

        with pytest.raises(AIResponseError) as exc_info:
            client.chat([LLMMessage(role=MessageRole.USER, content="hi")])

        assert exc_info.value.details["status_code"] == 400

    def test_connection_error_retried(
        self,
        sdk: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a dropped connection is retried before succeeding."""
        monkeypatch.setattr("time.sleep", lambda _seconds: None)
        sdk.chat.completions.create.side_effect = [
            openai.APIConnectionError(request=_REQUEST),
            _completion(),
        ]
        client = OpenAIChatClient(
            AIProviderSettings(_env_file=None, api_key="sk-test", max_retries=3),
            client=sdk,
        )

        response = client.chat([LLMMessage(role=MessageRole.USER, content="hi")])

        assert response.content == "The door creaks open."
        assert sdk.chat.completions.create.call_count == 2
