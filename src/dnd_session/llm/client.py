"""LLM transport: the chat port and its OpenAI-compatible implementation.

The session engine only depends on ``LLMClient.chat``. ``OpenAIChatClient``
talks to any OpenAI-compatible endpoint (OpenAI, OpenRouter, a local
server) through the openai SDK and retries transient failures with
tenacity.

Example:
    >>> client = OpenAIChatClient(get_settings().ai)
    >>> response = client.chat([LLMMessage(role=MessageRole.USER, content="Hello")])
    >>> response.content
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Literal, Protocol

from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI, RateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from dnd_session.core.config import AIProviderSettings
from dnd_session.core.exceptions import (
    AIConnectionError,
    AIRateLimitError,
    AIResponseError,
    ConfigurationError,
)
from dnd_session.core.logging import get_logger
from dnd_session.models.messages import (
    LLMMessage,
    LLMResponse,
    LLMUsage,
    ToolCall,
    ToolCallFunction,
)


logger = get_logger(__name__)

ToolChoice = Literal["auto", "none", "required"]


class LLMClient(Protocol):
    """Chat completion port used by the modes and the world updater."""

    def chat(
        self,
        messages: Sequence[LLMMessage],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: ToolChoice | None = None,
    ) -> LLMResponse:
        """Send ``messages`` and return the assistant's reply."""
        ...


class OpenAIChatClient:
    """Chat client for OpenAI-compatible endpoints.

    Rate limits and dropped connections are retried with exponential
    backoff; whatever still fails is raised as an AIControlError subclass.
    """

    def __init__(self, settings: AIProviderSettings, *, client: Any = None) -> None:
        """Initialize the client.

        Args:
            settings: Endpoint, model and retry settings.
            client: Pre-built OpenAI client; created lazily when omitted.
        """
        self._settings = settings
        self._client = client

    def _get_client(self) -> Any:
        """Get or create the OpenAI SDK client."""
        if self._client is None:
            if self._settings.api_key is None:
                raise ConfigurationError(
                    "LLM API key not configured",
                    config_key="api_key",
                    details={"env_var": "DND_SESSION_API_KEY"},
                )
            self._client = OpenAI(
                api_key=self._settings.api_key.get_secret_value(),
                base_url=self._settings.base_url,
                timeout=self._settings.timeout_seconds,
                max_retries=0,
            )
        return self._client

    def chat(
        self,
        messages: Sequence[LLMMessage],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: ToolChoice | None = None,
    ) -> LLMResponse:
        """Send a chat completion request.

        Args:
            messages: Conversation so far.
            tools: OpenAI function tool schemas.
            tool_choice: Tool policy; only sent together with ``tools``.

        Returns:
            The assistant content and any tool calls.

        Raises:
            AIRateLimitError: If the endpoint keeps rate limiting.
            AIConnectionError: If the endpoint cannot be reached.
            AIResponseError: If the endpoint rejects the request or replies
                with no choices.
        """
        client = self._get_client()
        model = self._settings.model
        request: dict[str, Any] = {
            "model": model,
            "messages": [m.to_openai() for m in messages],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }
        if tools:
            request["tools"] = tools
            if tool_choice is not None:
                request["tool_choice"] = tool_choice

        @retry(
            retry=retry_if_exception_type((RateLimitError, APIConnectionError)),
            stop=stop_after_attempt(self._settings.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        )
        def _call() -> Any:
            try:
                return client.chat.completions.create(**request)
            except RateLimitError:
                logger.warning("Rate limited, retrying...", model=model)
                raise

        try:
            completion = _call()
        except RateLimitError as exc:
            raise AIRateLimitError(
                f"LLM rate limit persisted after retries: {exc}",
                model=model,
                provider=self._settings.base_url,
            ) from exc
        except APITimeoutError as exc:
            raise AIConnectionError(
                f"LLM request timed out: {exc}",
                model=model,
                provider=self._settings.base_url,
            ) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect to LLM endpoint: {exc}",
                model=model,
                provider=self._settings.base_url,
            ) from exc
        except APIStatusError as exc:
            raise AIResponseError(
                f"LLM API error: {exc}",
                model=model,
                provider=self._settings.base_url,
                details={"status_code": exc.status_code},
            ) from exc

        return _to_response(completion, model=model)


def _to_response(completion: Any, *, model: str) -> LLMResponse:
    """Reduce an SDK completion to an LLMResponse."""
    if not completion.choices:
        raise AIResponseError("LLM returned no choices", model=model)

    message = completion.choices[0].message
    tool_calls = [
        ToolCall(
            id=tc.id,
            function=ToolCallFunction(name=tc.function.name, arguments=tc.function.arguments or "{}"),
        )
        for tc in (message.tool_calls or [])
    ]

    usage = None
    if completion.usage is not None:
        usage = LLMUsage(
            prompt_tokens=completion.usage.prompt_tokens,
            completion_tokens=completion.usage.completion_tokens,
            total_tokens=completion.usage.total_tokens,
        )

    logger.debug(
        "LLM response received",
        model=completion.model or model,
        tool_calls=len(tool_calls),
        content_chars=len(message.content or ""),
    )
    return LLMResponse(
        content=message.content or "",
        tool_calls=tool_calls,
        usage=usage,
        model=completion.model or model,
    )


__all__ = ["ToolChoice", "LLMClient", "OpenAIChatClient"]
