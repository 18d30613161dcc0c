"""Narrator system prompt, loaded from a file with a built-in fallback."""

from __future__ import annotations

from pathlib import Path

from dnd_session.core.constants import PRIORITY_SYSTEM_PROMPT
from dnd_session.core.logging import get_logger
from dnd_session.context.providers.base import ContextBlock
from dnd_session.models.game_state import GameState
from dnd_session.prompts import DM_SYSTEM_PROMPT, FALLBACK_SYSTEM_PROMPT


logger = get_logger(__name__)


class SystemPromptProvider:
    """Provides the DM system prompt.

    With no ``prompt_path`` the bundled prompt is used. A configured file
    that cannot be read falls back to a short generic prompt instead of
    failing the build.
    """

    name = "system-prompt"
    priority = PRIORITY_SYSTEM_PROMPT

    def __init__(self, prompt_path: Path | None = None) -> None:
        self._prompt_path = prompt_path

    def provide(self, state: GameState) -> ContextBlock:
        return ContextBlock(name=self.name, content=self._load_prompt(), priority=self.priority)

    def _load_prompt(self) -> str:
        if self._prompt_path is None:
            return DM_SYSTEM_PROMPT
        try:
            return self._prompt_path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to load system prompt", path=str(self._prompt_path), error=str(exc))
            return FALLBACK_SYSTEM_PROMPT


__all__ = ["SystemPromptProvider"]
