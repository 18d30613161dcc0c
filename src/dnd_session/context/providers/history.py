"""Recent conversation turns."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from dnd_session.core.constants import HISTORY_TRUNCATION_SUFFIX, PRIORITY_CONVERSATION_HISTORY
from dnd_session.context.providers.base import ContextBlock
from dnd_session.models.game_state import ConversationTurn, GameState


class HistorySource(Protocol):
    """Anything that can hand out the most recent turns."""

    def get_recent(self, turns: int) -> Sequence[ConversationTurn]:
        """Return up to ``turns`` most recent turns, oldest first."""
        ...


def truncate_text(text: str, max_length: int) -> str:
    """Cut ``text`` at the last space or newline before ``max_length``.

    Text that fits is returned unchanged; cut text ends with ``...``.
    """
    if len(text) <= max_length:
        return text
    head = text[:max_length]
    boundary = max(head.rfind(" "), head.rfind("\n"))
    cut = boundary if boundary > 0 else max_length
    return text[:cut] + HISTORY_TRUNCATION_SUFFIX


class ConversationHistoryProvider:
    """Renders the last turns as ``[CONVERSATION_HISTORY]``.

    Each turn shows the players' actions as ``User:`` and the narration as
    ``Assistant:``, with long narrations truncated.
    """

    name = "conversation-history"
    priority = PRIORITY_CONVERSATION_HISTORY

    def __init__(
        self,
        history: HistorySource,
        *,
        max_turns: int = 5,
        truncate_chars: int = 1000,
    ) -> None:
        self._history = history
        self._max_turns = max_turns
        self._truncate_chars = truncate_chars

    def provide(self, state: GameState) -> ContextBlock | None:
        if self._max_turns <= 0:
            return None
        turns = self._history.get_recent(self._max_turns)
        if not turns:
            return None

        parts: list[str] = []
        for turn in turns:
            inputs = "\n".join(f"[{a.display_name}] {a.action}" for a in turn.user_inputs)
            if inputs:
                parts.append(f"User:\n{inputs}")
            if turn.assistant_response:
                response = truncate_text(turn.assistant_response, self._truncate_chars)
                parts.append(f"Assistant:\n{response}")

        body = "\n\n".join(parts)
        return ContextBlock(
            name=self.name,
            content=f"[CONVERSATION_HISTORY]\n{body}\n[/CONVERSATION_HISTORY]",
            priority=self.priority,
            metadata={"turn_count": len(turns), "total_characters": len("".join(parts))},
        )


__all__ = ["HistorySource", "truncate_text", "ConversationHistoryProvider"]
