"""Conversation history of a room."""

from __future__ import annotations

from collections.abc import Iterable

from dnd_session.models.enums import MessageRole
from dnd_session.models.game_state import ConversationTurn
from dnd_session.models.messages import LLMMessage


class ConversationHistory:
    """Completed turns in order, optionally capped.

    Example:
        >>> history = ConversationHistory(max_turns=50)
        >>> history.add(turn)
        >>> history.get_recent(5)
    """

    def __init__(self, *, max_turns: int | None = None) -> None:
        """Initialize an empty history.

        Args:
            max_turns: Oldest turns are dropped beyond this many; None keeps all.
        """
        self._turns: list[ConversationTurn] = []
        self._max_turns = max_turns

    def add(self, turn: ConversationTurn) -> None:
        """Append a completed turn."""
        self._turns.append(turn)
        if self._max_turns is not None and len(self._turns) > self._max_turns:
            del self._turns[: len(self._turns) - self._max_turns]

    def get_recent(self, turns: int) -> list[ConversationTurn]:
        """Return up to ``turns`` most recent turns, oldest first."""
        if turns <= 0:
            return []
        return self._turns[-turns:]

    def to_llm_messages(self) -> list[LLMMessage]:
        """Replay the history as alternating user and assistant messages."""
        messages: list[LLMMessage] = []
        for turn in self._turns:
            if turn.user_inputs:
                content = "\n".join(f"[{a.display_name}] {a.action}" for a in turn.user_inputs)
                messages.append(LLMMessage(role=MessageRole.USER, content=content))
            if turn.assistant_response:
                messages.append(
                    LLMMessage(role=MessageRole.ASSISTANT, content=turn.assistant_response)
                )
        return messages

    def clear(self) -> None:
        """Forget every turn."""
        self._turns.clear()

    def get_all(self) -> tuple[ConversationTurn, ...]:
        """Return every turn, for saving."""
        return tuple(self._turns)

    def set_history(self, turns: Iterable[ConversationTurn]) -> None:
        """Replace the history, for loading."""
        self._turns = list(turns)

    def __len__(self) -> int:
        return len(self._turns)


__all__ = ["ConversationHistory"]
