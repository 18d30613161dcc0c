"""Game modes.

Exploration is the only implemented mode: the narrator resolves a round
of actions, calling tools for mechanics, for at most ``MAX_TOOL_ROUNDS``
LLM rounds.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence

from dnd_session.core.constants import MAX_TOOL_ROUNDS
from dnd_session.core.logging import get_logger
from dnd_session.models.actions import PlayerAction
from dnd_session.models.enums import GameMode, MessageRole
from dnd_session.models.events import NarrativeChunkEvent, SessionEvent, TurnEndEvent
from dnd_session.models.messages import LLMMessage
from dnd_session.session.base import GameModeHandler, SessionContext
from dnd_session.session.tools import EXPLORATION_TOOLS, execute_tool_call


logger = get_logger(__name__)


def format_actions(actions: Sequence[PlayerAction]) -> str:
    """Render actions as one ``[Name] action`` line each."""
    return "\n".join(f"[{a.display_name}] {a.action}" for a in actions)


class ExplorationMode(GameModeHandler):
    """Free exploration with tool-assisted narration.

    Each round the LLM either narrates (ending the turn) or calls tools,
    whose results are fed back for the next round.
    """

    name = GameMode.EXPLORATION

    def __init__(self, *, max_tool_rounds: int = MAX_TOOL_ROUNDS) -> None:
        self._max_tool_rounds = max_tool_rounds

    def process_actions(
        self,
        actions: Sequence[PlayerAction],
        ctx: SessionContext,
    ) -> Iterator[SessionEvent]:
        """Resolve a round of actions.

        Args:
            actions: Actions collected for the round.
            ctx: Context of the running turn.

        Yields:
            Dice rolls, mode and gate changes and the narrative, then
            ``turn_end``.

        Raises:
            CriticalProviderError: If a critical context provider fails.
            AIControlError: If the LLM cannot be reached.
        """
        messages = ctx.builder.build(ctx.game_state)
        messages.append(LLMMessage(role=MessageRole.USER, content=format_actions(actions)))

        narrative = ""
        rounds = 0
        finished = False
        while rounds < self._max_tool_rounds:
            if ctx.cancel_token.cancelled:
                logger.info(
                    "Turn cancelled",
                    room_id=ctx.game_state.room_id,
                    rounds=rounds,
                    reason=ctx.cancel_token.reason,
                )
                break

            response = ctx.llm.chat(messages, tools=EXPLORATION_TOOLS, tool_choice="auto")
            rounds += 1

            if not response.tool_calls:
                narrative = response.content
                if narrative:
                    yield NarrativeChunkEvent(content=narrative)
                finished = True
                break

            messages.append(
                LLMMessage(
                    role=MessageRole.ASSISTANT,
                    content=response.content,
                    tool_calls=response.tool_calls,
                )
            )
            for tool_call in response.tool_calls:
                outcome = execute_tool_call(tool_call, ctx)
                if outcome.event is not None:
                    yield outcome.event
                messages.append(
                    LLMMessage(
                        role=MessageRole.TOOL,
                        content=json.dumps(outcome.result, ensure_ascii=False),
                        tool_call_id=tool_call.id,
                    )
                )

        if not finished and not ctx.cancel_token.cancelled:
            logger.warning(
                "Tool round limit reached without narration",
                room_id=ctx.game_state.room_id,
                max_rounds=self._max_tool_rounds,
            )

        if ctx.world_updater is not None and not ctx.cancel_token.cancelled:
            try:
                ctx.world_updater.update(narrative, actions, ctx.game_state)
            except Exception:
                logger.exception("World update failed", room_id=ctx.game_state.room_id)

        yield TurnEndEvent()


__all__ = ["format_actions", "ExplorationMode"]
