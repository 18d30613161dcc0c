"""World memory and narrative character conditions."""

from __future__ import annotations

from dnd_session.core.constants import PRIORITY_CHARACTER_STATUS, PRIORITY_WORLD_CONTEXT
from dnd_session.context.providers.base import ContextBlock
from dnd_session.models.game_state import GameState


class WorldContextProvider:
    """Renders flags, recent events and world facts as ``[WORLD CONTEXT]``."""

    name = "world-context"
    priority = PRIORITY_WORLD_CONTEXT

    def provide(self, state: GameState) -> ContextBlock | None:
        world = state.world_context
        lines = ["[WORLD CONTEXT]"]

        for key, value in world.flags.items():
            lines.append(f"{key.upper()}: {value}")

        if world.recent_events:
            lines.append("RECENT:")
            lines.extend(f"- {event}" for event in world.recent_events)

        if world.world_facts:
            lines.append("FACTS:")
            lines.extend(f"- {fact}" for fact in world.world_facts)

        if len(lines) == 1:
            return None
        return ContextBlock(name=self.name, content="\n".join(lines), priority=self.priority)


class CharacterStatusProvider:
    """Renders overlay conditions as ``[CHARACTER CONDITIONS]``.

    Each line reads ``character_id: name(effect)[expires], ...``.
    """

    name = "character-status"
    priority = PRIORITY_CHARACTER_STATUS

    def provide(self, state: GameState) -> ContextBlock | None:
        lines = ["[CHARACTER CONDITIONS]"]
        for character_id, overlay in state.character_overlays.items():
            if not overlay.conditions:
                continue
            conditions = ", ".join(
                f"{c.name}{f'({c.mechanical_effect})' if c.mechanical_effect else ''}[{c.expires}]"
                for c in overlay.conditions
            )
            lines.append(f"{character_id}: {conditions}")

        if len(lines) == 1:
            return None
        return ContextBlock(name=self.name, content="\n".join(lines), priority=self.priority)


__all__ = ["WorldContextProvider", "CharacterStatusProvider"]
