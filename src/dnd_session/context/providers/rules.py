"""Rules reminders for combat and active conditions."""

from __future__ import annotations

from dnd_session.core.constants import PRIORITY_GAME_RULES
from dnd_session.context.providers.base import ContextBlock
from dnd_session.engine.rules import COMBAT_RULES, CONDITION_DESCRIPTIONS
from dnd_session.models.game_state import GameState


class GameRulesProvider:
    """Renders ``[GAME_RULES]`` when combat is on or someone has a condition."""

    name = "game-rules"
    priority = PRIORITY_GAME_RULES

    def provide(self, state: GameState) -> ContextBlock | None:
        in_combat = state.in_combat
        afflicted = {
            instance_id: character_state.conditions
            for instance_id, character_state in state.character_states.items()
            if character_state.conditions
        }
        if not in_combat and not afflicted:
            return None

        rules: list[str] = []
        if in_combat:
            rules.append("MODE: COMBAT")
            rules.extend(COMBAT_RULES)

        if afflicted:
            rules.append("\nACTIVE CONDITIONS:")
            for instance_id, conditions in afflicted.items():
                name = state.character_states[instance_id].character_id
                listed = "\n  ".join(
                    f"- {c}: {CONDITION_DESCRIPTIONS[c]}" if c in CONDITION_DESCRIPTIONS else f"- {c}"
                    for c in conditions
                )
                rules.append(f"{name}:\n  {listed}")

        body = "\n".join(rules)
        return ContextBlock(
            name=self.name,
            content=f"[GAME_RULES]\n{body}\n[/GAME_RULES]",
            priority=self.priority,
            metadata={"in_combat": in_combat, "has_conditions": bool(afflicted)},
        )


__all__ = ["GameRulesProvider"]
