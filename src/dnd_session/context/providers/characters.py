"""Character sheets as the narrator sees them."""

from __future__ import annotations

from dnd_session.core.constants import PRIORITY_CHARACTER_PROFILES
from dnd_session.context.providers.base import ContextBlock
from dnd_session.engine.rules_engine import CharacterRepository
from dnd_session.models.game_state import CharacterState, CharacterTemplate, GameState


class CharacterProfileProvider:
    """Renders every character with a known template as ``[CHARACTERS]``.

    The ID line comes first so the narrator uses it in tool calls.
    Characters whose template is missing are skipped here; the rules
    engine reports them when a check is attempted.
    """

    name = "character-profiles"
    priority = PRIORITY_CHARACTER_PROFILES

    def __init__(self, repository: CharacterRepository) -> None:
        self._repository = repository

    def provide(self, state: GameState) -> ContextBlock | None:
        profiles = []
        for character_state in state.character_states.values():
            template = self._repository.find_by_id(character_state.character_id)
            if template is not None:
                profiles.append(format_profile(template, character_state))

        if not profiles:
            return None

        body = "\n\n".join(profiles)
        return ContextBlock(
            name=self.name,
            content=f"[CHARACTERS]\n{body}\n[/CHARACTERS]",
            priority=self.priority,
            metadata={"character_count": len(profiles)},
        )


def format_profile(template: CharacterTemplate, state: CharacterState) -> str:
    """Format one character profile."""
    max_hp = template.max_hp or 1
    hp_percent = round(state.current_hp / max_hp * 100)
    parts = [
        f"ID: {state.character_id}",
        f"**{template.name}**",
        f"Race: {template.race} | Class: {template.character_class} | Level: {template.level}",
        f"HP: {state.current_hp}/{max_hp} ({hp_percent}%) | AC: {template.armor_class}",
    ]

    if template.ability_scores:
        abilities = " ".join(f"{k[:3].upper()}:{v}" for k, v in template.ability_scores.items())
        parts.append(f"Abilities: {abilities}")
    if state.conditions:
        parts.append(f"Conditions: {', '.join(state.conditions)}")
    if state.current_thoughts:
        parts.append(f"Current thoughts: {state.current_thoughts}")
    if template.personality_traits:
        parts.append(f"Personality: {template.personality_traits}")

    return "\n".join(parts)


__all__ = ["CharacterProfileProvider", "format_profile"]
