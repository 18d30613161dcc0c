"""Post-turn world memory maintenance.

After each turn the narration is shown to the LLM once more, which
replies with a JSON patch of what changed in the world: new events,
lasting facts, flags and per-character conditions. The patch is applied
to GameState in place.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from string import Template
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from dnd_session.core.config import WorldContextSettings
from dnd_session.core.logging import get_logger
from dnd_session.llm.client import LLMClient
from dnd_session.models.actions import PlayerAction
from dnd_session.models.enums import MessageRole
from dnd_session.models.game_state import (
    CharacterOverlay,
    GameState,
    OverlayCondition,
)
from dnd_session.models.messages import LLMMessage
from dnd_session.prompts import WORLD_UPDATE_PROMPT


logger = get_logger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_BARE_JSON = re.compile(r"\{.*\}", re.DOTALL)


# =============================================================================
# Patch Models
# =============================================================================


class WorldMemoryPatch(BaseModel):
    """Additions to the rolling world memory."""

    recent_events: list[str] = Field(default_factory=list)
    world_facts: list[str] = Field(default_factory=list)
    flags: dict[str, str] = Field(default_factory=dict)


class NewCondition(BaseModel):
    """A condition to attach; it gets a fresh id when applied."""

    name: str
    source: str = ""
    category: str = "other"
    expires: str = "scene"
    mechanical_effect: str | None = None


class ConditionPatch(BaseModel):
    """Conditions added to and removed from one character."""

    character_id: str
    add: list[NewCondition] = Field(default_factory=list)
    remove: list[str] = Field(default_factory=list)


class WorldContextPatch(BaseModel):
    """Everything the updater may change after a turn."""

    world_memory: WorldMemoryPatch = Field(default_factory=WorldMemoryPatch)
    character_conditions: list[ConditionPatch] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether applying the patch would change nothing."""
        memory = self.world_memory
        return not (
            memory.recent_events
            or memory.world_facts
            or memory.flags
            or self.character_conditions
        )


def extract_json(text: str) -> dict[str, Any] | None:
    """Pull a JSON object out of an LLM reply.

    A fenced ```json block wins; otherwise the outermost ``{...}`` span is
    tried. Returns None when nothing parses to an object.
    """
    fenced = _FENCED_JSON.search(text)
    if fenced is not None:
        raw = fenced.group(1)
    else:
        bare = _BARE_JSON.search(text)
        if bare is None:
            return None
        raw = bare.group(0)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def parse_patch(text: str) -> WorldContextPatch:
    """Parse an LLM reply into a patch; anything unusable is an empty patch."""
    data = extract_json(text)
    if data is None:
        logger.warning("World update reply held no JSON object", preview=text[:100])
        return WorldContextPatch()
    try:
        return WorldContextPatch.model_validate(data)
    except PydanticValidationError as exc:
        logger.warning("World update patch failed validation", errors=exc.error_count())
        return WorldContextPatch()


# =============================================================================
# Updater
# =============================================================================


class WorldContextUpdater:
    """Keeps GameState's world memory and overlays current after each turn.

    Example:
        >>> updater = WorldContextUpdater(llm, settings.world)
        >>> updater.update(narrative, actions, game_state)
    """

    def __init__(self, llm: LLMClient, settings: WorldContextSettings | None = None) -> None:
        """Initialize the updater.

        Args:
            llm: Chat client asked for the patch.
            settings: Memory bounds; defaults apply when omitted.
        """
        self._llm = llm
        self._settings = settings or WorldContextSettings()

    def update(
        self,
        narrative: str,
        actions: Sequence[PlayerAction],
        game_state: GameState,
    ) -> WorldContextPatch:
        """Ask for a patch describing the turn and apply it.

        Failures are logged and leave the state unchanged.

        Args:
            narrative: Narration produced for the turn.
            actions: Actions resolved in the turn.
            game_state: State to update in place.

        Returns:
            The applied patch (empty on failure).
        """
        try:
            prompt = self._render_prompt(narrative, actions, game_state)
            response = self._llm.chat([LLMMessage(role=MessageRole.USER, content=prompt)])
            patch = parse_patch(response.content)
            self.apply(patch, game_state)
        except Exception:
            logger.exception("World context update failed", room_id=game_state.room_id)
            return WorldContextPatch()

        logger.info(
            "World context updated",
            room_id=game_state.room_id,
            events=len(patch.world_memory.recent_events),
            facts=len(patch.world_memory.world_facts),
            characters=len(patch.character_conditions),
        )
        return patch

    def _render_prompt(
        self,
        narrative: str,
        actions: Sequence[PlayerAction],
        game_state: GameState,
    ) -> str:
        current = game_state.world_context.model_dump()
        current["character_conditions"] = {
            character_id: [c.name for c in overlay.conditions]
            for character_id, overlay in game_state.character_overlays.items()
        }
        action_lines = "\n".join(
            f"[{a.display_name}] ({a.character_id or 'no character'}) {a.action}" for a in actions
        )
        return Template(WORLD_UPDATE_PROMPT).safe_substitute(
            current_memory=json.dumps(current, ensure_ascii=False, indent=2),
            actions=action_lines or "(none)",
            narrative=narrative or "(none)",
        )

    def apply(self, patch: WorldContextPatch, game_state: GameState) -> None:
        """Apply a patch to ``game_state`` and stamp ``last_updated``.

        Recent events and world facts are bounded; the oldest entries are
        dropped first. Flags are merged. Conditions are removed by id or
        name before new ones are added.
        """
        world = game_state.world_context
        memory = patch.world_memory

        if memory.recent_events:
            world.recent_events = _bounded(
                world.recent_events + memory.recent_events,
                self._settings.max_recent_events,
            )
        if memory.world_facts:
            new_facts = [f for f in memory.world_facts if f not in world.world_facts]
            world.world_facts = _bounded(
                world.world_facts + new_facts,
                self._settings.max_world_facts,
            )
        world.flags.update(memory.flags)

        for change in patch.character_conditions:
            overlay = game_state.character_overlays.setdefault(
                change.character_id,
                CharacterOverlay(character_id=change.character_id),
            )
            if change.remove:
                removals = set(change.remove)
                overlay.conditions = [
                    c for c in overlay.conditions if c.id not in removals and c.name not in removals
                ]
            for new in change.add:
                overlay.conditions.append(_to_overlay_condition(new))

        game_state.touch()


def _bounded(items: list[str], limit: int) -> list[str]:
    return items[-limit:] if len(items) > limit else items


_CATEGORIES = {"status", "equipment", "terrain", "magic", "other"}
_EXPIRIES = {"turn", "scene", "session", "permanent"}


def _to_overlay_condition(new: NewCondition) -> OverlayCondition:
    # Unknown categories or expiries from the LLM fall back to the defaults
    return OverlayCondition(
        name=new.name,
        source=new.source,
        category=new.category if new.category in _CATEGORIES else "other",
        expires=new.expires if new.expires in _EXPIRIES else "scene",
        mechanical_effect=new.mechanical_effect,
    )


__all__ = [
    "WorldMemoryPatch",
    "NewCondition",
    "ConditionPatch",
    "WorldContextPatch",
    "extract_json",
    "parse_patch",
    "WorldContextUpdater",
]
