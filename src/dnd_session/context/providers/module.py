"""Adventure module lore."""

from __future__ import annotations

from dnd_session.core.constants import PRIORITY_MODULE_CONTEXT
from dnd_session.core.logging import get_logger
from dnd_session.context.providers.base import ContextBlock
from dnd_session.models.game_state import GameState
from dnd_session.storage.memory import ModuleRepository


logger = get_logger(__name__)


class ModuleContextProvider:
    """Renders the room's adventure module as ``[MODULE_CONTEXT]``.

    Rooms without a module contribute nothing; an unknown module name is
    logged and skipped.
    """

    name = "module-context"
    priority = PRIORITY_MODULE_CONTEXT

    def __init__(self, repository: ModuleRepository) -> None:
        self._repository = repository

    def provide(self, state: GameState) -> ContextBlock | None:
        if not state.module_name:
            return None

        module = self._repository.find_by_name(state.module_name)
        if module is None:
            logger.warning("Module not found", module=state.module_name, room_id=state.room_id)
            return None

        parts = [f"**{module.name}**", module.description]
        if module.setting:
            parts.append(f"\nSetting: {module.setting}")
        if module.rules:
            parts.append(f"\nRules: {module.rules}")
        if module.npcs:
            parts.append(f"\nNotable NPCs: {', '.join(module.npcs)}")
        if module.locations:
            parts.append(f"\nLocations: {', '.join(module.locations)}")

        body = "\n".join(parts)
        return ContextBlock(
            name=self.name,
            content=f"[MODULE_CONTEXT]\n{body}\n[/MODULE_CONTEXT]",
            priority=self.priority,
            metadata={"module_name": module.name},
        )


__all__ = ["ModuleContextProvider"]
