"""Player notes."""

from __future__ import annotations

from dnd_session.core.constants import PRIORITY_PLAYER_NOTES
from dnd_session.context.providers.base import ContextBlock
from dnd_session.models.game_state import GameState


class PlayerNotesProvider:
    """Renders notes grouped per player as ``[PLAYER_NOTES]``."""

    name = "player-notes"
    priority = PRIORITY_PLAYER_NOTES

    def provide(self, state: GameState) -> ContextBlock | None:
        groups = [
            f"Player {user_id[:4]}:\n" + "\n".join(f"  - {note.content}" for note in notes)
            for user_id, notes in state.player_notes.items()
            if notes
        ]
        if not groups:
            return None

        body = "\n\n".join(groups)
        return ContextBlock(
            name=self.name,
            content=f"[PLAYER_NOTES]\n{body}\n[/PLAYER_NOTES]",
            priority=self.priority,
        )


__all__ = ["PlayerNotesProvider"]
