"""Player actions and room members."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PlayerAction(BaseModel):
    """An action a player submitted for the current round.

    Attributes:
        user_id: Submitting user.
        username: Display name of the user.
        character_id: Character the user plays, if any.
        character_name: Name of that character, if any.
        action: Free-text action.
        timestamp: Submission time.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    character_id: str | None = None
    character_name: str | None = None
    action: str = Field(min_length=1)
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def display_name(self) -> str:
        """Name used when the action is shown to the narrator."""
        return self.character_name or self.username


class RoomMember(BaseModel):
    """A participant in a room, optionally playing a character."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    character_id: str | None = None
    character_name: str | None = None
    joined_at: datetime = Field(default_factory=datetime.now)


__all__ = ["PlayerAction", "RoomMember"]
