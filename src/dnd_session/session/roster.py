"""Room membership lookup."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from dnd_session.models.actions import RoomMember


class RoomRoster(Protocol):
    """Source of the room's current members."""

    def get_room_members(self) -> list[RoomMember]:
        """Return the current members in join order."""
        ...


class InMemoryRoster:
    """Room members held in memory, keyed by user id."""

    def __init__(self, members: Iterable[RoomMember] = ()) -> None:
        self._members: dict[str, RoomMember] = {}
        for member in members:
            self.add_member(member)

    def add_member(self, member: RoomMember) -> None:
        """Add a member, replacing an earlier entry for the same user."""
        self._members[member.user_id] = member

    def remove_member(self, user_id: str) -> RoomMember | None:
        """Remove and return a member, if present."""
        return self._members.pop(user_id, None)

    def get_room_members(self) -> list[RoomMember]:
        return list(self._members.values())

    def __len__(self) -> int:
        return len(self._members)


__all__ = ["RoomRoster", "InMemoryRoster"]
