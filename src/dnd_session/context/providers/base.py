"""Context block and provider contract.

A provider turns the current GameState into zero or more ContextBlocks.
Providers must not mutate the state; the builder calls them on every turn.
"""

from __future__ import annotations

from typing import Any, Protocol, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from dnd_session.models.game_state import GameState


class ContextBlock(BaseModel):
    """One labelled piece of prompt content.

    Attributes:
        name: Provider that produced the block.
        content: Prompt text.
        priority: Ordering key; lower comes first.
        metadata: Counts and flags for the build snapshot.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    content: str
    priority: int
    metadata: dict[str, Any] = Field(default_factory=dict)


ProviderResult = Union[ContextBlock, list[ContextBlock], None]


@runtime_checkable
class ContextProvider(Protocol):
    """Anything with a name, a priority and a ``provide`` method."""

    name: str
    priority: int

    def provide(self, state: GameState) -> ProviderResult:
        """Build this provider's blocks, or None if it has nothing to add."""
        ...


__all__ = ["ContextBlock", "ContextProvider", "ProviderResult"]
