"""In-memory repositories for character templates and adventure modules.

Persistence encoding is owned by the host application; these
implementations back tests and single-process deployments, and define the
lookup contracts the engine relies on.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from pydantic import BaseModel, Field

from dnd_session.core.logging import get_logger
from dnd_session.models.game_state import CharacterTemplate


logger = get_logger(__name__)


# =============================================================================
# Character Templates
# =============================================================================


class InMemoryCharacterRepository:
    """Character templates keyed by id.

    Example:
        >>> repo = InMemoryCharacterRepository([template])
        >>> repo.find_by_id(template.id) is template
        True
    """

    def __init__(self, templates: Iterable[CharacterTemplate] = ()) -> None:
        self._templates: dict[str, CharacterTemplate] = {}
        for template in templates:
            self.save(template)

    def find_by_id(self, template_id: str) -> CharacterTemplate | None:
        """Return the template with ``template_id``, or None."""
        return self._templates.get(template_id)

    def save(self, template: CharacterTemplate) -> None:
        """Insert or replace a template."""
        self._templates[template.id] = template

    def __len__(self) -> int:
        return len(self._templates)


# =============================================================================
# Adventure Modules
# =============================================================================


class Module(BaseModel):
    """Lore and house rules of an adventure module.

    Attributes:
        name: Module name, matched case-insensitively.
        description: One-line summary.
        rules: House rules, if any.
        setting: Setting description.
        npcs: Notable NPC names.
        locations: Notable location names.
    """

    name: str
    description: str
    rules: str | None = None
    setting: str | None = None
    npcs: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)


DEFAULT_MODULE = Module(
    name="default",
    description="Standard D&D 5e fantasy setting",
    rules="Use standard D&D 5e rules",
    setting="A generic fantasy world with dungeons, dragons, and adventure",
)


class ModuleRepository(Protocol):
    """Lookup of adventure modules by name."""

    def find_by_name(self, name: str) -> Module | None:
        """Return the module called ``name`` (any case), or None."""
        ...


class InMemoryModuleRepository:
    """Adventure modules keyed by lower-cased name; ships ``default``."""

    def __init__(self, modules: Iterable[Module] = ()) -> None:
        self._modules: dict[str, Module] = {}
        self.add_module(DEFAULT_MODULE)
        for module in modules:
            self.add_module(module)

    def add_module(self, module: Module) -> None:
        """Register or replace a module."""
        self._modules[module.name.lower()] = module
        logger.debug("Module registered", module=module.name)

    def find_by_name(self, name: str) -> Module | None:
        """Return the module called ``name`` (any case), or None."""
        return self._modules.get(name.lower())


__all__ = [
    "InMemoryCharacterRepository",
    "Module",
    "DEFAULT_MODULE",
    "ModuleRepository",
    "InMemoryModuleRepository",
]
