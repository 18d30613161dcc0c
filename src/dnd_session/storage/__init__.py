"""Storage module: repository contracts and in-memory implementations."""

from dnd_session.storage.memory import (
    DEFAULT_MODULE,
    InMemoryCharacterRepository,
    InMemoryModuleRepository,
    Module,
    ModuleRepository,
)

__all__ = [
    "DEFAULT_MODULE",
    "InMemoryCharacterRepository",
    "InMemoryModuleRepository",
    "Module",
    "ModuleRepository",
]
