"""Rule tables and small formulas for D&D 5E.

Pure data consumed by the rules engine, the context providers and the
tool argument models.
"""

from __future__ import annotations

import math
from typing import Final

from dnd_session.core.constants import DEFAULT_ABILITY_SCORE
from dnd_session.models.enums import Ability


ABILITIES: Final[tuple[str, ...]] = tuple(a.value for a in Ability)

# Saving throw proficiencies by class, keyed by upper-case class name
CLASS_SAVING_THROWS: Final[dict[str, tuple[str, str]]] = {
    "BARBARIAN": ("strength", "constitution"),
    "BARD": ("dexterity", "charisma"),
    "CLERIC": ("wisdom", "charisma"),
    "DRUID": ("intelligence", "wisdom"),
    "FIGHTER": ("strength", "constitution"),
    "MONK": ("strength", "dexterity"),
    "PALADIN": ("wisdom", "charisma"),
    "RANGER": ("strength", "dexterity"),
    "ROGUE": ("dexterity", "intelligence"),
    "SORCERER": ("constitution", "charisma"),
    "WARLOCK": ("wisdom", "charisma"),
    "WIZARD": ("intelligence", "wisdom"),
}

SKILL_ABILITIES: Final[dict[str, str]] = {
    "acrobatics": "dexterity",
    "animal-handling": "wisdom",
    "arcana": "intelligence",
    "athletics": "strength",
    "deception": "charisma",
    "history": "intelligence",
    "insight": "wisdom",
    "intimidation": "charisma",
    "investigation": "intelligence",
    "medicine": "wisdom",
    "nature": "intelligence",
    "perception": "wisdom",
    "performance": "charisma",
    "persuasion": "charisma",
    "religion": "intelligence",
    "sleight-of-hand": "dexterity",
    "stealth": "dexterity",
    "survival": "wisdom",
}

CONDITION_DESCRIPTIONS: Final[dict[str, str]] = {
    "blinded": "A blinded creature can't see and automatically fails any ability check that requires sight.",
    "charmed": "A charmed creature can't attack the charmer and has advantage on social checks against them.",
    "deafened": "A deafened creature can't hear and automatically fails any ability check that requires hearing.",
    "exhausted": "Levels 1-6: Disadvantage on checks, speed halved, etc. Accumulates.",
    "frightened": "Disadvantage on checks while near source. Must move away from source.",
    "grappled": "Speed becomes 0, can't benefit from bonuses to speed.",
    "incapacitated": "Can't take actions or reactions.",
    "invisible": "Impossible to see without magic, advantage on attacks, disadvantage on attacks against.",
    "paralyzed": "Speed 0, can't take actions, disadvantage on Dex saves, +5 to attacks against.",
    "petrified": "Transformed to solid material, has resistance to damage, etc.",
    "poisoned": "Disadvantage on attack rolls and ability checks.",
    "prone": "Disadvantage on attack rolls, advantage on melee attacks against, -2 to AC vs ranged.",
    "restrained": "Speed 0, disadvantage on Dex saves, attack rolls have disadvantage against.",
    "stunned": "Incapacitated, can't take actions, disadvantage on Dex saves and attacks.",
    "unconscious": "Incapacitated, can't move or speak, aware of surroundings, drops held items.",
}

COMBAT_RULES: Final[tuple[str, ...]] = (
    "- Each round: action, movement, bonus action, free action",
    "- Attack roll: d20 + proficiency + ability modifier",
    "- Damage roll: weapon dice + ability modifier",
    "- Advantage: roll 2d20 take highest; disadvantage: take lowest",
    "- Critical: natural 20 doubles damage dice",
)


def ability_modifier(score: int) -> int:
    """Calculate the ability modifier for a score.

    Args:
        score: Ability score.

    Returns:
        ``floor((score - 10) / 2)``.
    """
    return (score - DEFAULT_ABILITY_SCORE) // 2


def proficiency_bonus(level: int) -> int:
    """Calculate the proficiency bonus for a character level.

    Args:
        level: Character level.

    Returns:
        ``ceil(1 + level / 4)``.
    """
    return math.ceil(1 + level / 4)


def has_save_proficiency(character_class: str, ability: str) -> bool:
    """Check whether a class is proficient in a saving throw.

    Unknown classes have no proficiencies.
    """
    return ability in CLASS_SAVING_THROWS.get(character_class.strip().upper(), ())


def resolve_ability(name: str) -> str | None:
    """Map an ability or skill name onto an ability.

    Accepts full names (``strength``), abbreviations (``STR``) and skills
    (``stealth``, ``sleight of hand``).

    Returns:
        The ability name, or None if ``name`` is neither.
    """
    key = name.strip().lower()
    if key in ABILITIES:
        return key
    for ability in Ability:
        if key == ability.abbreviation.lower():
            return ability.value
    return SKILL_ABILITIES.get(key.replace(" ", "-").replace("_", "-"))


__all__ = [
    "ABILITIES",
    "CLASS_SAVING_THROWS",
    "SKILL_ABILITIES",
    "CONDITION_DESCRIPTIONS",
    "COMBAT_RULES",
    "ability_modifier",
    "proficiency_bonus",
    "has_save_proficiency",
    "resolve_ability",
]
