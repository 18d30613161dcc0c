"""Deterministic D&D 5E mechanics for one session.

The rules engine owns the dice math and the HP/condition bookkeeping the
narrator is not allowed to invent. All randomness comes from the injected
``DiceRoller``, and the character state objects it mutates are the same
objects stored in the room's GameState.

Example:
    >>> engine = RulesEngine(FixedDiceRoller([15]), repository)
    >>> engine.sync_character_states(game_state.character_states)
    >>> check = engine.ability_check("thorin", "strength")
    >>> check.roll.total
    18
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError as PydanticValidationError

from dnd_session.core.constants import DEFAULT_ABILITY_SCORE
from dnd_session.core.exceptions import CharacterNotFoundError, NegativeDamageError
from dnd_session.core.logging import get_logger
from dnd_session.engine.dice import DiceRoller, parse_dice_formula
from dnd_session.engine.rules import ability_modifier, has_save_proficiency, proficiency_bonus
from dnd_session.models.enums import ConsciousnessStatus, RollType
from dnd_session.models.events import AttackResult, DamageResult, DiceRoll
from dnd_session.models.game_state import (
    CharacterState,
    CharacterTemplate,
    EquipmentState,
    SpellSlot,
)


logger = get_logger(__name__)

UNCONSCIOUS = "unconscious"


class CharacterRepository(Protocol):
    """Read access to persisted character templates."""

    def find_by_id(self, template_id: str) -> CharacterTemplate | None:
        """Return the template with ``template_id``, or None."""
        ...


@dataclass(frozen=True)
class Weapon:
    """A weapon used for an attack roll."""

    name: str
    finesse: bool = False


class CheckResult(BaseModel):
    """Result of an ability check or saving throw.

    Attributes:
        character_id: Instance id that rolled.
        ability: Ability used.
        roll: The d20 roll with the modifier applied.
        ability_score: Score the modifier was derived from.
        modifier: Ability modifier.
        proficiency: Proficiency bonus added (saving throws only).
        roll_type: How the d20 was rolled.
    """

    character_id: str
    ability: str
    roll: DiceRoll
    ability_score: int
    modifier: int
    proficiency: int = 0
    roll_type: RollType = RollType.NORMAL


class RulesEngine:
    """Dice, checks, attacks, damage and conditions for one session.

    Holds two caches keyed by character instance id: runtime states
    (shared with GameState) and templates resolved lazily through the
    repository.
    """

    def __init__(self, dice_roller: DiceRoller, repository: CharacterRepository) -> None:
        """Initialize the engine.

        Args:
            dice_roller: Source of every die result.
            repository: Template lookup for ability scores, class and level.
        """
        self._dice = dice_roller
        self._repository = repository
        self._states: dict[str, CharacterState] = {}
        self._templates: dict[str, CharacterTemplate] = {}

    # =========================================================================
    # State Management
    # =========================================================================

    def sync_character_states(self, states: Mapping[str, CharacterState]) -> None:
        """Replace the state cache with the room's character states.

        The objects are stored by reference, so engine mutations land in
        the GameState they came from.

        Args:
            states: Instance id to state, usually ``GameState.character_states``.
        """
        self._states = dict(states)
        # Drop cached templates of instances that are gone
        self._templates = {k: v for k, v in self._templates.items() if k in self._states}
        logger.debug("Character states synced", count=len(self._states))

    def get_character_state(self, instance_id: str) -> CharacterState | None:
        """Return the cached state for ``instance_id``, if any."""
        return self._states.get(instance_id)

    def update_character_state(self, instance_id: str, **updates: Any) -> CharacterState:
        """Apply field updates to a cached state.

        Raises:
            CharacterNotFoundError: If no state is cached for ``instance_id``.
        """
        state = self._require_state(instance_id)
        for field_name, value in updates.items():
            setattr(state, field_name, value)
        return state

    def initialize_character_state(self, template_id: str) -> CharacterState:
        """Create a fresh runtime state from a template and cache it.

        Args:
            template_id: Template to instantiate.

        Returns:
            The new state; its instance id is ``<template_id>-<millis>``.

        Raises:
            CharacterNotFoundError: If the template does not exist.
        """
        template = self._repository.find_by_id(template_id)
        if template is None:
            raise CharacterNotFoundError(
                f"Character template not found: {template_id}",
                character_id=template_id,
            )

        instance_id = f"{template_id}-{int(time.time() * 1000)}"
        state = build_character_state(template, instance_id=instance_id)
        self._states[instance_id] = state
        self._templates[instance_id] = template
        logger.info("Character state initialized", instance_id=instance_id, name=template.name)
        return state

    def _require_state(self, instance_id: str) -> CharacterState:
        state = self._states.get(instance_id)
        if state is None:
            raise CharacterNotFoundError(
                f"Character state not found: {instance_id}",
                character_id=instance_id,
            )
        return state

    def _require_template(self, instance_id: str) -> CharacterTemplate:
        state = self._require_state(instance_id)
        template = self._templates.get(instance_id)
        if template is None:
            template = self._repository.find_by_id(state.character_id)
            if template is None:
                raise CharacterNotFoundError(
                    f"Character template not found: {state.character_id}",
                    character_id=state.character_id,
                )
            self._templates[instance_id] = template
        return template

    # =========================================================================
    # Dice Rolling
    # =========================================================================

    def roll(self, formula: str) -> DiceRoll:
        """Roll a ``NdS+M`` formula through the dice port.

        Raises:
            InvalidFormulaError: If the formula is malformed.
        """
        parsed = parse_dice_formula(formula)
        rolls = [self._dice.roll(parsed.sides) for _ in range(parsed.count)]
        return DiceRoll(
            formula=formula,
            rolls=rolls,
            modifier=parsed.modifier,
            total=sum(rolls) + parsed.modifier,
            reason=f"Rolled {formula}",
        )

    def roll_damage(self, dice: str, modifier: int) -> DiceRoll:
        """Roll damage dice with an explicit modifier.

        Any modifier written in ``dice`` is replaced by ``modifier``.
        """
        result = self.roll(dice)
        return result.model_copy(
            update={
                "modifier": modifier,
                "total": sum(result.rolls) + modifier,
                "reason": f"Damage roll: {dice}{modifier:+d}",
            }
        )

    def _roll_d20(self, roll_type: RollType) -> tuple[int, list[int]]:
        """Roll the d20 of a check; returns the kept die and dropped dice."""
        first = self._dice.roll(20)
        if roll_type == RollType.NORMAL:
            return first, []
        second = self._dice.roll(20)
        if roll_type == RollType.ADVANTAGE:
            kept, dropped = (first, second) if first >= second else (second, first)
        else:
            kept, dropped = (first, second) if first <= second else (second, first)
        return kept, [dropped]

    # =========================================================================
    # Checks
    # =========================================================================

    def ability_check(
        self,
        character_id: str,
        ability: str,
        roll_type: RollType | str = RollType.NORMAL,
    ) -> CheckResult:
        """Roll an ability check.

        Args:
            character_id: Instance id of the character.
            ability: Ability name; a missing score counts as 10.
            roll_type: Normal, advantage or disadvantage.

        Returns:
            The check, with total = kept d20 + ability modifier.

        Raises:
            CharacterNotFoundError: If the state or its template is missing.
        """
        roll_type = RollType(roll_type)
        template = self._require_template(character_id)
        score = template.ability_scores.get(ability, DEFAULT_ABILITY_SCORE)
        modifier = ability_modifier(score)
        kept, dropped = self._roll_d20(roll_type)

        roll = DiceRoll(
            formula="1d20",
            rolls=[kept],
            dropped=dropped,
            modifier=modifier,
            total=kept + modifier,
            reason=f"{ability} check",
        )
        logger.debug(
            "Ability check rolled",
            character_id=character_id,
            ability=ability,
            roll_type=roll_type,
            total=roll.total,
        )
        return CheckResult(
            character_id=character_id,
            ability=ability,
            roll=roll,
            ability_score=score,
            modifier=modifier,
            roll_type=roll_type,
        )

    def saving_throw(
        self,
        character_id: str,
        ability: str,
        roll_type: RollType | str = RollType.NORMAL,
    ) -> CheckResult:
        """Roll a saving throw.

        Like an ability check, plus the proficiency bonus when the
        character's class is proficient in saves of ``ability``.

        Raises:
            CharacterNotFoundError: If the state or its template is missing.
        """
        check = self.ability_check(character_id, ability, roll_type)
        template = self._require_template(character_id)
        proficiency = 0
        if has_save_proficiency(template.character_class, ability):
            proficiency = proficiency_bonus(template.level)

        roll = check.roll.model_copy(
            update={
                "total": check.roll.total + proficiency,
                "reason": f"{ability} saving throw",
            }
        )
        return check.model_copy(update={"roll": roll, "proficiency": proficiency})

    # =========================================================================
    # Combat
    # =========================================================================

    def attack_roll(
        self,
        attacker_id: str,
        weapon: Weapon,
        roll_type: RollType | str = RollType.NORMAL,
    ) -> AttackResult:
        """Roll an attack with a weapon.

        Finesse weapons use dexterity when it is at least strength; other
        weapons use strength. Proficiency is always added.

        Raises:
            CharacterNotFoundError: If the state or its template is missing.
        """
        template = self._require_template(attacker_id)
        scores = template.ability_scores
        strength = scores.get("strength", DEFAULT_ABILITY_SCORE)
        dexterity = scores.get("dexterity", DEFAULT_ABILITY_SCORE)
        score = dexterity if weapon.finesse and dexterity >= strength else strength

        modifier = ability_modifier(score) + proficiency_bonus(template.level)
        kept, dropped = self._roll_d20(RollType(roll_type))
        roll = DiceRoll(
            formula="1d20",
            rolls=[kept],
            dropped=dropped,
            modifier=modifier,
            total=kept + modifier,
            reason=f"Attack with {weapon.name}",
        )
        return AttackResult(roll=roll, weapon=weapon.name, is_critical=kept == 20)

    def apply_damage(self, target_id: str, amount: int, damage_type: str) -> DamageResult:
        """Apply damage, draining temporary HP first.

        Reaching 0 HP adds the ``unconscious`` condition once.

        Raises:
            NegativeDamageError: If ``amount`` is negative.
            CharacterNotFoundError: If the target state is missing.
        """
        if amount < 0:
            raise NegativeDamageError(f"Damage cannot be negative: {amount}", amount=amount)
        state = self._require_state(target_id)

        remaining = amount
        if state.temporary_hp > 0:
            absorbed = min(state.temporary_hp, remaining)
            state.temporary_hp -= absorbed
            remaining -= absorbed

        state.current_hp = max(0, state.current_hp - remaining)

        status = ConsciousnessStatus.CONSCIOUS
        if state.current_hp == 0:
            status = ConsciousnessStatus.UNCONSCIOUS
            self.apply_condition(target_id, UNCONSCIOUS)

        logger.info(
            "Damage applied",
            target_id=target_id,
            damage=amount,
            damage_type=damage_type,
            new_hp=state.current_hp,
        )
        return DamageResult(
            damage=amount,
            final_damage=remaining,
            damage_type=damage_type,
            target_id=target_id,
            new_hp=state.current_hp,
            temporary_hp=state.temporary_hp,
            status=status,
        )

    def apply_healing(self, target_id: str, amount: int) -> CharacterState:
        """Restore HP up to the template's maximum.

        Healing a character above 0 HP removes ``unconscious``.

        Raises:
            NegativeDamageError: If ``amount`` is negative.
            CharacterNotFoundError: If the state or its template is missing.
        """
        if amount < 0:
            raise NegativeDamageError(f"Healing cannot be negative: {amount}", amount=amount)
        template = self._require_template(target_id)
        state = self._require_state(target_id)

        state.current_hp = min(template.max_hp, state.current_hp + amount)
        if state.current_hp > 0:
            self.remove_condition(target_id, UNCONSCIOUS)
        return state

    # =========================================================================
    # Conditions
    # =========================================================================

    def apply_condition(self, target_id: str, condition: str) -> None:
        """Add a condition unless one with the same name is present."""
        state = self._require_state(target_id)
        if condition not in state.conditions:
            state.conditions.append(condition)

    def remove_condition(self, target_id: str, condition: str) -> None:
        """Remove every condition named ``condition``."""
        state = self._require_state(target_id)
        state.conditions = [c for c in state.conditions if c != condition]


# =============================================================================
# Template Instantiation
# =============================================================================


def parse_spell_slots(template: CharacterTemplate) -> list[SpellSlot]:
    """Read spell slots from a template.

    Slots arrive as a mapping or its JSON text. Anything unparseable yields
    no slots and a warning; counts that are not positive integers are
    skipped.
    """
    raw = template.spell_slots or {}
    try:
        parsed = json.loads(raw) if isinstance(raw, str) else raw
        return [
            SpellSlot(level=int(level), slots=count)
            for level, count in parsed.items()
            if isinstance(count, int) and count > 0
        ]
    except (json.JSONDecodeError, AttributeError, TypeError, ValueError, PydanticValidationError) as exc:
        logger.warning("Failed to parse spell slots", template_id=template.id, error=str(exc))
        return []


def build_character_state(template: CharacterTemplate, *, instance_id: str) -> CharacterState:
    """Create the initial runtime state of a template.

    Args:
        template: Character sheet.
        instance_id: Identifier for the new instance.

    Returns:
        A state with the template's HP, thoughts, spell slots and weapon.
    """
    return CharacterState(
        instance_id=instance_id,
        character_id=template.id,
        current_hp=template.current_hp,
        temporary_hp=template.temp_hp,
        current_thoughts=template.thoughts,
        known_spells=parse_spell_slots(template),
        equipment_state=EquipmentState(
            wielded=[template.equipped_weapon] if template.equipped_weapon else [],
        ),
    )


__all__ = [
    "CharacterRepository",
    "Weapon",
    "CheckResult",
    "RulesEngine",
    "parse_spell_slots",
    "build_character_state",
]
