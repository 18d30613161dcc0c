"""Game engine: dice, rule tables, rules engine and turn gates.

Example:
    >>> from dnd_session.engine import FixedDiceRoller, RulesEngine
    >>> engine = RulesEngine(FixedDiceRoller([20]), repository)
"""

from __future__ import annotations

from dnd_session.engine.dice import (
    DiceFormula,
    DiceRoller,
    FixedDiceRoller,
    RandomDiceRoller,
    SeededDiceRoller,
    parse_dice_formula,
)
from dnd_session.engine.rules_engine import (
    CharacterRepository,
    CheckResult,
    RulesEngine,
    Weapon,
    build_character_state,
    parse_spell_slots,
)
from dnd_session.engine.turn_gates import (
    AllPlayerGate,
    InitiativeGate,
    PausedGate,
    RestrictedGate,
    TurnGate,
)


__all__ = [
    # Dice
    "DiceFormula",
    "DiceRoller",
    "FixedDiceRoller",
    "RandomDiceRoller",
    "SeededDiceRoller",
    "parse_dice_formula",
    # Rules engine
    "CharacterRepository",
    "CheckResult",
    "RulesEngine",
    "Weapon",
    "build_character_state",
    "parse_spell_slots",
    # Turn gates
    "TurnGate",
    "AllPlayerGate",
    "RestrictedGate",
    "PausedGate",
    "InitiativeGate",
]
