"""Dice formula parsing and the RNG ports used by the rules engine.

The rules engine never rolls directly: it asks a ``DiceRoller`` for one die
at a time, so tests can script every result. ``RandomDiceRoller`` rolls
through the d20 library in production; ``FixedDiceRoller`` and
``SeededDiceRoller`` make rolls predictable.

Example:
    >>> roller = FixedDiceRoller([17, 4])
    >>> roller.roll(20)
    17
    >>> parse_dice_formula("2d6+3")
    DiceFormula(count=2, sides=6, modifier=3, original='2d6+3')
"""

from __future__ import annotations

import re
import time
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import d20

from dnd_session.core.constants import (
    LCG_INCREMENT,
    LCG_MASK,
    LCG_MULTIPLIER,
    MAX_ABS_MODIFIER,
    MAX_DICE_COUNT,
    MAX_DIE_SIDES,
    MIN_DICE_COUNT,
    MIN_DIE_SIDES,
)
from dnd_session.core.exceptions import DiceRollError, InvalidFormulaError
from dnd_session.core.logging import get_logger


logger = get_logger(__name__)

_FORMULA_PATTERN = re.compile(r"^(\d*)d(\d+)([+-]\d+)?$", re.IGNORECASE)


# =============================================================================
# Formula Parsing
# =============================================================================


@dataclass(frozen=True)
class DiceFormula:
    """A parsed ``NdS+M`` formula.

    Attributes:
        count: Number of dice (N, defaults to 1).
        sides: Faces per die (S).
        modifier: Flat modifier (M, defaults to 0).
        original: Formula as given.
    """

    count: int
    sides: int
    modifier: int
    original: str


def parse_dice_formula(formula: str) -> DiceFormula:
    """Parse a dice formula such as ``2d6+3``, ``d8`` or ``4d10-1``.

    Args:
        formula: Dice formula text.

    Returns:
        The parsed formula.

    Raises:
        InvalidFormulaError: If the text is malformed or a part is out of bounds.
    """
    match = _FORMULA_PATTERN.match(formula.strip())
    if match is None:
        raise InvalidFormulaError(f'Invalid dice formula: "{formula}"', expression=formula)

    count = int(match.group(1)) if match.group(1) else 1
    sides = int(match.group(2))
    modifier = int(match.group(3)) if match.group(3) else 0

    if not MIN_DICE_COUNT <= count <= MAX_DICE_COUNT:
        raise InvalidFormulaError(
            f"Dice count must be between {MIN_DICE_COUNT} and {MAX_DICE_COUNT}, got: {count}",
            expression=formula,
        )
    if not MIN_DIE_SIDES <= sides <= MAX_DIE_SIDES:
        raise InvalidFormulaError(
            f"Dice sides must be between {MIN_DIE_SIDES} and {MAX_DIE_SIDES}, got: {sides}",
            expression=formula,
        )
    if abs(modifier) > MAX_ABS_MODIFIER:
        raise InvalidFormulaError(
            f"Modifier must be between -{MAX_ABS_MODIFIER} and {MAX_ABS_MODIFIER}, got: {modifier}",
            expression=formula,
        )

    return DiceFormula(count=count, sides=sides, modifier=modifier, original=formula)


# =============================================================================
# RNG Ports
# =============================================================================


@runtime_checkable
class DiceRoller(Protocol):
    """Source of single die results."""

    def roll(self, sides: int) -> int:
        """Roll one die with ``sides`` faces and return a value in 1..sides."""
        ...


def _check_sides(sides: int) -> None:
    if sides < MIN_DIE_SIDES:
        raise DiceRollError(
            f"Dice must have at least {MIN_DIE_SIDES} sides, got: {sides}",
            expression=f"1d{sides}",
        )
    if sides > MAX_DIE_SIDES:
        raise DiceRollError(
            f"Dice cannot have more than {MAX_DIE_SIDES} sides, got: {sides}",
            expression=f"1d{sides}",
        )


class RandomDiceRoller:
    """Production roller backed by the d20 library.

    Example:
        >>> roller = RandomDiceRoller()
        >>> 1 <= roller.roll(20) <= 20
        True
    """

    def roll(self, sides: int) -> int:
        """Roll one die through d20.

        Raises:
            DiceRollError: If ``sides`` is outside 2..1000.
        """
        _check_sides(sides)
        return d20.roll(f"1d{sides}").total


class FixedDiceRoller:
    """Returns predetermined values in order, for tests.

    Each value must fit the die it is used for, and running out of values
    is an error rather than a silent fallback.
    """

    def __init__(self, values: Iterable[int]) -> None:
        self._values: deque[int] = deque(values)

    def roll(self, sides: int) -> int:
        """Pop the next predetermined value.

        Raises:
            DiceRollError: If no values remain or the next value cannot
                appear on a die with ``sides`` faces.
        """
        if not self._values:
            raise DiceRollError("FixedDiceRoller: No more values available")
        value = self._values.popleft()
        if not 1 <= value <= sides:
            raise DiceRollError(
                f"FixedDiceRoller: Value {value} out of range for {sides}-sided die",
                expression=f"1d{sides}",
            )
        return value

    def extend(self, values: Iterable[int]) -> None:
        """Queue more values after the current ones."""
        self._values.extend(values)

    @property
    def remaining(self) -> int:
        """Number of values not yet used."""
        return len(self._values)


class SeededDiceRoller:
    """Reproducible roller using a linear congruential generator."""

    def __init__(self, seed: int | None = None) -> None:
        self._state = seed if seed is not None else int(time.time() * 1000)
        logger.debug("SeededDiceRoller initialized", seed=self._state)

    def roll(self, sides: int) -> int:
        """Advance the generator and map it onto the die."""
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        return self._state % sides + 1


__all__ = [
    "DiceFormula",
    "parse_dice_formula",
    "DiceRoller",
    "RandomDiceRoller",
    "FixedDiceRoller",
    "SeededDiceRoller",
]
