"""Tests for dice formulas and rollers."""

from __future__ import annotations

import pytest

from dnd_session.core.exceptions import DiceRollError, InvalidFormulaError
from dnd_session.engine.dice import (
    DiceRoller,
    FixedDiceRoller,
    RandomDiceRoller,
    SeededDiceRoller,
    parse_dice_formula,
)


class TestParseDiceFormula:
    """Tests for parse_dice_formula."""

    @pytest.mark.parametrize(
        ("formula", "count", "sides", "modifier"),
        [
            ("1d20", 1, 20, 0),
            ("2d6+3", 2, 6, 3),
            ("d8", 1, 8, 0),
            ("4D10-1", 4, 10, -1),
            ("  3d4  ", 3, 4, 0),
        ],
    )
    def test_valid_formulas(self, formula: str, count: int, sides: int, modifier: int) -> None:
        """Test well-formed formulas parse into their parts."""
        parsed = parse_dice_formula(formula)

        assert (parsed.count, parsed.sides, parsed.modifier) == (count, sides, modifier)
        assert parsed.original == formula

    @pytest.mark.parametrize("formula", ["", "d", "2x6", "1d20+", "1d20+2d6", "abc"])
    def test_malformed(self, formula: str) -> None:
        """Test malformed text is rejected."""
        with pytest.raises(InvalidFormulaError, match="Invalid dice formula"):
            parse_dice_formula(formula)

    @pytest.mark.parametrize("formula", ["0d6", "101d6", "1d1", "1d1001", "1d20+1001"])
    def test_out_of_bounds(self, formula: str) -> None:
        """Test counts, sides and modifiers are bounded."""
        with pytest.raises(InvalidFormulaError):
            parse_dice_formula(formula)

    def test_invalid_formula_is_dice_roll_error(self) -> None:
        """Test callers can catch the broader dice error."""
        with pytest.raises(DiceRollError):
            parse_dice_formula("nope")


class TestFixedDiceRoller:
    """Tests for FixedDiceRoller."""

    def test_returns_values_in_order(self) -> None:
        """Test values are used first in, first out."""
        roller = FixedDiceRoller([17, 4])

        assert roller.roll(20) == 17
        assert roller.roll(20) == 4
        assert roller.remaining == 0

    def test_exhausted(self) -> None:
        """Test running out of values is an error."""
        roller = FixedDiceRoller([])

        with pytest.raises(DiceRollError, match="No more values"):
            roller.roll(20)

    def test_value_out_of_range(self) -> None:
        """Test a value that cannot appear on the die is refused."""
        roller = FixedDiceRoller([7])

        with pytest.raises(DiceRollError, match="out of range"):
            roller.roll(6)

    def test_extend(self) -> None:
        """Test more values can be queued."""
        roller = FixedDiceRoller([1])
        roller.extend([2, 3])

        assert [roller.roll(6) for _ in range(3)] == [1, 2, 3]


class TestRandomDiceRoller:
    """Tests for RandomDiceRoller."""

    def test_results_in_range(self) -> None:
        """Test random rolls stay on the die."""
        roller = RandomDiceRoller()

        results = {roller.roll(6) for _ in range(200)}

        assert results <= set(range(1, 7))

    @pytest.mark.parametrize("sides", [1, 1001])
    def test_invalid_sides(self, sides: int) -> None:
        """Test impossible dice are refused."""
        with pytest.raises(DiceRollError):
            RandomDiceRoller().roll(sides)

    def test_satisfies_protocol(self) -> None:
        """Test every roller is a DiceRoller."""
        assert isinstance(RandomDiceRoller(), DiceRoller)
        assert isinstance(FixedDiceRoller([]), DiceRoller)
        assert isinstance(SeededDiceRoller(1), DiceRoller)


class TestSeededDiceRoller:
    """Tests for SeededDiceRoller."""

    def test_same_seed_same_sequence(self) -> None:
        """Test rolls are reproducible for a seed."""
        first = SeededDiceRoller(42)
        second = SeededDiceRoller(42)

        assert [first.roll(20) for _ in range(10)] == [second.roll(20) for _ in range(10)]

    def test_results_in_range(self) -> None:
        """Test seeded rolls stay on the die."""
        roller = SeededDiceRoller(7)

        assert all(1 <= roller.roll(8) <= 8 for _ in range(100))
