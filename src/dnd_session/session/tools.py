"""Narrator tools for exploration.

The LLM asks for mechanics through function calls; Python rolls the dice.
Each tool has a pydantic argument model, a handler and an OpenAI schema,
bundled into a ``ToolSpec``. The handler table is built once at import
and must cover every ``ToolName``.

Example:
    >>> outcome = execute_tool_call(tool_call, ctx)
    >>> outcome.result
    {'character_id': 'rogue-1', 'ability': 'dexterity', ...}
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from dnd_session.core.exceptions import ConfigurationError, DndSessionError
from dnd_session.core.logging import get_logger
from dnd_session.engine.rules import ABILITIES, resolve_ability
from dnd_session.models.actions import RoomMember
from dnd_session.models.enums import CheckType, GameMode, RollType
from dnd_session.models.events import (
    ActionRestrictionEvent,
    DiceRoll,
    DiceRollData,
    DiceRollEvent,
    SessionEvent,
    StateTransitionEvent,
)
from dnd_session.models.messages import ToolCall
from dnd_session.session.base import SessionContext


logger = get_logger(__name__)


class ToolName(StrEnum):
    """Tools offered to the narrator during exploration."""

    REQUEST_ABILITY_CHECK = "request_ability_check"
    REQUEST_SAVING_THROW = "request_saving_throw"
    REQUEST_GROUP_CHECK = "request_group_check"
    START_COMBAT = "start_combat"
    RESTRICT_ACTION = "restrict_action"


# =============================================================================
# Argument Models
# =============================================================================


def _alias(snake: str, camel: str) -> AliasChoices:
    return AliasChoices(snake, camel)


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _AbilityArgs(_ToolArgs):
    ability: str
    dc: int | float
    reason: str = ""

    @field_validator("ability")
    @classmethod
    def normalize_ability(cls, value: str) -> str:
        ability = resolve_ability(value)
        if ability is None:
            raise ValueError(f"Unknown ability: {value}")
        return ability


class AbilityCheckArgs(_AbilityArgs):
    """Arguments of request_ability_check."""

    character_id: str = Field(validation_alias=_alias("character_id", "characterId"))
    roll_type: RollType = Field(
        default=RollType.NORMAL,
        validation_alias=_alias("roll_type", "rollType"),
    )


class SavingThrowArgs(_AbilityArgs):
    """Arguments of request_saving_throw."""

    character_id: str = Field(validation_alias=_alias("character_id", "characterId"))
    roll_type: RollType = Field(
        default=RollType.NORMAL,
        validation_alias=_alias("roll_type", "rollType"),
    )


class GroupCheckArgs(_AbilityArgs):
    """Arguments of request_group_check; no ids means the whole party."""

    character_ids: list[str] = Field(
        default_factory=list,
        validation_alias=_alias("character_ids", "characterIds"),
    )


class EnemySpec(_ToolArgs):
    """An enemy group announced when combat starts."""

    name: str
    count: int = Field(default=1, ge=1)


class StartCombatArgs(_ToolArgs):
    """Arguments of start_combat."""

    reason: str = ""
    enemies: list[EnemySpec] = Field(default_factory=list)


class RestrictActionArgs(_ToolArgs):
    """Arguments of restrict_action; an empty list lifts the restriction."""

    character_ids: list[str] = Field(
        default_factory=list,
        validation_alias=_alias("character_ids", "characterIds"),
    )
    reason: str = ""


# =============================================================================
# Handlers
# =============================================================================


@dataclass(frozen=True)
class ToolOutcome:
    """What a tool returns to the LLM and, optionally, to the players."""

    result: dict[str, Any]
    event: SessionEvent | None = None


def resolve_character_id(reference: str, members: Sequence[RoomMember]) -> str:
    """Turn whatever the LLM called a character into a character id.

    Exact character ids win, then case-insensitive character names or
    usernames. Unresolved references pass through unchanged.
    """
    for member in members:
        if member.character_id == reference:
            return reference

    lowered = reference.strip().lower()
    for member in members:
        if member.character_id is None:
            continue
        names = (member.character_name or "", member.username)
        if any(name.lower() == lowered for name in names if name):
            return member.character_id
    return reference


def _character_name(ctx: SessionContext, character_id: str) -> str | None:
    member = ctx.member_for_character(character_id)
    return member.character_name if member else None


def _single_check(
    args: AbilityCheckArgs | SavingThrowArgs,
    ctx: SessionContext,
    check_type: CheckType,
) -> ToolOutcome:
    character_id = resolve_character_id(args.character_id, ctx.members)
    if check_type is CheckType.SAVING_THROW:
        check = ctx.engine.saving_throw(character_id, args.ability, args.roll_type)
    else:
        check = ctx.engine.ability_check(character_id, args.ability, args.roll_type)

    success = check.roll.total >= args.dc
    result = {
        "character_id": character_id,
        "ability": args.ability,
        "roll": check.roll.model_dump(),
        "dc": args.dc,
        "success": success,
        "reason": args.reason,
    }
    event = DiceRollEvent(
        data=DiceRollData(
            check_type=check_type,
            character_id=character_id,
            character_name=_character_name(ctx, character_id),
            ability=args.ability,
            dc=args.dc,
            roll=check.roll,
            success=success,
            reason=args.reason,
        )
    )
    return ToolOutcome(result=result, event=event)


def handle_ability_check(args: AbilityCheckArgs, ctx: SessionContext) -> ToolOutcome:
    """Roll one character's ability check against the DC."""
    return _single_check(args, ctx, CheckType.ABILITY_CHECK)


def handle_saving_throw(args: SavingThrowArgs, ctx: SessionContext) -> ToolOutcome:
    """Roll one character's saving throw against the DC."""
    return _single_check(args, ctx, CheckType.SAVING_THROW)


def handle_group_check(args: GroupCheckArgs, ctx: SessionContext) -> ToolOutcome:
    """Roll the same check for several characters.

    The group succeeds when more than half of the targets succeed. A
    target that cannot be rolled counts as a failure.
    """
    if args.character_ids:
        targets = [resolve_character_id(ref, ctx.members) for ref in args.character_ids]
    else:
        targets = [m.character_id for m in ctx.members if m.character_id]
    if not targets:
        return ToolOutcome(result={"error": "No characters available for group check"})

    results: list[dict[str, Any]] = []
    naturals: list[int] = []
    for character_id in targets:
        name = _character_name(ctx, character_id)
        try:
            check = ctx.engine.ability_check(character_id, args.ability, RollType.NORMAL)
        except DndSessionError as exc:
            logger.warning("Group check target failed", character_id=character_id, error=str(exc))
            results.append(
                {
                    "character_id": character_id,
                    "character_name": name,
                    "success": False,
                    "error": str(exc),
                }
            )
            naturals.append(0)
            continue

        results.append(
            {
                "character_id": character_id,
                "character_name": name,
                "roll": check.roll.model_dump(),
                "success": check.roll.total >= args.dc,
            }
        )
        naturals.append(check.roll.natural or 0)

    success_count = sum(1 for r in results if r["success"])
    total = len(targets)
    group_success = success_count > total / 2

    event = DiceRollEvent(
        data=DiceRollData(
            check_type=CheckType.GROUP_CHECK,
            character_id="group",
            character_name=f"Party ({success_count}/{total} succeeded)",
            ability=args.ability,
            dc=args.dc,
            roll=DiceRoll(
                formula=f"{total}d20",
                rolls=naturals,
                modifier=0,
                total=success_count,
                reason=args.reason,
            ),
            success=group_success,
            reason=args.reason,
        )
    )
    return ToolOutcome(
        result={
            "ability": args.ability,
            "dc": args.dc,
            "reason": args.reason,
            "results": results,
            "success_count": success_count,
            "total_count": total,
        },
        event=event,
    )


def handle_start_combat(args: StartCombatArgs, ctx: SessionContext) -> ToolOutcome:
    """Ask the session to switch to combat."""
    logger.info(
        "Combat requested",
        room_id=ctx.game_state.room_id,
        enemies=[e.model_dump() for e in args.enemies],
    )
    return ToolOutcome(
        result={"acknowledged": True},
        event=StateTransitionEvent(to=GameMode.COMBAT, reason=args.reason or "Combat started"),
    )


def handle_restrict_action(args: RestrictActionArgs, ctx: SessionContext) -> ToolOutcome:
    """Limit the next round to some characters, or lift the limit."""
    allowed = [resolve_character_id(ref, ctx.members) for ref in args.character_ids]
    return ToolOutcome(
        result={"acknowledged": True},
        event=ActionRestrictionEvent(allowed_character_ids=allowed, reason=args.reason),
    )


# =============================================================================
# Tool Table
# =============================================================================


@dataclass(frozen=True)
class ToolSpec:
    """A tool the narrator can invoke."""

    name: ToolName
    description: str
    parameters: dict[str, Any]
    args_model: type[BaseModel]
    handler: Callable[[Any, SessionContext], ToolOutcome]

    def to_openai_schema(self) -> dict[str, Any]:
        """Convert to OpenAI function schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name.value,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def build_tool_table(specs: Iterable[ToolSpec]) -> dict[ToolName, ToolSpec]:
    """Index tool specs by name.

    Raises:
        ConfigurationError: If a tool is registered twice or has no spec.
    """
    table: dict[ToolName, ToolSpec] = {}
    for spec in specs:
        if spec.name in table:
            raise ConfigurationError(
                f"Tool registered twice: {spec.name}",
                config_key="tools",
            )
        table[spec.name] = spec

    missing = [name.value for name in ToolName if name not in table]
    if missing:
        raise ConfigurationError(
            f"Tools without a handler: {', '.join(missing)}",
            config_key="tools",
            details={"missing": missing},
        )
    return table


_ABILITY_PROPERTY = {
    "type": "string",
    "enum": list(ABILITIES),
    "description": "Ability used for the check",
}
_DC_PROPERTY = {"type": "number", "description": "Difficulty class"}
_REASON_PROPERTY = {"type": "string", "description": "What the roll is for"}
_ROLL_TYPE_PROPERTY = {
    "type": "string",
    "enum": [r.value for r in RollType],
    "description": "Normal, advantage or disadvantage",
}
_CHARACTER_IDS_PROPERTY = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Character IDs from the [CHARACTERS] block",
}

TOOL_TABLE: dict[ToolName, ToolSpec] = build_tool_table(
    [
        ToolSpec(
            name=ToolName.REQUEST_ABILITY_CHECK,
            description="Roll an ability check for one character against a DC.",
            parameters={
                "type": "object",
                "properties": {
                    "characterId": {"type": "string", "description": "Character ID"},
                    "ability": _ABILITY_PROPERTY,
                    "dc": _DC_PROPERTY,
                    "reason": _REASON_PROPERTY,
                    "rollType": _ROLL_TYPE_PROPERTY,
                },
                "required": ["characterId", "ability", "dc", "reason"],
            },
            args_model=AbilityCheckArgs,
            handler=handle_ability_check,
        ),
        ToolSpec(
            name=ToolName.REQUEST_SAVING_THROW,
            description="Roll a saving throw for one character against a DC.",
            parameters={
                "type": "object",
                "properties": {
                    "characterId": {"type": "string", "description": "Character ID"},
                    "ability": _ABILITY_PROPERTY,
                    "dc": _DC_PROPERTY,
                    "reason": _REASON_PROPERTY,
                    "rollType": _ROLL_TYPE_PROPERTY,
                },
                "required": ["characterId", "ability", "dc", "reason"],
            },
            args_model=SavingThrowArgs,
            handler=handle_saving_throw,
        ),
        ToolSpec(
            name=ToolName.REQUEST_GROUP_CHECK,
            description=(
                "Roll the same check for several characters, or the whole party when "
                "no IDs are given. Succeeds when more than half succeed."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "ability": _ABILITY_PROPERTY,
                    "dc": _DC_PROPERTY,
                    "reason": _REASON_PROPERTY,
                    "characterIds": _CHARACTER_IDS_PROPERTY,
                },
                "required": ["ability", "dc", "reason"],
            },
            args_model=GroupCheckArgs,
            handler=handle_group_check,
        ),
        ToolSpec(
            name=ToolName.START_COMBAT,
            description="Start combat when hostilities begin.",
            parameters={
                "type": "object",
                "properties": {
                    "reason": {"type": "string", "description": "Why combat starts"},
                    "enemies": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string"},
                                "count": {"type": "integer"},
                            },
                            "required": ["name"],
                        },
                        "description": "Enemy groups joining the fight",
                    },
                },
                "required": ["reason"],
            },
            args_model=StartCombatArgs,
            handler=handle_start_combat,
        ),
        ToolSpec(
            name=ToolName.RESTRICT_ACTION,
            description=(
                "Only let the listed characters act next round. Pass an empty list "
                "to let everyone act again."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "characterIds": _CHARACTER_IDS_PROPERTY,
                    "reason": {"type": "string", "description": "Why others must wait"},
                },
                "required": ["characterIds", "reason"],
            },
            args_model=RestrictActionArgs,
            handler=handle_restrict_action,
        ),
    ]
)

EXPLORATION_TOOLS: list[dict[str, Any]] = [spec.to_openai_schema() for spec in TOOL_TABLE.values()]


def execute_tool_call(tool_call: ToolCall, ctx: SessionContext) -> ToolOutcome:
    """Run one tool call from the LLM.

    Bad JSON, invalid arguments, unknown tools and any error raised by the
    handler become an ``{"error": ...}`` result for the LLM instead of
    failing the turn.

    Args:
        tool_call: Call requested by the LLM.
        ctx: Context of the running turn.

    Returns:
        The tool result and the event to emit, if any.
    """
    name = tool_call.function.name
    try:
        arguments = json.loads(tool_call.function.arguments or "{}")
    except json.JSONDecodeError:
        logger.warning("Invalid tool arguments", tool=name)
        return ToolOutcome(result={"error": "Invalid tool arguments JSON"})

    try:
        spec = TOOL_TABLE[ToolName(name)]
    except ValueError:
        logger.warning("Unknown tool requested", tool=name)
        return ToolOutcome(result={"error": f"Unknown tool: {name}"})

    try:
        args = spec.args_model.model_validate(arguments)
    except PydanticValidationError as exc:
        logger.warning("Tool arguments failed validation", tool=name, errors=exc.error_count())
        return ToolOutcome(result={"error": f"Invalid arguments for {name}: {exc}"})

    logger.info("Executing tool", tool=name, args=arguments)
    try:
        return spec.handler(args, ctx)
    except DndSessionError as exc:
        logger.warning("Tool failed", tool=name, error=exc.message)
        return ToolOutcome(result={"error": exc.message})
    except Exception as exc:
        logger.exception("Tool raised unexpectedly", tool=name)
        return ToolOutcome(result={"error": str(exc)})


__all__ = [
    "ToolName",
    "AbilityCheckArgs",
    "SavingThrowArgs",
    "GroupCheckArgs",
    "EnemySpec",
    "StartCombatArgs",
    "RestrictActionArgs",
    "ToolOutcome",
    "ToolSpec",
    "resolve_character_id",
    "build_tool_table",
    "TOOL_TABLE",
    "EXPLORATION_TOOLS",
    "execute_tool_call",
]
