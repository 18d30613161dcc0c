"""Engine-wide constants for the narrated session engine.

Priorities, dice bounds and prompt tags shared between the rules engine,
the context providers and the exploration loop.
"""

from __future__ import annotations

# =============================================================================
# Tool Loop
# =============================================================================

MAX_TOOL_ROUNDS = 5
"""Maximum LLM calls per exploration turn."""

# =============================================================================
# Context Assembly
# =============================================================================

SYSTEM_MERGE_THRESHOLD = 200
"""Blocks below this priority are merged into the leading system message."""

PRIORITY_SYSTEM_PROMPT = 0
PRIORITY_WORLD_CONTEXT = 10
PRIORITY_CHARACTER_STATUS = 15
PRIORITY_MODULE_CONTEXT = 100
PRIORITY_CHARACTER_PROFILES = 200
PRIORITY_PLAYER_NOTES = 300
PRIORITY_GAME_RULES = 300
PRIORITY_CONVERSATION_HISTORY = 400

HISTORY_TRUNCATION_SUFFIX = "..."
"""Appended to narratives cut by the conversation history block."""

# =============================================================================
# Dice Formula Bounds
# =============================================================================

MIN_DICE_COUNT = 1
MAX_DICE_COUNT = 100
MIN_DIE_SIDES = 2
MAX_DIE_SIDES = 1000
MAX_ABS_MODIFIER = 1000

DEFAULT_ABILITY_SCORE = 10
"""Score assumed when a template omits an ability."""

# =============================================================================
# Seeded RNG (classic ANSI C linear congruential generator)
# =============================================================================

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MASK = 0x7FFFFFFF
