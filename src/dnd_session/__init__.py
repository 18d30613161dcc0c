"""Turn orchestration and context assembly for LLM-narrated game sessions.

Each round several players submit actions; the engine assembles a bounded
prompt from game state, lets the narrator call game mechanics through a
capped tool loop, and streams ordered session events back to the caller.

Subpackages:
    core: Settings, logging and the exception hierarchy.
    models: Pydantic models for game state, events and LLM messages.
    engine: Dice, rule tables, the rules engine and turn gates.
    context: Context providers and the prompt builder.
    llm: LLM transport port and the OpenAI-compatible client.
    session: Tool table, exploration mode, coordinator and rooms.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
