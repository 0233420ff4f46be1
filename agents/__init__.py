"""Hannah Agent Module.

Conversation-facing components of the profile builder.

Agents:
    IntakeAgent: Hannah's reply for a turn, with a deterministic fallback.
    suggest: Quick-reply chips for the latest exchange.
"""
from agents.intake_agent import IntakeAgent, fallback_reply, build_system_prompt
from agents.suggestion_agent import suggest, SUGGESTION_RULES

__all__ = [
    "IntakeAgent",
    "fallback_reply",
    "build_system_prompt",
    "suggest",
    "SUGGESTION_RULES",
]
