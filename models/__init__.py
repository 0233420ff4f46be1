"""Hannah Data Models.

This module contains the dataclasses for per-session conversation state.

Models:
    Profile: Everything learned about the user so far.
    ProfileStore: Type-checked mutable holder for the Profile.
    DataNeeded: Monotonic flags for what is still unknown.
    ConversationHistory: Append-only list of turns.
    ConversationState: One session's profile, flags, history and turn count.
    SessionPhase: Enum for the dialogue state machine.
"""
from models.session import (
    Profile,
    ProfileStore,
    DataNeeded,
    Turn,
    ConversationHistory,
    ConversationState,
    SessionPhase,
    MessageEvent,
    SuggestionsEvent,
)

__all__ = [
    "Profile",
    "ProfileStore",
    "DataNeeded",
    "Turn",
    "ConversationHistory",
    "ConversationState",
    "SessionPhase",
    "MessageEvent",
    "SuggestionsEvent",
]
