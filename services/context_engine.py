"""Context Engineering Module

Keeps what the response provider sees bounded: the system prompt, the
current profile, and only the most recent turns of the conversation.
"""
import logging
from typing import List

from config.settings import MAX_RECENT_TURNS
from models.session import ConversationHistory, ConversationState, Turn
from services.response_provider import ProviderContext

logger = logging.getLogger(__name__)


class ContextEngine:
    """Builds the provider context for a turn."""

    def __init__(self, max_recent_turns: int = MAX_RECENT_TURNS):
        self.max_recent = max_recent_turns

    def recent_turns(self, history: ConversationHistory) -> List[Turn]:
        recent = history.recent(self.max_recent)
        if len(history) > len(recent):
            logger.debug(f"Context windowed: {len(history)} → {len(recent)} turns")
        return recent

    def build_provider_context(self, state: ConversationState, system_prompt: str) -> ProviderContext:
        return ProviderContext(
            system_prompt=system_prompt,
            profile=state.profile.get().to_dict(),
            recent_history=self.recent_turns(state.history),
        )
