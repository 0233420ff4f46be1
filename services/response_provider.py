"""Response Provider Module

The language model behind Hannah's replies. The orchestrator only knows the
ResponseProvider interface; every failure mode (network, timeout, blocked or
empty payload, missing API key) surfaces as ProviderError so the caller can
fall back to a deterministic reply.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from config.llm import get_gemini_model
from models.session import Turn

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """The provider could not produce a usable reply."""

    def __init__(self, reason: str, message: str = ""):
        self.reason = reason  # "network" | "timeout" | "malformed" | "unavailable"
        super().__init__(message or reason)


@dataclass
class ProviderContext:
    system_prompt: str
    profile: Dict[str, Any]
    recent_history: List[Turn] = field(default_factory=list)


@dataclass
class ProviderReply:
    message: str


class ResponseProvider:
    """Interface: turn user text plus context into Hannah's next message."""

    async def respond(self, user_text: str, context: ProviderContext) -> ProviderReply:
        raise NotImplementedError


class GeminiResponseProvider(ResponseProvider):
    """Gemini-backed provider. Single attempt, no retries."""

    def __init__(self, model=None):
        self.model = model if model is not None else get_gemini_model()

    async def respond(self, user_text: str, context: ProviderContext) -> ProviderReply:
        if not self.model:
            raise ProviderError("unavailable", "Gemini model not configured")

        prompt = self._build_prompt(user_text, context)
        try:
            response = await self.model.generate_content_async(prompt)
        except Exception as e:
            # The SDK raises a zoo of transport/API errors; they all mean "no reply"
            raise ProviderError("network", f"Gemini request failed: {e}") from e

        try:
            text = response.text
        except (ValueError, AttributeError) as e:
            # .text raises ValueError when the candidate was blocked or empty
            raise ProviderError("malformed", f"Unusable Gemini response: {e}") from e

        text = (text or "").strip()
        if not text:
            raise ProviderError("malformed", "Empty Gemini response")
        return ProviderReply(message=text)

    def _build_prompt(self, user_text: str, context: ProviderContext) -> str:
        lines = []
        for turn in context.recent_history:
            lines.append(f"user: {turn.user_text}")
            lines.append(f"hannah: {turn.provider_reply}")
        history = "\n".join(lines) if lines else "(no earlier messages)"

        return f"""{context.system_prompt}

CONVERSATION SO FAR:
{history}

user: {user_text}
hannah:"""
