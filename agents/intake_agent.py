"""IntakeAgent - Hannah's conversational voice

Gets Hannah's reply for each user turn from the response provider, and
falls back to deterministic keyword replies when the provider fails or times
out, so the conversation never stalls on an outage.

Design Decisions:
    1. Natural conversation, gentle persistence: the system prompt lists what
       Hannah would like to learn; she never interrogates.
    2. Bounded context: only the last MAX_RECENT_TURNS turns reach the provider.
    3. Single attempt: no retries, a failed call falls back immediately.
    4. Safety: eating-disorder recovery switches Hannah to a no-numbers mode,
       in the prompt and in the fallback replies.
"""
import asyncio
import json
import logging
from typing import Optional, Tuple

from config.settings import PROVIDER_TIMEOUT_SECONDS
from core.observability import Tracer, metrics
from models.session import ConversationState, Profile
from services.context_engine import ContextEngine
from services.response_provider import ProviderError, ResponseProvider

logger = logging.getLogger(__name__)

# (name, keyword test on the user's lower-cased text, reply). First hit wins.
FALLBACK_RULES = [
    ("health_condition",
     lambda t: "health" in t and "condition" in t,
     "I understand. Could you tell me a bit more about what you're managing? "
     "This helps me suggest the right meals for you."),
    ("medical",
     lambda t: "medical" in t or "doctor" in t,
     "I see. What condition are you working with? I'll make sure to create meals "
     "that support your health."),
    ("weight",
     lambda t: "weight" in t or "lose" in t,
     "I can help with that! A pace of 0.5-0.75kg per week preserves muscle and keeps "
     "weight off long-term. Faster loss often backfires - your metabolism slows and "
     "the weight returns. Does that sound reasonable?"),
    ("nafld",
     lambda t: "fatty liver" in t or "nafld" in t,
     "Thank you for sharing that. For NAFLD, we'll focus on meals rich in omega-3s, "
     "fiber, and antioxidants while limiting saturated fats - this helps promote fat "
     "reduction in the liver. Are you also looking to lose weight, or maintain where you are?"),
    ("diabetes",
     lambda t: "diabetes" in t,
     "Got it - I'll focus on meals that help keep blood sugar stable. Are you looking "
     "to lose weight as well, or maintain your current weight?"),
    ("food",
     lambda t: "meal" in t or "food" in t,
     "Let's create a meal plan that works for you. Are there any foods you particularly "
     "love or want to avoid?"),
]

# Replaces the pace guidance when numbers must stay hidden
SUPPORTIVE_WEIGHT_REPLY = (
    "Thank you for trusting me with that. We'll focus on regular, nourishing meals "
    "that feel good to eat - no numbers, no counting. Are there any foods you "
    "particularly love or want to avoid?"
)
READY_REPLY = "I think I have enough to get started with your meal plan. Let me put something together for you!"
STEPS_REPLY = (
    "That's helpful to know! Do you happen to track your daily steps? Even a rough "
    "estimate helps me calculate your needs better."
)


def fallback_reply(user_text: str, message_count: int, hide_numbers: bool = False) -> str:
    """Deterministic, in-character reply chosen by keywords in the user's text."""
    lower = user_text.lower()
    for name, matches, reply in FALLBACK_RULES:
        if matches(lower):
            if name == "weight" and hide_numbers:
                return SUPPORTIVE_WEIGHT_REPLY
            return reply
    if message_count > 5:
        return READY_REPLY
    return STEPS_REPLY


def build_system_prompt(profile: Profile, message_count: int) -> str:
    """Hannah's personality, goals and what we know so far."""
    known = json.dumps(profile.to_dict(), indent=2)
    return f"""You are Hannah from Hannah.health, a warm and understanding AI nutritionist.

Your backstory: Created by someone with NAFLD (fatty liver) and their partner recovering from an eating disorder. You understand health struggles personally.

Your personality:
- Warm, caring, conversational
- Never preachy or judgmental
- Focus on sustainable changes
- You understand that perfect is the enemy of good
- Back up recommendations with science when relevant (briefly)

Current conversation goal:
Naturally learn about the user through friendly conversation. You'd like to understand:
- Their health goals or conditions (especially if weight loss, eating disorder, or medical)
- If weight loss: Gently suggest 0.5-0.75kg/week as sustainable (1kg absolute max)
- How many steps they get daily (this matters most for calorie calculations)
- Rough age if it comes up naturally (helps with calorie math)
- Any foods they avoid or love

IMPORTANT: If someone mentions a "health condition" or "medical condition", ALWAYS ask what condition specifically before moving on.

Don't interrogate! Just have a natural conversation. After 5-7 exchanges, you'll have enough to help them.

IMPORTANT RULES:
- If someone mentions eating disorder/recovery: Switch to supportive mode, NO numbers ever
- If someone wants >1kg/week loss: Explain that 0.5-0.75kg/week is safest, 1kg absolute maximum
- For NAFLD: Focus on omega-3s, fiber, limiting saturated fat
- Keep responses to 2-3 sentences max
- If they seem reluctant to share details, that's okay - work with what you have
{"- THIS USER IS IN EATING DISORDER RECOVERY: never mention calories, kilograms, or any numbers" if profile.hide_numbers else ""}
What you know so far about this user:
{known}

Conversation so far: {message_count} messages exchanged"""


class IntakeAgent:
    """Asks the response provider for Hannah's reply, with a deterministic fallback."""

    def __init__(self, provider: ResponseProvider, context_engine: Optional[ContextEngine] = None,
                 timeout: float = PROVIDER_TIMEOUT_SECONDS):
        self.provider = provider
        self.context_engine = context_engine or ContextEngine()
        self.timeout = timeout

    async def reply(self, user_text: str, state: ConversationState) -> Tuple[str, bool]:
        """Return (reply, used_fallback). Never raises for provider failures."""
        profile = state.profile.get()
        context = self.context_engine.build_provider_context(
            state, build_system_prompt(profile, state.message_count)
        )

        try:
            with Tracer("ResponseProvider", user_text):
                result = await asyncio.wait_for(
                    self.provider.respond(user_text, context), timeout=self.timeout
                )
            message = getattr(result, "message", None)
            if not isinstance(message, str) or not message.strip():
                raise ProviderError("malformed", f"Provider returned no message: {result!r}")
            return message, False
        except asyncio.TimeoutError:
            logger.warning(f"Response provider timed out after {self.timeout}s; using fallback reply")
        except ProviderError as e:
            logger.warning(f"Response provider failed ({e.reason}): {e}; using fallback reply")
        except Exception as e:
            logger.warning(f"Response provider raised {type(e).__name__}: {e}; using fallback reply")

        metrics.record_fallback()
        return fallback_reply(user_text, state.message_count, profile.hide_numbers), True
