"""SuggestionAgent - Quick-reply chips

Looks at the latest exchange and offers 2-3 tappable replies. Rules are
checked in priority order (most specific first) and the first hit wins:
what Hannah just asked matters more than generic "what we still need".
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, List

from models.session import ConversationHistory, DataNeeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuggestionContext:
    reply: str          # Hannah's latest reply, lower-cased
    user_text: str      # user's latest message, lower-cased
    data_needed: DataNeeded
    message_count: int


@dataclass(frozen=True)
class SuggestionRule:
    name: str
    predicate: Callable[[SuggestionContext], bool]
    options: List[str]


def reply_mentions(*needles: str) -> Callable[[SuggestionContext], bool]:
    return lambda ctx: any(n in ctx.reply for n in needles)


def reply_matches(pattern: str) -> Callable[[SuggestionContext], bool]:
    compiled = re.compile(pattern)
    return lambda ctx: bool(compiled.search(ctx.reply))


def user_mentions(*needles: str) -> Callable[[SuggestionContext], bool]:
    return lambda ctx: any(n in ctx.user_text for n in needles)


def _asks_condition(ctx: SuggestionContext) -> bool:
    r = ctx.reply
    return "what condition" in r or "what you're managing" in r or ("tell me" in r and "managing" in r)


SUGGESTION_RULES: List[SuggestionRule] = [
    SuggestionRule("weight_goal",
                   reply_mentions("lose weight", "maintain", "weight loss", "your weight"),
                   ["Yes, lose some weight", "Maintain my weight", "Not sure yet"]),
    SuggestionRule("activity",
                   reply_mentions("typical day", "steps", "active", "walk"),
                   ["About 5,000 steps", "8,000-10,000 steps", "Over 12,000 steps"]),
    SuggestionRule("which_condition",
                   _asks_condition,
                   ["Fatty liver disease", "Type 2 diabetes", "High cholesterol"]),
    SuggestionRule("condition_category",
                   user_mentions("health condition", "medical"),
                   ["Fatty liver (NAFLD)", "Type 2 diabetes", "Just want to eat healthier"]),
    SuggestionRule("pace",
                   reply_mentions("0.5", "0.75", "per week", "sound reasonable"),
                   ["Yes, 0.5kg per week", "Maybe 0.75kg per week", "I'd still prefer 1kg per week"]),
    SuggestionRule("age",
                   reply_matches(r"\bage\b|how old"),
                   ["I'm in my 30s", "I'm 45", "I'd rather not say"]),
    SuggestionRule("foods",
                   reply_mentions("foods", "avoid", "allergies"),
                   ["No restrictions", "I'm vegetarian", "I avoid gluten"]),
    # Generic fallbacks based on what we still need
    SuggestionRule("steps_prompt",
                   lambda ctx: ctx.data_needed.demographics and ctx.message_count > 2,
                   ["About 5,000 steps daily", "Around 10,000 steps", "I don't track steps"]),
    SuggestionRule("wrap_up_prompt",
                   lambda ctx: ctx.message_count > 5,
                   ["Let's start planning", "That's enough about me", "What's next?"]),
]


def suggest(history: ConversationHistory, data_needed: DataNeeded, message_count: int) -> List[str]:
    """Up to three quick replies for the latest turn, or [] if nothing fits."""
    latest = history.latest
    if latest is None:
        return []

    ctx = SuggestionContext(
        reply=(latest.provider_reply or "").lower(),
        user_text=(latest.user_text or "").lower(),
        data_needed=data_needed,
        message_count=message_count,
    )
    for rule in SUGGESTION_RULES:
        if rule.predicate(ctx):
            logger.debug(f"Suggestion rule '{rule.name}' matched")
            return list(rule.options)
    return []
