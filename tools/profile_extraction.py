"""Profile extraction rules.

Each turn, the user's text and Hannah's reply are combined, lower-cased and
scanned against an ordered rule table. Rules are independent: every rule that
matches is applied, in table order, so if two rules write the same field the
later one wins (e.g. "fatty liver" and "diabetes" in one turn -> diabetes).

Goal, restriction and preference rules only look at what the user said.
Hannah's own questions ("lose weight or maintain?") must not answer for them.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from models.session import ConversationState, Turn

logger = logging.getLogger(__name__)

# Matcher result used when a rule writes the captured value itself
CAPTURED = object()

# Profile list fields; rules targeting them append instead of overwrite
APPEND_FIELDS = {"restrictions", "preferences"}

STEPS_PATTERN = re.compile(r"(\d{1,2})[,.]?(\d{3})\s*steps")
AGE_PATTERN = re.compile(r"\b([2-6]\d)\s*(years?|yo|yr)")
PREFERENCE_PATTERN = re.compile(r"\bi (?:love|enjoy)\s+((?:(?!and\b|but\b|or\b)[a-z]+\s?){1,3})")


@dataclass(frozen=True)
class ExtractionRule:
    """signal -> predicate -> profile mutation."""
    signal: str
    matcher: Callable[[str], Any]           # falsy = no match, otherwise the captured value
    effects: Dict[str, Any] = field(default_factory=dict)
    clears: Optional[str] = None             # DataNeeded flag satisfied by a match
    user_only: bool = False


def contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda text: any(n in text for n in needles)


def contains_all(*needles: str) -> Callable[[str], bool]:
    return lambda text: all(n in text for n in needles)


def _steps(text: str) -> Optional[int]:
    match = STEPS_PATTERN.search(text)
    if not match:
        return None
    return int(re.sub(r"\D", "", match.group(0)))


def _age(text: str) -> Optional[int]:
    match = AGE_PATTERN.search(text)
    return int(match.group(1)) if match else None


def _preference(text: str) -> Optional[str]:
    match = PREFERENCE_PATTERN.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def _lose_weight(text: str) -> bool:
    return ("lose" in text and "weight" in text) or "weight loss" in text


EXTRACTION_RULES: List[ExtractionRule] = [
    # Weight pace (per week)
    ExtractionRule("pace_0.5kg", contains_any("0.5kg", "half kg"),
                   effects={"weight_pace": "0.5kg"}, clears="goal"),
    ExtractionRule("pace_0.75kg", contains_any("0.75kg", "three quarters"),
                   effects={"weight_pace": "0.75kg"}, clears="goal"),
    ExtractionRule("pace_1kg", contains_any("1kg", "one kg"),
                   effects={"weight_pace": "1kg"}, clears="goal"),

    # Activity level
    ExtractionRule("sedentary", contains_any("desk", "office", "sitting"),
                   effects={"activity_level": "sedentary"}, clears="activity"),
    ExtractionRule("active", contains_any("active", "feet", "walking"),
                   effects={"activity_level": "active"}, clears="activity"),

    ExtractionRule("steps", _steps, effects={"daily_steps": CAPTURED}),
    ExtractionRule("age", _age, effects={"age": CAPTURED}, clears="demographics"),

    # Medical conditions
    ExtractionRule("nafld", contains_any("fatty liver", "nafld"),
                   effects={"condition": "NAFLD"}),
    ExtractionRule("diabetes", contains_any("diabetes"),
                   effects={"condition": "diabetes"}),
    ExtractionRule("ed_recovery", contains_all("eating", "disorder"),
                   effects={"condition": "ED_recovery", "hide_numbers": True}),

    # Goals
    ExtractionRule("goal_lose_weight", _lose_weight,
                   effects={"goal": "lose_weight"}, clears="goal", user_only=True),
    ExtractionRule("goal_maintain", contains_any("maintain"),
                   effects={"goal": "maintain"}, clears="goal", user_only=True),
    ExtractionRule("goal_build_muscle", contains_any("muscle"),
                   effects={"goal": "build_muscle"}, clears="goal", user_only=True),
    ExtractionRule("goal_eat_healthier", contains_any("eat healthier", "eat better"),
                   effects={"goal": "eat_healthier"}, clears="goal", user_only=True),

    # Dietary restrictions
    ExtractionRule("vegetarian", contains_any("vegetarian"),
                   effects={"restrictions": "vegetarian"}, user_only=True),
    ExtractionRule("vegan", contains_any("vegan"),
                   effects={"restrictions": "vegan"}, user_only=True),
    ExtractionRule("gluten", contains_any("gluten", "celiac", "coeliac"),
                   effects={"restrictions": "gluten-free"}, user_only=True),
    ExtractionRule("dairy", contains_any("dairy", "lactose"),
                   effects={"restrictions": "dairy-free"}, user_only=True),
    ExtractionRule("nuts", contains_any("nut allerg", "allergic to nuts", "peanut"),
                   effects={"restrictions": "nut-free"}, user_only=True),

    ExtractionRule("preference", _preference,
                   effects={"preferences": CAPTURED}, user_only=True),
]


def extract(user_text: str, provider_reply: str, state: ConversationState,
            rules: Optional[List[ExtractionRule]] = None) -> List[str]:
    """Apply every matching rule to the session profile and record the turn.

    Returns the names of the signals that fired, in table order.
    """
    combined = f"{user_text} {provider_reply}".lower()
    user_lower = user_text.lower()
    fired = []

    for rule in EXTRACTION_RULES if rules is None else rules:
        text = user_lower if rule.user_only else combined
        captured = rule.matcher(text)
        if not captured:
            continue

        for name, value in rule.effects.items():
            if value is CAPTURED:
                value = captured
            if name in APPEND_FIELDS:
                state.profile.append(name, value)
            else:
                state.profile.set(name, value)

        if rule.clears:
            state.data_needed.clear(rule.clears)
        fired.append(rule.signal)

    if fired:
        logger.info(f"Extracted signals: {fired}")

    state.history.append(Turn(user_text=user_text, provider_reply=provider_reply))
    return fired
