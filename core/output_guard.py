"""Output Guard - the one place numeric targets become user-facing.

When a user is in eating-disorder recovery (profile.hide_numbers), calorie
targets, weekly pace and macro percentages must never reach them. Every
user-visible rendering or serialization of a profile, and every set of
quick replies, goes through here; the
full numeric profile still flows to plan generation untouched.
"""
import logging
import re
from typing import Any, Dict, List

from models.session import Profile

logger = logging.getLogger(__name__)

# Fields that carry calorie/weight figures
NUMERIC_TARGET_FIELDS = ("weight_pace", "target_calories", "macros")

CONDITION_NOTES = {
    "NAFLD": "Liver-friendly meals: plenty of omega-3s and fiber, easy on saturated fat.",
    "diabetes": "Meals built to keep blood sugar steady.",
}

SUPPORTIVE_SUMMARY = (
    "Your Personalized Plan\n"
    "Regular, balanced meals with plenty of variety - nothing to count or track. "
    "We'll go at whatever pace feels right for you."
)

# Weight, pace or calorie figures inside a quick-reply chip
WEIGHT_FIGURE = re.compile(r"\d\s*(?:kg|kcal)\b|calorie", re.IGNORECASE)

# Shown instead of pace chips when numbers are hidden
SUPPORTIVE_PACE_OPTIONS = [
    "A gentle pace sounds good",
    "I'd rather not focus on weight",
    "Not sure yet",
]


def public_profile(profile: Profile) -> Dict[str, Any]:
    """Profile as it may be shown to the user."""
    data = profile.to_dict()
    if profile.hide_numbers:
        for name in NUMERIC_TARGET_FIELDS:
            data.pop(name, None)
    return data


def plan_summary(profile: Profile) -> str:
    """The 'your plan' message shown before meals are added."""
    if profile.hide_numbers:
        logger.info("Numbers hidden for this session; sending supportive plan summary")
        return SUPPORTIVE_SUMMARY

    lines = ["Your Personalized Plan"]
    if profile.weight_pace:
        lines.append(f"Weight goal: {profile.weight_pace}/week")
    if profile.target_calories:
        lines.append(f"Daily calories: ~{round(profile.target_calories)}")
    if profile.macros:
        m = profile.macros
        lines.append(f"Macros: {m['carbs']}% carbs, {m['protein']}% protein, {m['fat']}% fat")
    note = CONDITION_NOTES.get(profile.condition)
    if note:
        lines.append(note)
    return "\n".join(lines)


def public_suggestions(options: List[str], profile: Profile) -> List[str]:
    """Quick replies as they may be shown to the user.

    With numbers hidden, a chip set carrying weight or calorie figures is
    replaced as a whole by numbers-free options.
    """
    if not profile.hide_numbers:
        return list(options)
    if any(WEIGHT_FIGURE.search(option) for option in options):
        logger.info("Numbers hidden for this session; replacing figure-bearing suggestions")
        return list(SUPPORTIVE_PACE_OPTIONS)
    return list(options)
