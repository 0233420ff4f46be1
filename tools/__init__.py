"""Hannah Tools Module.

Deterministic, LLM-free building blocks used by the dialogue orchestrator.

Tools:
    extract: Apply the profile extraction rule table to one turn.
    derive: Calorie target and macro split from a (partial) profile.
"""
from tools.profile_extraction import extract, EXTRACTION_RULES, ExtractionRule
from tools.nutrition_targets import (
    derive,
    estimate_tdee_from_steps,
    calc_target_calories,
    macro_split,
    NutritionTargets,
)

__all__ = [
    "extract",
    "EXTRACTION_RULES",
    "ExtractionRule",
    "derive",
    "estimate_tdee_from_steps",
    "calc_target_calories",
    "macro_split",
    "NutritionTargets",
]
