from dataclasses import dataclass
from typing import Dict, Optional

from models.session import Profile

# Used when the user never told us their steps
DEFAULT_TDEE = 2000

# (upper bound of daily steps, exclusive) -> estimated TDEE
STEP_BRACKETS = (
    (5000, 1800),    # sedentary
    (7500, 1950),    # lightly active
    (10000, 2100),   # moderately active
    (12500, 2250),   # active
)
VERY_ACTIVE_TDEE = 2400

# Daily deficit per weekly pace
PACE_DEFICITS = {
    "0.5kg": 550,
    "0.75kg": 825,
    "1kg": 1100,
}
MIN_SAFE_CALORIES = 1200

DEFAULT_MACROS = {"carbs": 45, "protein": 25, "fat": 30}
NAFLD_MACROS = {"carbs": 40, "protein": 30, "fat": 30}


@dataclass
class NutritionTargets:
    tdee: int
    target_calories: int
    macros: Dict[str, int]


def estimate_tdee_from_steps(daily_steps: Optional[int]) -> int:
    """
    Estimate Total Daily Energy Expenditure from daily step count.

    Steps matter more than anything else we collect, so TDEE is a simple
    bracket lookup:
    - unknown: 2000
    - <5000: 1800, <7500: 1950, <10000: 2100, <12500: 2250, else 2400
    """
    if daily_steps is None:
        return DEFAULT_TDEE
    for upper, tdee in STEP_BRACKETS:
        if daily_steps < upper:
            return tdee
    return VERY_ACTIVE_TDEE


def calc_target_calories(tdee: int, weight_pace: Optional[str]) -> int:
    """
    Daily calorie target for the chosen weekly weight-loss pace.

    The 1kg/week pace is floored at 1200 kcal. No pace means maintenance (TDEE).
    """
    deficit = PACE_DEFICITS.get(weight_pace)
    if deficit is None:
        return tdee
    target = tdee - deficit
    if weight_pace == "1kg":
        target = max(MIN_SAFE_CALORIES, target)
    return target


def macro_split(condition: Optional[str]) -> Dict[str, int]:
    """Percent of calories from carbs/protein/fat. NAFLD trades carbs for protein."""
    if condition == "NAFLD":
        return dict(NAFLD_MACROS)
    return dict(DEFAULT_MACROS)


def derive(profile: Profile) -> NutritionTargets:
    """Calorie and macro targets from whatever the profile holds so far."""
    tdee = estimate_tdee_from_steps(profile.daily_steps)
    return NutritionTargets(
        tdee=tdee,
        target_calories=calc_target_calories(tdee, profile.weight_pace),
        macros=macro_split(profile.condition),
    )
