from __future__ import annotations
from coach.models import Profile, Targets
from coach.services.units import lbs_to_kg, round_half_up

ACTIVITY_FACTOR = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}

KCAL_PER_LB = 3500
CALORIE_FLOOR = 1200
PROTEIN_PER_LB_GOAL = 0.85
FAT_SHARE = 0.25


def mifflin_st_jeor(sex: str, weight_kg: float, height_cm: float, age: int) -> float:
    # BMR
    s = 5 if sex == "male" else -161
    return 10 * weight_kg + 6.25 * height_cm - 5 * age + s


def compute_tdee(bmr: float, activity: str) -> int:
    if activity not in ACTIVITY_FACTOR:
        raise ValueError(f"unknown activity level: {activity!r}")
    return round_half_up(bmr * ACTIVITY_FACTOR[activity])


def split_macros(calories: int, protein: int) -> tuple[int, int]:
    """Fat is a fixed share of calories; carbs take whatever is left.

    Carbs are not clamped: extreme protein/calorie combinations give a
    negative number, see macro_warnings().
    """
    fat = round_half_up(calories * FAT_SHARE / 9)
    carbs = round_half_up((calories - protein * 4 - fat * 9) / 4)
    return fat, carbs


def compute_targets(profile: Profile) -> Targets:
    bmr = mifflin_st_jeor(profile.sex, lbs_to_kg(profile.weight_lbs), profile.height_cm, profile.age)
    tdee = compute_tdee(bmr, profile.activity)

    weekly = (profile.weight_lbs - profile.goal_weight_lbs) / profile.goal_weeks
    # negative deficit = surplus when the goal is above the start weight
    deficit = round_half_up(weekly * KCAL_PER_LB / 7)
    calories = max(CALORIE_FLOOR, round_half_up(tdee - deficit))

    # protein is sized to the goal weight, not the current one
    protein = round_half_up(profile.goal_weight_lbs * PROTEIN_PER_LB_GOAL)
    fat, carbs = split_macros(calories, protein)
    return Targets(
        calories=calories,
        protein=protein,
        carbs=carbs,
        fat=fat,
        weekly_loss_target=round_half_up(weekly, 1),
        daily_deficit=deficit,
        tdee=tdee,
    )


def macro_warnings(targets: Targets) -> list[str]:
    warnings = []
    if targets.carbs < 0:
        warnings.append("negative_carbs")
    return warnings
