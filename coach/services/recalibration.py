from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from coach.models import Targets, WeightEntry
from coach.services.metabolic import CALORIE_FLOOR, KCAL_PER_LB, split_macros
from coach.services.trends import split_fortnight
from coach.services.units import round_half_up

ACTIONS = ("increase", "decrease", "maintain")


@dataclass(frozen=True)
class TdeeEstimate:
    tdee: int
    weekly_rate: float   # lbs/week, positive = loss


def data_driven_tdee(targets: Targets, entries: Iterable[WeightEntry]) -> Optional[TdeeEstimate]:
    """TDEE implied by prescribed intake vs. the weight actually lost over 14 entries."""
    halves = split_fortnight(entries, min_entries=14)
    if halves is None:
        return None
    first, last = halves
    rate = first - last
    return TdeeEstimate(
        tdee=round_half_up(targets.calories + rate * KCAL_PER_LB / 7),
        weekly_rate=round_half_up(rate, 1),
    )


def apply_calorie_adjustment(targets: Targets, action: str, amount: int) -> Targets:
    if action not in ACTIONS:
        raise ValueError(f"unknown adjustment action: {action!r}")
    if action == "maintain" or not amount:
        return targets

    delta = abs(amount) if action == "increase" else -abs(amount)
    calories = max(CALORIE_FLOOR, targets.calories + delta)
    fat, carbs = split_macros(calories, targets.protein)
    return replace(targets, calories=calories, fat=fat, carbs=carbs)


def retarget_from_tdee(targets: Targets, estimate: TdeeEstimate) -> Targets:
    """Adopt the observed TDEE while keeping the weekly loss target."""
    deficit = round_half_up(targets.weekly_loss_target * KCAL_PER_LB / 7)
    calories = max(CALORIE_FLOOR, estimate.tdee - deficit)
    fat, carbs = split_macros(calories, targets.protein)
    return replace(targets, calories=calories, fat=fat, carbs=carbs, tdee=estimate.tdee)
