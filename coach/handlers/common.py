from __future__ import annotations
from datetime import date
from typing import Callable, Optional

from coach.models import Targets
from coach.services.metabolic import macro_warnings
from coach.services.units import today

MIN_WEIGHT_LBS = 50
MAX_WEIGHT_LBS = 500


def parse_number(text: Optional[str], lo: float, hi: float, cast: Callable = float):
    """User-typed number within [lo, hi], or None if it isn't one."""
    try:
        value = cast((text or "").strip().replace(",", "."))
    except ValueError:
        return None
    if value < lo or value > hi:
        return None
    return value


def parse_weight(text: Optional[str]) -> Optional[float]:
    return parse_number(text, MIN_WEIGHT_LBS, MAX_WEIGHT_LBS)


def current_day(cfg) -> date:
    return today(cfg.tz)


def format_targets(t: Targets) -> str:
    text = (
        f"Calories: {t.calories} kcal (TDEE {t.tdee}, deficit {t.daily_deficit})\n"
        f"Protein {t.protein} g | Carbs {t.carbs} g | Fat {t.fat} g\n"
        f"Weekly loss target: {t.weekly_loss_target} lbs"
    )
    if "negative_carbs" in macro_warnings(t):
        text += "\n\nWarning: protein and fat already exceed the calorie target, carbs came out negative."
    return text
