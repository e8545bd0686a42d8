from __future__ import annotations
import math
from datetime import date, datetime
from zoneinfo import ZoneInfo

LBS_TO_KG = 0.453592


def lbs_to_kg(lbs: float) -> float:
    return lbs * LBS_TO_KG


def cm_to_feet_inches(cm: float) -> str:
    total_in = cm / 2.54
    return f"{int(total_in // 12)}'{round_half_up(total_in % 12)}\""


def round_half_up(x: float, ndigits: int = 0):
    """Round with .5 going up (2.5 -> 3, -2.5 -> -2), unlike builtin round()."""
    if ndigits == 0:
        return int(math.floor(x + 0.5))
    scale = 10 ** ndigits
    return math.floor(x * scale + 0.5) / scale


def parse_day(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def days_between(a, b) -> int:
    return (parse_day(b) - parse_day(a)).days


def today(tz: str = "UTC") -> date:
    return datetime.now(ZoneInfo(tz)).date()
