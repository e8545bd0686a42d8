from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from coach.models import WeightEntry
from coach.services.units import round_half_up

PLATEAU_MIN_ENTRIES = 12
PLATEAU_MAX_CHANGE_PCT = 0.25
PLATEAU_MIN_ADHERENCE = 85


@dataclass(frozen=True)
class RollingPoint:
    date: date
    weight: float
    avg: Optional[float]   # None = not enough entries to average


def sort_weights(entries: Iterable[WeightEntry]) -> list[WeightEntry]:
    return sorted(entries, key=lambda e: e.date)


def _mean(entries: list[WeightEntry]) -> float:
    return sum(e.weight for e in entries) / len(entries)


def rolling_average(entries: Iterable[WeightEntry], window: int = 7) -> list[RollingPoint]:
    ordered = sort_weights(entries)
    if len(ordered) < 2:
        return [RollingPoint(e.date, e.weight, None) for e in ordered]

    points = []
    for i, e in enumerate(ordered):
        # window shrinks at the start of the series instead of padding
        chunk = ordered[max(0, i - window + 1):i + 1]
        points.append(RollingPoint(e.date, e.weight, round_half_up(_mean(chunk), 1)))
    return points


def weekly_loss_rate(entries: Iterable[WeightEntry]) -> Optional[float]:
    """Mean of the previous 7 entries minus mean of the latest 7 (positive = loss)."""
    ordered = sort_weights(entries)
    if len(ordered) < 7:
        return None
    recent = ordered[-7:]
    previous = ordered[-14:-7]
    if len(previous) < 3:
        return None
    return round_half_up(_mean(previous) - _mean(recent), 1)


def split_fortnight(entries: Iterable[WeightEntry], min_entries: int = 14) -> Optional[tuple[float, float]]:
    """Means of the first and last 7 of the most recent 14 entries.

    With fewer than 14 entries the two halves overlap.
    """
    last14 = sort_weights(entries)[-14:]
    if len(last14) < min_entries:
        return None
    return _mean(last14[:7]), _mean(last14[-7:])


def plateau_detected(entries: Iterable[WeightEntry], avg_adherence: float) -> bool:
    halves = split_fortnight(entries, min_entries=PLATEAU_MIN_ENTRIES)
    if halves is None:
        return False
    first, last = halves
    change_pct = abs(first - last) / first * 100
    # a stall with poor compliance is not a plateau
    return change_pct < PLATEAU_MAX_CHANGE_PCT and avg_adherence >= PLATEAU_MIN_ADHERENCE
