from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from coach.models import CheckIn, Profile, Targets, WeightEntry
from coach.services.scoring import average_adherence
from coach.services.trends import plateau_detected, sort_weights, weekly_loss_rate
from coach.services.units import days_between, round_half_up

DIET_BREAK_DAYS = 56
REVIEW_MIN_CHECKINS = 5


@dataclass(frozen=True)
class Progress:
    current: float
    lost: float
    remaining: float
    percent: int


@dataclass(frozen=True)
class WeeklySummary:
    avg_calories: int
    avg_protein: int
    workouts_done: int
    avg_adherence: int
    weekly_loss: Optional[float]
    checkin_count: int
    days_in_deficit: int
    plateau: bool
    diet_break_eligible: bool

    @property
    def ready(self) -> bool:
        return self.checkin_count >= REVIEW_MIN_CHECKINS


def progress(profile: Profile, entries: Iterable[WeightEntry]) -> Progress:
    ordered = sort_weights(entries)
    current = ordered[-1].weight if ordered else profile.weight_lbs
    lost = round_half_up(profile.weight_lbs - current, 1)
    remaining = round_half_up(current - profile.goal_weight_lbs, 1)
    to_lose = profile.weight_lbs - profile.goal_weight_lbs
    percent = 0
    if to_lose:
        percent = min(100, max(0, round_half_up(lost / to_lose * 100)))
    return Progress(current, lost, remaining, percent)


def recent_checkins(checkins: Iterable[CheckIn], today: date, days: int = 7) -> list[CheckIn]:
    return [c for c in checkins if days_between(c.date, today) < days]


def last_checkins(checkins: Iterable[CheckIn], n: int = 7) -> list[CheckIn]:
    return sorted(checkins, key=lambda c: c.date, reverse=True)[:n]


def days_in_deficit(profile: Profile, today: date) -> int:
    if not profile.created_at:
        return 0
    return days_between(profile.created_at, today)


def _avg(values: list[float]) -> int:
    return round_half_up(sum(values) / len(values)) if values else 0


def weekly_summary(profile: Profile, targets: Optional[Targets], checkins: Iterable[CheckIn],
                   entries: Iterable[WeightEntry], today: date) -> WeeklySummary:
    week = last_checkins(checkins)
    entries = list(entries)
    adherence = average_adherence(week, targets, profile)
    in_deficit = days_in_deficit(profile, today)
    return WeeklySummary(
        avg_calories=_avg([c.calories or 0 for c in week]),
        avg_protein=_avg([c.protein or 0 for c in week]),
        workouts_done=sum(1 for c in week if c.workout_completed),
        avg_adherence=adherence,
        weekly_loss=weekly_loss_rate(entries),
        checkin_count=len(week),
        days_in_deficit=in_deficit,
        plateau=plateau_detected(entries, adherence),
        diet_break_eligible=in_deficit >= DIET_BREAK_DAYS,
    )
