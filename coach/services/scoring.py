from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Optional

from coach.models import CheckIn, Profile, Targets
from coach.services.units import round_half_up

DEFAULT_STEP_TARGET = 8000


@dataclass(frozen=True)
class Adherence:
    total: int
    breakdown: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Recovery:
    score: int
    status: str


def _deviation_band(actual: float, target: float, bands: tuple[float, float, float]) -> int:
    off = abs(actual - target) / target
    if off <= bands[0]:
        return 100
    if off <= bands[1]:
        return 75
    if off <= bands[2]:
        return 50
    return 25


def _steps_band(steps: int, step_target: int) -> int:
    hit = steps / step_target
    if hit >= 0.95:
        return 100
    if hit >= 0.80:
        return 75
    if hit >= 0.60:
        return 50
    return 25


def adherence_score(checkin: Optional[CheckIn], targets: Optional[Targets],
                    profile: Optional[Profile] = None) -> Adherence:
    """Score each dimension the day actually logged; missing data is skipped, not failed."""
    if checkin is None or targets is None:
        return Adherence(0, {})

    scores = {}
    if checkin.calories and targets.calories:
        scores["calories"] = _deviation_band(checkin.calories, targets.calories, (0.05, 0.10, 0.15))
    if checkin.protein and targets.protein:
        scores["protein"] = _deviation_band(checkin.protein, targets.protein, (0.10, 0.20, 0.30))
    if checkin.workout_completed is not None:
        scores["workout"] = 100 if checkin.workout_completed else 0
    if checkin.steps:
        step_target = (profile.step_target if profile else 0) or DEFAULT_STEP_TARGET
        scores["steps"] = _steps_band(checkin.steps, step_target)

    if not scores:
        return Adherence(0, {})
    return Adherence(round_half_up(sum(scores.values()) / len(scores)), scores)


def recovery_score(checkin: Optional[CheckIn]) -> Recovery:
    if checkin is None:
        return Recovery(0, "UNKNOWN")

    score = 50

    sleep = checkin.sleep_hours
    if sleep >= 7.5:
        score += 20
    elif sleep >= 6.5:
        score += 10
    elif sleep < 5.5:
        score -= 15

    # first match wins: 5 is a +10, 6-7 is -5, 8+ is -15
    stress = checkin.stress
    if stress <= 3:
        score += 20
    elif stress <= 5:
        score += 10
    elif stress >= 8:
        score -= 15
    elif stress >= 6:
        score -= 5

    energy = checkin.energy
    if energy >= 7:
        score += 10
    elif energy <= 3:
        score -= 10

    score = max(0, min(100, score))
    if score >= 80:
        status = "OPTIMAL"
    elif score >= 60:
        status = "ADEQUATE"
    elif score >= 40:
        status = "FATIGUED"
    else:
        status = "RECOVERY NEEDED"
    return Recovery(score, status)


def adherence_label(score: int) -> str:
    if score >= 90:
        return "EXCELLENT"
    if score >= 75:
        return "GOOD"
    if score >= 60:
        return "FAIR"
    if score >= 40:
        return "NEEDS WORK"
    return "OFF TRACK"


def average_adherence(checkins: Iterable[CheckIn], targets: Optional[Targets],
                      profile: Optional[Profile] = None) -> int:
    totals = [adherence_score(c, targets, profile).total for c in checkins]
    if not totals:
        return 0
    return round_half_up(sum(totals) / len(totals))
