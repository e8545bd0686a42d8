from __future__ import annotations
import asyncio
import json
import logging
import re
from typing import Optional

import requests

from coach.models import CheckIn, Profile, Targets
from coach.services.scoring import Adherence, Recovery
from coach.services.summary import WeeklySummary

logger = logging.getLogger(__name__)

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-sonnet-4-20250514"

_FENCE = re.compile(r"```(?:json)?")


def parse_advice(text: str) -> Optional[dict]:
    try:
        data = json.loads(_FENCE.sub("", text or "").strip())
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _fmt_rate(rate: Optional[float]) -> str:
    return f"{rate} lbs/wk" if rate is not None else "insufficient data"


def daily_prompt(profile: Profile, targets: Targets, checkin: CheckIn, adherence: Adherence,
                 avg_adherence: int, recovery: Recovery, current_weight: float,
                 weekly_loss: Optional[float]) -> str:
    return (
        "You are a fat-loss coach. Give a brief coaching response to this daily check-in.\n\n"
        f"ATHLETE: {profile.name}, age {profile.age}, goal {profile.goal_weight_lbs} lbs\n"
        f"Current weight: {current_weight} lbs | Weekly loss: {_fmt_rate(weekly_loss)}\n"
        f"Training target: {profile.training_days}/week\n"
        f"TARGETS: {targets.calories} kcal | {targets.protein}g P | {targets.carbs}g C | {targets.fat}g F\n"
        f"TODAY: {checkin.calories or '-'} kcal | {checkin.protein}g P | {checkin.carbs}g C | {checkin.fat}g F\n"
        f"Workout: {'yes' if checkin.workout_completed else 'no/rest'} | Steps: {checkin.steps or '-'}\n"
        f"Sleep: {checkin.sleep_hours}h | Stress: {checkin.stress}/10 | Energy: {checkin.energy}/10\n"
        f"Notes: {checkin.notes or 'none'}\n"
        f"Adherence: today {adherence.total}% | 7-day avg {avg_adherence}% | "
        f"Recovery: {recovery.status} ({recovery.score}/100)\n\n"
        'Respond ONLY with JSON: {"summary":"","nutritionNote":"","recoveryNote":"",'
        '"adjustment":"","tomorrowPriority":"","concern":null}'
    )


def weekly_prompt(profile: Profile, targets: Targets, summary: WeeklySummary,
                  current_weight: float, program_type: str) -> str:
    diet_break = "YES" if summary.diet_break_eligible else f"No ({summary.days_in_deficit} days)"
    return (
        "Fat-loss coach WEEKLY REVIEW.\n\n"
        f"PROFILE: {profile.name}, {profile.age}yo, {profile.sex}, "
        f"{profile.weight_lbs} -> {profile.goal_weight_lbs} lbs goal\n"
        f"Current: {current_weight} lbs | Days in deficit: {summary.days_in_deficit} | Program: {program_type}\n"
        f"THIS WEEK: avg {summary.avg_calories} kcal (target {targets.calories}) | "
        f"avg protein {summary.avg_protein}g (target {targets.protein}g)\n"
        f"Workouts: {summary.workouts_done}/{profile.training_days} | Adherence: {summary.avg_adherence}%\n"
        f"Weekly loss: {_fmt_rate(summary.weekly_loss)} (target {targets.weekly_loss_target} lbs)\n"
        f"Plateau: {'YES' if summary.plateau else 'No'} | Diet break eligible: {diet_break}\n\n"
        "RULES: slow loss with adherence >= 80% -> decrease 50-150 kcal. Fast loss -> increase slightly. "
        "Plateau -> small calorie cut OR more steps OR conditioning, never stacked.\n\n"
        'Respond ONLY with JSON: {"weekSummary":"","complianceRating":"EXCELLENT/GOOD/FAIR/POOR",'
        '"weightAnalysis":"","calorieAdjustment":{"action":"maintain/decrease/increase","amount":0,'
        '"reason":""},"trainingNote":"","plateauAction":null,"nextWeekFocus":"","flags":[]}'
    )


class Advisor:
    """Client for the coaching-advice service. Every failure comes back as None."""

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_MODEL, timeout: float = 30.0):
        self.api_key = (api_key or "").strip()
        self.model = model
        self.timeout = timeout

    def with_key(self, api_key: Optional[str]) -> "Advisor":
        return Advisor(api_key or self.api_key, self.model, self.timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def ask(self, prompt: str) -> Optional[dict]:
        if not self.enabled:
            return None
        try:
            resp = requests.post(
                API_URL,
                headers={
                    "content-type": "application/json",
                    "x-api-key": self.api_key,
                    "anthropic-version": API_VERSION,
                },
                json={
                    "model": self.model,
                    "max_tokens": 1000,
                    "messages": [{"role": "user", "content": prompt}],
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("advice request failed: %s", e)
            return None

        if resp.status_code != 200:
            logger.warning("advice service returned %s: %s", resp.status_code, resp.text[:200])
            return None
        try:
            body = resp.json()
        except ValueError:
            logger.warning("advice service returned a non-JSON body")
            return None
        blocks = body.get("content") if isinstance(body, dict) else None
        if not isinstance(blocks, list):
            logger.warning("advice service returned an unexpected body")
            return None
        text = "\n".join(str(b.get("text") or "") for b in blocks if isinstance(b, dict))
        advice = parse_advice(text)
        if advice is None:
            logger.warning("advice service returned unparseable content")
        return advice

    async def ask_async(self, prompt: str) -> Optional[dict]:
        if not self.enabled:
            return None
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.ask, prompt), timeout=self.timeout + 5)
        except asyncio.TimeoutError:
            logger.warning("advice request timed out after %ss", self.timeout)
            return None
