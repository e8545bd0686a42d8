import logging
from datetime import date

from aiogram import Router, F
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery

from coach.db import COACH_KEY, safe_save
from coach.handlers.common import current_day, format_targets, parse_weight
from coach.keyboards import reset_keyboard
from coach.models import WeightEntry
from coach.services.scoring import adherence_score, average_adherence, recovery_score
from coach.services.summary import progress, recent_checkins
from coach.services.trends import rolling_average, weekly_loss_rate
from coach.services.units import cm_to_feet_inches, days_between

logger = logging.getLogger(__name__)

router = Router()


@router.message(Command("help"))
async def help_cmd(message: Message):
    await message.answer(
        "Commands:\n"
        "/start - set up profile, targets and program\n"
        "/checkin - daily check-in (weight, food, training, recovery)\n"
        "/today - dashboard\n"
        "/weight <lbs> [YYYY-MM-DD] - log a weight\n"
        "/trend - 7-day rolling average\n"
        "/targets - current targets\n"
        "/program - training program, /log - log a workout, /lift <exercise> - history\n"
        "/review - weekly review, /recalc - data-driven TDEE\n"
        "/apikey <key> - coaching service key\n"
        "/reset - delete all data"
    )


@router.message(Command("today"))
async def today_cmd(message: Message, db, user_row, cfg):
    profile = db.get_profile(user_row.id)
    if not profile:
        await message.answer("Set up your profile first: /start")
        return

    day = current_day(cfg)
    targets = db.get_targets(user_row.id)
    weights = db.get_weights(user_row.id)
    checkins = db.get_checkins(user_row.id)
    p = progress(profile, weights)
    rate = weekly_loss_rate(weights)
    week = recent_checkins(checkins, day)
    workouts = sum(1 for c in week if c.workout_completed)
    todays = db.get_checkin(user_row.id, day)

    lines = [
        f"{profile.name.upper()} - day {days_between(profile.created_at, day) + 1}",
        f"Weight: {p.current} lbs | lost {p.lost} | to go {max(0, p.remaining)} | {p.percent}%",
        f"Rate: {f'{rate} lbs/wk' if rate is not None else '-'}"
        + (f" (target {targets.weekly_loss_target})" if targets else ""),
        f"7-day adherence: {average_adherence(week, targets, profile)}%",
        f"Workouts this week: {workouts}/{profile.training_days}",
    ]
    if todays:
        a = adherence_score(todays, targets, profile)
        r = recovery_score(todays)
        lines.append(f"Today: adherence {a.total}%, recovery {r.score} {r.status}")
    else:
        lines.append("No check-in yet today: /checkin")
    await message.answer("\n".join(lines))


@router.message(Command("weight"))
async def weight_cmd(message: Message, db, user_row, cfg):
    parts = (message.text or "").split()
    weight = parse_weight(parts[1]) if len(parts) > 1 else None
    if weight is None:
        await message.answer("Format: /weight 198.4 [2024-05-01], 50-500 lbs")
        return
    day = current_day(cfg)
    if len(parts) > 2:
        try:
            day = date.fromisoformat(parts[2])
        except ValueError:
            await message.answer("Date as YYYY-MM-DD")
            return
    if safe_save("weight", db.upsert_weight, user_row.id, WeightEntry(day, weight)):
        await message.answer(f"Saved {weight} lbs for {day.isoformat()}")
    else:
        await message.answer("Could not save the weight, try again later.")


@router.message(Command("trend"))
async def trend_cmd(message: Message, db, user_row):
    weights = db.get_weights(user_row.id)
    points = rolling_average(weights)
    if len(points) < 2:
        await message.answer("Need at least 2 weigh-ins for a trend.")
        return
    rows = [f"{p.date.isoformat()}  {p.weight:>6}  avg {p.avg}" for p in points[-14:]]
    rate = weekly_loss_rate(weights)
    rows.append(f"Weekly loss: {rate} lbs/wk" if rate is not None else "Weekly loss: insufficient data")
    await message.answer("\n".join(rows))


@router.message(Command("targets"))
async def targets_cmd(message: Message, db, user_row):
    profile = db.get_profile(user_row.id)
    targets = db.get_targets(user_row.id)
    if not profile or not targets:
        await message.answer("Set up your profile first: /start")
        return
    await message.answer(
        f"{profile.name}, {profile.age}, {profile.height_cm} cm ({cm_to_feet_inches(profile.height_cm)})\n"
        f"{profile.weight_lbs} -> {profile.goal_weight_lbs} lbs in {profile.goal_weeks} weeks\n"
        f"BMR {profile.bmr} kcal\n\n"
        f"{format_targets(targets)}"
    )


@router.message(Command("apikey"))
async def apikey_cmd(message: Message, db, user_row):
    parts = (message.text or "").split(maxsplit=1)
    if len(parts) < 2:
        await message.answer("Format: /apikey sk-ant-...")
        return
    if safe_save("coaching key", db.set_meta, user_row.id, COACH_KEY, parts[1].strip()):
        await message.answer("Key saved. AI analysis is on.")
    else:
        await message.answer("Could not save the key.")
    # the key should not stay in the chat history
    try:
        await message.delete()
    except TelegramAPIError as e:
        logger.warning("could not delete /apikey message: %s", e)


@router.message(Command("reset"))
async def reset_cmd(message: Message):
    await message.answer("Delete profile, targets, program and all history?", reply_markup=reset_keyboard())


@router.callback_query(F.data.startswith("reset:"))
async def reset_cb(cb: CallbackQuery, db, user_row):
    if cb.data == "reset:yes":
        ok = safe_save("reset", db.reset_user, user_row.id)
        await cb.message.answer("All data deleted. /start to begin again." if ok else "Reset failed.")
    else:
        await cb.message.answer("Cancelled.")
    await cb.answer()
