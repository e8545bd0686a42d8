import logging

from aiogram import Router, F
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery

from coach.db import APPLIED_REVIEW_KEY, safe_save
from coach.handlers.common import current_day, format_targets
from coach.keyboards import adjustment_keyboard, recalc_keyboard
from coach.services.advisor import Advisor, weekly_prompt
from coach.services.recalibration import ACTIONS, apply_calorie_adjustment, data_driven_tdee, retarget_from_tdee
from coach.services.summary import REVIEW_MIN_CHECKINS, progress, weekly_summary

logger = logging.getLogger(__name__)

router = Router()


def _adjustment(review: dict):
    """(action, amount) from a review answer, or None when there is nothing to apply."""
    adj = review.get("calorieAdjustment")
    if not isinstance(adj, dict):
        return None
    action = adj.get("action")
    try:
        amount = abs(int(adj.get("amount") or 0))
    except (TypeError, ValueError):
        return None
    if action not in ACTIONS or action == "maintain" or not amount:
        return None
    return action, amount


@router.message(Command("review"))
async def review_cmd(message: Message, db, user_row, cfg, advisor: Advisor):
    profile = db.get_profile(user_row.id)
    targets = db.get_targets(user_row.id)
    if not profile or not targets:
        await message.answer("Set up your profile first: /start")
        return

    weights = db.get_weights(user_row.id)
    s = weekly_summary(profile, targets, db.get_checkins(user_row.id), weights, current_day(cfg))
    rate = f"{s.weekly_loss} lbs" if s.weekly_loss is not None else "-"
    await message.answer(
        "THIS WEEK\n"
        f"Avg calories: {s.avg_calories} / {targets.calories} kcal\n"
        f"Avg protein: {s.avg_protein} / {targets.protein} g\n"
        f"Workouts: {s.workouts_done}/{profile.training_days}\n"
        f"Adherence: {s.avg_adherence}%\n"
        f"Weekly loss: {rate} (target {targets.weekly_loss_target})\n"
        f"Check-ins: {s.checkin_count}/7\n"
        f"Plateau: {'YES' if s.plateau else 'no'} | "
        f"Diet break: {'eligible' if s.diet_break_eligible else f'not yet ({s.days_in_deficit} days)'}"
    )

    if not advisor.enabled:
        await message.answer("Add a coaching key with /apikey to get an AI review.")
        return
    if not s.ready:
        await message.answer(f"Need {REVIEW_MIN_CHECKINS}+ check-ins this week for an AI review ({s.checkin_count}/{REVIEW_MIN_CHECKINS}).")
        return

    program = db.get_program(user_row.id)
    prompt = weekly_prompt(profile, targets, s, progress(profile, weights).current,
                           program.type if program else "Full Body")
    review = await advisor.ask_async(prompt)
    if not review:
        await message.answer("No AI analysis available right now.")
        return

    lines = [review.get("weekSummary") or "", f"Compliance: {review.get('complianceRating') or '-'}"]
    for label, key in (("Weight", "weightAnalysis"), ("Training", "trainingNote"),
                       ("Plateau", "plateauAction"), ("Next week", "nextWeekFocus")):
        if review.get(key):
            lines.append(f"{label}: {review[key]}")
    adj = _adjustment(review)
    if adj:
        reason = review["calorieAdjustment"].get("reason") or ""
        lines.append(f"Calorie adjustment: {adj[0]} {adj[1]} kcal. {reason}".strip())
        await message.answer("\n".join(l for l in lines if l), reply_markup=adjustment_keyboard(*adj))
    else:
        await message.answer("\n".join(l for l in lines if l))


@router.callback_query(F.data.startswith("adj:"))
async def adjustment_cb(cb: CallbackQuery, db, user_row):
    # adj:<action>:<amount>
    parts = cb.data.split(":")
    try:
        action, amount = parts[1], int(parts[2])
    except (IndexError, ValueError):
        await cb.answer("Bad request")
        return
    if action not in ACTIONS:
        await cb.answer("Bad request")
        return

    # one review message, one apply
    review_id = str(cb.message.message_id)
    if db.get_meta(user_row.id, APPLIED_REVIEW_KEY) == review_id:
        await cb.answer("Already applied")
        return

    targets = db.get_targets(user_row.id)
    if not targets:
        await cb.answer("No targets")
        return
    updated = apply_calorie_adjustment(targets, action, amount)
    if updated != targets and not safe_save("targets", db.upsert_targets, user_row.id, updated):
        await cb.answer("Could not save")
        return
    safe_save("applied review", db.set_meta, user_row.id, APPLIED_REVIEW_KEY, review_id)
    logger.info("user %s: calories %s -> %s", user_row.id, targets.calories, updated.calories)
    try:
        await cb.message.edit_reply_markup(reply_markup=None)
    except TelegramAPIError as e:
        logger.warning("could not remove the apply button: %s", e)
    await cb.message.answer(f"Applied.\n\n{format_targets(updated)}")
    await cb.answer("Ok")


@router.message(Command("recalc"))
async def recalc_cmd(message: Message, db, user_row):
    targets = db.get_targets(user_row.id)
    if not targets:
        await message.answer("Set up your profile first: /start")
        return
    estimate = data_driven_tdee(targets, db.get_weights(user_row.id))
    if estimate is None:
        await message.answer("Need 14 weigh-ins for a data-driven TDEE.")
        return
    await message.answer(
        f"Data-driven TDEE: {estimate.tdee} kcal (assumed {targets.tdee})\n"
        f"14-day rate: {estimate.weekly_rate} lbs/wk",
        reply_markup=recalc_keyboard(estimate.tdee),
    )


@router.callback_query(F.data.startswith("recalc:"))
async def recalc_cb(cb: CallbackQuery, db, user_row):
    targets = db.get_targets(user_row.id)
    # recompute instead of trusting the button: weights may have changed since
    estimate = data_driven_tdee(targets, db.get_weights(user_row.id)) if targets else None
    if estimate is None:
        await cb.answer("Not enough data")
        return
    updated = retarget_from_tdee(targets, estimate)
    if not safe_save("targets", db.upsert_targets, user_row.id, updated):
        await cb.answer("Could not save")
        return
    await cb.message.answer(f"Targets updated.\n\n{format_targets(updated)}")
    await cb.answer("Ok")
