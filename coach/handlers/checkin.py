import asyncio
import logging

from aiogram import Bot, Router, F
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery

from coach.db import safe_save
from coach.handlers.common import current_day, parse_number, parse_weight
from coach.keyboards import workout_keyboard
from coach.models import CheckIn
from coach.services.advisor import Advisor, daily_prompt
from coach.services.scoring import adherence_label, adherence_score, average_adherence, recovery_score
from coach.services.summary import last_checkins
from coach.services.trends import sort_weights, weekly_loss_rate
from coach.states import DailyCheckIn

logger = logging.getLogger(__name__)

router = Router()

# keeps fire-and-forget advice tasks referenced until they finish
_pending: set[asyncio.Task] = set()


def parse_nutrition(text: str):
    """'calories protein carbs fat [fiber]' -> 5 ints, or None."""
    parts = (text or "").replace(",", " ").split()
    if not 4 <= len(parts) <= 5:
        return None
    try:
        values = [int(p) for p in parts]
    except ValueError:
        return None
    if any(v < 0 for v in values):
        return None
    return values + [0] * (5 - len(values))


@router.message(Command("checkin"))
async def checkin_cmd(message: Message, db, user_row, state: FSMContext):
    if not db.get_profile(user_row.id):
        await message.answer("Set up your profile first: /start")
        return
    await state.clear()
    await state.set_state(DailyCheckIn.weight)
    await message.answer("Daily check-in. Morning weight in lbs? Send - to skip.")


@router.message(DailyCheckIn.weight)
async def weight_step(message: Message, state: FSMContext):
    text = (message.text or "").strip()
    weight = None
    if text != "-":
        weight = parse_weight(text)
        if weight is None:
            await message.answer("Weight in lbs between 50 and 500, or - to skip")
            return
    await state.update_data(weight=weight)
    await state.set_state(DailyCheckIn.nutrition)
    await message.answer("Nutrition: calories protein carbs fat [fiber], e.g. 2100 180 190 65 30. Send - to skip.")


@router.message(DailyCheckIn.nutrition)
async def nutrition_step(message: Message, state: FSMContext):
    text = (message.text or "").strip()
    values = [0, 0, 0, 0, 0]
    if text != "-":
        values = parse_nutrition(text)
        if values is None:
            await message.answer("Four or five whole numbers: calories protein carbs fat [fiber]")
            return
    calories, protein, carbs, fat, fiber = values
    await state.update_data(calories=calories, protein=protein, carbs=carbs, fat=fat, fiber=fiber)
    await state.set_state(DailyCheckIn.workout)
    await message.answer("Workout today?", reply_markup=workout_keyboard())


@router.callback_query(DailyCheckIn.workout, F.data.startswith("wo:"))
async def workout_cb(cb: CallbackQuery, state: FSMContext):
    await state.update_data(workout_completed=cb.data == "wo:yes")
    await state.set_state(DailyCheckIn.steps)
    await cb.message.answer("Steps today? (0 if unknown)")
    await cb.answer()


@router.message(DailyCheckIn.workout)
async def workout_text(message: Message):
    await message.answer("Tap one of the buttons: did you train today?", reply_markup=workout_keyboard())


@router.message(DailyCheckIn.steps)
async def steps_step(message: Message, state: FSMContext):
    steps = parse_number(message.text, 0, 200000, int)
    if steps is None:
        await message.answer("Steps as a whole number")
        return
    await state.update_data(steps=steps)
    await state.set_state(DailyCheckIn.sleep)
    await message.answer("Hours slept? e.g. 7.5")


@router.message(DailyCheckIn.sleep)
async def sleep_step(message: Message, state: FSMContext):
    hours = parse_number(message.text, 0, 24)
    if hours is None:
        await message.answer("Hours between 0 and 24")
        return
    await state.update_data(sleep_hours=hours)
    await state.set_state(DailyCheckIn.stress)
    await message.answer("Stress 1-10?")


@router.message(DailyCheckIn.stress)
async def stress_step(message: Message, state: FSMContext):
    stress = parse_number(message.text, 1, 10, int)
    if stress is None:
        await message.answer("A whole number from 1 to 10")
        return
    await state.update_data(stress=stress)
    await state.set_state(DailyCheckIn.energy)
    await message.answer("Energy 1-10?")


@router.message(DailyCheckIn.energy)
async def energy_step(message: Message, state: FSMContext):
    energy = parse_number(message.text, 1, 10, int)
    if energy is None:
        await message.answer("A whole number from 1 to 10")
        return
    await state.update_data(energy=energy)
    await state.set_state(DailyCheckIn.notes)
    await message.answer("Any notes? Send - for none.")


@router.message(DailyCheckIn.notes)
async def notes_step(message: Message, bot: Bot, db, user_row, cfg, advisor: Advisor, state: FSMContext):
    notes = (message.text or "").strip()
    data = await state.get_data()
    await state.clear()

    checkin = CheckIn(
        date=current_day(cfg),
        calories=data["calories"],
        protein=data["protein"],
        carbs=data["carbs"],
        fat=data["fat"],
        fiber=data["fiber"],
        workout_completed=data["workout_completed"],
        steps=data["steps"],
        sleep_hours=data["sleep_hours"],
        stress=data["stress"],
        energy=data["energy"],
        notes="" if notes == "-" else notes[:500],
        weight=data["weight"],
    )

    # phase 1: persist, and score from what we have in memory either way
    saved = safe_save("check-in", db.upsert_checkin, user_row.id, checkin)
    profile = db.get_profile(user_row.id)
    targets = db.get_targets(user_row.id)
    checkins = [c for c in db.get_checkins(user_row.id) if c.date != checkin.date] + [checkin]
    weights = db.get_weights(user_row.id)

    adherence = adherence_score(checkin, targets, profile)
    recovery = recovery_score(checkin)
    avg7 = average_adherence(last_checkins(checkins), targets, profile)
    breakdown = ", ".join(f"{k} {v}" for k, v in adherence.breakdown.items()) or "nothing to score"

    text = (
        f"Adherence: {adherence.total}% {adherence_label(adherence.total)} ({breakdown})\n"
        f"7-day average: {avg7}%\n"
        f"Recovery: {recovery.score}/100 {recovery.status}"
    )
    if not saved:
        text += "\n\nCould not save the check-in, it is kept for this reply only."
    await message.answer(text)

    # phase 2: advice runs on its own; nothing above depends on it
    if advisor.enabled and profile and targets:
        ordered = sort_weights(weights)
        current = ordered[-1].weight if ordered else profile.weight_lbs
        prompt = daily_prompt(profile, targets, checkin, adherence, avg7, recovery,
                              current, weekly_loss_rate(ordered))
        task = asyncio.create_task(_send_advice(bot, message.chat.id, advisor, prompt))
        _pending.add(task)
        task.add_done_callback(_pending.discard)


async def _send_advice(bot: Bot, chat_id: int, advisor: Advisor, prompt: str):
    advice = await advisor.ask_async(prompt)
    text = "No AI analysis available right now."
    if advice:
        lines = [advice.get("summary") or ""]
        for label, key in (("Nutrition", "nutritionNote"), ("Recovery", "recoveryNote"),
                           ("Adjustment", "adjustment"), ("Tomorrow", "tomorrowPriority"),
                           ("Concern", "concern")):
            if advice.get(key):
                lines.append(f"{label}: {advice[key]}")
        text = "\n".join(l for l in lines if l) or text
    try:
        await bot.send_message(chat_id, text)
    except TelegramAPIError:
        logger.exception("failed to deliver advice to chat %s", chat_id)
