import logging

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery

from coach.db import safe_save
from coach.handlers.common import current_day, format_targets, parse_number, parse_weight
from coach.keyboards import activity_keyboard, equipment_keyboard, experience_keyboard, sex_keyboard
from coach.models import Profile
from coach.services.metabolic import compute_targets, mifflin_st_jeor
from coach.services.program import generate_program
from coach.services.units import lbs_to_kg, round_half_up
from coach.states import Onboarding

logger = logging.getLogger(__name__)

router = Router()


@router.message(Command("start"))
async def start_cmd(message: Message, state: FSMContext):
    await state.clear()
    await state.set_state(Onboarding.name)
    await message.answer("Profile setup. What's your name?")


@router.message(Onboarding.name)
async def name_step(message: Message, state: FSMContext):
    name = (message.text or "").strip()
    if not name:
        await message.answer("Type your name")
        return
    await state.update_data(name=name[:64])
    await state.set_state(Onboarding.age)
    await message.answer("Age (years)? e.g. 32")


@router.message(Onboarding.age)
async def age_step(message: Message, state: FSMContext):
    age = parse_number(message.text, 14, 90, int)
    if age is None:
        await message.answer("Age as a whole number, e.g. 32")
        return
    await state.update_data(age=age)
    await state.set_state(Onboarding.sex)
    await message.answer("Sex at birth (used for the BMR formula):", reply_markup=sex_keyboard())


@router.callback_query(Onboarding.sex, F.data.startswith("sex:"))
async def sex_cb(cb: CallbackQuery, state: FSMContext):
    await state.update_data(sex=cb.data.split(":", 1)[1])
    await state.set_state(Onboarding.height)
    await cb.message.answer("Height in cm? e.g. 180")
    await cb.answer()


@router.message(Onboarding.height)
async def height_step(message: Message, state: FSMContext):
    h = parse_number(message.text, 120, 230)
    if h is None:
        await message.answer("Height in cm, e.g. 180")
        return
    await state.update_data(height_cm=h)
    await state.set_state(Onboarding.weight)
    await message.answer("Current weight in lbs? e.g. 210")


@router.message(Onboarding.weight)
async def weight_step(message: Message, state: FSMContext):
    w = parse_weight(message.text)
    if w is None:
        await message.answer("Weight in lbs between 50 and 500, e.g. 210")
        return
    await state.update_data(weight_lbs=w)
    await state.set_state(Onboarding.goal_weight)
    await message.answer("Goal weight in lbs?")


@router.message(Onboarding.goal_weight)
async def goal_weight_step(message: Message, state: FSMContext):
    w = parse_weight(message.text)
    if w is None:
        await message.answer("Goal weight in lbs between 50 and 500")
        return
    await state.update_data(goal_weight_lbs=w)
    await state.set_state(Onboarding.goal_weeks)
    await message.answer("In how many weeks? e.g. 12")


@router.message(Onboarding.goal_weeks)
async def goal_weeks_step(message: Message, state: FSMContext):
    weeks = parse_number(message.text, 1, 104, int)
    if weeks is None:
        await message.answer("Number of weeks, 1 to 104")
        return
    await state.update_data(goal_weeks=weeks)
    await state.set_state(Onboarding.activity)
    await message.answer("Daily activity outside training:", reply_markup=activity_keyboard())


@router.callback_query(Onboarding.activity, F.data.startswith("act:"))
async def activity_cb(cb: CallbackQuery, state: FSMContext):
    await state.update_data(activity=cb.data.split(":", 1)[1])
    await state.set_state(Onboarding.training_days)
    await cb.message.answer("Training days per week (2-6)?")
    await cb.answer()


@router.message(Onboarding.training_days)
async def training_days_step(message: Message, state: FSMContext):
    days = parse_number(message.text, 2, 6, int)
    if days is None:
        await message.answer("A number from 2 to 6")
        return
    await state.update_data(training_days=days)
    await state.set_state(Onboarding.session_min)
    await message.answer("Session length in minutes? e.g. 60")


@router.message(Onboarding.session_min)
async def session_min_step(message: Message, state: FSMContext):
    minutes = parse_number(message.text, 15, 240, int)
    if minutes is None:
        await message.answer("Minutes, e.g. 60")
        return
    await state.update_data(session_min=minutes)
    await state.set_state(Onboarding.step_target)
    await message.answer("Daily step target? e.g. 8000")


@router.message(Onboarding.step_target)
async def step_target_step(message: Message, state: FSMContext):
    steps = parse_number(message.text, 1000, 50000, int)
    if steps is None:
        await message.answer("Steps as a whole number, e.g. 8000")
        return
    await state.update_data(step_target=steps)
    await state.set_state(Onboarding.equipment)
    await message.answer("Equipment:", reply_markup=equipment_keyboard())


@router.callback_query(Onboarding.equipment, F.data.startswith("eq:"))
async def equipment_cb(cb: CallbackQuery, state: FSMContext):
    await state.update_data(equipment=cb.data.split(":", 1)[1])
    await state.set_state(Onboarding.experience)
    await cb.message.answer("Training experience:", reply_markup=experience_keyboard())
    await cb.answer()


@router.callback_query(Onboarding.experience, F.data.startswith("exp:"))
async def experience_cb(cb: CallbackQuery, db, user_row, cfg, state: FSMContext):
    await state.update_data(experience=cb.data.split(":", 1)[1])
    data = await state.get_data()

    profile = Profile(
        name=data["name"],
        age=int(data["age"]),
        sex=data["sex"],
        height_cm=float(data["height_cm"]),
        weight_lbs=float(data["weight_lbs"]),
        goal_weight_lbs=float(data["goal_weight_lbs"]),
        goal_weeks=int(data["goal_weeks"]),
        activity=data["activity"],
        training_days=int(data["training_days"]),
        session_min=int(data["session_min"]),
        equipment=data["equipment"],
        experience=data["experience"],
        step_target=int(data["step_target"]),
        created_at=current_day(cfg),
    )
    targets = compute_targets(profile)
    profile.bmr = round_half_up(mifflin_st_jeor(profile.sex, lbs_to_kg(profile.weight_lbs), profile.height_cm, profile.age))
    profile.tdee = targets.tdee
    program = generate_program(profile.training_days, profile.experience, profile.equipment)

    saved = all([
        safe_save("profile", db.upsert_profile, user_row.id, profile),
        safe_save("targets", db.upsert_targets, user_row.id, targets),
        safe_save("program", db.save_program, user_row.id, program),
    ])
    await state.clear()
    if not saved:
        await cb.message.answer("Could not save your plan, try /start again later.")
        await cb.answer()
        return
    logger.info("onboarded user %s: %s kcal, %s", user_row.id, targets.calories, program.type)

    await cb.message.answer(
        f"Plan ready, {profile.name}.\n\n"
        f"BMR {profile.bmr} kcal\n"
        f"{format_targets(targets)}\n\n"
        f"Program: {program.type}, {len(program.sessions)} sessions/week. See /program\n"
        "Log your day with /checkin"
    )
    await cb.answer()
