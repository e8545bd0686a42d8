import logging
import re

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery

from coach.db import safe_save
from coach.handlers.common import current_day
from coach.keyboards import session_keyboard
from coach.models import ExerciseLog, Exercise, SetLog, WorkoutLog
from coach.services.program import apply_workout_log, exercise_history
from coach.states import WorkoutLogging

logger = logging.getLogger(__name__)

router = Router()

_SET = re.compile(r"^(\d+(?:[.,]\d+)?)\s*[x*]\s*(\d+)$", re.IGNORECASE)


def parse_sets(text: str):
    """'135x8 135x8 140x6' -> [SetLog, ...]; None if any token is malformed."""
    sets = []
    for token in (text or "").split():
        m = _SET.match(token)
        if not m:
            return None
        sets.append(SetLog(float(m.group(1).replace(",", ".")), int(m.group(2))))
    return sets


def _exercise_prompt(ex: Exercise) -> str:
    last = f", last {ex.weight:g}" if ex.weight else ""
    return (
        f"{ex.name}: {ex.sets} x {ex.reps_min}-{ex.reps_max} ({ex.role}{last})\n"
        "Send sets as weight x reps, e.g. 135x8 135x8 140x6. Send - to skip."
    )


@router.message(Command("program"))
async def program_cmd(message: Message, db, user_row):
    program = db.get_program(user_row.id)
    if not program:
        await message.answer("No program yet: /start")
        return
    lines = [f"Program: {program.type}"]
    for i, s in enumerate(program.sessions):
        lines.append(f"\n{i + 1}. {s.name}")
        for ex in s.exercises:
            weight = f" @ {ex.weight:g}" if ex.weight else ""
            lines.append(f"  {ex.name} {ex.sets}x{ex.reps_min}-{ex.reps_max}{weight}")
    await message.answer("\n".join(lines))


@router.message(Command("log"))
async def log_cmd(message: Message, db, user_row, state: FSMContext):
    program = db.get_program(user_row.id)
    if not program:
        await message.answer("No program yet: /start")
        return
    await state.clear()
    await state.set_state(WorkoutLogging.session)
    await message.answer("Which session?", reply_markup=session_keyboard(program))


@router.callback_query(WorkoutLogging.session, F.data.startswith("sess:"))
async def session_cb(cb: CallbackQuery, db, user_row, state: FSMContext):
    program = db.get_program(user_row.id)
    idx = int(cb.data.split(":", 1)[1])
    if not program or not 0 <= idx < len(program.sessions):
        await cb.answer("Session not found")
        return
    await state.update_data(session_index=idx, position=0, logged=[])
    await state.set_state(WorkoutLogging.exercise)
    await cb.message.answer(_exercise_prompt(program.sessions[idx].exercises[0]))
    await cb.answer()


@router.message(WorkoutLogging.exercise)
async def exercise_step(message: Message, db, user_row, cfg, state: FSMContext):
    data = await state.get_data()
    program = db.get_program(user_row.id)
    if not program:
        await state.clear()
        await message.answer("No program yet: /start")
        return
    session = program.sessions[data["session_index"]]
    position = data["position"]

    text = (message.text or "").strip()
    sets = [] if text == "-" else parse_sets(text)
    if sets is None:
        await message.answer("Could not read that. Example: 135x8 135x8 140x6")
        return

    logged = data["logged"] + [[[s.weight, s.reps] for s in sets]]
    position += 1
    if position < len(session.exercises):
        await state.update_data(position=position, logged=logged)
        await message.answer(_exercise_prompt(session.exercises[position]))
        return

    await state.clear()
    log = WorkoutLog(
        date=current_day(cfg),
        session_index=data["session_index"],
        session_name=session.name,
        exercises=[
            ExerciseLog(ex.name, [SetLog(w, r) for w, r in pairs])
            for ex, pairs in zip(session.exercises, logged)
        ],
    )
    # the log is the record; the program weights are derived from it
    if not safe_save("workout log", db.add_workout_log, user_row.id, log):
        await message.answer("Could not save the workout, try again later.")
        return
    updated = apply_workout_log(program, log)
    safe_save("program", db.save_program, user_row.id, updated)
    logger.info("user %s logged %s", user_row.id, session.name)

    done = sum(1 for e in log.exercises if e.sets)
    await message.answer(f"{session.name} saved: {done}/{len(log.exercises)} exercises logged. /program")


@router.message(Command("lift"))
async def lift_cmd(message: Message, db, user_row):
    parts = (message.text or "").split(maxsplit=1)
    if len(parts) < 2:
        await message.answer("Format: /lift Bench Press")
        return
    name = parts[1].strip()
    points = exercise_history(db.get_workout_logs(user_row.id), name)
    if not points:
        await message.answer(f"No logged sets for {name}.")
        return
    rows = [f"{p.date.isoformat()}  top {p.top_weight:g} x {p.top_reps}  volume {p.volume:g}" for p in points[-10:]]
    await message.answer(f"{name}\n" + "\n".join(rows))
