from aiogram.fsm.state import StatesGroup, State


class Onboarding(StatesGroup):
    name = State()
    age = State()
    sex = State()
    height = State()
    weight = State()
    goal_weight = State()
    goal_weeks = State()
    activity = State()
    training_days = State()
    session_min = State()
    step_target = State()
    equipment = State()
    experience = State()


class DailyCheckIn(StatesGroup):
    weight = State()
    nutrition = State()
    workout = State()
    steps = State()
    sleep = State()
    stress = State()
    energy = State()
    notes = State()


class WorkoutLogging(StatesGroup):
    session = State()
    exercise = State()
