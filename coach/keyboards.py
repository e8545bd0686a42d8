from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from coach.models import Program


def sex_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="Male", callback_data="sex:male"),
         InlineKeyboardButton(text="Female", callback_data="sex:female")]
    ])


def activity_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="Sedentary (<5k steps)", callback_data="act:sedentary"),
         InlineKeyboardButton(text="Light (5-7k)", callback_data="act:light")],
        [InlineKeyboardButton(text="Moderate (8-10k)", callback_data="act:moderate"),
         InlineKeyboardButton(text="Active (10k+)", callback_data="act:active")],
        [InlineKeyboardButton(text="Very active (intense daily)", callback_data="act:very_active")]
    ])


def equipment_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="Full gym", callback_data="eq:full"),
         InlineKeyboardButton(text="Barbell + rack", callback_data="eq:barbell")],
        [InlineKeyboardButton(text="Dumbbells only", callback_data="eq:dumbbell"),
         InlineKeyboardButton(text="Minimal / home", callback_data="eq:minimal")]
    ])


def experience_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="Beginner", callback_data="exp:beginner"),
         InlineKeyboardButton(text="Intermediate", callback_data="exp:intermediate"),
         InlineKeyboardButton(text="Advanced", callback_data="exp:advanced")]
    ])


def workout_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="Trained", callback_data="wo:yes"),
         InlineKeyboardButton(text="Rest / skipped", callback_data="wo:no")]
    ])


def session_keyboard(program: Program) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=f"{i + 1}. {s.name}", callback_data=f"sess:{i}")]
        for i, s in enumerate(program.sessions)
    ])


def adjustment_keyboard(action: str, amount: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=f"Apply: {action} {amount} kcal", callback_data=f"adj:{action}:{amount}")]
    ])


def recalc_keyboard(tdee: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=f"Use {tdee} kcal TDEE", callback_data=f"recalc:{tdee}")]
    ])


def reset_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="Yes, delete everything", callback_data="reset:yes"),
         InlineKeyboardButton(text="Cancel", callback_data="reset:no")]
    ])
