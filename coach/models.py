from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass
class Profile:
    name: str
    age: int
    sex: str                      # male|female
    height_cm: float
    weight_lbs: float             # starting weight
    goal_weight_lbs: float
    goal_weeks: int
    activity: str                 # sedentary|light|moderate|active|very_active
    training_days: int
    session_min: int
    equipment: str                # full|barbell|dumbbell|minimal
    experience: str               # beginner|intermediate|advanced
    step_target: int = 8000
    created_at: Optional[date] = None
    bmr: int = 0
    tdee: int = 0


@dataclass(frozen=True)
class Targets:
    calories: int
    protein: int
    carbs: int
    fat: int
    weekly_loss_target: float
    daily_deficit: int
    tdee: int


@dataclass(frozen=True)
class WeightEntry:
    date: date
    weight: float


@dataclass
class CheckIn:
    date: date
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0
    fiber: int = 0
    workout_completed: Optional[bool] = None
    steps: int = 0
    sleep_hours: float = 0.0
    stress: int = 5
    energy: int = 5
    notes: str = ""
    weight: Optional[float] = None


@dataclass
class Exercise:
    name: str
    sets: int
    reps_min: int
    reps_max: int
    role: str                     # primary|compound|accessory
    weight: float = 0.0


@dataclass
class Session:
    name: str
    exercises: list[Exercise] = field(default_factory=list)


@dataclass
class Program:
    type: str
    sessions: list[Session] = field(default_factory=list)


@dataclass(frozen=True)
class SetLog:
    weight: float
    reps: int


@dataclass
class ExerciseLog:
    name: str
    sets: list[SetLog] = field(default_factory=list)


@dataclass
class WorkoutLog:
    date: date
    session_index: int
    session_name: str
    exercises: list[ExerciseLog] = field(default_factory=list)
