from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable

from coach.models import Exercise, Program, Session, WorkoutLog


@dataclass(frozen=True)
class LiftPoint:
    date: date
    top_weight: float
    top_reps: int
    volume: float


def equipment_flags(equipment: str) -> tuple[bool, bool]:
    equipment = equipment or ""
    has_barbell = "barbell" in equipment or equipment == "full"
    has_machines = "machine" in equipment or equipment == "full"
    return has_barbell, has_machines


def _ex(name: str, sets: int, reps_min: int, reps_max: int, role: str) -> Exercise:
    return Exercise(name=name, sets=sets, reps_min=reps_min, reps_max=reps_max, role=role)


def _full_body_a(barbell: bool, machines: bool) -> Session:
    return Session("Full Body A", [
        _ex("Barbell Squat" if barbell else "Goblet Squat", 3, 6, 10, "primary"),
        _ex("Bench Press" if barbell else "DB Bench Press", 3, 8, 12, "compound"),
        _ex("Barbell Row" if barbell else "DB Row", 3, 8, 12, "compound"),
        _ex("Lateral Raise", 3, 12, 15, "accessory"),
        _ex("Plank", 3, 30, 60, "accessory"),
    ])


def _full_body_b(barbell: bool, machines: bool) -> Session:
    return Session("Full Body B", [
        _ex("Romanian Deadlift" if barbell else "DB RDL", 3, 8, 12, "primary"),
        _ex("Overhead Press" if barbell else "DB Shoulder Press", 3, 8, 12, "compound"),
        _ex("Lat Pulldown" if machines else "DB Pullover", 3, 8, 12, "compound"),
        _ex("Leg Curl", 3, 10, 15, "accessory"),
        _ex("Face Pull / Band Pull Apart", 3, 15, 20, "accessory"),
    ])


def _upper_a(barbell: bool, machines: bool) -> Session:
    return Session("Upper A - Push", [
        _ex("Bench Press" if barbell else "DB Bench Press", 4, 6, 10, "primary"),
        _ex("Barbell Row" if barbell else "DB Row", 3, 8, 12, "compound"),
        _ex("Overhead Press" if barbell else "DB Shoulder Press", 3, 8, 12, "compound"),
        _ex("Tricep Pushdown", 3, 10, 15, "accessory"),
        _ex("Lateral Raise", 3, 12, 15, "accessory"),
    ])


def _upper_b(barbell: bool, machines: bool) -> Session:
    return Session("Upper B - Pull", [
        _ex("Lat Pulldown" if machines else "Pull-Up / Assisted", 4, 6, 10, "primary"),
        _ex("DB Bench Press", 3, 8, 12, "compound"),
        _ex("Cable / DB Row", 3, 8, 12, "compound"),
        _ex("Bicep Curl", 3, 10, 15, "accessory"),
        _ex("Face Pull", 3, 15, 20, "accessory"),
    ])


def _lower_a(barbell: bool, machines: bool) -> Session:
    return Session("Lower A - Quad", [
        _ex("Barbell Squat" if barbell else "Goblet Squat", 4, 6, 10, "primary"),
        _ex("Leg Press" if machines else "Bulgarian Split Squat", 3, 8, 12, "compound"),
        _ex("Leg Curl", 3, 10, 15, "accessory"),
        _ex("Calf Raise", 3, 12, 20, "accessory"),
        _ex("Ab Rollout / Plank", 3, 10, 15, "accessory"),
    ])


def _lower_b(barbell: bool, machines: bool) -> Session:
    return Session("Lower B - Hinge", [
        _ex("Romanian Deadlift" if barbell else "DB RDL", 4, 6, 10, "primary"),
        _ex("Bulgarian Split Squat", 3, 8, 12, "compound"),
        _ex("Leg Extension" if machines else "Lunge", 3, 10, 15, "accessory"),
        _ex("Hip Thrust", 3, 8, 12, "accessory"),
        _ex("Hanging Leg Raise", 3, 10, 15, "accessory"),
    ])


def generate_program(days_per_week: int, experience: str, equipment: str) -> Program:
    """Pick the template for the weekly frequency.

    `experience` is part of the signature but does not change the template yet.
    """
    flags = equipment_flags(equipment)
    if days_per_week <= 3:
        builders, label = (_full_body_a, _full_body_b, _full_body_a), "Full Body"
    elif days_per_week == 4:
        builders, label = (_upper_a, _lower_a, _upper_b, _lower_b), "Upper/Lower"
    else:
        builders, label = (_upper_a, _lower_a, _upper_b, _lower_b, _full_body_a), "Upper/Lower (5-day)"
    # each builder call returns fresh objects, repeated sessions never share exercises
    return Program(type=label, sessions=[build(*flags) for build in builders])


def apply_workout_log(program: Program, log: WorkoutLog) -> Program:
    """Store the heaviest set of each logged exercise as its working weight.

    This is the latest session's top set, not an all-time max.
    """
    sessions = []
    for i, session in enumerate(program.sessions):
        if i != log.session_index:
            sessions.append(session)
            continue
        exercises = []
        for j, ex in enumerate(session.exercises):
            logged = log.exercises[j] if j < len(log.exercises) else None
            top = max((s.weight for s in logged.sets), default=0) if logged else 0
            exercises.append(replace(ex, weight=top) if top > 0 else ex)
        sessions.append(replace(session, exercises=exercises))
    return replace(program, sessions=sessions)


def exercise_history(logs: Iterable[WorkoutLog], name: str) -> list[LiftPoint]:
    points = []
    for log in logs:
        ex = next((e for e in log.exercises if e.name == name), None)
        if ex is None:
            continue
        top_weight, top_reps = 0.0, 0
        for s in ex.sets:
            if s.weight * s.reps > top_weight * top_reps:
                top_weight, top_reps = s.weight, s.reps
        volume = sum(s.weight * s.reps for s in ex.sets)
        points.append(LiftPoint(log.date, top_weight, top_reps, volume))
    return sorted(points, key=lambda p: p.date)
