from __future__ import annotations
import json
import logging
import os
import sqlite3
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Callable, Optional

from coach.models import (
    CheckIn, Exercise, ExerciseLog, Profile, Program, Session, SetLog, Targets, WeightEntry, WorkoutLog,
)

logger = logging.getLogger(__name__)

SCHEMA = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS users (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  tg_id INTEGER NOT NULL UNIQUE,
  chat_id INTEGER NOT NULL,
  created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS profiles (
  user_id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  age INTEGER NOT NULL,
  sex TEXT NOT NULL,                           -- male|female
  height_cm REAL NOT NULL,
  weight_lbs REAL NOT NULL,
  goal_weight_lbs REAL NOT NULL,
  goal_weeks INTEGER NOT NULL,
  activity TEXT NOT NULL,                      -- sedentary|light|moderate|active|very_active
  training_days INTEGER NOT NULL,
  session_min INTEGER NOT NULL,
  equipment TEXT NOT NULL,                     -- full|barbell|dumbbell|minimal
  experience TEXT NOT NULL,                    -- beginner|intermediate|advanced
  step_target INTEGER NOT NULL DEFAULT 8000,
  created_at TEXT NOT NULL,                    -- calendar day, never updated
  bmr INTEGER NOT NULL DEFAULT 0,
  tdee INTEGER NOT NULL DEFAULT 0,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS targets (
  user_id INTEGER PRIMARY KEY,
  calories INTEGER NOT NULL,
  protein INTEGER NOT NULL,
  carbs INTEGER NOT NULL,
  fat INTEGER NOT NULL,
  weekly_loss_target REAL NOT NULL,
  daily_deficit INTEGER NOT NULL,
  tdee INTEGER NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS weights (
  user_id INTEGER NOT NULL,
  date TEXT NOT NULL,
  weight REAL NOT NULL,
  PRIMARY KEY (user_id, date),
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS checkins (
  user_id INTEGER NOT NULL,
  date TEXT NOT NULL,
  calories INTEGER NOT NULL DEFAULT 0,
  protein INTEGER NOT NULL DEFAULT 0,
  carbs INTEGER NOT NULL DEFAULT 0,
  fat INTEGER NOT NULL DEFAULT 0,
  fiber INTEGER NOT NULL DEFAULT 0,
  workout_completed INTEGER,                   -- NULL = not reported
  steps INTEGER NOT NULL DEFAULT 0,
  sleep_hours REAL NOT NULL DEFAULT 0,
  stress INTEGER NOT NULL DEFAULT 5,
  energy INTEGER NOT NULL DEFAULT 5,
  notes TEXT NOT NULL DEFAULT '',
  weight REAL,
  PRIMARY KEY (user_id, date),
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS programs (
  user_id INTEGER PRIMARY KEY,
  program_json TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS workout_logs (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id INTEGER NOT NULL,
  date TEXT NOT NULL,
  session_index INTEGER NOT NULL,
  session_name TEXT NOT NULL,
  exercises_json TEXT NOT NULL,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS user_meta (
  user_id INTEGER NOT NULL,
  key TEXT NOT NULL,
  value TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  PRIMARY KEY (user_id, key),
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);
"""

COACH_KEY = "coach_api_key"
APPLIED_REVIEW_KEY = "applied_review"   # message id of the last review whose adjustment was applied

_CHECKIN_COLS = ["calories", "protein", "carbs", "fat", "fiber", "workout_completed", "steps",
                 "sleep_hours", "stress", "energy", "notes", "weight"]


@dataclass
class UserRow:
    id: int
    tg_id: int
    chat_id: int


def safe_save(what: str, fn: Callable, *args, **kwargs) -> bool:
    """Run a store write; a failure is logged and reported as False, never raised."""
    try:
        fn(*args, **kwargs)
        return True
    except sqlite3.Error:
        logger.exception("failed to save %s", what)
        return False


def _program_from_json(raw: str) -> Program:
    data = json.loads(raw)
    sessions = [
        Session(s["name"], [Exercise(**e) for e in s["exercises"]])
        for s in data["sessions"]
    ]
    return Program(type=data["type"], sessions=sessions)


def _exercises_from_json(raw: str) -> list[ExerciseLog]:
    return [
        ExerciseLog(e["name"], [SetLog(float(s["weight"]), int(s["reps"])) for s in e["sets"]])
        for e in json.loads(raw)
    ]


class DB:
    def __init__(self, path: str):
        self.path = (path or "coach.db").strip()

        dirn = os.path.dirname(self.path)
        if dirn and not os.path.exists(dirn):
            os.makedirs(dirn, exist_ok=True)

        try:
            self.conn = sqlite3.connect(self.path)
        except sqlite3.OperationalError as e:
            raise sqlite3.OperationalError(
                f"unable to open database file: path='{self.path}'. Set DB_PATH to a writable path."
            ) from e

        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys=ON")
        self._init()

    def _init(self):
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self):
        self.conn.close()

    def now_iso(self) -> str:
        return datetime.utcnow().replace(microsecond=0).isoformat()

    def get_or_create_user(self, tg_id: int, chat_id: int) -> UserRow:
        row = self.conn.execute("SELECT * FROM users WHERE tg_id=?", (tg_id,)).fetchone()
        if row:
            if row["chat_id"] != chat_id and chat_id:
                self.conn.execute("UPDATE users SET chat_id=? WHERE tg_id=?", (chat_id, tg_id))
                self.conn.commit()
            return UserRow(id=row["id"], tg_id=row["tg_id"], chat_id=chat_id or row["chat_id"])

        self.conn.execute(
            "INSERT INTO users (tg_id, chat_id, created_at) VALUES (?,?,?)",
            (tg_id, chat_id, self.now_iso()),
        )
        self.conn.commit()
        return self.get_or_create_user(tg_id, chat_id)

    # profile

    def upsert_profile(self, user_id: int, profile: Profile):
        fields = asdict(profile)
        fields["created_at"] = (profile.created_at or date.today()).isoformat()
        cols = list(fields)
        existing = self.conn.execute("SELECT created_at FROM profiles WHERE user_id=?", (user_id,)).fetchone()
        if existing:
            # the onboarding day stays fixed across settings edits
            fields["created_at"] = existing["created_at"]
            set_sql = ", ".join(f"{c}=?" for c in cols)
            self.conn.execute(f"UPDATE profiles SET {set_sql} WHERE user_id=?", (*fields.values(), user_id))
        else:
            marks = ",".join("?" * (len(cols) + 1))
            self.conn.execute(
                f"INSERT INTO profiles (user_id, {','.join(cols)}) VALUES ({marks})",
                (user_id, *fields.values()),
            )
        self.conn.commit()

    def get_profile(self, user_id: int) -> Optional[Profile]:
        row = self.conn.execute("SELECT * FROM profiles WHERE user_id=?", (user_id,)).fetchone()
        if not row:
            return None
        data = dict(row)
        data.pop("user_id")
        data["created_at"] = date.fromisoformat(data["created_at"])
        return Profile(**data)

    # targets

    def upsert_targets(self, user_id: int, targets: Targets):
        fields = asdict(targets)
        self.conn.execute(
            """INSERT INTO targets (user_id, calories, protein, carbs, fat, weekly_loss_target, daily_deficit, tdee, updated_at)
               VALUES (:user_id, :calories, :protein, :carbs, :fat, :weekly_loss_target, :daily_deficit, :tdee, :updated_at)
               ON CONFLICT(user_id) DO UPDATE SET
                 calories=excluded.calories, protein=excluded.protein, carbs=excluded.carbs, fat=excluded.fat,
                 weekly_loss_target=excluded.weekly_loss_target, daily_deficit=excluded.daily_deficit,
                 tdee=excluded.tdee, updated_at=excluded.updated_at""",
            {**fields, "user_id": user_id, "updated_at": self.now_iso()},
        )
        self.conn.commit()

    def get_targets(self, user_id: int) -> Optional[Targets]:
        row = self.conn.execute("SELECT * FROM targets WHERE user_id=?", (user_id,)).fetchone()
        if not row:
            return None
        data = dict(row)
        data.pop("user_id")
        data.pop("updated_at")
        return Targets(**data)

    # weights: one row per day, a later save for the same day replaces it

    def upsert_weight(self, user_id: int, entry: WeightEntry, commit: bool = True):
        self.conn.execute(
            """INSERT INTO weights (user_id, date, weight) VALUES (?,?,?)
               ON CONFLICT(user_id, date) DO UPDATE SET weight=excluded.weight""",
            (user_id, entry.date.isoformat(), entry.weight),
        )
        if commit:
            self.conn.commit()

    def get_weights(self, user_id: int) -> list[WeightEntry]:
        rows = self.conn.execute("SELECT date, weight FROM weights WHERE user_id=? ORDER BY date", (user_id,))
        return [WeightEntry(date.fromisoformat(r["date"]), r["weight"]) for r in rows]

    # check-ins: same keying as weights

    def upsert_checkin(self, user_id: int, checkin: CheckIn):
        values = asdict(checkin)
        values["date"] = checkin.date.isoformat()
        if checkin.workout_completed is not None:
            values["workout_completed"] = int(checkin.workout_completed)
        updates = ", ".join(f"{c}=excluded.{c}" for c in _CHECKIN_COLS)
        self.conn.execute(
            f"""INSERT INTO checkins (user_id, date, {','.join(_CHECKIN_COLS)})
                VALUES (:user_id, :date, {','.join(':' + c for c in _CHECKIN_COLS)})
                ON CONFLICT(user_id, date) DO UPDATE SET {updates}""",
            {**values, "user_id": user_id},
        )
        if checkin.weight:
            self.upsert_weight(user_id, WeightEntry(checkin.date, checkin.weight), commit=False)
        self.conn.commit()

    def _checkin_from_row(self, row) -> CheckIn:
        data = dict(row)
        data.pop("user_id")
        data["date"] = date.fromisoformat(data["date"])
        if data["workout_completed"] is not None:
            data["workout_completed"] = bool(data["workout_completed"])
        return CheckIn(**data)

    def get_checkins(self, user_id: int) -> list[CheckIn]:
        rows = self.conn.execute("SELECT * FROM checkins WHERE user_id=? ORDER BY date", (user_id,))
        return [self._checkin_from_row(r) for r in rows]

    def get_checkin(self, user_id: int, day: date) -> Optional[CheckIn]:
        row = self.conn.execute(
            "SELECT * FROM checkins WHERE user_id=? AND date=?", (user_id, day.isoformat())
        ).fetchone()
        return self._checkin_from_row(row) if row else None

    # program & workout history

    def save_program(self, user_id: int, program: Program):
        self.conn.execute(
            """INSERT INTO programs (user_id, program_json, updated_at) VALUES (?,?,?)
               ON CONFLICT(user_id) DO UPDATE SET program_json=excluded.program_json, updated_at=excluded.updated_at""",
            (user_id, json.dumps(asdict(program)), self.now_iso()),
        )
        self.conn.commit()

    def get_program(self, user_id: int) -> Optional[Program]:
        row = self.conn.execute("SELECT program_json FROM programs WHERE user_id=?", (user_id,)).fetchone()
        return _program_from_json(row["program_json"]) if row else None

    def add_workout_log(self, user_id: int, log: WorkoutLog) -> int:
        cur = self.conn.execute(
            "INSERT INTO workout_logs (user_id, date, session_index, session_name, exercises_json) VALUES (?,?,?,?,?)",
            (user_id, log.date.isoformat(), log.session_index, log.session_name,
             json.dumps([asdict(e) for e in log.exercises])),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def get_workout_logs(self, user_id: int) -> list[WorkoutLog]:
        rows = self.conn.execute("SELECT * FROM workout_logs WHERE user_id=? ORDER BY id", (user_id,))
        return [
            WorkoutLog(date.fromisoformat(r["date"]), r["session_index"], r["session_name"],
                       _exercises_from_json(r["exercises_json"]))
            for r in rows
        ]

    # misc

    def get_meta(self, user_id: int, key: str) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM user_meta WHERE user_id=? AND key=?", (user_id, key)).fetchone()
        return row["value"] if row else None

    def set_meta(self, user_id: int, key: str, value: str):
        self.conn.execute(
            """INSERT INTO user_meta (user_id, key, value, updated_at) VALUES (?,?,?,?)
               ON CONFLICT(user_id, key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at""",
            (user_id, key, value, self.now_iso()),
        )
        self.conn.commit()

    def reset_user(self, user_id: int):
        for table in ("profiles", "targets", "weights", "checkins", "programs", "workout_logs", "user_meta"):
            self.conn.execute(f"DELETE FROM {table} WHERE user_id=?", (user_id,))
        self.conn.commit()
