import os
from dataclasses import dataclass

from coach.services.advisor import DEFAULT_MODEL


@dataclass(frozen=True)
class Config:
    bot_token: str
    db_path: str
    tz: str
    coach_api_key: str | None
    coach_model: str
    coach_timeout: float
    log_level: str


def load_config() -> Config:
    token = os.getenv("BOT_TOKEN", "").strip()
    if not token:
        raise RuntimeError("BOT_TOKEN is required")
    db_path = os.getenv("DB_PATH", "coach.db").strip()
    tz = os.getenv("TZ", "UTC").strip()

    coach_api_key = os.getenv("ANTHROPIC_API_KEY", "").strip() or None
    coach_model = os.getenv("COACH_MODEL", "").strip() or DEFAULT_MODEL
    try:
        coach_timeout = float(os.getenv("COACH_TIMEOUT", "30").strip())
    except ValueError:
        coach_timeout = 30.0
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    return Config(
        bot_token=token,
        db_path=db_path,
        tz=tz,
        coach_api_key=coach_api_key,
        coach_model=coach_model,
        coach_timeout=coach_timeout,
        log_level=log_level,
    )
