# quizbot/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


def _require(env: dict[str, str], key: str) -> str:
    v = env.get(key)
    if v is None or not v.strip():
        raise RuntimeError(f"Missing required environment variable: {key}")
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _positive_int(env: dict[str, str], key: str, default: int) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    value = _to_int(raw, key)
    if value < 1:
        raise RuntimeError(f"{key} must be >= 1, got {value}")
    return value


def _timezone(raw: str) -> str:
    try:
        ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise RuntimeError(f"Unknown TIMEZONE: {raw!r}") from e
    return raw


@dataclass(frozen=True, slots=True)
class Settings:
    # --- required ---
    bot_token: str

    # --- optional ---
    database_url: str = "sqlite+aiosqlite:///./quizbot.db"

    # leaderboard windows (daily/weekly/monthly) start at local midnight here
    timezone: str = "UTC"

    # --- gameplay ---
    quiz_question_count: int = 10
    daily_reward_points: int = 100
    leaderboard_limit: int = 10

    # --- environment ---
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    @classmethod
    def load(cls) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast for required fields.
        """
        load_dotenv()
        env = os.environ

        bot_token = _require(env, "BOT_TOKEN")
        database_url = (env.get("DATABASE_URL") or "sqlite+aiosqlite:///./quizbot.db").strip()
        timezone = _timezone((env.get("TIMEZONE") or "UTC").strip() or "UTC")
        environment = (env.get("ENVIRONMENT") or "production").strip() or "production"

        return cls(
            bot_token=bot_token,
            database_url=database_url,
            timezone=timezone,
            quiz_question_count=_positive_int(env, "QUIZ_QUESTION_COUNT", 10),
            daily_reward_points=_positive_int(env, "DAILY_REWARD_POINTS", 100),
            leaderboard_limit=min(_positive_int(env, "LEADERBOARD_LIMIT", 10), 100),
            environment=environment,
        )
