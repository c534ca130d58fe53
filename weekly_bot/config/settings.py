# weekly_bot/config/settings.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from weekly_bot.utils.dates import SUNDAY, parse_weekday

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./challenges.db"


def _optional(env: Mapping[str, str], key: str) -> Optional[str]:
    v = env.get(key)
    if v is None or not v.strip():
        return None
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _to_positive_float(value: str, key_name: str) -> float:
    try:
        out = float(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid number for {key_name}: {value!r}") from e
    if out <= 0:
        raise RuntimeError(f"{key_name} must be > 0, got {value!r}")
    return out


def _parse_int_list(raw: str | None, key_name: str) -> list[int]:
    """
    Parses comma/space/newline separated ints.
    Accepts:
      "951258732"
      "951258732,123"
      "951258732 123"
      "[951258732, 123]"  (brackets ignored)
    """
    if not raw:
        return []

    cleaned = raw.strip().strip("[](){}").strip()
    if not cleaned:
        return []

    parts = [p for p in re.split(r"[,\s]+", cleaned) if p]

    out: list[int] = []
    for p in parts:
        p2 = p.strip().strip("'\"")
        if not p2:
            continue
        out.append(_to_int(p2, key_name))
    return out


@dataclass(frozen=True, slots=True)
class Settings:
    # --- telegram operator bot (optional: headless when missing) ---
    bot_token: Optional[str] = None

    # --- storage ---
    database_url: str = DEFAULT_DATABASE_URL

    # --- security / admin ---
    root_admin_ids: tuple[int, ...] = ()

    # --- rotation / time ---
    timezone: str = "UTC"  # display only, storage is naive UTC
    week_starts_on: int = SUNDAY
    rotation_interval_seconds: int = 3600
    db_timeout_seconds: float = 10.0

    # --- environment ---
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    @property
    def has_bot(self) -> bool:
        return bool(self.bot_token)

    @classmethod
    def load(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast on malformed values.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        database_url = _optional(env, "DATABASE_URL") or DEFAULT_DATABASE_URL

        root_admin_ids = tuple(_parse_int_list(env.get("ROOT_ADMIN_IDS"), "ROOT_ADMIN_IDS"))

        week_raw = _optional(env, "WEEK_START_DAY")
        try:
            week_starts_on = parse_weekday(week_raw) if week_raw else SUNDAY
        except ValueError as e:
            raise RuntimeError(f"Invalid WEEK_START_DAY: {week_raw!r}") from e

        interval_raw = _optional(env, "ROTATION_INTERVAL_SECONDS")
        rotation_interval_seconds = (
            _to_int(interval_raw, "ROTATION_INTERVAL_SECONDS") if interval_raw else 3600
        )
        if rotation_interval_seconds <= 0:
            raise RuntimeError("ROTATION_INTERVAL_SECONDS must be > 0")

        timeout_raw = _optional(env, "DB_TIMEOUT_SECONDS")
        db_timeout_seconds = (
            _to_positive_float(timeout_raw, "DB_TIMEOUT_SECONDS") if timeout_raw else 10.0
        )

        return cls(
            bot_token=_optional(env, "BOT_TOKEN"),
            database_url=database_url,
            root_admin_ids=root_admin_ids,
            timezone=_optional(env, "TIMEZONE") or "UTC",
            week_starts_on=week_starts_on,
            rotation_interval_seconds=rotation_interval_seconds,
            db_timeout_seconds=db_timeout_seconds,
            environment=_optional(env, "ENVIRONMENT") or "production",
        )
