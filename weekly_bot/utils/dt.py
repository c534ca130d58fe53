from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from weekly_bot.utils.dates import utc_now_naive


@dataclass(frozen=True, slots=True)
class TimeProvider:
    timezone: str = "UTC"

    def now(self) -> datetime:
        # naive UTC, same as what the challenge table stores
        return utc_now_naive()

    def to_local(self, dt: datetime) -> datetime:
        return dt.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(self.timezone))
