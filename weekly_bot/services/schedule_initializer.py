# weekly_bot/services/schedule_initializer.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from weekly_bot.database.repo.challenge_repo import list_challenges, update_challenge
from weekly_bot.utils.dates import SUNDAY, week_start, week_window

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScheduledWindow:
    challenge_id: int
    start: datetime
    end: datetime
    is_active: bool


@dataclass(frozen=True, slots=True)
class ScheduleResult:
    scheduled: int
    windows: tuple[ScheduledWindow, ...] = field(default_factory=tuple)

    @property
    def active_id(self) -> int | None:
        return self.windows[0].challenge_id if self.windows else None


class ScheduleInitializer:
    """
    Lays every challenge (id order) onto consecutive weeks starting at the
    current week boundary, and flags the first one active.

    Writes go through the caller's session; the caller owns the transaction,
    so a failed pass rolls back as a whole and can simply be re-run.
    """

    def __init__(self, week_starts_on: int = SUNDAY) -> None:
        self.week_starts_on = week_starts_on

    def plan(self, challenge_ids: list[int], now: datetime) -> ScheduleResult:
        first_week = week_start(now, self.week_starts_on)

        windows = []
        for i, challenge_id in enumerate(challenge_ids):
            start, end = week_window(first_week, i)
            windows.append(
                ScheduledWindow(challenge_id=challenge_id, start=start, end=end, is_active=(i == 0))
            )
        return ScheduleResult(scheduled=len(windows), windows=tuple(windows))

    async def run(self, session: AsyncSession, now: datetime) -> ScheduleResult:
        challenges = await list_challenges(session)
        if not challenges:
            log.info("No challenges found, nothing to schedule")
            return ScheduleResult(scheduled=0)

        result = self.plan([c.id for c in challenges], now)

        for w in result.windows:
            await update_challenge(
                session,
                w.challenge_id,
                start_date=w.start,
                end_date=w.end,
                is_active=w.is_active,
            )

        first = result.windows[0]
        log.info(
            "Scheduled %s weekly challenges, active id=%s (%s -> %s)",
            result.scheduled,
            first.challenge_id,
            first.start.isoformat(),
            first.end.isoformat(),
        )
        return result
