from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

log = logging.getLogger(__name__)

ROTATION_JOB_ID = "rotate_weekly_challenge"


def build_scheduler(
    tick: Callable[[], Awaitable[Any]],
    *,
    interval_seconds: int,
) -> AsyncIOScheduler:
    """
    Creates an AsyncIOScheduler with the rotation job registered.
    The first run is one interval from now; callers run the startup tick themselves.
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        tick,
        trigger=IntervalTrigger(
            seconds=interval_seconds,
            start_date=datetime.now(timezone.utc) + timedelta(seconds=interval_seconds),
            timezone="UTC",
        ),
        id=ROTATION_JOB_ID,
        replace_existing=True,
        coalesce=True,
        max_instances=1,  # ticks never overlap inside one process
        misfire_grace_time=max(60, interval_seconds // 2),
    )

    log.debug("Rotation job every %ss", interval_seconds)
    return scheduler
