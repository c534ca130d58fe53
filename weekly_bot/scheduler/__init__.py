from __future__ import annotations

from typing import Any, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from weekly_bot.scheduler.jobs import ROTATION_JOB_ID, build_scheduler


def setup_scheduler(tick: Callable[[], Awaitable[Any]], *, interval_seconds: int) -> AsyncIOScheduler:
    scheduler = build_scheduler(tick, interval_seconds=interval_seconds)
    scheduler.start()
    return scheduler


__all__ = ["ROTATION_JOB_ID", "build_scheduler", "setup_scheduler"]
