# weekly_bot/services/challenge_service.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Protocol, TypeVar

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession

from weekly_bot.config.settings import Settings
from weekly_bot.database import Database
from weekly_bot.database.repo.challenge_repo import (
    ChallengeDTO,
    count_challenges,
    find_active,
    find_upcoming,
)
from weekly_bot.database.tx import transactional
from weekly_bot.scheduler import setup_scheduler
from weekly_bot.services.rotation import RotationMonitor, RotationResult
from weekly_bot.services.schedule_initializer import ScheduleInitializer
from weekly_bot.utils.dates import SUNDAY
from weekly_bot.utils.dt import TimeProvider

log = logging.getLogger(__name__)

T = TypeVar("T")


class Clock(Protocol):
    def now(self) -> datetime: ...


@dataclass(frozen=True, slots=True)
class ChallengeStats:
    total: int
    active: int
    last_tick_at: datetime | None
    last_state: str | None


class ChallengeRotationService:
    """
    Keeps exactly one weekly challenge active as time passes.

    Built once by the composition root and handed to whoever needs it.
    `start()` runs one tick immediately, then every `interval_seconds`
    until `stop()`. Public methods never raise: failures are logged and
    reported as "no current challenge".
    """

    def __init__(
        self,
        db: Database,
        *,
        clock: Clock | None = None,
        interval_seconds: int = 3600,
        db_timeout_seconds: float = 10.0,
        week_starts_on: int = SUNDAY,
    ) -> None:
        self.db = db
        self.clock: Clock = clock or TimeProvider()
        self.interval_seconds = interval_seconds
        self.db_timeout_seconds = db_timeout_seconds

        self.initializer = ScheduleInitializer(week_starts_on)
        self.monitor = RotationMonitor(self.initializer)

        # ticks inside one process are strictly sequential
        self._lock = asyncio.Lock()
        self._scheduler: AsyncIOScheduler | None = None

        self.last_result: RotationResult | None = None
        self.last_tick_at: datetime | None = None

    @classmethod
    def from_settings(cls, db: Database, settings: Settings) -> "ChallengeRotationService":
        return cls(
            db,
            clock=TimeProvider(settings.timezone),
            interval_seconds=settings.rotation_interval_seconds,
            db_timeout_seconds=settings.db_timeout_seconds,
            week_starts_on=settings.week_starts_on,
        )

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    # ---------- lifecycle ----------

    async def start(self) -> None:
        # the startup tick and the scheduler are created under the tick lock,
        # so a concurrent start() or stop() waits until both exist
        async with self._lock:
            if self._scheduler is not None:
                return

            await self._check_locked()
            self._scheduler = setup_scheduler(self.tick, interval_seconds=self.interval_seconds)
        log.info("Weekly challenge rotation started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        # waits for an in-flight tick (or start) before tearing the scheduler down
        async with self._lock:
            scheduler, self._scheduler = self._scheduler, None
            if scheduler is None:
                return

            scheduler.remove_all_jobs()
            scheduler.shutdown(wait=False)
        log.info("Weekly challenge rotation stopped")

    # ---------- check-and-correct ----------

    async def tick(self) -> ChallengeDTO | None:
        async with self._lock:
            result = await self._check_locked()
        return result.challenge if result else None

    async def force_refresh(self) -> ChallengeDTO | None:
        log.info("Forced weekly challenge refresh")
        return await self.tick()

    async def _check_locked(self) -> RotationResult | None:
        now = self.clock.now()
        try:
            result = await asyncio.wait_for(self._check(now), timeout=self.db_timeout_seconds)
        except asyncio.TimeoutError:
            log.error("Rotation tick timed out after %ss, no changes applied", self.db_timeout_seconds)
            return None
        except Exception:
            log.exception("Rotation tick failed")
            return None

        self.last_result = result
        self.last_tick_at = now

        if result.changed:
            log.info("Rotation tick: state=%s writes=%s", result.state.value, result.writes)
        else:
            log.debug("Rotation tick: state=%s", result.state.value)
        return result

    async def _check(self, now: datetime) -> RotationResult:
        async with self.db.session() as session:
            async with transactional(session):
                return await self.monitor.check(session, now)

    async def initialize_schedule(self) -> bool:
        """
        Rebuilds the whole schedule from the current week.
        Returns False when there is nothing to schedule or the pass failed.
        """

        async def _run(now: datetime) -> bool:
            async with self.db.session() as session:
                async with transactional(session):
                    result = await self.initializer.run(session, now)
                    if not result.scheduled:
                        return False
                    # same transaction: position 0 may not be current after a clock jump
                    self.last_result = await self.monitor.check(session, now)
                    return True

        async with self._lock:
            now = self.clock.now()
            try:
                ok = await asyncio.wait_for(_run(now), timeout=self.db_timeout_seconds)
            except asyncio.TimeoutError:
                log.error("Schedule initialization timed out after %ss", self.db_timeout_seconds)
                return False
            except Exception:
                log.exception("Schedule initialization failed")
                return False

            if ok:
                self.last_tick_at = now
            return ok

    # ---------- read paths ----------

    async def _read(self, query: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async with self.db.session() as session:
            return await asyncio.wait_for(query(session), timeout=self.db_timeout_seconds)

    async def get_current_challenge(self) -> ChallengeDTO | None:
        now = self.clock.now()
        try:
            active = await self._read(find_active)
        except Exception:
            log.exception("Failed to read active challenge")
            return None

        if len(active) == 1 and active[0].contains(now):
            return ChallengeDTO.from_row(active[0])

        # zero, several or a stale one: correct first
        return await self.tick()

    async def get_upcoming(self, limit: int = 5) -> list[ChallengeDTO]:
        now = self.clock.now()
        try:
            rows = await self._read(lambda s: find_upcoming(s, after=now, limit=limit))
        except Exception:
            log.exception("Failed to read upcoming challenges")
            return []
        return [ChallengeDTO.from_row(r) for r in rows]

    async def get_stats(self) -> ChallengeStats | None:
        async def _counts(session: AsyncSession) -> tuple[int, int]:
            total = await count_challenges(session)
            active = await count_challenges(session, active_only=True)
            return total, active

        try:
            total, active = await self._read(_counts)
        except Exception:
            log.exception("Failed to read challenge stats")
            return None

        last = self.last_result
        return ChallengeStats(
            total=total,
            active=active,
            last_tick_at=self.last_tick_at,
            last_state=last.state.value if last else None,
        )
