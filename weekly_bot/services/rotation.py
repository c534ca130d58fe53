# weekly_bot/services/rotation.py
from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from weekly_bot.database.models import WeeklyChallenge
from weekly_bot.database.repo.challenge_repo import (
    ChallengeDTO,
    activate_if_inactive,
    active_ids,
    deactivate_if_active,
    find_active,
    find_challenge_containing,
)
from weekly_bot.services.schedule_initializer import ScheduleInitializer

log = logging.getLogger(__name__)


class RotationState(str, enum.Enum):
    CONSISTENT = "consistent"  # one active, window contains now
    EXPIRED = "expired"  # one active, window does not contain now
    NO_ACTIVE = "no_active"
    MULTIPLE = "multiple"
    REBUILT = "rebuilt"  # no window covered now, schedule rebuilt
    EMPTY = "empty"  # nothing to schedule
    GAP = "gap"  # rebuilt schedule still misses now


@dataclass(frozen=True, slots=True)
class RotationResult:
    state: RotationState
    challenge: ChallengeDTO | None
    writes: int = 0

    @property
    def changed(self) -> bool:
        return self.writes > 0


def _activated(row: WeeklyChallenge) -> ChallengeDTO:
    return dataclasses.replace(ChallengeDTO.from_row(row), is_active=True)


class RotationMonitor:
    """
    One check-and-correct pass over the challenge table.

    `now` is captured once by the caller and used for every comparison in
    the pass. Nothing is cached between passes: every call re-reads the
    table, so restarts and other instances are picked up automatically.

    Activation and deactivation are conditional updates. If another
    instance wins a race, the read-after-write check logs it and the next
    pass converges.
    """

    def __init__(self, initializer: ScheduleInitializer) -> None:
        self.initializer = initializer

    async def check(self, session: AsyncSession, now: datetime) -> RotationResult:
        active = await find_active(session)
        state = RotationState.NO_ACTIVE
        writes = 0

        if len(active) == 1:
            current = active[0]
            if current.contains(now):
                return RotationResult(RotationState.CONSISTENT, ChallengeDTO.from_row(current))

            log.info(
                "Challenge id=%s %r is no longer current (ends %s), rotating",
                current.id,
                current.title,
                current.end_date,
            )
            if await deactivate_if_active(session, current.id):
                writes += 1
            state = RotationState.EXPIRED

        elif len(active) > 1:
            state = RotationState.MULTIPLE
            qualifying = [c for c in active if c.contains(now)]
            keep = qualifying[0] if len(qualifying) == 1 else None

            log.warning(
                "Found %s active challenges (ids=%s), keeping id=%s",
                len(active),
                [c.id for c in active],
                keep.id if keep else None,
            )
            for c in active:
                if keep is not None and c.id == keep.id:
                    continue
                if await deactivate_if_active(session, c.id):
                    writes += 1

            if keep is not None:
                await self._verify(session, keep.id)
                return RotationResult(state, ChallengeDTO.from_row(keep), writes)

        target = await find_challenge_containing(session, now)
        if target is not None:
            if await activate_if_inactive(session, target.id):
                writes += 1
            log.info("Activated weekly challenge id=%s %r", target.id, target.title)
            await self._verify(session, target.id)
            return RotationResult(state, _activated(target), writes)

        log.info("No weekly challenge covers %s, re-initializing schedule", now.isoformat())
        return await self._rebuild(session, now, writes)

    async def _rebuild(self, session: AsyncSession, now: datetime, writes: int) -> RotationResult:
        result = await self.initializer.run(session, now)
        if result.scheduled == 0:
            return RotationResult(RotationState.EMPTY, None, writes)
        writes += result.scheduled

        target = await find_challenge_containing(session, now)
        if target is None:
            log.warning(
                "Schedule gap: rebuilt %s windows but none contains %s (clock or week arithmetic is off)",
                result.scheduled,
                now.isoformat(),
            )
            if result.active_id is not None and await deactivate_if_active(session, result.active_id):
                writes += 1
            return RotationResult(RotationState.GAP, None, writes)

        if target.id != result.active_id:
            # position 0 is not current; move the flag forward
            if result.active_id is not None and await deactivate_if_active(session, result.active_id):
                writes += 1
            if await activate_if_inactive(session, target.id):
                writes += 1

        log.info("Active challenge after rebuild: id=%s %r", target.id, target.title)
        await self._verify(session, target.id)
        return RotationResult(RotationState.REBUILT, _activated(target), writes)

    async def _verify(self, session: AsyncSession, expected_id: int) -> None:
        ids = await active_ids(session)
        if ids != [expected_id]:
            log.warning(
                "Active challenges after rotation are %s, expected [%s]; "
                "another instance may be rotating, next tick will converge",
                ids,
                expected_id,
            )
