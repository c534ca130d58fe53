from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from weekly_bot.database.models import WeeklyChallenge


@dataclass(frozen=True, slots=True)
class ChallengeDTO:
    id: int
    title: str
    description: str
    emoji: str
    start_date: datetime | None
    end_date: datetime | None
    is_active: bool

    @classmethod
    def from_row(cls, row: WeeklyChallenge) -> "ChallengeDTO":
        return cls(
            id=int(row.id),
            title=row.title,
            description=row.description or "",
            emoji=row.emoji or "",
            start_date=row.start_date,
            end_date=row.end_date,
            is_active=bool(row.is_active),
        )


async def list_challenges(session: AsyncSession) -> list[WeeklyChallenge]:
    res = await session.execute(
        select(WeeklyChallenge)
        .order_by(WeeklyChallenge.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(res.scalars().all())


async def update_challenge(
    session: AsyncSession,
    challenge_id: int,
    *,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    is_active: bool | None = None,
) -> None:
    values: dict[str, object] = {}
    if start_date is not None:
        values["start_date"] = start_date
    if end_date is not None:
        values["end_date"] = end_date
    if is_active is not None:
        values["is_active"] = is_active
    if not values:
        return

    await session.execute(
        update(WeeklyChallenge)
        .where(WeeklyChallenge.id == challenge_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


async def find_challenge_containing(session: AsyncSession, at: datetime) -> WeeklyChallenge | None:
    q = (
        select(WeeklyChallenge)
        .where(
            WeeklyChallenge.start_date.is_not(None),
            WeeklyChallenge.end_date.is_not(None),
            WeeklyChallenge.start_date <= at,
            WeeklyChallenge.end_date >= at,
        )
        .order_by(WeeklyChallenge.start_date.asc(), WeeklyChallenge.id.asc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    res = await session.execute(q)
    return res.scalar_one_or_none()


async def find_active(session: AsyncSession) -> list[WeeklyChallenge]:
    res = await session.execute(
        select(WeeklyChallenge)
        .where(WeeklyChallenge.is_active.is_(True))
        .order_by(WeeklyChallenge.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(res.scalars().all())


async def active_ids(session: AsyncSession) -> list[int]:
    res = await session.execute(
        select(WeeklyChallenge.id)
        .where(WeeklyChallenge.is_active.is_(True))
        .order_by(WeeklyChallenge.id.asc())
    )
    return [int(x) for x in res.scalars().all()]


async def find_upcoming(session: AsyncSession, *, after: datetime, limit: int = 5) -> list[WeeklyChallenge]:
    """
    Challenges starting strictly after `after`, soonest first.
    """
    if limit <= 0:
        return []

    q = (
        select(WeeklyChallenge)
        .where(WeeklyChallenge.start_date > after)
        .order_by(WeeklyChallenge.start_date.asc(), WeeklyChallenge.id.asc())
        .limit(limit)
    )
    res = await session.execute(q)
    return list(res.scalars().all())


# ---------- conditional writes (safe when several instances tick at once) ----------

async def activate_if_inactive(session: AsyncSession, challenge_id: int) -> bool:
    res = await session.execute(
        update(WeeklyChallenge)
        .where(WeeklyChallenge.id == challenge_id, WeeklyChallenge.is_active.is_(False))
        .values(is_active=True)
        .execution_options(synchronize_session=False)
    )
    return (res.rowcount or 0) > 0


async def deactivate_if_active(session: AsyncSession, challenge_id: int) -> bool:
    res = await session.execute(
        update(WeeklyChallenge)
        .where(WeeklyChallenge.id == challenge_id, WeeklyChallenge.is_active.is_(True))
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    return (res.rowcount or 0) > 0


async def count_challenges(session: AsyncSession, *, active_only: bool = False) -> int:
    stmt = select(func.count(WeeklyChallenge.id))
    if active_only:
        stmt = stmt.where(WeeklyChallenge.is_active.is_(True))
    res = await session.execute(stmt)
    return int(res.scalar() or 0)
