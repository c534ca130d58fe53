from datetime import datetime, timedelta

import pytest

from conftest import NOW, WEEK0
from weekly_bot.database.repo.challenge_repo import (
    ChallengeDTO,
    activate_if_inactive,
    active_ids,
    count_challenges,
    deactivate_if_active,
    find_active,
    find_challenge_containing,
    find_upcoming,
    update_challenge,
)
from weekly_bot.utils.dates import week_window

pytestmark = pytest.mark.anyio


def _week(offset: int) -> dict:
    start, end = week_window(WEEK0, offset)
    return {"start_date": start, "end_date": end}


async def test_find_containing_is_inclusive_on_both_ends(db, seed):
    ids = await seed(_week(0), _week(1))
    start0, end0 = week_window(WEEK0, 0)

    async with db.session() as s:
        assert (await find_challenge_containing(s, start0)).id == ids[0]
        assert (await find_challenge_containing(s, end0)).id == ids[0]
        assert (await find_challenge_containing(s, end0 + timedelta(milliseconds=1))).id == ids[1]
        assert await find_challenge_containing(s, WEEK0 - timedelta(seconds=1)) is None


async def test_find_containing_skips_rows_without_dates(db, seed):
    await seed({}, {"start_date": WEEK0})

    async with db.session() as s:
        assert await find_challenge_containing(s, NOW) is None


async def test_upcoming_returns_soonest_strictly_after_now(db, seed):
    # inserted out of start order on purpose
    ids = await seed(
        {**_week(0), "is_active": True},
        _week(3),
        _week(1),
        _week(4),
        _week(2),
        _week(-1),
    )

    async with db.session() as s:
        rows = await find_upcoming(s, after=NOW, limit=3)

    assert [r.id for r in rows] == [ids[2], ids[4], ids[1]]
    assert all(r.start_date > NOW for r in rows)
    assert ids[0] not in [r.id for r in rows]


async def test_upcoming_excludes_a_window_starting_exactly_now(db, seed):
    ids = await seed(_week(0), _week(1))
    async with db.session() as s:
        rows = await find_upcoming(s, after=WEEK0, limit=5)
        assert [r.id for r in rows] == [ids[1]]
        assert await find_upcoming(s, after=WEEK0, limit=0) == []


async def test_conditional_writes_only_change_expected_state(db, seed):
    ids = await seed({"is_active": True}, {})

    async with db.session() as s:
        assert await activate_if_inactive(s, ids[0]) is False
        assert await activate_if_inactive(s, ids[1]) is True
        assert await activate_if_inactive(s, ids[1]) is False
        assert await active_ids(s) == ids

        assert await deactivate_if_active(s, ids[0]) is True
        assert await deactivate_if_active(s, ids[0]) is False
        await s.commit()

    async with db.session() as s:
        assert [c.id for c in await find_active(s)] == [ids[1]]
        assert await count_challenges(s) == 2
        assert await count_challenges(s, active_only=True) == 1


async def test_update_challenge_touches_only_given_fields(db, seed, fetch_all):
    ids = await seed({**_week(0), "is_active": True})
    new_start = datetime(2030, 1, 6)

    async with db.session() as s:
        await update_challenge(s, ids[0], start_date=new_start)
        await update_challenge(s, ids[0])  # no-op
        await s.commit()

    (row,) = await fetch_all()
    assert row.start_date == new_start
    assert row.end_date == week_window(WEEK0, 0)[1]
    assert row.is_active is True


async def test_dto_copies_row(db, seed, fetch_all):
    await seed({**_week(0), "title": "Road trip", "emoji": "🚗", "is_active": True})
    (row,) = await fetch_all()

    dto = ChallengeDTO.from_row(row)
    assert dto.title == "Road trip"
    assert dto.emoji == "🚗"
    assert dto.is_active is True
    assert dto.start_date == WEEK0
