import logging
from datetime import datetime, timedelta

import pytest

from conftest import NOW, WEEK0
from weekly_bot.database.repo.challenge_repo import update_challenge
from weekly_bot.services import rotation as rotation_module
from weekly_bot.services.rotation import RotationMonitor, RotationState
from weekly_bot.services.schedule_initializer import ScheduleInitializer
from weekly_bot.utils.dates import week_window

pytestmark = pytest.mark.anyio


class SkewedInitializer(ScheduleInitializer):
    """Plans as if the clock were `skew` behind."""

    def __init__(self, skew: timedelta) -> None:
        super().__init__()
        self.skew = skew

    def plan(self, challenge_ids, now):
        return super().plan(challenge_ids, now - self.skew)


def _week(offset: int, **extra) -> dict:
    start, end = week_window(WEEK0, offset)
    return {"start_date": start, "end_date": end, **extra}


async def _check(db, now=NOW, monitor=None):
    monitor = monitor or RotationMonitor(ScheduleInitializer())
    async with db.session() as s:
        result = await monitor.check(s, now)
        await s.commit()
    return result


async def _active(fetch_all):
    return [r for r in await fetch_all() if r.is_active]


async def test_consistent_state_makes_no_writes(db, seed, update_counter):
    ids = await seed(_week(-1), _week(0, is_active=True), _week(1))

    first = await _check(db)
    second = await _check(db)

    assert first.state is RotationState.CONSISTENT
    assert first.writes == 0
    assert second.challenge == first.challenge
    assert first.challenge.id == ids[1]
    assert update_counter["updates"] == 0


async def test_expired_active_rotates_to_next_window(db, seed, fetch_all):
    day0 = WEEK0 - timedelta(days=7)
    w1 = week_window(day0, 0)
    w2 = week_window(day0, 1)
    ids = await seed(
        {"start_date": w1[0], "end_date": w1[1], "is_active": True},
        {"start_date": w2[0], "end_date": w2[1]},
    )

    result = await _check(db, now=day0 + timedelta(days=8))

    assert result.state is RotationState.EXPIRED
    assert result.challenge.id == ids[1]
    assert result.challenge.is_active
    assert result.writes == 2
    assert [r.id for r in await _active(fetch_all)] == [ids[1]]


async def test_active_window_not_started_yet_is_treated_as_stale(db, seed, fetch_all):
    ids = await seed(_week(0), _week(1, is_active=True))

    result = await _check(db)

    assert result.state is RotationState.EXPIRED
    assert [r.id for r in await _active(fetch_all)] == [ids[0]]


async def test_no_active_picks_window_containing_now(db, seed, fetch_all):
    ids = await seed(_week(-1), _week(0), _week(1))

    result = await _check(db)

    assert result.state is RotationState.NO_ACTIVE
    assert result.challenge.id == ids[1]
    assert result.writes == 1
    assert [r.id for r in await _active(fetch_all)] == [ids[1]]


async def test_multiple_active_keeps_the_current_one(db, seed, fetch_all):
    ids = await seed(_week(-1, is_active=True), _week(0, is_active=True), _week(1, is_active=True))

    result = await _check(db)

    assert result.state is RotationState.MULTIPLE
    assert result.challenge.id == ids[1]
    assert result.writes == 2
    assert [r.id for r in await _active(fetch_all)] == [ids[1]]


async def test_multiple_active_none_current_falls_back_to_lookup(db, seed, fetch_all):
    ids = await seed(_week(-2, is_active=True), _week(0), _week(2, is_active=True))

    result = await _check(db)

    assert result.state is RotationState.MULTIPLE
    assert result.challenge.id == ids[1]
    assert [r.id for r in await _active(fetch_all)] == [ids[1]]


async def test_stale_single_challenge_rebuilds_schedule(db, seed, fetch_all):
    ids = await seed({"start_date": datetime(2019, 3, 3), "end_date": datetime(2019, 3, 9, 23, 59, 59)})

    result = await _check(db)
    (row,) = await fetch_all()

    assert result.state is RotationState.REBUILT
    assert result.challenge.id == ids[0]
    assert row.is_active
    assert row.contains(NOW)
    assert row.start_date == WEEK0


async def test_schedule_exhausted_rebuilds_from_current_week(db, seed, fetch_all):
    # offline for weeks: the whole schedule lies in the past
    ids = await seed(_week(-5), _week(-4, is_active=True), _week(-3))

    result = await _check(db)
    rows = await fetch_all()

    assert result.state is RotationState.REBUILT
    assert result.challenge.id == ids[0]
    assert [r.is_active for r in rows] == [True, False, False]
    assert rows[2].start_date == WEEK0 + timedelta(days=14)


async def test_rebuild_moves_flag_when_first_week_is_not_current(db, seed, fetch_all):
    ids = await seed({}, {}, {})
    monitor = RotationMonitor(SkewedInitializer(timedelta(days=7)))

    result = await _check(db, monitor=monitor)

    assert result.state is RotationState.REBUILT
    assert result.challenge.id == ids[1]
    assert [r.id for r in await _active(fetch_all)] == [ids[1]]


async def test_gap_after_rebuild_leaves_nothing_active(db, seed, fetch_all, caplog):
    await seed({}, {})
    monitor = RotationMonitor(SkewedInitializer(timedelta(weeks=10)))

    with caplog.at_level(logging.WARNING):
        result = await _check(db, monitor=monitor)

    assert result.state is RotationState.GAP
    assert result.challenge is None
    assert await _active(fetch_all) == []
    assert "Schedule gap" in caplog.text


async def test_empty_table(db):
    result = await _check(db)

    assert result.state is RotationState.EMPTY
    assert result.challenge is None
    assert result.writes == 0


@pytest.mark.parametrize(
    "rows",
    [
        [_week(-1), _week(0), _week(1)],
        [_week(-1, is_active=True), _week(0), _week(1)],
        [_week(-1, is_active=True), _week(0, is_active=True), _week(1, is_active=True)],
        [_week(-1, is_active=True), _week(1, is_active=True)],
        [{"is_active": True}, {}],
    ],
    ids=["none-active", "expired", "all-active", "gap-in-table", "no-dates"],
)
async def test_one_tick_restores_single_active_invariant(db, seed, fetch_all, rows):
    await seed(*rows)

    result = await _check(db)
    active = await _active(fetch_all)

    assert len(active) <= 1
    if active:
        assert active[0].contains(NOW)
        assert result.challenge.id == active[0].id
    else:
        assert result.challenge is None


async def test_race_is_logged_and_next_tick_converges(db, seed, fetch_all, monkeypatch, caplog):
    ids = await seed(_week(-1), _week(0), _week(1))
    real_activate = rotation_module.activate_if_inactive

    async def racing_activate(session, challenge_id):
        # another instance flips a different row in the meantime
        await update_challenge(session, ids[2], is_active=True)
        return await real_activate(session, challenge_id)

    monkeypatch.setattr(rotation_module, "activate_if_inactive", racing_activate)
    with caplog.at_level(logging.WARNING):
        await _check(db)
    assert "another instance may be rotating" in caplog.text
    assert len(await _active(fetch_all)) == 2

    monkeypatch.setattr(rotation_module, "activate_if_inactive", real_activate)
    result = await _check(db)

    assert result.challenge.id == ids[1]
    assert [r.id for r in await _active(fetch_all)] == [ids[1]]
