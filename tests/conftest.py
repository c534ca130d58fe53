import os
import sys
from datetime import datetime

import pytest
from sqlalchemy import event

# Ensure repo root on sys.path for imports like `weekly_bot...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from weekly_bot.database import Database  # noqa: E402
from weekly_bot.database.models import WeeklyChallenge  # noqa: E402
from weekly_bot.database.repo.challenge_repo import list_challenges  # noqa: E402

# Wednesday; with Sunday boundaries the current week starts 2026-10-18 00:00
NOW = datetime(2026, 10, 21, 12, 0)
WEEK0 = datetime(2026, 10, 18)


class FixedClock:
    def __init__(self, at: datetime) -> None:
        self.at = at

    def now(self) -> datetime:
        return self.at


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
async def db(tmp_path, anyio_backend):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'challenges.db'}")
    await database.init_models()
    yield database
    await database.close()


@pytest.fixture
def seed(db):
    """
    await seed({"start_date": ..., "end_date": ..., "is_active": True}, {...})
    -> ids in insert (= rotation) order
    """

    async def _seed(*rows: dict) -> list[int]:
        async with db.session() as s:
            objs = [
                WeeklyChallenge(
                    title=r.get("title", f"Challenge {i + 1}"),
                    description=r.get("description", ""),
                    emoji=r.get("emoji", "🎵"),
                    start_date=r.get("start_date"),
                    end_date=r.get("end_date"),
                    is_active=r.get("is_active", False),
                )
                for i, r in enumerate(rows)
            ]
            s.add_all(objs)
            await s.commit()
            return [o.id for o in objs]

    return _seed


@pytest.fixture
def fetch_all(db):
    async def _fetch() -> list[WeeklyChallenge]:
        async with db.session() as s:
            return await list_challenges(s)

    return _fetch


@pytest.fixture
def update_counter(db):
    """Counts UPDATE statements sent to the database."""
    counter = {"updates": 0}

    def _before(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("UPDATE"):
            counter["updates"] += 1

    event.listen(db.engine.sync_engine, "before_cursor_execute", _before)
    yield counter
    event.remove(db.engine.sync_engine, "before_cursor_execute", _before)
