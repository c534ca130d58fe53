# weekly_bot/database/tx.py
from __future__ import annotations

from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def transactional(session: AsyncSession):
    """
    One rotation pass = one transaction.

    Every write of a tick (or of a schedule rebuild) goes through this block,
    so an exception or a timeout cancelling the pass rolls all of them back
    and the next tick starts from what was last committed. Nested use joins
    the outer pass through a SAVEPOINT.
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield
    else:
        async with session.begin():
            yield
