# weekly_bot/database/models/challenge.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from weekly_bot.database.base import Base


class WeeklyChallenge(Base):
    """
    One week-long challenge.
    Rotation order is `id` ascending; the scheduler owns
    start_date / end_date / is_active, everything else is content.
    """
    __tablename__ = "weekly_challenges"
    __table_args__ = (
        Index("ix_weekly_challenges_window", "start_date", "end_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    emoji: Mapped[str] = mapped_column(String(16), default="")

    # inclusive window, naive UTC
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    def contains(self, at: datetime) -> bool:
        if self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= at <= self.end_date

    def __repr__(self) -> str:
        return f"<WeeklyChallenge id={self.id} active={self.is_active} {self.start_date}..{self.end_date}>"
