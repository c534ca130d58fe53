# weekly_bot/utils/formatting.py
from __future__ import annotations

import html
from datetime import datetime

from weekly_bot.database.repo.challenge_repo import ChallengeDTO
from weekly_bot.utils.dt import TimeProvider

NO_CHALLENGE_TEXT = "🗓 No weekly challenge is running right now. Check back soon!"


def _fmt_day(dt: datetime | None, tp: TimeProvider) -> str:
    if dt is None:
        return "?"
    return tp.to_local(dt).strftime("%a %d %b")


def format_window(c: ChallengeDTO, tp: TimeProvider) -> str:
    return f"{_fmt_day(c.start_date, tp)} → {_fmt_day(c.end_date, tp)}"


def format_current(c: ChallengeDTO | None, tp: TimeProvider) -> str:
    if c is None:
        return NO_CHALLENGE_TEXT

    lines = [
        f"{c.emoji} <b>{html.escape(c.title)}</b>".strip(),
        f"📅 {format_window(c, tp)} ({tp.timezone})",
    ]
    if c.description:
        lines += ["", html.escape(c.description)]
    return "\n".join(lines)


def format_upcoming(items: list[ChallengeDTO], tp: TimeProvider) -> str:
    if not items:
        return "🗓 No upcoming challenges scheduled."

    out = ["🔜 <b>Upcoming challenges</b>"]
    for i, c in enumerate(items, start=1):
        label = f"{c.emoji} {html.escape(c.title)}" if c.emoji else html.escape(c.title)
        out.append(f"{i}. {label} — {format_window(c, tp)}")
    return "\n".join(out)


def format_stats(total: int, active: int, last_tick_at: datetime | None, last_state: str | None) -> str:
    last = last_tick_at.strftime("%Y-%m-%d %H:%M UTC") if last_tick_at else "never"
    warn = "\n⚠️ Last tick could not find a window for now." if last_state == "gap" else ""
    return (
        "📊 <b>Weekly challenges</b>\n"
        f"• total: {total}\n"
        f"• active: {active}\n"
        f"• last tick: {last} ({last_state or '-'})"
        f"{warn}"
    )
