from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from weekly_bot.config.settings import Settings
from weekly_bot.services.auth import AuthService
from weekly_bot.services.challenge_service import ChallengeRotationService
from weekly_bot.utils.dt import TimeProvider
from weekly_bot.utils.formatting import format_current, format_stats

router = Router()


async def require_admin_or_reply(message: Message, settings: Settings) -> bool:
    tg = message.from_user
    authz = AuthService(settings).resolve(tg.id if tg else None)
    if not authz.is_admin:
        await message.answer("⛔ You are not allowed to use admin commands.")
        return False
    return True


@router.message(Command("challenge_refresh"))
async def challenge_refresh_cmd(
    message: Message,
    settings: Settings,
    rotation: ChallengeRotationService,
) -> None:
    if not await require_admin_or_reply(message, settings):
        return

    await message.answer("⏳ Re-checking the active weekly challenge...")
    challenge = await rotation.force_refresh()
    await message.answer(
        "✅ Done.\n\n" + format_current(challenge, TimeProvider(settings.timezone)),
        parse_mode="HTML",
    )


@router.message(Command("challenge_init"))
async def challenge_init_cmd(
    message: Message,
    settings: Settings,
    rotation: ChallengeRotationService,
) -> None:
    if not await require_admin_or_reply(message, settings):
        return

    await message.answer("⏳ Rebuilding the weekly schedule from this week...")
    if not await rotation.initialize_schedule():
        await message.answer("⚠️ Nothing was scheduled (no challenges, or the database is unavailable).")
        return

    challenge = await rotation.get_current_challenge()
    await message.answer(
        "✅ Schedule rebuilt.\n\n" + format_current(challenge, TimeProvider(settings.timezone)),
        parse_mode="HTML",
    )


@router.message(Command("challenge_stats"))
async def challenge_stats_cmd(
    message: Message,
    settings: Settings,
    rotation: ChallengeRotationService,
) -> None:
    if not await require_admin_or_reply(message, settings):
        return

    stats = await rotation.get_stats()
    if stats is None:
        await message.answer("⚠️ Could not read challenge stats, see logs.")
        return

    await message.answer(
        format_stats(stats.total, stats.active, stats.last_tick_at, stats.last_state),
        parse_mode="HTML",
    )
