# weekly_bot/handlers/user/challenge.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from weekly_bot.config.settings import Settings
from weekly_bot.services.challenge_service import ChallengeRotationService
from weekly_bot.utils.dt import TimeProvider
from weekly_bot.utils.formatting import format_current, format_upcoming

router = Router()

UPCOMING_LIMIT = 5


@router.message(Command("challenge"))
async def current_challenge_cmd(
    message: Message,
    rotation: ChallengeRotationService,
    settings: Settings,
) -> None:
    challenge = await rotation.get_current_challenge()
    await message.answer(format_current(challenge, TimeProvider(settings.timezone)), parse_mode="HTML")


@router.message(Command("upcoming"))
async def upcoming_challenges_cmd(
    message: Message,
    rotation: ChallengeRotationService,
    settings: Settings,
) -> None:
    items = await rotation.get_upcoming(limit=UPCOMING_LIMIT)
    await message.answer(format_upcoming(items, TimeProvider(settings.timezone)), parse_mode="HTML")
