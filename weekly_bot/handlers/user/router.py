from aiogram import Router

from weekly_bot.handlers.user.challenge import router as challenge_router

router = Router()

router.include_router(challenge_router)
