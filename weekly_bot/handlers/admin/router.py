from aiogram import Router

from weekly_bot.handlers.admin.challenge_admin import router as challenge_admin_router

router = Router()

router.include_router(challenge_admin_router)
