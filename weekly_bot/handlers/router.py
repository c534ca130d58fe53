from aiogram import Router

from weekly_bot.handlers.admin.router import router as admin_router
from weekly_bot.handlers.user.router import router as user_router

router = Router()

router.include_router(admin_router)   # admin commands first
router.include_router(user_router)
