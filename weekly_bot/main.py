# weekly_bot/main.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from weekly_bot.config import Settings
from weekly_bot.database import Database
from weekly_bot.handlers import router as handlers_router
from weekly_bot.services.challenge_service import ChallengeRotationService


def setup_logging(is_dev: bool) -> None:
    """
    Clean production logging:
    - app logs: INFO (or DEBUG in dev)
    - SQLAlchemy / scheduler logs: WARNING+ (no query/pool/job spam)
    """
    app_level = logging.DEBUG if is_dev else logging.INFO

    logging.basicConfig(
        level=app_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    for name in (
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "sqlalchemy.orm",
        "apscheduler",
        "aiosqlite",
        "asyncpg",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


async def _wait_forever() -> None:
    await asyncio.Event().wait()


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)
    log = logging.getLogger("weekly_bot")

    db = Database(settings.database_url)
    await db.init_models()
    log.info("DB initialized")

    rotation = ChallengeRotationService.from_settings(db, settings)
    # runs the first tick before anything can read the active challenge
    await rotation.start()

    bot: Bot | None = None
    try:
        if settings.has_bot:
            bot = Bot(
                token=settings.bot_token,
                default=DefaultBotProperties(parse_mode=ParseMode.HTML),
            )

            dp = Dispatcher()
            dp.workflow_data["settings"] = settings
            dp.workflow_data["rotation"] = rotation
            dp.include_router(handlers_router)

            await dp.start_polling(bot)
        else:
            log.info("BOT_TOKEN not set, running rotation only")
            await _wait_forever()
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    except Exception:
        log.exception("Process crashed")
        raise
    finally:
        try:
            await rotation.stop()
        except Exception:
            log.exception("Failed to stop rotation")

        try:
            await db.close()
        except Exception:
            log.exception("Failed to close DB")

        if bot is not None:
            try:
                await bot.session.close()
            except Exception:
                log.exception("Failed to close bot session")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
