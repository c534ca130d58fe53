# weekly_bot/scripts/seed_challenges.py
from __future__ import annotations

import asyncio

from weekly_bot.config import Settings
from weekly_bot.database.models import WeeklyChallenge
from weekly_bot.database.repo.challenge_repo import count_challenges
from weekly_bot.database.session import Database
from weekly_bot.services.challenge_service import ChallengeRotationService

# (emoji, title, description), rotation order = insert order
DEFAULT_CHALLENGES = [
    (
        "🎓",
        "Your Ultimate High School Anthem",
        "What song perfectly captures your high school experience? The track that takes you "
        "right back to those hallways, friendships, and unforgettable moments.",
    ),
    (
        "🚗",
        "The Perfect Road Trip Song",
        "Windows down, volume up. Which song has to be on every road trip playlist?",
    ),
    (
        "🌧",
        "Songs for a Rainy Day",
        "The track you put on when it's grey outside and you just want to stay in.",
    ),
    (
        "💃",
        "Guaranteed Dance Floor Filler",
        "One song, everyone on their feet. What's yours?",
    ),
    (
        "📼",
        "A Song From Your Childhood",
        "The first song you remember loving. Bonus points for the story behind it.",
    ),
]


async def main() -> None:
    settings = Settings.load()
    db = Database(settings.database_url)
    await db.init_models()

    async with db.session() as session:
        if await count_challenges(session):
            print("ℹ️ Challenges already exist, only re-initializing the schedule.")
        else:
            session.add_all(
                [
                    WeeklyChallenge(emoji=emoji, title=title, description=description)
                    for emoji, title, description in DEFAULT_CHALLENGES
                ]
            )
            await session.commit()
            print(f"✅ Seeded {len(DEFAULT_CHALLENGES)} weekly challenges.")

    rotation = ChallengeRotationService.from_settings(db, settings)
    ok = await rotation.initialize_schedule()
    await db.close()

    if not ok:
        raise SystemExit("❌ Schedule initialization failed, see logs.")
    print("✅ Weekly schedule initialized.")


if __name__ == "__main__":
    asyncio.run(main())
