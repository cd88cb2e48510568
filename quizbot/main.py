# quizbot/main.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from quizbot.config import Settings
from quizbot.database import Database
from quizbot.handlers import router as handlers_router
from quizbot.scheduler import setup_scheduler
from quizbot.scheduler.jobs import ensure_daily_challenge
from quizbot.services import DailyChallengeService, LeaderboardService, QuizSessionService, StreakService
from quizbot.utils.dates import Clock
from quizbot.utils.middleware import DbSessionMiddleware


def setup_logging(is_dev: bool) -> None:
    """
    Clean production logging:
    - app logs: INFO (or DEBUG in dev)
    - SQLAlchemy / driver / scheduler logs: WARNING+
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
        "aiosqlite",
        "apscheduler",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)
    log = logging.getLogger("quizbot")

    db = Database(settings.database_url)
    await db.init_models()
    log.info("DB initialized")

    clock = Clock(timezone=settings.timezone)
    streak_service = StreakService(clock)
    quiz_service = QuizSessionService(clock)
    daily_service = DailyChallengeService(
        clock,
        reward_points=settings.daily_reward_points,
        streaks=streak_service,
    )
    leaderboard_service = LeaderboardService(clock)

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    dp = Dispatcher()

    # Inject workflow data
    dp.workflow_data["settings"] = settings
    dp.workflow_data["db"] = db
    dp.workflow_data["clock"] = clock
    dp.workflow_data["quiz_service"] = quiz_service
    dp.workflow_data["daily_service"] = daily_service
    dp.workflow_data["streak_service"] = streak_service
    dp.workflow_data["leaderboard_service"] = leaderboard_service

    # DB session per update
    dp.update.middleware(DbSessionMiddleware(db))

    dp.include_router(handlers_router)

    # today's challenge may be missing after downtime over midnight
    await ensure_daily_challenge(db, daily_service)

    scheduler = setup_scheduler(db=db, daily_service=daily_service)
    log.info("Scheduler started")

    try:
        await dp.start_polling(bot)
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    except Exception:
        log.exception("Bot crashed")
        raise
    finally:
        try:
            scheduler.shutdown(wait=False)
        except Exception:
            log.exception("Failed to shutdown scheduler")

        try:
            await db.close()
        except Exception:
            log.exception("Failed to close DB")

        try:
            await bot.session.close()
        except Exception:
            log.exception("Failed to close bot session")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
