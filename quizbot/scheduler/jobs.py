from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from quizbot.database.session import Database
from quizbot.services import DailyChallengeService, NoEligibleDataError

log = logging.getLogger(__name__)


# -------------------------------------------------
# Daily challenge
# -------------------------------------------------

async def ensure_daily_challenge(db: Database, daily_service: DailyChallengeService) -> None:
    """
    Creates today's challenge ahead of the first /daily of the day.
    Safe to run any number of times: the challenge is created once per UTC day.
    """
    async with db.session() as session:
        try:
            challenge = await daily_service.get_or_create_today(session)
        except NoEligibleDataError as e:
            await session.rollback()
            log.warning("Daily challenge not created: %s", e.message)
            return
        await session.commit()

    log.info(
        "Daily challenge ready for %s: %s (%s)",
        challenge.day_utc.isoformat(),
        challenge.category_name,
        challenge.difficulty.value,
    )


def build_scheduler(db: Database, daily_service: DailyChallengeService) -> AsyncIOScheduler:
    """
    Creates and returns an AsyncIOScheduler with our jobs registered.
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    # every day 00:01 UTC
    scheduler.add_job(
        ensure_daily_challenge,
        trigger=CronTrigger(hour=0, minute=1, timezone="UTC"),
        kwargs={"db": db, "daily_service": daily_service},
        id="ensure_daily_challenge",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=3600,
    )

    return scheduler
