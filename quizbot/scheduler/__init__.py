# quizbot/scheduler/__init__.py
from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from quizbot.database.session import Database
from quizbot.scheduler.jobs import build_scheduler
from quizbot.services import DailyChallengeService


def setup_scheduler(db: Database, daily_service: DailyChallengeService) -> AsyncIOScheduler:
    scheduler = build_scheduler(db=db, daily_service=daily_service)
    scheduler.start()
    return scheduler
