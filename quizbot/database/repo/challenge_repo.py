from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from quizbot.database.models import DailyChallenge, DailyChallengeAttempt, Difficulty
from quizbot.database.tx import transactional


@dataclass(frozen=True, slots=True)
class CreateOnceResult:
    row: DailyChallenge | DailyChallengeAttempt
    created: bool


async def get_challenge_for_day(session: AsyncSession, day_utc: date) -> DailyChallenge | None:
    res = await session.execute(select(DailyChallenge).where(DailyChallenge.day_utc == day_utc))
    return res.scalar_one_or_none()


async def create_challenge_once(
    session: AsyncSession,
    *,
    day_utc: date,
    category_id: int,
    difficulty: Difficulty,
    question_ids: list[int],
    reward_points: int,
) -> CreateOnceResult:
    """
    Creates the challenge for day_utc exactly once (unique: day_utc).
    If another caller won the race, returns their row with created=False.
    """
    try:
        async with transactional(session):
            challenge = DailyChallenge(
                day_utc=day_utc,
                category_id=category_id,
                difficulty=difficulty,
                question_ids=list(question_ids),
                question_count=len(question_ids),
                reward_points=reward_points,
            )
            session.add(challenge)
            await session.flush()
    except IntegrityError:
        existing = await get_challenge_for_day(session, day_utc)
        if existing is None:
            raise
        return CreateOnceResult(row=existing, created=False)

    return CreateOnceResult(row=challenge, created=True)


async def get_attempt(session: AsyncSession, challenge_id: int, user_id: int) -> DailyChallengeAttempt | None:
    res = await session.execute(
        select(DailyChallengeAttempt)
        .where(
            DailyChallengeAttempt.challenge_id == challenge_id,
            DailyChallengeAttempt.user_id == user_id,
        )
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def get_attempt_by_id(session: AsyncSession, attempt_id: int) -> DailyChallengeAttempt | None:
    res = await session.execute(
        select(DailyChallengeAttempt)
        .where(DailyChallengeAttempt.id == attempt_id)
        .execution_options(populate_existing=True)
        .options(selectinload(DailyChallengeAttempt.challenge))
    )
    return res.scalar_one_or_none()


async def create_attempt_once(session: AsyncSession, *, challenge_id: int, user_id: int) -> CreateOnceResult:
    """
    One attempt per (challenge_id, user_id). A concurrent duplicate falls back
    to the row that got there first.
    """
    try:
        async with transactional(session):
            attempt = DailyChallengeAttempt(challenge_id=challenge_id, user_id=user_id, score=0, correct_answers=0)
            session.add(attempt)
            await session.flush()
    except IntegrityError:
        existing = await get_attempt(session, challenge_id, user_id)
        if existing is None:
            raise
        return CreateOnceResult(row=existing, created=False)

    return CreateOnceResult(row=attempt, created=True)


async def finalize_attempt(
    session: AsyncSession,
    *,
    attempt_id: int,
    score: int,
    correct_answers: int,
    completed_at: datetime,
) -> bool:
    """
    Sets the final score once. Returns False if the attempt was already completed.
    """
    stmt = (
        update(DailyChallengeAttempt)
        .where(DailyChallengeAttempt.id == attempt_id, DailyChallengeAttempt.completed_at.is_(None))
        .values(score=score, correct_answers=correct_answers, completed_at=completed_at)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1
