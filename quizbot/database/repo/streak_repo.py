from __future__ import annotations

from datetime import date

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.models import UserStreak
from quizbot.database.tx import transactional


async def get_streak(session: AsyncSession, user_id: int) -> UserStreak | None:
    res = await session.execute(
        select(UserStreak)
        .where(UserStreak.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def insert_first_streak(session: AsyncSession, *, user_id: int, today: date) -> bool:
    """
    First ever completion: streak of 1. Returns False if a row already exists
    (created concurrently), in which case the caller goes down the update path.
    """
    try:
        async with transactional(session):
            session.add(UserStreak(user_id=user_id, current_streak=1, longest_streak=1, last_played_date=today))
            await session.flush()
    except IntegrityError:
        return False
    return True


async def swap_streak(
    session: AsyncSession,
    *,
    user_id: int,
    expected_last_played: date | None,
    current_streak: int,
    longest_streak: int,
    today: date,
) -> bool:
    """
    Compare-and-swap on last_played_date: only writes if nobody else moved the
    row since it was read. Returns False when the swap lost.
    """
    if expected_last_played is None:
        guard = UserStreak.last_played_date.is_(None)
    else:
        guard = UserStreak.last_played_date == expected_last_played

    stmt = (
        update(UserStreak)
        .where(UserStreak.user_id == user_id, guard)
        .values(current_streak=current_streak, longest_streak=longest_streak, last_played_date=today)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1
