from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.selectable import Subquery

from quizbot.database.models import QuizSession, QuizSessionStatus, User


@dataclass(frozen=True, slots=True)
class LeaderRow:
    user_id: int
    score: int
    games_played: int
    correct_answers: int
    total_questions: int
    username: str | None
    first_name: str | None
    last_name: str | None


def _totals(start_utc: datetime | None, category_id: int | None) -> Subquery:
    """
    Per-user aggregates over completed sessions in the window.
    Only bound parameters, no caller text reaches the SQL string.
    """
    q = (
        select(
            QuizSession.user_id.label("user_id"),
            func.coalesce(func.sum(QuizSession.score), 0).label("score"),
            func.count(QuizSession.id).label("games_played"),
            func.coalesce(func.sum(QuizSession.correct_answers), 0).label("correct_answers"),
            func.coalesce(func.sum(QuizSession.total_questions), 0).label("total_questions"),
        )
        .where(QuizSession.status == QuizSessionStatus.COMPLETED)
        .group_by(QuizSession.user_id)
    )
    if start_utc is not None:
        q = q.where(QuizSession.completed_at >= start_utc)
    if category_id is not None:
        q = q.where(QuizSession.category_id == category_id)
    return q.subquery("totals")


def _row(r) -> LeaderRow:
    return LeaderRow(
        user_id=int(r.user_id),
        score=int(r.score or 0),
        games_played=int(r.games_played or 0),
        correct_answers=int(r.correct_answers or 0),
        total_questions=int(r.total_questions or 0),
        username=r.username,
        first_name=r.first_name,
        last_name=r.last_name,
    )


async def get_top(
    session: AsyncSession,
    *,
    start_utc: datetime | None,
    category_id: int | None,
    limit: int,
    offset: int,
) -> list[LeaderRow]:
    totals = _totals(start_utc, category_id)
    q = (
        select(
            totals.c.user_id,
            totals.c.score,
            totals.c.games_played,
            totals.c.correct_answers,
            totals.c.total_questions,
            User.username,
            User.first_name,
            User.last_name,
        )
        .join(User, User.id == totals.c.user_id)
        .order_by(desc(totals.c.score), totals.c.user_id.asc())
        .limit(limit)
        .offset(offset)
    )
    res = await session.execute(q)
    return [_row(r) for r in res.all()]


async def count_ranked_users(session: AsyncSession, *, start_utc: datetime | None, category_id: int | None) -> int:
    totals = _totals(start_utc, category_id)
    res = await session.execute(select(func.count()).select_from(totals))
    return int(res.scalar_one() or 0)


async def get_user_totals(
    session: AsyncSession,
    *,
    user_id: int,
    start_utc: datetime | None,
    category_id: int | None,
) -> LeaderRow | None:
    totals = _totals(start_utc, category_id)
    q = (
        select(
            totals.c.user_id,
            totals.c.score,
            totals.c.games_played,
            totals.c.correct_answers,
            totals.c.total_questions,
            User.username,
            User.first_name,
            User.last_name,
        )
        .join(User, User.id == totals.c.user_id)
        .where(totals.c.user_id == user_id)
    )
    res = await session.execute(q)
    r = res.first()
    return _row(r) if r is not None else None


async def count_users_above(
    session: AsyncSession,
    *,
    score: int,
    start_utc: datetime | None,
    category_id: int | None,
) -> int:
    totals = _totals(start_utc, category_id)
    res = await session.execute(select(func.count()).select_from(totals).where(totals.c.score > score))
    return int(res.scalar_one() or 0)
