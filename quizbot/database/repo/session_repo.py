from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from quizbot.database.models import QuizSession, QuizSessionStatus, UserAnswer


@dataclass(frozen=True, slots=True)
class SessionRow:
    session: QuizSession
    answered_count: int


async def get_session(session: AsyncSession, session_id: int, *, with_answers: bool = False) -> QuizSession | None:
    # populate_existing: counters are bumped with UPDATE statements, never trust the identity map
    q = select(QuizSession).where(QuizSession.id == session_id).execution_options(populate_existing=True)
    if with_answers:
        q = q.options(selectinload(QuizSession.answers))
    res = await session.execute(q)
    return res.scalar_one_or_none()


async def create_session(
    session: AsyncSession,
    *,
    user_id: int,
    category_id: int,
    question_ids: list[int],
    started_at: datetime,
) -> QuizSession:
    qs = QuizSession(
        user_id=user_id,
        category_id=category_id,
        status=QuizSessionStatus.IN_PROGRESS,
        total_questions=len(question_ids),
        question_ids=list(question_ids),
        current_index=0,
        score=0,
        correct_answers=0,
        started_at=started_at,
    )
    session.add(qs)
    await session.flush()  # qs.id
    return qs


async def insert_answer(session: AsyncSession, answer: UserAnswer) -> None:
    """
    Raises IntegrityError when (session_id, question_id) was already answered.
    """
    session.add(answer)
    await session.flush()


async def apply_answer(session: AsyncSession, *, session_id: int, points: int, is_correct: bool) -> bool:
    """
    Bumps the running counters in one statement, only while the session is
    still in progress. Returns False if the session was closed meanwhile.
    """
    stmt = (
        update(QuizSession)
        .where(
            QuizSession.id == session_id,
            QuizSession.status == QuizSessionStatus.IN_PROGRESS,
            QuizSession.current_index < QuizSession.total_questions,
        )
        .values(
            score=QuizSession.score + points,
            correct_answers=QuizSession.correct_answers + (1 if is_correct else 0),
            current_index=QuizSession.current_index + 1,
        )
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1


async def close_session(
    session: AsyncSession,
    *,
    session_id: int,
    status: QuizSessionStatus,
    completed_at: datetime,
) -> bool:
    """
    IN_PROGRESS -> COMPLETED/ABANDONED. Returns False if it was already terminal.
    """
    stmt = (
        update(QuizSession)
        .where(QuizSession.id == session_id, QuizSession.status == QuizSessionStatus.IN_PROGRESS)
        .values(status=status, completed_at=completed_at)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1


async def count_user_sessions(session: AsyncSession, user_id: int) -> int:
    res = await session.execute(select(func.count(QuizSession.id)).where(QuizSession.user_id == user_id))
    return int(res.scalar_one() or 0)


async def list_user_sessions(
    session: AsyncSession,
    user_id: int,
    *,
    limit: int,
    offset: int,
) -> list[SessionRow]:
    answered = (
        select(UserAnswer.session_id, func.count(UserAnswer.id).label("answered"))
        .group_by(UserAnswer.session_id)
        .subquery()
    )
    q = (
        select(QuizSession, func.coalesce(answered.c.answered, 0))
        .outerjoin(answered, answered.c.session_id == QuizSession.id)
        .where(QuizSession.user_id == user_id)
        .order_by(QuizSession.started_at.desc(), QuizSession.id.desc())
        .limit(limit)
        .offset(offset)
        .execution_options(populate_existing=True)
    )
    res = await session.execute(q)
    return [SessionRow(session=qs, answered_count=int(n or 0)) for qs, n in res.all()]
