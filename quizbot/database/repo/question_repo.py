from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.models import Category, Difficulty, Question


@dataclass(frozen=True, slots=True)
class QuestionFilter:
    category_id: int | None = None
    difficulty: Difficulty | None = None
    active_only: bool = True


async def find_active_category(session: AsyncSession, category_id: int) -> Category | None:
    res = await session.execute(
        select(Category).where(Category.id == category_id, Category.is_active.is_(True))
    )
    return res.scalar_one_or_none()


async def list_active_categories(session: AsyncSession) -> list[Category]:
    res = await session.execute(
        select(Category).where(Category.is_active.is_(True)).order_by(Category.name.asc())
    )
    return list(res.scalars().all())


async def find_questions(session: AsyncSession, flt: QuestionFilter) -> list[Question]:
    """
    Ordered by id so callers that shuffle get a deterministic starting point.
    """
    q = select(Question)
    if flt.category_id is not None:
        q = q.where(Question.category_id == flt.category_id)
    if flt.difficulty is not None:
        q = q.where(Question.difficulty == flt.difficulty)
    if flt.active_only:
        q = q.where(Question.is_active.is_(True))

    res = await session.execute(q.order_by(Question.id.asc()))
    return list(res.scalars().all())


async def get_questions_by_ids(session: AsyncSession, ids: Iterable[int]) -> dict[int, Question]:
    """
    Lookup map by id. Inactive questions are included: a question retired after
    a session started still has to show up in that session's review.
    """
    wanted = list(dict.fromkeys(ids))
    if not wanted:
        return {}
    res = await session.execute(select(Question).where(Question.id.in_(wanted)))
    return {q.id: q for q in res.scalars().all()}


async def categories_with_min_questions(session: AsyncSession, minimum: int) -> list[Category]:
    counts = (
        select(Question.category_id, func.count(Question.id).label("n"))
        .where(Question.is_active.is_(True))
        .group_by(Question.category_id)
        .having(func.count(Question.id) >= minimum)
        .subquery()
    )
    res = await session.execute(
        select(Category)
        .join(counts, counts.c.category_id == Category.id)
        .where(Category.is_active.is_(True))
        .order_by(Category.id.asc())
    )
    return list(res.scalars().all())
