from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from random import Random

import pytest

from quizbot.database.models import Category, Difficulty, Question, User
from quizbot.database.session import Database
from quizbot.utils.dates import Clock


def _default_now() -> datetime:
    return datetime(2024, 3, 13, 12, 0, tzinfo=timezone.utc)  # a Wednesday


@dataclass(slots=True)
class FakeClock(Clock):
    current: datetime = field(default_factory=_default_now)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def rng() -> Random:
    return Random(1234)


@pytest.fixture()
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await database.init_models()
    yield database
    await database.close()


@pytest.fixture()
async def session(db):
    async with db.session() as s:
        yield s


@pytest.fixture()
def make_user(session):
    counter = {"n": 0}

    async def _make(username: str | None = None, **kwargs) -> User:
        counter["n"] += 1
        user = User(telegram_id=1000 + counter["n"], username=username or f"user{counter['n']}", **kwargs)
        session.add(user)
        await session.flush()
        return user

    return _make


@pytest.fixture()
def make_category(session):
    """
    make_category("Science", 12) -> category with 12 active questions.
    The first option of every question is the correct one.
    """

    async def _make(
        name: str,
        count: int = 10,
        *,
        difficulty: Difficulty | list[Difficulty] = Difficulty.MEDIUM,
        points: int = 10,
        time_limit: int = 30,
        is_active: bool = True,
    ) -> Category:
        category = Category(name=name, is_active=is_active)
        session.add(category)
        await session.flush()

        levels = difficulty if isinstance(difficulty, list) else [difficulty]
        session.add_all(
            [
                Question(
                    category_id=category.id,
                    content=f"{name} question {i}",
                    options=[f"A{i}", f"B{i}", f"C{i}", f"D{i}"],
                    correct_answer=f"A{i}",
                    explanation=f"A{i} is right",
                    difficulty=levels[i % len(levels)],
                    points=points,
                    time_limit=time_limit,
                )
                for i in range(count)
            ]
        )
        await session.flush()
        return category

    return _make

