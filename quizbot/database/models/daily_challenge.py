from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quizbot.database.base import Base
from quizbot.database.models.question import Difficulty


class DailyChallenge(Base):
    """
    One challenge per day in UTC (enforced by unique date).
    """
    __tablename__ = "daily_challenges"
    __table_args__ = (
        UniqueConstraint("day_utc", name="uq_daily_challenges_day_utc"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    day_utc: Mapped[date] = mapped_column(Date, index=True)

    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"), index=True)
    difficulty: Mapped[Difficulty] = mapped_column(Enum(Difficulty, native_enum=False))

    question_ids: Mapped[list[int]] = mapped_column(JSON)
    question_count: Mapped[int] = mapped_column(Integer)
    reward_points: Mapped[int] = mapped_column(Integer, default=100)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())

    attempts: Mapped[list["DailyChallengeAttempt"]] = relationship(back_populates="challenge")


class DailyChallengeAttempt(Base):
    """
    One attempt per user per challenge (enforced by unique constraint).
    completed_at is set exactly once.
    """
    __tablename__ = "daily_challenge_attempts"
    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="uq_daily_attempts_challenge_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    challenge_id: Mapped[int] = mapped_column(ForeignKey("daily_challenges.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    score: Mapped[int] = mapped_column(Integer, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())

    challenge: Mapped["DailyChallenge"] = relationship(back_populates="attempts")
