from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quizbot.database.base import Base


class QuizSessionStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class QuizSession(Base):
    """
    One timed attempt. question_ids is fixed at creation; score, correct_answers
    and current_index only move through QuizSessionService.
    """
    __tablename__ = "quiz_sessions"
    __table_args__ = (
        Index("ix_quiz_sessions_status_completed", "status", "completed_at"),
        Index("ix_quiz_sessions_user_started", "user_id", "started_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"), index=True)

    status: Mapped[QuizSessionStatus] = mapped_column(
        Enum(QuizSessionStatus, native_enum=False),
        default=QuizSessionStatus.IN_PROGRESS,
    )

    total_questions: Mapped[int] = mapped_column(Integer)
    question_ids: Mapped[list[int]] = mapped_column(JSON)

    current_index: Mapped[int] = mapped_column(Integer, default=0)
    score: Mapped[int] = mapped_column(Integer, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=False))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    answers: Mapped[list["UserAnswer"]] = relationship(
        "UserAnswer",
        back_populates="session",
        order_by="UserAnswer.id",
    )


class UserAnswer(Base):
    """
    At most one answer per (session, question): uq_user_answers_session_question
    is what rejects duplicate submissions.
    """
    __tablename__ = "user_answers"
    __table_args__ = (
        UniqueConstraint("session_id", "question_id", name="uq_user_answers_session_question"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("quiz_sessions.id", ondelete="CASCADE"), index=True)
    question_id: Mapped[int] = mapped_column(ForeignKey("questions.id", ondelete="CASCADE"), index=True)

    selected_answer: Mapped[str] = mapped_column(String(256))
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    points_earned: Mapped[int] = mapped_column(Integer, default=0)
    time_spent: Mapped[int] = mapped_column(Integer, default=0)  # seconds

    answered_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())

    session: Mapped["QuizSession"] = relationship("QuizSession", back_populates="answers")
