from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quizbot.database.base import Base


class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Category(Base):
    """
    Read-only for the quiz engine. Rows come from the seed script or an
    external admin tool.
    """
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True)
    description: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())

    questions: Mapped[list["Question"]] = relationship(back_populates="category")


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        Index("ix_questions_category_active", "category_id", "is_active"),
        CheckConstraint("time_limit > 0", name="ck_questions_time_limit_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"), index=True)

    content: Mapped[str] = mapped_column(Text)
    options: Mapped[list[str]] = mapped_column(JSON, default=list)
    correct_answer: Mapped[str] = mapped_column(String(256))
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)

    difficulty: Mapped[Difficulty] = mapped_column(
        Enum(Difficulty, native_enum=False), default=Difficulty.MEDIUM, index=True
    )
    points: Mapped[int] = mapped_column(Integer, default=10)
    time_limit: Mapped[int] = mapped_column(Integer, default=30)  # seconds

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())

    category: Mapped["Category"] = relationship(back_populates="questions")
