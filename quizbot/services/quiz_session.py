# quizbot/services/quiz_session.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from random import Random

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.models import Category, Difficulty, Question, QuizSession, QuizSessionStatus, UserAnswer
from quizbot.database.repo import question_repo, session_repo
from quizbot.database.repo.question_repo import QuestionFilter
from quizbot.database.tx import transactional
from quizbot.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    InvalidStateError,
    NoEligibleDataError,
    NotFoundError,
)
from quizbot.services.scoring import calculate_points, round_half_up
from quizbot.utils.dates import Clock

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PublicQuestion:
    """A question as shown to a player: no correct answer, no explanation."""
    id: int
    content: str
    difficulty: Difficulty
    options: list[str]
    points: int
    time_limit: int

    @classmethod
    def from_model(cls, q: Question) -> "PublicQuestion":
        return cls(
            id=q.id,
            content=q.content,
            difficulty=q.difficulty,
            options=list(q.options or []),
            points=q.points,
            time_limit=q.time_limit,
        )


@dataclass(frozen=True, slots=True)
class SessionView:
    id: int
    user_id: int
    category_id: int
    category_name: str
    status: QuizSessionStatus
    score: int
    total_questions: int
    correct_answers: int
    current_index: int
    questions: list[PublicQuestion]
    answered_question_ids: list[int]
    started_at: datetime
    completed_at: datetime | None


@dataclass(frozen=True, slots=True)
class AnswerResult:
    is_correct: bool
    correct_answer: str
    explanation: str | None
    points_earned: int
    base_points: int
    time_bonus: float
    running_score: int
    running_correct_count: int
    current_index: int
    is_last_question: bool


@dataclass(frozen=True, slots=True)
class AnswerReview:
    question_id: int
    content: str
    difficulty: Difficulty
    options: list[str]
    selected_answer: str
    correct_answer: str
    is_correct: bool
    explanation: str | None
    points_earned: int
    time_spent: int


@dataclass(frozen=True, slots=True)
class QuizResult:
    id: int
    user_id: int
    category_id: int
    category_name: str
    status: QuizSessionStatus
    score: int
    total_questions: int
    correct_answers: int
    answered_count: int
    accuracy: int
    total_time_spent: int
    average_time_per_question: int
    answers: list[AnswerReview]
    started_at: datetime
    completed_at: datetime


@dataclass(frozen=True, slots=True)
class SessionSummary:
    id: int
    category_id: int
    status: QuizSessionStatus
    score: int
    total_questions: int
    correct_answers: int
    accuracy: int
    started_at: datetime
    completed_at: datetime | None


@dataclass(frozen=True, slots=True)
class PageMeta:
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


@dataclass(frozen=True, slots=True)
class SessionPage:
    data: list[SessionSummary]
    meta: PageMeta


def _percent(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole > 0 else 0


class QuizSessionService:
    """
    Timed quiz attempts: IN_PROGRESS -> COMPLETED | ABANDONED.

    Every mutation runs inside `transactional`, so a failure leaves the stored
    session exactly as it was.
    """

    DEFAULT_QUESTION_COUNT = 10

    def __init__(self, clock: Clock | None = None, rng: Random | None = None) -> None:
        self.clock = clock or Clock()
        self.rng = rng or Random()

    async def start(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        category_id: int,
        difficulty: Difficulty | None = None,
        question_count: int = DEFAULT_QUESTION_COUNT,
    ) -> SessionView:
        if question_count < 1:
            raise InvalidRequestError("question_count must be at least 1")

        category = await question_repo.find_active_category(session, category_id)
        if category is None:
            raise NotFoundError(f'Category with ID "{category_id}" not found')

        eligible = await question_repo.find_questions(
            session, QuestionFilter(category_id=category_id, difficulty=difficulty)
        )
        if not eligible:
            suffix = f' with difficulty "{difficulty.value}"' if difficulty else ""
            raise NoEligibleDataError(f'No questions available for category "{category.name}"{suffix}')

        # Random.shuffle is an in-place Fisher-Yates
        shuffled = list(eligible)
        self.rng.shuffle(shuffled)
        selected = shuffled[:question_count]

        async with transactional(session):
            qs = await session_repo.create_session(
                session,
                user_id=user_id,
                category_id=category_id,
                question_ids=[q.id for q in selected],
                started_at=self.clock.utcnow(),
            )

        log.info(
            "Started quiz session %s for user %s with %s questions",
            qs.id,
            user_id,
            len(selected),
        )
        return self._view(qs, category.name, selected, answered_ids=[])

    async def submit_answer(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        session_id: int,
        question_id: int,
        selected_answer: str,
        time_spent: int | float,
    ) -> AnswerResult:
        qs = await self._owned_session(session, user_id=user_id, session_id=session_id)

        if qs.status != QuizSessionStatus.IN_PROGRESS:
            raise InvalidStateError(f"Cannot submit answer to a {qs.status.value.replace('_', ' ')} session")

        if question_id not in qs.question_ids:
            raise InvalidRequestError("This question is not part of the current quiz session")

        if time_spent < 0:
            raise InvalidRequestError("time_spent cannot be negative")
        # whole seconds: the stored value is the one that gets scored
        time_spent = int(time_spent)

        question = (await question_repo.get_questions_by_ids(session, [question_id])).get(question_id)
        if question is None:
            raise NotFoundError(f'Question with ID "{question_id}" not found')

        is_correct = selected_answer == question.correct_answer
        points = calculate_points(question.points, question.time_limit, time_spent, is_correct)

        # duplicate submissions are rejected by uq_user_answers_session_question
        try:
            async with transactional(session):
                await session_repo.insert_answer(
                    session,
                    UserAnswer(
                        session_id=qs.id,
                        question_id=question_id,
                        selected_answer=selected_answer,
                        is_correct=is_correct,
                        points_earned=points.total_points,
                        time_spent=time_spent,
                    ),
                )
                applied = await session_repo.apply_answer(
                    session,
                    session_id=qs.id,
                    points=points.total_points,
                    is_correct=is_correct,
                )
                if not applied:
                    raise InvalidStateError("Session is no longer in progress")
        except IntegrityError as e:
            log.info("Duplicate answer rejected: session=%s question=%s user=%s", qs.id, question_id, user_id)
            raise ConflictError("This question has already been answered") from e

        await session.refresh(qs, attribute_names=["score", "correct_answers", "current_index"])

        log.info(
            "User %s answered question %s in session %s: %s (+%s points)",
            user_id,
            question_id,
            qs.id,
            "correct" if is_correct else "incorrect",
            points.total_points,
        )

        return AnswerResult(
            is_correct=is_correct,
            correct_answer=question.correct_answer,
            explanation=question.explanation,
            points_earned=points.total_points,
            base_points=question.points,
            time_bonus=points.time_bonus,
            running_score=qs.score,
            running_correct_count=qs.correct_answers,
            current_index=qs.current_index,
            is_last_question=qs.current_index >= qs.total_questions,
        )

    async def get_session(self, session: AsyncSession, *, user_id: int, session_id: int) -> SessionView:
        qs = await self._owned_session(session, user_id=user_id, session_id=session_id, with_answers=True)

        by_id = await question_repo.get_questions_by_ids(session, qs.question_ids)
        ordered = [by_id[qid] for qid in qs.question_ids if qid in by_id]
        category = await session.get(Category, qs.category_id)

        return self._view(
            qs,
            category.name if category else "",
            ordered,
            answered_ids=[a.question_id for a in qs.answers],
        )

    async def complete(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        session_id: int,
        abandon: bool = False,
    ) -> QuizResult:
        qs = await self._owned_session(session, user_id=user_id, session_id=session_id, with_answers=True)

        if qs.status != QuizSessionStatus.IN_PROGRESS:
            raise InvalidStateError(f"Session is already {qs.status.value}")

        status = QuizSessionStatus.ABANDONED if abandon else QuizSessionStatus.COMPLETED
        completed_at = self.clock.utcnow()
        answers = list(qs.answers)

        async with transactional(session):
            closed = await session_repo.close_session(
                session,
                session_id=qs.id,
                status=status,
                completed_at=completed_at,
            )
            if not closed:
                raise InvalidStateError("Session is no longer in progress")

        await session.refresh(qs, attribute_names=["status", "completed_at"])

        answered_count = len(answers)
        total_time_spent = sum(a.time_spent for a in answers)
        accuracy = _percent(qs.correct_answers, answered_count)
        average_time = round_half_up(total_time_spent / answered_count) if answered_count else 0

        by_id = await question_repo.get_questions_by_ids(session, qs.question_ids)
        answer_by_question = {a.question_id: a for a in answers}

        review: list[AnswerReview] = []
        for qid in qs.question_ids:
            question = by_id.get(qid)
            if question is None:
                raise NotFoundError(f'Question with ID "{qid}" not found')
            answer = answer_by_question.get(qid)
            review.append(
                AnswerReview(
                    question_id=qid,
                    content=question.content,
                    difficulty=question.difficulty,
                    options=list(question.options or []),
                    selected_answer=answer.selected_answer if answer else "",
                    correct_answer=question.correct_answer,
                    is_correct=answer.is_correct if answer else False,
                    explanation=question.explanation,
                    points_earned=answer.points_earned if answer else 0,
                    time_spent=answer.time_spent if answer else 0,
                )
            )

        category = await session.get(Category, qs.category_id)

        log.info(
            "%s quiz session %s for user %s: %s/%s correct, %s points",
            "Abandoned" if abandon else "Completed",
            qs.id,
            user_id,
            qs.correct_answers,
            answered_count,
            qs.score,
        )

        return QuizResult(
            id=qs.id,
            user_id=qs.user_id,
            category_id=qs.category_id,
            category_name=category.name if category else "",
            status=status,
            score=qs.score,
            total_questions=qs.total_questions,
            correct_answers=qs.correct_answers,
            answered_count=answered_count,
            accuracy=accuracy,
            total_time_spent=total_time_spent,
            average_time_per_question=average_time,
            answers=review,
            started_at=qs.started_at,
            completed_at=completed_at,
        )

    async def list_sessions(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        page: int = 1,
        limit: int = 20,
    ) -> SessionPage:
        if page < 1:
            raise InvalidRequestError("page must be at least 1")
        if not 1 <= limit <= 100:
            raise InvalidRequestError("limit must be between 1 and 100")

        total = await session_repo.count_user_sessions(session, user_id)
        rows = await session_repo.list_user_sessions(session, user_id, limit=limit, offset=(page - 1) * limit)

        data = [
            SessionSummary(
                id=r.session.id,
                category_id=r.session.category_id,
                status=r.session.status,
                score=r.session.score,
                total_questions=r.session.total_questions,
                correct_answers=r.session.correct_answers,
                accuracy=_percent(r.session.correct_answers, r.answered_count),
                started_at=r.session.started_at,
                completed_at=r.session.completed_at,
            )
            for r in rows
        ]

        total_pages = math.ceil(total / limit)
        return SessionPage(
            data=data,
            meta=PageMeta(
                total=total,
                page=page,
                limit=limit,
                total_pages=total_pages,
                has_next_page=page < total_pages,
                has_previous_page=page > 1,
            ),
        )

    # ------------------------
    # helpers
    # ------------------------

    @staticmethod
    async def _owned_session(
        session: AsyncSession,
        *,
        user_id: int,
        session_id: int,
        with_answers: bool = False,
    ) -> QuizSession:
        qs = await session_repo.get_session(session, session_id, with_answers=with_answers)
        if qs is None:
            raise NotFoundError(f'Quiz session with ID "{session_id}" not found')
        if qs.user_id != user_id:
            raise ForbiddenError("You do not have access to this quiz session")
        return qs

    @staticmethod
    def _view(
        qs: QuizSession,
        category_name: str,
        questions: list[Question],
        *,
        answered_ids: list[int],
    ) -> SessionView:
        return SessionView(
            id=qs.id,
            user_id=qs.user_id,
            category_id=qs.category_id,
            category_name=category_name,
            status=qs.status,
            score=qs.score,
            total_questions=qs.total_questions,
            correct_answers=qs.correct_answers,
            current_index=qs.current_index,
            questions=[PublicQuestion.from_model(q) for q in questions],
            answered_question_ids=answered_ids,
            started_at=qs.started_at,
            completed_at=qs.completed_at,
        )
