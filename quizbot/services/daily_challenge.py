# quizbot/services/daily_challenge.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from random import Random
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.models import Category, DailyChallenge, DailyChallengeAttempt, Difficulty
from quizbot.database.repo import challenge_repo, question_repo
from quizbot.database.repo.question_repo import QuestionFilter
from quizbot.database.tx import transactional
from quizbot.services.errors import ConflictError, ForbiddenError, NoEligibleDataError, NotFoundError
from quizbot.services.quiz_session import PublicQuestion
from quizbot.services.scoring import calculate_points
from quizbot.services.streak import StreakDisplay, StreakService, streak_bonus
from quizbot.utils.dates import Clock

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChallengeView:
    id: int
    day_utc: date
    category_id: int
    category_name: str
    difficulty: Difficulty
    question_count: int
    reward_points: int


@dataclass(frozen=True, slots=True)
class TodayChallenge:
    challenge: ChallengeView
    completed: bool
    user_score: int | None = None
    user_correct_answers: int | None = None


@dataclass(frozen=True, slots=True)
class AttemptView:
    id: int
    challenge_id: int
    user_id: int
    score: int
    correct_answers: int
    completed_at: datetime | None

    @classmethod
    def from_model(cls, a: DailyChallengeAttempt) -> "AttemptView":
        return cls(
            id=a.id,
            challenge_id=a.challenge_id,
            user_id=a.user_id,
            score=a.score,
            correct_answers=a.correct_answers,
            completed_at=a.completed_at,
        )


@dataclass(frozen=True, slots=True)
class StartedAttempt:
    attempt: AttemptView
    questions: list[PublicQuestion]
    resumed: bool


@dataclass(frozen=True, slots=True)
class SubmittedAnswer:
    question_id: int
    selected_answer: str
    time_spent: int = 0  # accepted for parity with quiz sessions, not scored


@dataclass(frozen=True, slots=True)
class DailyAnswerResult:
    question_id: int
    is_correct: bool
    correct_answer: str
    selected_answer: str
    points_earned: int
    explanation: str | None


@dataclass(frozen=True, slots=True)
class DailyChallengeResult:
    score: int
    correct_answers: int
    total_questions: int
    base_points: int
    streak_multiplier: float
    streak_bonus_points: int
    current_streak: int
    longest_streak: int
    answer_results: list[DailyAnswerResult]
    is_new_record: bool


@dataclass(frozen=True, slots=True)
class DailyStatus:
    completed_today: bool
    streak: StreakDisplay
    score: int | None = None
    correct_answers: int | None = None
    completed_at: datetime | None = None


class DailyChallengeService:
    """
    One challenge per UTC day, one attempt per user per challenge.
    Completing an attempt feeds the user's streak, and the streak feeds the
    score multiplier.
    """

    QUESTION_COUNT = 10
    DEFAULT_REWARD_POINTS = 100

    def __init__(
        self,
        clock: Clock | None = None,
        rng: Random | None = None,
        *,
        reward_points: int = DEFAULT_REWARD_POINTS,
        streaks: StreakService | None = None,
    ) -> None:
        self.clock = clock or Clock()
        self.rng = rng or Random()
        self.reward_points = reward_points
        self.streaks = streaks or StreakService(self.clock)

    # ------------------------
    # challenge
    # ------------------------

    async def get_or_create_today(self, session: AsyncSession) -> ChallengeView:
        challenge = await self._get_or_create(session, self.clock.today_utc())
        return await self._challenge_view(session, challenge)

    async def get_today(self, session: AsyncSession, *, user_id: int | None = None) -> TodayChallenge:
        challenge = await self._get_or_create(session, self.clock.today_utc())
        view = await self._challenge_view(session, challenge)

        if user_id is not None:
            attempt = await challenge_repo.get_attempt(session, challenge.id, user_id)
            if attempt is not None and attempt.completed_at is not None:
                return TodayChallenge(
                    challenge=view,
                    completed=True,
                    user_score=attempt.score,
                    user_correct_answers=attempt.correct_answers,
                )

        return TodayChallenge(challenge=view, completed=False)

    async def _get_or_create(self, session: AsyncSession, day_utc: date) -> DailyChallenge:
        existing = await challenge_repo.get_challenge_for_day(session, day_utc)
        if existing is not None:
            return existing

        categories = await question_repo.categories_with_min_questions(session, self.QUESTION_COUNT)
        if not categories:
            raise NoEligibleDataError("No categories with enough questions available for daily challenge")

        category = self.rng.choice(categories)
        difficulty = self.rng.choice(list(Difficulty))

        pool = await question_repo.find_questions(
            session, QuestionFilter(category_id=category.id, difficulty=difficulty)
        )
        if len(pool) < self.QUESTION_COUNT:
            # not enough at that difficulty, any difficulty from the same category
            pool = await question_repo.find_questions(session, QuestionFilter(category_id=category.id))

        shuffled = list(pool)
        self.rng.shuffle(shuffled)
        selected = shuffled[: self.QUESTION_COUNT]

        result = await challenge_repo.create_challenge_once(
            session,
            day_utc=day_utc,
            category_id=category.id,
            difficulty=difficulty,
            question_ids=[q.id for q in selected],
            reward_points=self.reward_points,
        )
        if result.created:
            log.info(
                "Created daily challenge for %s: category=%s, difficulty=%s",
                day_utc.isoformat(),
                category.name,
                difficulty.value,
            )
        else:
            log.info("Daily challenge for %s was created concurrently, using existing", day_utc.isoformat())
        return result.row

    # ------------------------
    # attempts
    # ------------------------

    async def start_attempt(self, session: AsyncSession, *, user_id: int) -> StartedAttempt:
        challenge = await challenge_repo.get_challenge_for_day(session, self.clock.today_utc())
        if challenge is None:
            raise NotFoundError("Today's daily challenge not found")

        attempt = await challenge_repo.get_attempt(session, challenge.id, user_id)
        resumed = attempt is not None

        if attempt is None:
            created = await challenge_repo.create_attempt_once(session, challenge_id=challenge.id, user_id=user_id)
            attempt = created.row
            resumed = not created.created
            if created.created:
                log.info("User %s started daily challenge attempt %s", user_id, attempt.id)

        if attempt.completed_at is not None:
            raise ConflictError("You have already completed today's daily challenge")

        by_id = await question_repo.get_questions_by_ids(session, challenge.question_ids)
        questions = [PublicQuestion.from_model(by_id[qid]) for qid in challenge.question_ids if qid in by_id]

        return StartedAttempt(attempt=AttemptView.from_model(attempt), questions=questions, resumed=resumed)

    async def complete_attempt(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        attempt_id: int,
        answers: Sequence[SubmittedAnswer],
    ) -> DailyChallengeResult:
        attempt = await challenge_repo.get_attempt_by_id(session, attempt_id)
        if attempt is None:
            raise NotFoundError(f'Attempt with ID "{attempt_id}" not found')
        if attempt.user_id != user_id:
            raise ForbiddenError("You can only complete your own attempts")
        if attempt.completed_at is not None:
            raise ConflictError("This attempt has already been completed")

        question_ids = list(attempt.challenge.question_ids)
        by_id = await question_repo.get_questions_by_ids(session, question_ids)

        correct_count = 0
        base_points = 0
        results: list[DailyAnswerResult] = []
        seen: set[int] = set()

        for answer in answers:
            question = by_id.get(answer.question_id)
            # foreign questions are ignored, a repeated question counts once
            if question is None or answer.question_id in seen:
                continue
            seen.add(answer.question_id)

            is_correct = answer.selected_answer == question.correct_answer
            # flat points: spending the whole time limit zeroes the time bonus
            points = calculate_points(question.points, question.time_limit, question.time_limit, is_correct)

            if is_correct:
                correct_count += 1
                base_points += points.total_points

            results.append(
                DailyAnswerResult(
                    question_id=answer.question_id,
                    is_correct=is_correct,
                    correct_answer=question.correct_answer,
                    selected_answer=answer.selected_answer,
                    points_earned=points.total_points,
                    explanation=question.explanation,
                )
            )

        async with transactional(session):
            # streak first: the multiplier uses the post-increment value
            streak = await self.streaks.update_on_completion(
                session, user_id=user_id, today=self.clock.today_utc()
            )
            bonus = streak_bonus(streak.current_streak)
            streak_bonus_points = math.floor(base_points * (bonus.multiplier - 1))
            total_score = base_points + streak_bonus_points

            finalized = await challenge_repo.finalize_attempt(
                session,
                attempt_id=attempt.id,
                score=total_score,
                correct_answers=correct_count,
                completed_at=self.clock.utcnow(),
            )
            if not finalized:
                raise ConflictError("This attempt has already been completed")

        await session.refresh(attempt, attribute_names=["score", "correct_answers", "completed_at"])

        log.info(
            "User %s completed daily challenge: score=%s, correct=%s/%s",
            user_id,
            total_score,
            correct_count,
            len(question_ids),
        )

        return DailyChallengeResult(
            score=total_score,
            correct_answers=correct_count,
            total_questions=len(question_ids),
            base_points=base_points,
            streak_multiplier=bonus.multiplier,
            streak_bonus_points=streak_bonus_points,
            current_streak=streak.current_streak,
            longest_streak=max(streak.longest_streak_before, streak.current_streak),
            answer_results=results,
            is_new_record=streak.current_streak > streak.longest_streak_before,
        )

    # ------------------------
    # status
    # ------------------------

    async def has_completed_today(self, session: AsyncSession, *, user_id: int) -> bool:
        challenge = await challenge_repo.get_challenge_for_day(session, self.clock.today_utc())
        if challenge is None:
            return False
        attempt = await challenge_repo.get_attempt(session, challenge.id, user_id)
        return attempt is not None and attempt.completed_at is not None

    async def get_status(self, session: AsyncSession, *, user_id: int) -> DailyStatus:
        today = self.clock.today_utc()
        streak = await self.streaks.get_display_streak(session, user_id=user_id, today=today)

        challenge = await challenge_repo.get_challenge_for_day(session, today)
        if challenge is None:
            return DailyStatus(completed_today=False, streak=streak)

        attempt = await challenge_repo.get_attempt(session, challenge.id, user_id)
        if attempt is None or attempt.completed_at is None:
            return DailyStatus(completed_today=False, streak=streak)

        return DailyStatus(
            completed_today=True,
            streak=streak,
            score=attempt.score,
            correct_answers=attempt.correct_answers,
            completed_at=attempt.completed_at,
        )

    @staticmethod
    async def _challenge_view(session: AsyncSession, challenge: DailyChallenge) -> ChallengeView:
        category = await session.get(Category, challenge.category_id)
        return ChallengeView(
            id=challenge.id,
            day_utc=challenge.day_utc,
            category_id=challenge.category_id,
            category_name=category.name if category else "",
            difficulty=challenge.difficulty,
            question_count=challenge.question_count,
            reward_points=challenge.reward_points,
        )
