from quizbot.services.daily_challenge import DailyChallengeService, SubmittedAnswer
from quizbot.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    InvalidStateError,
    NoEligibleDataError,
    NotFoundError,
    QuizError,
)
from quizbot.services.leaderboard import LeaderboardService
from quizbot.services.quiz_session import QuizSessionService
from quizbot.services.scoring import calculate_points
from quizbot.services.streak import StreakService, streak_bonus

__all__ = [
    "DailyChallengeService",
    "SubmittedAnswer",
    "ConflictError",
    "ForbiddenError",
    "InvalidRequestError",
    "InvalidStateError",
    "NoEligibleDataError",
    "NotFoundError",
    "QuizError",
    "LeaderboardService",
    "QuizSessionService",
    "calculate_points",
    "StreakService",
    "streak_bonus",
]
