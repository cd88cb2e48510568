from .user import User
from .question import Category, Difficulty, Question
from .quiz_session import QuizSession, QuizSessionStatus, UserAnswer
from .daily_challenge import DailyChallenge, DailyChallengeAttempt
from .streak import UserStreak

__all__ = [
    "User",
    "Category",
    "Difficulty",
    "Question",
    "QuizSession",
    "QuizSessionStatus",
    "UserAnswer",
    "DailyChallenge",
    "DailyChallengeAttempt",
    "UserStreak",
]
