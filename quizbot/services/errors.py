# quizbot/services/errors.py
from __future__ import annotations


class QuizError(Exception):
    """
    Base for business-rule failures raised by the quiz services.
    Storage/driver errors are never wrapped in these.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(QuizError):
    pass


class NoEligibleDataError(NotFoundError):
    """No questions or categories satisfy the selection constraints."""


class ForbiddenError(QuizError):
    pass


class ConflictError(QuizError):
    pass


class InvalidStateError(QuizError):
    pass


class InvalidRequestError(QuizError):
    pass
