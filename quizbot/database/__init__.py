from quizbot.database.session import Database

__all__ = ["Database"]
