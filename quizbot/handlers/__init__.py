from quizbot.handlers.router import router

__all__ = ["router"]
