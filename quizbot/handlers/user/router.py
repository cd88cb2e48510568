# quizbot/handlers/user/router.py
from aiogram import Router

from quizbot.handlers.user.daily import router as daily_router
from quizbot.handlers.user.history import router as history_router
from quizbot.handlers.user.leaderboard import router as leaderboard_router
from quizbot.handlers.user.play import router as play_router
from quizbot.handlers.user.streak import router as streak_router

router = Router(name="user")

router.include_router(play_router)
router.include_router(daily_router)
router.include_router(streak_router)
router.include_router(leaderboard_router)
router.include_router(history_router)
