# quizbot/handlers/common.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.models import User
from quizbot.services import DailyChallengeService
from quizbot.utils.reply import reply_safe

router = Router(name="common")

HELP_TEXT = (
    "📌 <b>Available commands:</b>\n"
    "/start — welcome\n"
    "/help — help\n"
    "/categories — pick a category and play a timed quiz\n"
    "/daily — today's daily challenge\n"
    "/streak — your daily streak and bonus tier\n"
    "/leaderboard [daily|weekly|monthly|all] — rankings\n"
    "/history — your recent quizzes\n\n"
    "You can also use the menu buttons."
)


@router.message(CommandStart())
async def cmd_start(
    message: Message,
    session: AsyncSession,
    daily_service: DailyChallengeService,
    db_user: User,
) -> None:
    text = (
        "👋 <b>Welcome to the quiz!</b>\n\n"
        "Answer fast for a time bonus, play the daily challenge every day "
        "to grow your streak multiplier.\n\n"
        "Use /help to see commands."
    )
    if not await daily_service.has_completed_today(session, user_id=db_user.id):
        text += "\n\n📅 Today's daily challenge is waiting for you: /daily"

    await reply_safe(message, text)


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await reply_safe(message, HELP_TEXT)


@router.message()
async def fallback(message: Message) -> None:
    if message.chat.type != "private":
        return
    await reply_safe(message, "🤔 Unknown command. Use /help to see what I can do.")
