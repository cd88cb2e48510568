from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.models import User
from quizbot.keyboards.main import BTN_STREAK
from quizbot.services import DailyChallengeService
from quizbot.utils.reply import reply_safe

router = Router()


@router.message(F.text == BTN_STREAK)
@router.message(Command("streak"))
async def streak_cmd(
    message: Message,
    session: AsyncSession,
    daily_service: DailyChallengeService,
    db_user: User,
) -> None:
    status = await daily_service.get_status(session, user_id=db_user.id)
    streak = status.streak

    lines = [
        "🔥 <b>Your streak</b>",
        "",
        f"Current: <b>{streak.current_streak}</b> day(s)",
        f"Best: <b>{streak.longest_streak}</b> day(s)",
        f"Bonus: x{streak.multiplier:g} ({streak.bonus_tier})",
    ]
    if streak.days_to_next_tier > 0:
        lines.append(f"Next tier in {streak.days_to_next_tier} day(s)")

    lines.append("")
    if status.completed_today:
        lines.append(f"✅ Daily challenge done today: <b>{status.score}</b> pts")
    else:
        lines.append("📅 Daily challenge not played yet today, use /daily")

    await reply_safe(message, "\n".join(lines))
