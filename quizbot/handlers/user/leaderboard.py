from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.config.settings import Settings
from quizbot.database.models import User
from quizbot.keyboards.main import BTN_LEADERBOARD
from quizbot.services import LeaderboardService, QuizError
from quizbot.utils.leaderboard_window import LeaderboardPeriod, parse_period
from quizbot.utils.reply import display_name, reply_safe

router = Router()

_TITLES = {
    LeaderboardPeriod.DAILY: "🏆 <b>Daily Leaderboard</b>",
    LeaderboardPeriod.WEEKLY: "🏆 <b>Weekly Leaderboard</b>",
    LeaderboardPeriod.MONTHLY: "🏆 <b>Monthly Leaderboard</b>",
    LeaderboardPeriod.ALL_TIME: "🏆 <b>All-time Leaderboard</b>",
}


@router.message(F.text == BTN_LEADERBOARD)
@router.message(Command("leaderboard"))
async def leaderboard_cmd(
    message: Message,
    session: AsyncSession,
    settings: Settings,
    leaderboard_service: LeaderboardService,
    db_user: User,
    command: CommandObject | None = None,
) -> None:
    period = parse_period(command.args if command else None)

    try:
        page = await leaderboard_service.get_ranking(
            session,
            period=period,
            limit=settings.leaderboard_limit,
            requesting_user_id=db_user.id,
        )
    except QuizError as e:
        await reply_safe(message, f"⚠️ {e.message}")
        return

    lines = [_TITLES[period]]
    if page.window_start is not None:
        lines.append(f"📅 <b>Since (UTC):</b> {page.window_start:%Y-%m-%d %H:%M}")
    lines.append("")

    if not page.entries:
        lines.append("ℹ️ No completed quizzes yet for this period.")
        await reply_safe(message, "\n".join(lines))
        return

    medals = {1: "🥇", 2: "🥈", 3: "🥉"}
    for entry in page.entries:
        medal = medals.get(entry.rank, f"{entry.rank}.")
        name = display_name(entry.username, entry.first_name, entry.last_name)
        you = " <b>(you)</b>" if entry.user_id == db_user.id else ""
        lines.append(
            f"{medal} {name} — <b>{entry.score}</b> pts · {entry.games_played} games · "
            f"{entry.accuracy:g}%{you}"
        )

    lines.append("")
    if page.user_rank is None:
        lines.append("📍 <b>Your rank:</b> unranked (0 pts)")
    else:
        lines.append(
            f"📍 <b>Your rank:</b> {page.user_rank.rank} / {page.total} · <b>{page.user_rank.score}</b> pts"
        )

    await reply_safe(message, "\n".join(lines))
