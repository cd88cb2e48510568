from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.models import QuizSessionStatus, User
from quizbot.keyboards.main import BTN_HISTORY
from quizbot.services import QuizSessionService
from quizbot.utils.reply import reply_safe

router = Router()

_STATUS_ICONS = {
    QuizSessionStatus.IN_PROGRESS: "⏳",
    QuizSessionStatus.COMPLETED: "✅",
    QuizSessionStatus.ABANDONED: "🚪",
}


@router.message(F.text == BTN_HISTORY)
@router.message(Command("history"))
async def history_cmd(
    message: Message,
    session: AsyncSession,
    quiz_service: QuizSessionService,
    db_user: User,
) -> None:
    page = await quiz_service.list_sessions(session, user_id=db_user.id, page=1, limit=10)
    if not page.data:
        await reply_safe(message, "ℹ️ You have not played any quizzes yet. Try /categories")
        return

    lines = [f"📜 <b>Your last quizzes</b> ({page.meta.total} total)", ""]
    for s in page.data:
        icon = _STATUS_ICONS.get(s.status, "•")
        lines.append(
            f"{icon} {s.started_at:%Y-%m-%d %H:%M} — <b>{s.score}</b> pts, "
            f"{s.correct_answers}/{s.total_questions} correct ({s.accuracy}%)"
        )

    await reply_safe(message, "\n".join(lines))
