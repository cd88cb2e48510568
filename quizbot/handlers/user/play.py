# quizbot/handlers/user/play.py
from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.config.settings import Settings
from quizbot.database.models import QuizSessionStatus, User
from quizbot.database.repo.question_repo import list_active_categories
from quizbot.keyboards.main import BTN_PLAY
from quizbot.keyboards.quiz import categories_kb, session_answer_kb
from quizbot.services import QuizError, QuizSessionService
from quizbot.services.quiz_session import PublicQuestion, QuizResult, SessionView
from quizbot.utils.dates import Clock
from quizbot.utils.reply import reply_safe

log = logging.getLogger(__name__)
router = Router()


def _question_text(view: SessionView, question: PublicQuestion) -> str:
    position = view.questions.index(question) + 1
    return (
        f"🧠 <b>{view.category_name}</b> · question {position}/{view.total_questions}\n"
        f"⏱ {question.time_limit}s · {question.points} pts · {question.difficulty.value}\n\n"
        f"❓ {question.content}"
    )


def _next_question(view: SessionView) -> PublicQuestion | None:
    answered = set(view.answered_question_ids)
    for q in view.questions:
        if q.id not in answered:
            return q
    return None


def _result_text(result: QuizResult) -> str:
    title = "🏁 <b>Quiz complete!</b>" if result.status == QuizSessionStatus.COMPLETED else "🚪 <b>Quiz abandoned</b>"
    lines = [
        title,
        "",
        f"📚 {result.category_name}",
        f"✅ Correct: <b>{result.correct_answers}</b> / {result.total_questions}",
        f"🎯 Accuracy: <b>{result.accuracy}%</b>",
        f"⭐ Score: <b>{result.score}</b> pts",
        f"⏱ Avg time: {result.average_time_per_question}s",
        "",
    ]
    for i, a in enumerate(result.answers, start=1):
        if not a.selected_answer:
            mark = "➖"
        else:
            mark = "✅" if a.is_correct else "❌"
        lines.append(f"{mark} {i}. {a.correct_answer} (+{a.points_earned})")
    return "\n".join(lines)


async def _send_question(message: Message, view: SessionView, question: PublicQuestion) -> None:
    await message.answer(
        _question_text(view, question),
        reply_markup=session_answer_kb(session_id=view.id, question_id=question.id, options=question.options),
    )


async def _drop_keyboard(cb: CallbackQuery) -> None:
    # prevents double taps on an already answered question
    try:
        await cb.message.edit_reply_markup(reply_markup=None)
    except Exception:
        log.debug("Could not remove inline keyboard", exc_info=True)


# -------------------------------------------------
# Category picker
# -------------------------------------------------

@router.message(F.text == BTN_PLAY)
@router.message(Command("categories"))
async def categories_cmd(message: Message, session: AsyncSession) -> None:
    categories = await list_active_categories(session)
    if not categories:
        await reply_safe(message, "ℹ️ No categories available yet.")
        return

    await message.answer(
        "📚 <b>Pick a category:</b>",
        reply_markup=categories_kb([(c.id, c.name) for c in categories]),
    )


@router.callback_query(F.data.startswith("play:"))
async def play_category(
    cb: CallbackQuery,
    session: AsyncSession,
    settings: Settings,
    quiz_service: QuizSessionService,
    db_user: User,
) -> None:
    await cb.answer()
    if not cb.message:
        return

    try:
        category_id = int((cb.data or "").split(":", 1)[1])
    except (IndexError, ValueError):
        await cb.message.answer("❌ Invalid category.")
        return

    try:
        view = await quiz_service.start(
            session,
            user_id=db_user.id,
            category_id=category_id,
            question_count=settings.quiz_question_count,
        )
    except QuizError as e:
        await cb.message.answer(f"⚠️ {e.message}")
        return

    await _drop_keyboard(cb)
    await _send_question(cb.message, view, view.questions[0])


# -------------------------------------------------
# Answers
# -------------------------------------------------

@router.callback_query(F.data.startswith("ans:"))
async def answer_question(
    cb: CallbackQuery,
    session: AsyncSession,
    quiz_service: QuizSessionService,
    clock: Clock,
    db_user: User,
) -> None:
    await cb.answer()
    if not cb.message:
        return

    # ans:<session_id>:<question_id>:<option_index>
    try:
        _, session_id_s, question_id_s, option_s = (cb.data or "").split(":")
        session_id, question_id, option_index = int(session_id_s), int(question_id_s), int(option_s)
    except ValueError:
        await cb.message.answer("❌ Invalid answer payload.")
        return

    await _drop_keyboard(cb)

    try:
        view = await quiz_service.get_session(session, user_id=db_user.id, session_id=session_id)
        question = next((q for q in view.questions if q.id == question_id), None)
        if question is None or not 0 <= option_index < len(question.options):
            await cb.message.answer("❌ Invalid choice.")
            return

        # the question message timestamp is when the clock started
        time_spent = max(0, int((clock.now() - cb.message.date).total_seconds()))

        result = await quiz_service.submit_answer(
            session,
            user_id=db_user.id,
            session_id=session_id,
            question_id=question_id,
            selected_answer=question.options[option_index],
            time_spent=time_spent,
        )
    except QuizError as e:
        await cb.message.answer(f"⚠️ {e.message}")
        return

    if result.is_correct:
        feedback = f"✅ Correct! <b>+{result.points_earned}</b> pts"
        if result.time_bonus > 0:
            feedback += f" (speed bonus {int(result.time_bonus * 100)}%)"
    else:
        feedback = f"❌ Wrong. Answer: <b>{result.correct_answer}</b>"
    if result.explanation:
        feedback += f"\n💡 {result.explanation}"
    feedback += f"\n\n⭐ Score: <b>{result.running_score}</b>"
    await cb.message.answer(feedback)

    try:
        if result.is_last_question:
            final = await quiz_service.complete(session, user_id=db_user.id, session_id=session_id)
            await reply_safe(cb.message, _result_text(final))
            return

        view = await quiz_service.get_session(session, user_id=db_user.id, session_id=session_id)
    except QuizError as e:
        await cb.message.answer(f"⚠️ {e.message}")
        return

    nxt = _next_question(view)
    if nxt is not None:
        await _send_question(cb.message, view, nxt)


@router.callback_query(F.data.startswith("quit:"))
async def quit_quiz(
    cb: CallbackQuery,
    session: AsyncSession,
    quiz_service: QuizSessionService,
    db_user: User,
) -> None:
    await cb.answer()
    if not cb.message:
        return

    try:
        session_id = int((cb.data or "").split(":", 1)[1])
    except (IndexError, ValueError):
        await cb.message.answer("❌ Invalid session.")
        return

    await _drop_keyboard(cb)

    try:
        result = await quiz_service.complete(session, user_id=db_user.id, session_id=session_id, abandon=True)
    except QuizError as e:
        await cb.message.answer(f"⚠️ {e.message}")
        return

    await reply_safe(cb.message, _result_text(result))
