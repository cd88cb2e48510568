# quizbot/handlers/user/daily.py
from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.models import User
from quizbot.keyboards.main import BTN_DAILY
from quizbot.keyboards.quiz import daily_answer_kb
from quizbot.services import DailyChallengeService, NoEligibleDataError, QuizError, SubmittedAnswer
from quizbot.services.daily_challenge import DailyChallengeResult
from quizbot.utils.reply import reply_safe

log = logging.getLogger(__name__)
router = Router()


class DailyStates(StatesGroup):
    answering = State()


def _question_text(data: dict, position: int) -> str:
    q = data["questions"][position]
    return (
        f"📅 <b>Daily challenge</b> · {data['category_name']} · "
        f"question {position + 1}/{len(data['questions'])}\n\n"
        f"❓ {q['content']}"
    )


def _result_text(result: DailyChallengeResult) -> str:
    lines = [
        "🏁 <b>Daily challenge complete!</b>",
        "",
        f"✅ Correct: <b>{result.correct_answers}</b> / {result.total_questions}",
        f"⭐ Base points: {result.base_points}",
    ]
    if result.streak_bonus_points:
        lines.append(f"🔥 Streak bonus x{result.streak_multiplier:g}: +{result.streak_bonus_points}")
    lines += [
        f"🏆 Score: <b>{result.score}</b>",
        "",
        f"🔥 Streak: <b>{result.current_streak}</b> day(s) (best {result.longest_streak})",
    ]
    if result.is_new_record:
        lines.append("🎉 New personal record!")
    return "\n".join(lines)


async def _send_question(message: Message, data: dict, position: int) -> None:
    await message.answer(
        _question_text(data, position),
        reply_markup=daily_answer_kb(
            attempt_id=data["attempt_id"],
            position=position,
            options=data["questions"][position]["options"],
        ),
    )


@router.message(F.text == BTN_DAILY)
@router.message(Command("daily"))
async def daily_entry(
    message: Message,
    state: FSMContext,
    session: AsyncSession,
    daily_service: DailyChallengeService,
    db_user: User,
) -> None:
    if message.chat.type != "private":
        await message.answer("📅 The daily challenge is available in private chat only.")
        return

    try:
        today = await daily_service.get_today(session, user_id=db_user.id)
    except NoEligibleDataError:
        await reply_safe(message, "ℹ️ No daily challenge available today. Please try again later.")
        return

    challenge = today.challenge
    if today.completed:
        await reply_safe(
            message,
            f"📅 <b>Daily challenge (UTC {challenge.day_utc.isoformat()})</b>\n\n"
            f"✅ Already completed today: <b>{today.user_score}</b> pts, "
            f"{today.user_correct_answers}/{challenge.question_count} correct.\n"
            "Come back tomorrow to keep your streak!",
        )
        return

    try:
        started = await daily_service.start_attempt(session, user_id=db_user.id)
    except QuizError as e:
        await reply_safe(message, f"⚠️ {e.message}")
        return

    if not started.questions:
        await reply_safe(message, "ℹ️ Today's challenge has no questions.")
        return

    data = {
        "attempt_id": started.attempt.id,
        "category_name": challenge.category_name,
        "questions": [{"id": q.id, "content": q.content, "options": q.options} for q in started.questions],
        "answers": [],
    }
    await state.set_state(DailyStates.answering)
    await state.set_data(data)

    intro = "↩️ Resuming" if started.resumed else "🚀 Starting"
    await message.answer(
        f"{intro} today's challenge: <b>{challenge.category_name}</b> "
        f"({challenge.difficulty.value}), {len(started.questions)} questions."
    )
    await _send_question(message, data, 0)


@router.callback_query(DailyStates.answering, F.data.startswith("dc:"))
async def daily_answer(
    cb: CallbackQuery,
    state: FSMContext,
    session: AsyncSession,
    daily_service: DailyChallengeService,
    db_user: User,
) -> None:
    await cb.answer()
    if not cb.message:
        return

    # dc:<attempt_id>:<position>:<option_index>
    try:
        _, attempt_s, position_s, option_s = (cb.data or "").split(":")
        attempt_id, position, option_index = int(attempt_s), int(position_s), int(option_s)
    except ValueError:
        await cb.message.answer("❌ Invalid answer payload.")
        return

    data = await state.get_data()
    questions = data.get("questions") or []
    answers = list(data.get("answers") or [])

    # stale button from an older question or attempt
    if data.get("attempt_id") != attempt_id or position != len(answers) or position >= len(questions):
        return

    question = questions[position]
    if not 0 <= option_index < len(question["options"]):
        await cb.message.answer("❌ Invalid choice.")
        return

    try:
        await cb.message.edit_reply_markup(reply_markup=None)
    except Exception:
        log.debug("Could not remove inline keyboard", exc_info=True)

    answers.append([question["id"], question["options"][option_index]])
    data["answers"] = answers
    await state.update_data(answers=answers)

    if len(answers) < len(questions):
        await _send_question(cb.message, data, len(answers))
        return

    await state.clear()
    try:
        result = await daily_service.complete_attempt(
            session,
            user_id=db_user.id,
            attempt_id=attempt_id,
            answers=[SubmittedAnswer(question_id=qid, selected_answer=sel) for qid, sel in answers],
        )
    except QuizError as e:
        await reply_safe(cb.message, f"⚠️ {e.message}")
        return

    await reply_safe(cb.message, _result_text(result))


@router.callback_query(F.data.startswith("dc:"))
async def daily_answer_expired(cb: CallbackQuery) -> None:
    await cb.answer("This daily challenge question is no longer active.", show_alert=False)
