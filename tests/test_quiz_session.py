import asyncio

import pytest
from sqlalchemy import func, select

from quizbot.database.models import Difficulty, Question, QuizSession, QuizSessionStatus, UserAnswer
from quizbot.services import QuizSessionService
from quizbot.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    InvalidStateError,
    NoEligibleDataError,
    NotFoundError,
)


@pytest.fixture()
def service(clock, rng):
    return QuizSessionService(clock, rng)


async def test_start_picks_distinct_questions_from_category(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 15)

    view = await service.start(session, user_id=user.id, category_id=category.id, question_count=10)

    assert view.status == QuizSessionStatus.IN_PROGRESS
    assert view.total_questions == 10
    assert view.score == 0
    assert view.current_index == 0
    assert view.category_name == "Science"
    ids = [q.id for q in view.questions]
    assert len(set(ids)) == 10

    stored = await session.get(QuizSession, view.id)
    assert stored.question_ids == ids


async def test_start_caps_question_count_at_pool_size(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Tiny", 3)

    view = await service.start(session, user_id=user.id, category_id=category.id, question_count=10)

    assert view.total_questions == 3
    assert len(view.questions) == 3


async def test_public_questions_do_not_leak_answers(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 5)

    view = await service.start(session, user_id=user.id, category_id=category.id)

    q = view.questions[0]
    assert not hasattr(q, "correct_answer")
    assert not hasattr(q, "explanation")


async def test_start_filters_by_difficulty(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Mixed", 9, difficulty=[Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD])

    view = await service.start(
        session, user_id=user.id, category_id=category.id, difficulty=Difficulty.HARD, question_count=10
    )

    assert view.total_questions == 3
    assert {q.difficulty for q in view.questions} == {Difficulty.HARD}


async def test_start_unknown_or_inactive_category(service, session, make_user, make_category):
    user = await make_user()
    inactive = await make_category("Retired", 5, is_active=False)

    with pytest.raises(NotFoundError):
        await service.start(session, user_id=user.id, category_id=9999)
    with pytest.raises(NotFoundError):
        await service.start(session, user_id=user.id, category_id=inactive.id)


async def test_start_without_eligible_questions(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Empty", 0)
    easy_only = await make_category("Easy only", 4, difficulty=Difficulty.EASY)

    with pytest.raises(NoEligibleDataError):
        await service.start(session, user_id=user.id, category_id=category.id)
    with pytest.raises(NoEligibleDataError):
        await service.start(session, user_id=user.id, category_id=easy_only.id, difficulty=Difficulty.HARD)


async def test_start_rejects_non_positive_count(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 5)

    with pytest.raises(InvalidRequestError):
        await service.start(session, user_id=user.id, category_id=category.id, question_count=0)


async def test_submit_correct_answer_scores_with_time_bonus(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 5, points=10, time_limit=30)
    view = await service.start(session, user_id=user.id, category_id=category.id, question_count=5)
    q = view.questions[0]

    result = await service.submit_answer(
        session,
        user_id=user.id,
        session_id=view.id,
        question_id=q.id,
        selected_answer=q.options[0],
        time_spent=10,
    )

    assert result.is_correct is True
    assert result.points_earned == 13
    assert result.base_points == 10
    assert result.running_score == 13
    assert result.running_correct_count == 1
    assert result.current_index == 1
    assert result.is_last_question is False
    assert result.correct_answer == q.options[0]


async def test_submit_wrong_answer(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 5)
    view = await service.start(session, user_id=user.id, category_id=category.id)
    q = view.questions[0]

    result = await service.submit_answer(
        session,
        user_id=user.id,
        session_id=view.id,
        question_id=q.id,
        selected_answer=q.options[2],
        time_spent=3,
    )

    assert result.is_correct is False
    assert result.points_earned == 0
    assert result.running_score == 0
    assert result.current_index == 1
    assert result.explanation == f"{q.options[0]} is right"


async def test_duplicate_answer_is_rejected_and_scored_once(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 5)
    view = await service.start(session, user_id=user.id, category_id=category.id)
    q = view.questions[0]

    first = await service.submit_answer(
        session, user_id=user.id, session_id=view.id, question_id=q.id, selected_answer=q.options[0], time_spent=0
    )
    with pytest.raises(ConflictError):
        await service.submit_answer(
            session, user_id=user.id, session_id=view.id, question_id=q.id, selected_answer=q.options[0], time_spent=0
        )

    after = await service.get_session(session, user_id=user.id, session_id=view.id)
    assert after.score == first.running_score == 15
    assert after.current_index == 1
    assert after.answered_question_ids == [q.id]

    n = await session.scalar(select(func.count(UserAnswer.id)).where(UserAnswer.session_id == view.id))
    assert n == 1


async def test_concurrent_duplicate_answers_score_once(service, db, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 5)
    view = await service.start(session, user_id=user.id, category_id=category.id)
    await session.commit()
    q = view.questions[0]

    async def submit() -> str:
        async with db.session() as s:
            try:
                await service.submit_answer(
                    s, user_id=user.id, session_id=view.id, question_id=q.id, selected_answer=q.options[0], time_spent=0
                )
            except ConflictError:
                return "conflict"
            await s.commit()
            return "ok"

    results = await asyncio.gather(*(submit() for _ in range(3)))

    assert sorted(results) == ["conflict", "conflict", "ok"]
    async with db.session() as s:
        after = await service.get_session(s, user_id=user.id, session_id=view.id)
    assert after.current_index == 1
    assert after.score == 15
    assert after.answered_question_ids == [q.id]


async def test_fractional_time_is_scored_as_stored(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 3, points=100, time_limit=30)
    view = await service.start(session, user_id=user.id, category_id=category.id, question_count=1)
    q = view.questions[0]

    # unrounded, 0.9s would fall just short of the full bonus
    result = await service.submit_answer(
        session, user_id=user.id, session_id=view.id, question_id=q.id, selected_answer=q.options[0], time_spent=0.9
    )
    final = await service.complete(session, user_id=user.id, session_id=view.id)

    assert result.points_earned == 150
    assert final.answers[0].time_spent == 0
    assert final.answers[0].points_earned == 150


async def test_submit_foreign_question(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 5)
    other = await make_category("History", 5)
    view = await service.start(session, user_id=user.id, category_id=category.id)
    foreign = await session.scalar(select(Question).where(Question.category_id == other.id).limit(1))

    with pytest.raises(InvalidRequestError):
        await service.submit_answer(
            session, user_id=user.id, session_id=view.id, question_id=foreign.id, selected_answer="x", time_spent=1
        )


async def test_submit_negative_time_spent(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 5)
    view = await service.start(session, user_id=user.id, category_id=category.id)
    q = view.questions[0]

    with pytest.raises(InvalidRequestError):
        await service.submit_answer(
            session, user_id=user.id, session_id=view.id, question_id=q.id, selected_answer=q.options[0], time_spent=-1
        )


async def test_other_users_cannot_touch_a_session(service, session, make_user, make_category):
    owner = await make_user()
    intruder = await make_user()
    category = await make_category("Science", 5)
    view = await service.start(session, user_id=owner.id, category_id=category.id)
    q = view.questions[0]

    with pytest.raises(ForbiddenError):
        await service.submit_answer(
            session, user_id=intruder.id, session_id=view.id, question_id=q.id, selected_answer="x", time_spent=1
        )
    with pytest.raises(ForbiddenError):
        await service.get_session(session, user_id=intruder.id, session_id=view.id)
    with pytest.raises(ForbiddenError):
        await service.complete(session, user_id=intruder.id, session_id=view.id)


async def test_unknown_session(service, session, make_user):
    user = await make_user()
    with pytest.raises(NotFoundError):
        await service.get_session(session, user_id=user.id, session_id=424242)


async def test_last_answer_is_flagged(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 2)
    view = await service.start(session, user_id=user.id, category_id=category.id, question_count=2)

    results = []
    for q in view.questions:
        results.append(
            await service.submit_answer(
                session, user_id=user.id, session_id=view.id, question_id=q.id, selected_answer=q.options[0], time_spent=30
            )
        )

    assert [r.is_last_question for r in results] == [False, True]
    assert results[-1].running_score == 20


async def test_complete_builds_review_in_session_order(service, session, make_user, make_category, clock):
    user = await make_user()
    category = await make_category("Science", 4, points=10, time_limit=30)
    view = await service.start(session, user_id=user.id, category_id=category.id, question_count=4)
    q1, q2, q3, _q4 = view.questions

    # answer out of order, leave the last one unanswered
    await service.submit_answer(
        session, user_id=user.id, session_id=view.id, question_id=q2.id, selected_answer=q2.options[1], time_spent=5
    )
    await service.submit_answer(
        session, user_id=user.id, session_id=view.id, question_id=q1.id, selected_answer=q1.options[0], time_spent=0
    )
    await service.submit_answer(
        session, user_id=user.id, session_id=view.id, question_id=q3.id, selected_answer=q3.options[0], time_spent=30
    )
    clock.advance(minutes=2)

    result = await service.complete(session, user_id=user.id, session_id=view.id)

    assert result.status == QuizSessionStatus.COMPLETED
    assert result.score == 25
    assert result.correct_answers == 2
    assert result.answered_count == 3
    assert result.accuracy == 67
    assert result.total_time_spent == 35
    assert result.average_time_per_question == 12
    assert result.completed_at == clock.utcnow()

    assert [a.question_id for a in result.answers] == [q.id for q in view.questions]
    assert [a.is_correct for a in result.answers] == [True, False, True, False]
    unanswered = result.answers[3]
    assert unanswered.selected_answer == ""
    assert unanswered.points_earned == 0
    assert unanswered.time_spent == 0
    assert sum(a.points_earned for a in result.answers) == result.score


async def test_complete_twice_fails_and_keeps_first_result(service, session, make_user, make_category, clock):
    user = await make_user()
    category = await make_category("Science", 3)
    view = await service.start(session, user_id=user.id, category_id=category.id)

    first = await service.complete(session, user_id=user.id, session_id=view.id)
    clock.advance(hours=1)

    with pytest.raises(InvalidStateError):
        await service.complete(session, user_id=user.id, session_id=view.id)
    with pytest.raises(InvalidStateError):
        await service.complete(session, user_id=user.id, session_id=view.id, abandon=True)

    stored = await service.get_session(session, user_id=user.id, session_id=view.id)
    assert stored.status == QuizSessionStatus.COMPLETED
    assert stored.completed_at == first.completed_at


async def test_no_answers_after_completion(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 3)
    view = await service.start(session, user_id=user.id, category_id=category.id)
    await service.complete(session, user_id=user.id, session_id=view.id, abandon=True)
    q = view.questions[0]

    with pytest.raises(InvalidStateError):
        await service.submit_answer(
            session, user_id=user.id, session_id=view.id, question_id=q.id, selected_answer=q.options[0], time_spent=1
        )


async def test_abandon_keeps_partial_score(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 5)
    view = await service.start(session, user_id=user.id, category_id=category.id, question_count=5)
    q = view.questions[0]
    await service.submit_answer(
        session, user_id=user.id, session_id=view.id, question_id=q.id, selected_answer=q.options[0], time_spent=30
    )

    result = await service.complete(session, user_id=user.id, session_id=view.id, abandon=True)

    assert result.status == QuizSessionStatus.ABANDONED
    assert result.score == 10
    assert result.answered_count == 1
    assert result.accuracy == 100


async def test_complete_without_answers(service, session, make_user, make_category):
    user = await make_user()
    category = await make_category("Science", 3)
    view = await service.start(session, user_id=user.id, category_id=category.id)

    result = await service.complete(session, user_id=user.id, session_id=view.id)

    assert result.answered_count == 0
    assert result.accuracy == 0
    assert result.average_time_per_question == 0


async def test_list_sessions_paginates_newest_first(service, session, make_user, make_category, clock):
    user = await make_user()
    other = await make_user()
    category = await make_category("Science", 5)

    started = []
    for _ in range(3):
        started.append(await service.start(session, user_id=user.id, category_id=category.id))
        clock.advance(minutes=1)
    await service.start(session, user_id=other.id, category_id=category.id)

    page1 = await service.list_sessions(session, user_id=user.id, page=1, limit=2)
    page2 = await service.list_sessions(session, user_id=user.id, page=2, limit=2)

    assert [s.id for s in page1.data] == [started[2].id, started[1].id]
    assert [s.id for s in page2.data] == [started[0].id]
    assert page1.meta.total == 3
    assert page1.meta.total_pages == 2
    assert page1.meta.has_next_page is True
    assert page1.meta.has_previous_page is False
    assert page2.meta.has_next_page is False
    assert page2.meta.has_previous_page is True


async def test_list_sessions_rejects_bad_paging(service, session, make_user):
    user = await make_user()
    with pytest.raises(InvalidRequestError):
        await service.list_sessions(session, user_id=user.id, page=0)
    with pytest.raises(InvalidRequestError):
        await service.list_sessions(session, user_id=user.id, limit=101)
