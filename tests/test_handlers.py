from types import SimpleNamespace

from quizbot.handlers.common import cmd_start
from quizbot.services import DailyChallengeService, SubmittedAnswer


class FakeMessage:
    def __init__(self, chat_type: str = "private") -> None:
        self.chat = SimpleNamespace(type=chat_type)
        self.sent: list[str] = []

    async def answer(self, text: str, **kwargs) -> None:
        self.sent.append(text)


async def test_start_points_to_daily_until_it_is_done(session, make_user, make_category, clock, rng):
    user = await make_user()
    await make_category("Science", 10)
    service = DailyChallengeService(clock, rng)

    before = FakeMessage()
    await cmd_start(before, session=session, daily_service=service, db_user=user)
    assert "/daily" in before.sent[0]

    await service.get_or_create_today(session)
    started = await service.start_attempt(session, user_id=user.id)
    await service.complete_attempt(
        session,
        user_id=user.id,
        attempt_id=started.attempt.id,
        answers=[SubmittedAnswer(question_id=q.id, selected_answer=q.options[0]) for q in started.questions],
    )

    after = FakeMessage()
    await cmd_start(after, session=session, daily_service=service, db_user=user)
    assert "/daily" not in after.sent[0]
