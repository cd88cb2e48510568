from datetime import date, timedelta

import pytest

from quizbot.database.repo import streak_repo
from quizbot.services.streak import StreakService, streak_bonus


@pytest.fixture()
def service(clock):
    return StreakService(clock)


@pytest.mark.parametrize(
    "days, multiplier, days_to_next",
    [
        (0, 1.0, 3),
        (2, 1.0, 1),
        (3, 1.1, 4),
        (7, 1.25, 7),
        (13, 1.25, 1),
        (14, 1.5, 16),
        (29, 1.5, 1),
        (30, 2.0, 0),
        (365, 2.0, 0),
    ],
)
def test_streak_bonus_tiers(days, multiplier, days_to_next):
    bonus = streak_bonus(days)
    assert bonus.multiplier == multiplier
    assert bonus.days_to_next == days_to_next


async def test_first_completion_starts_streak(service, session, make_user, clock):
    user = await make_user()

    update = await service.update_on_completion(session, user_id=user.id)

    assert update.current_streak == 1
    assert update.longest_streak == 1
    assert update.longest_streak_before == 0
    assert update.changed is True

    row = await streak_repo.get_streak(session, user.id)
    assert row.current_streak == 1
    assert row.last_played_date == clock.today_utc()


async def test_same_day_counts_once(service, session, make_user):
    user = await make_user()
    await service.update_on_completion(session, user_id=user.id)

    again = await service.update_on_completion(session, user_id=user.id)

    assert again.current_streak == 1
    assert again.changed is False


async def test_consecutive_days_extend_streak(service, session, make_user, clock):
    user = await make_user()

    for expected in (1, 2, 3):
        update = await service.update_on_completion(session, user_id=user.id)
        assert update.current_streak == expected
        assert update.longest_streak == expected
        clock.advance(days=1)


async def test_missed_day_resets_to_one_but_keeps_longest(service, session, make_user, clock):
    user = await make_user()
    await service.update_on_completion(session, user_id=user.id)
    clock.advance(days=1)
    await service.update_on_completion(session, user_id=user.id)

    clock.advance(days=3)
    update = await service.update_on_completion(session, user_id=user.id)

    assert update.current_streak == 1
    assert update.longest_streak == 2
    assert update.longest_streak_before == 2


async def test_display_for_new_user(service, session, make_user):
    user = await make_user()

    display = await service.get_display_streak(session, user_id=user.id)

    assert display.current_streak == 0
    assert display.longest_streak == 0
    assert display.last_played_date is None
    assert display.multiplier == 1.0
    assert display.days_to_next_tier == 3


async def test_display_keeps_streak_alive_until_end_of_next_day(service, session, make_user, clock):
    user = await make_user()
    for _ in range(3):
        await service.update_on_completion(session, user_id=user.id)
        clock.advance(days=1)

    # last play was yesterday
    display = await service.get_display_streak(session, user_id=user.id)

    assert display.current_streak == 3
    assert display.multiplier == 1.1
    assert display.last_played_date == clock.today_utc() - timedelta(days=1)


async def test_display_shows_broken_streak_as_zero_without_writing(service, session, make_user, clock):
    user = await make_user()
    await service.update_on_completion(session, user_id=user.id, today=date(2024, 3, 1))
    await service.update_on_completion(session, user_id=user.id, today=date(2024, 3, 2))

    display = await service.get_display_streak(session, user_id=user.id, today=date(2024, 3, 5))

    assert display.current_streak == 0
    assert display.longest_streak == 2
    assert display.multiplier == 1.0

    stored = await streak_repo.get_streak(session, user.id)
    assert stored.current_streak == 2
