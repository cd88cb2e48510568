# quizbot/services/streak.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.repo import streak_repo
from quizbot.database.tx import transactional
from quizbot.utils.dates import Clock

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StreakTier:
    min_days: int
    multiplier: float
    description: str


# highest qualifying threshold wins
STREAK_TIERS: tuple[StreakTier, ...] = (
    StreakTier(30, 2.0, "30+ days: 100% bonus"),
    StreakTier(14, 1.5, "14+ days: 50% bonus"),
    StreakTier(7, 1.25, "7+ days: 25% bonus"),
    StreakTier(3, 1.1, "3+ days: 10% bonus"),
    StreakTier(0, 1.0, "No bonus"),
)


@dataclass(frozen=True, slots=True)
class StreakBonus:
    multiplier: float
    description: str
    days_to_next: int  # 0 once the top tier is reached


@dataclass(frozen=True, slots=True)
class StreakUpdate:
    current_streak: int
    longest_streak: int
    longest_streak_before: int
    changed: bool


@dataclass(frozen=True, slots=True)
class StreakDisplay:
    user_id: int
    current_streak: int
    longest_streak: int
    last_played_date: date | None
    multiplier: float
    bonus_tier: str
    days_to_next_tier: int


def streak_bonus(streak_days: int) -> StreakBonus:
    for i, tier in enumerate(STREAK_TIERS):
        if streak_days >= tier.min_days:
            next_tier = STREAK_TIERS[i - 1] if i > 0 else None
            days_to_next = next_tier.min_days - streak_days if next_tier else 0
            return StreakBonus(
                multiplier=tier.multiplier,
                description=tier.description,
                days_to_next=max(0, days_to_next),
            )
    # negative input only
    return StreakBonus(multiplier=1.0, description="No bonus", days_to_next=STREAK_TIERS[-2].min_days)


class StreakService:
    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or Clock()

    async def update_on_completion(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        today: date | None = None,
    ) -> StreakUpdate:
        """
        Counts today for the user's streak, at most once per UTC day:
        - first completion ever -> 1
        - already counted today -> unchanged
        - last played yesterday -> +1
        - anything older -> back to 1
        """
        today = today or self.clock.today_utc()
        yesterday = today - timedelta(days=1)

        async with transactional(session):
            row = await streak_repo.get_streak(session, user_id)

            if row is None:
                if await streak_repo.insert_first_streak(session, user_id=user_id, today=today):
                    log.info("Created new streak record for user %s", user_id)
                    return StreakUpdate(current_streak=1, longest_streak=1, longest_streak_before=0, changed=True)
                # lost the insert race, the row exists now
                row = await streak_repo.get_streak(session, user_id)
                if row is None:
                    raise RuntimeError(f"Streak row for user {user_id} vanished after insert conflict")

            if row.last_played_date == today:
                return StreakUpdate(
                    current_streak=row.current_streak,
                    longest_streak=row.longest_streak,
                    longest_streak_before=row.longest_streak,
                    changed=False,
                )

            new_streak = row.current_streak + 1 if row.last_played_date == yesterday else 1
            longest_before = row.longest_streak
            new_longest = max(longest_before, new_streak)

            swapped = await streak_repo.swap_streak(
                session,
                user_id=user_id,
                expected_last_played=row.last_played_date,
                current_streak=new_streak,
                longest_streak=new_longest,
                today=today,
            )
            if not swapped:
                # another completion for this user got counted first
                row = await streak_repo.get_streak(session, user_id)
                log.info("Streak for user %s already updated concurrently", user_id)
                return StreakUpdate(
                    current_streak=row.current_streak,
                    longest_streak=row.longest_streak,
                    longest_streak_before=row.longest_streak,
                    changed=False,
                )

        log.info("Updated streak for user %s: current=%s, longest=%s", user_id, new_streak, new_longest)
        return StreakUpdate(
            current_streak=new_streak,
            longest_streak=new_longest,
            longest_streak_before=longest_before,
            changed=True,
        )

    async def get_display_streak(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        today: date | None = None,
    ) -> StreakDisplay:
        """
        Read-only. A streak whose last day is older than yesterday shows as 0;
        the stored value is only reset by the next completion.
        """
        today = today or self.clock.today_utc()
        yesterday = today - timedelta(days=1)

        row = await streak_repo.get_streak(session, user_id)
        if row is None:
            current, longest, last_played = 0, 0, None
        else:
            current, longest, last_played = row.current_streak, row.longest_streak, row.last_played_date
            if last_played not in (today, yesterday):
                current = 0

        bonus = streak_bonus(current)
        return StreakDisplay(
            user_id=user_id,
            current_streak=current,
            longest_streak=longest,
            last_played_date=last_played,
            multiplier=bonus.multiplier,
            bonus_tier=bonus.description,
            days_to_next_tier=bonus.days_to_next,
        )
