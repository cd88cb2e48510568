# quizbot/services/leaderboard.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from quizbot.database.repo import leaderboard_repo
from quizbot.database.repo.leaderboard_repo import LeaderRow
from quizbot.services.errors import InvalidRequestError
from quizbot.services.scoring import round_half_up
from quizbot.utils.dates import Clock
from quizbot.utils.leaderboard_window import LeaderboardPeriod, resolve_leaderboard_window

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    user_id: int
    score: int
    games_played: int
    accuracy: float  # percent, 2 decimals
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None


@dataclass(frozen=True, slots=True)
class LeaderboardPage:
    period: LeaderboardPeriod
    category_id: int | None
    window_start: datetime | None
    entries: list[LeaderboardEntry]
    user_rank: LeaderboardEntry | None
    total: int


def accuracy_percent(correct: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round_half_up(correct / total * 10000) / 100


def _entry(row: LeaderRow, rank: int) -> LeaderboardEntry:
    return LeaderboardEntry(
        rank=rank,
        user_id=row.user_id,
        score=row.score,
        games_played=row.games_played,
        accuracy=accuracy_percent(row.correct_answers, row.total_questions),
        username=row.username,
        first_name=row.first_name,
        last_name=row.last_name,
    )


class LeaderboardService:
    """
    Rankings over COMPLETED quiz sessions.

    Two rank policies coexist on purpose:
    - page entries are ranked by position (offset + index + 1), ties get
      distinct consecutive ranks ordered by user id;
    - a single user's rank is 1 + number of users with a strictly higher
      score, so tied users share it.
    For tied scores the two can disagree.
    """

    MAX_LIMIT = 100

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or Clock()

    async def get_ranking(
        self,
        session: AsyncSession,
        *,
        period: LeaderboardPeriod = LeaderboardPeriod.ALL_TIME,
        category_id: int | None = None,
        limit: int = 10,
        offset: int = 0,
        requesting_user_id: int | None = None,
    ) -> LeaderboardPage:
        if not 1 <= limit <= self.MAX_LIMIT:
            raise InvalidRequestError(f"limit must be between 1 and {self.MAX_LIMIT}")
        if offset < 0:
            raise InvalidRequestError("offset cannot be negative")

        window = resolve_leaderboard_window(period, self.clock)
        log.info(
            "Fetching leaderboard: period=%s, category=%s, limit=%s, offset=%s",
            period.value,
            category_id,
            limit,
            offset,
        )

        total = await leaderboard_repo.count_ranked_users(
            session, start_utc=window.start_utc, category_id=category_id
        )
        rows = await leaderboard_repo.get_top(
            session,
            start_utc=window.start_utc,
            category_id=category_id,
            limit=limit,
            offset=offset,
        )
        entries = [_entry(row, offset + i + 1) for i, row in enumerate(rows)]

        user_rank = None
        if requesting_user_id is not None:
            user_rank = await self._user_rank(session, requesting_user_id, window.start_utc, category_id)

        return LeaderboardPage(
            period=period,
            category_id=category_id,
            window_start=window.start_utc,
            entries=entries,
            user_rank=user_rank,
            total=total,
        )

    async def get_user_rank(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        period: LeaderboardPeriod = LeaderboardPeriod.ALL_TIME,
        category_id: int | None = None,
    ) -> LeaderboardEntry | None:
        window = resolve_leaderboard_window(period, self.clock)
        return await self._user_rank(session, user_id, window.start_utc, category_id)

    @staticmethod
    async def _user_rank(
        session: AsyncSession,
        user_id: int,
        start_utc: datetime | None,
        category_id: int | None,
    ) -> LeaderboardEntry | None:
        me = await leaderboard_repo.get_user_totals(
            session, user_id=user_id, start_utc=start_utc, category_id=category_id
        )
        if me is None or me.games_played == 0:
            return None

        higher = await leaderboard_repo.count_users_above(
            session, score=me.score, start_utc=start_utc, category_id=category_id
        )
        return _entry(me, higher + 1)
