# quizbot/services/scoring.py
from __future__ import annotations

import math
from dataclasses import dataclass

MAX_TIME_BONUS = 0.5


@dataclass(frozen=True, slots=True)
class PointsResult:
    total_points: int
    time_bonus: float


def round_half_up(value: float) -> int:
    # round() is banker's rounding: round(12.5) == 12, here it is 13
    return math.floor(value + 0.5)


def calculate_points(
    base_points: int,
    time_limit: int | float,
    time_spent: int | float,
    is_correct: bool,
) -> PointsResult:
    """
    Points for one answer. Wrong answers score nothing. A correct answer earns
    its base points plus a time bonus of up to 50%: the full bonus at 0s,
    shrinking linearly to nothing at the time limit (never negative).
    """
    if time_limit <= 0:
        raise ValueError(f"time_limit must be > 0, got {time_limit!r}")

    if not is_correct:
        return PointsResult(total_points=0, time_bonus=0.0)

    time_bonus = (time_limit - time_spent) / time_limit * MAX_TIME_BONUS
    time_bonus = min(MAX_TIME_BONUS, max(0.0, time_bonus))
    total_points = round_half_up(base_points * (1 + time_bonus))
    return PointsResult(total_points=total_points, time_bonus=time_bonus)
