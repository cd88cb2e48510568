import pytest

from quizbot.services.scoring import MAX_TIME_BONUS, calculate_points, round_half_up


def test_correct_answer_with_partial_time_bonus():
    result = calculate_points(10, 30, 10, True)
    assert result.total_points == 13
    assert result.time_bonus == pytest.approx(2 / 3 * MAX_TIME_BONUS)


def test_instant_answer_gets_full_bonus():
    result = calculate_points(10, 30, 0, True)
    assert result.total_points == 15
    assert result.time_bonus == MAX_TIME_BONUS


def test_answer_at_or_after_time_limit_gets_base_points_only():
    assert calculate_points(10, 30, 30, True).total_points == 10
    late = calculate_points(10, 30, 90, True)
    assert late.total_points == 10
    assert late.time_bonus == 0.0


def test_wrong_answer_scores_nothing():
    result = calculate_points(10, 30, 1, False)
    assert result.total_points == 0
    assert result.time_bonus == 0.0


def test_bonus_never_exceeds_half():
    result = calculate_points(10, 30, -5, True)
    assert result.time_bonus == MAX_TIME_BONUS
    assert result.total_points == 15


def test_halves_round_up():
    # 10 * 1.25 = 12.5
    assert calculate_points(10, 20, 10, True).total_points == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2


def test_zero_time_limit_is_rejected():
    with pytest.raises(ValueError):
        calculate_points(10, 0, 0, True)
