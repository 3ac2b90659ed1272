"""
Unit tests for the interval scheduler.

Tests the ease mapping and the grammar/vocab interval functions.
"""

import pytest

from galking.services.learning.constants import MS_PER_DAY
from galking.services.learning.scheduler import (
    ease_factor,
    grade_interval,
    review_at,
    round_half_up,
    vocab_interval,
)


class TestEaseFactor:
    def test_bounds(self):
        assert ease_factor(0) == pytest.approx(1.3)
        assert ease_factor(100) == pytest.approx(2.5)

    def test_linear(self):
        assert ease_factor(80) == pytest.approx(2.26)


class TestGradeInterval:
    """Tests for the grammar track interval."""

    @pytest.mark.parametrize("metric,streak", [(0, 0), (80, 5), (100, 20)])
    def test_incorrect_group_is_one_day(self, metric, streak):
        assert grade_interval(metric, streak, False) == 1

    def test_first_correct_is_one_day(self):
        assert grade_interval(90, 1, True) == 1

    def test_second_correct_is_three_days(self):
        assert grade_interval(10, 2, True) == 3
        assert grade_interval(95, 2, True) == 3

    def test_third_correct_uses_ease(self):
        # round(3 * 2.26)
        assert grade_interval(80, 3, True) == 7

    def test_grows_with_streak(self):
        assert grade_interval(80, 4, True) > grade_interval(80, 3, True)

    def test_capped_at_sixty_days(self):
        assert grade_interval(100, 12, True) == 60

    @pytest.mark.parametrize("metric,streak", [(100, 800), (0, 5000), (50, 10**6)])
    def test_long_streak_stays_capped(self, metric, streak):
        assert grade_interval(metric, streak, True) == 60

    def test_cap_boundary(self):
        # 3 * 2.5^3 = 46.9, 3 * 2.5^4 = 117.2
        assert grade_interval(100, 5, True) == 47
        assert grade_interval(100, 6, True) == 60

    def test_pure(self):
        assert grade_interval(63, 4, True) == grade_interval(63, 4, True)


class TestVocabInterval:
    """Tests for the vocab track interval."""

    def test_incorrect_is_one_day(self):
        assert vocab_interval(48, False) == 1
        assert vocab_interval(100, False) == 1

    def test_low_strength_is_one_day(self):
        assert vocab_interval(29, True) == 1

    def test_mid_strength_is_two_days(self):
        assert vocab_interval(30, True) == 2
        assert vocab_interval(49, True) == 2

    def test_uses_ease_from_fifty(self):
        # reps = 2: round(2 * 1.9)
        assert vocab_interval(50, True) == 4
        # reps = 3: round(2 * 2.02 ** 2)
        assert vocab_interval(60, True) == 8

    def test_capped_at_forty_five_days(self):
        assert vocab_interval(100, True) == 45


class TestHelpers:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(6.78) == 7
        assert round_half_up(6.49) == 6

    def test_review_at(self):
        assert review_at(1_000, 2) == 1_000 + 2 * MS_PER_DAY
