"""
Interval Scheduler

Pure functions converting a mastery/strength metric and a streak into a
next-review delay in days. The session-finish flow and the review queue
share these so identical inputs always schedule identically.

The metric maps linearly onto an ease factor in [1.3, 2.5]:

    ease = 1.3 + metric / 100 * 1.2

Usage:
    from galking.services.learning.scheduler import grade_interval, vocab_interval

    grade_interval(80, 3, True)   # 7
    vocab_interval(48, False)     # 1
"""

import math

from galking.services.learning.constants import (
    EASE_MIN,
    EASE_RANGE,
    GRADE_BASE_DAYS,
    GRADE_MAX_INTERVAL_DAYS,
    GRADE_SECOND_INTERVAL_DAYS,
    METRIC_MAX,
    MS_PER_DAY,
    VOCAB_BASE_DAYS,
    VOCAB_LOW_STRENGTH,
    VOCAB_MAX_INTERVAL_DAYS,
    VOCAB_MID_STRENGTH,
    VOCAB_REP_STRENGTH_STEP,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up."""
    return math.floor(value + 0.5)


def ease_factor(metric: float) -> float:
    """Map a 0-100 metric onto the [1.3, 2.5] ease range."""
    return EASE_MIN + metric / METRIC_MAX * EASE_RANGE


def grade_interval(metric: float, streak: int, all_correct: bool) -> int:
    """
    Next-review delay for the grammar track.

    Args:
        metric: Mastery after the update (0-100)
        streak: Correct streak after the update
        all_correct: Whether every answer in the group was correct

    Returns:
        Days until the next review (1-60)
    """
    if not all_correct or streak <= 1:
        return 1
    if streak == 2:
        return GRADE_SECOND_INTERVAL_DAYS

    ease = ease_factor(metric)
    # Long streaks hit the cap well before the power overflows a float
    if (streak - 2) * math.log(ease) >= math.log(GRADE_MAX_INTERVAL_DAYS / GRADE_BASE_DAYS):
        return GRADE_MAX_INTERVAL_DAYS

    interval = round_half_up(GRADE_BASE_DAYS * ease ** (streak - 2))
    return min(interval, GRADE_MAX_INTERVAL_DAYS)


def vocab_interval(metric: float, correct: bool) -> int:
    """
    Next-review delay for the vocab track.

    Args:
        metric: Strength after the update (0-100)
        correct: Whether the answer was correct

    Returns:
        Days until the next review (1-45)
    """
    if not correct or metric < VOCAB_LOW_STRENGTH:
        return 1
    if metric < VOCAB_MID_STRENGTH:
        return 2

    reps = int(metric // VOCAB_REP_STRENGTH_STEP)
    interval = round_half_up(VOCAB_BASE_DAYS * ease_factor(metric) ** max(0, reps - 1))
    return min(interval, VOCAB_MAX_INTERVAL_DAYS)


def review_at(now_ms: int, days: int) -> int:
    """Timestamp (ms) `days` days after `now_ms`."""
    return now_ms + days * MS_PER_DAY
