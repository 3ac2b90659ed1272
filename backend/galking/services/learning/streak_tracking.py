"""
Streak and Accuracy History Tracking

Streak bookkeeping and per-day accuracy history derived from completed
sessions.

Responsibilities:
- Advance the daily streak when a session completes
- Compute prior daily accuracies for the level-change decision
- Build the per-day accuracy trend for statistics

Usage:
    from galking.services.learning.streak_tracking import next_streak

    streak = next_streak(progress.streak_days, progress.last_active_date, today)
    history = calculate_prior_daily_accuracies(sessions, today, days=2)
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Optional

from galking.models.learning import AccuracyTrendPoint, SessionRecord, SessionResult


def next_streak(
    current_streak: int, last_active_date: Optional[date], today: date
) -> int:
    """
    Streak after a session completes today.

    Unchanged if the learner was already active today, +1 if they were last
    active yesterday, otherwise restarted at 1.

    Args:
        current_streak: Streak before this session.
        last_active_date: Date of the previous completed session, if any.
        today: Current date.

    Returns:
        int: The updated streak length.
    """
    if last_active_date == today:
        return current_streak
    if last_active_date == today - timedelta(days=1):
        return current_streak + 1
    return 1


def session_accuracy(result: Optional[SessionResult]) -> float:
    """Combined grammar + transfer accuracy of a scored session."""
    if result is None:
        return 0.0
    total = result.grammar.total + result.transfer.total
    correct = result.grammar.correct + result.transfer.correct
    return correct / total if total > 0 else 0.0


def _group_by_day(sessions: list[SessionRecord]) -> dict[date, list[SessionRecord]]:
    by_day: dict[date, list[SessionRecord]] = defaultdict(list)
    for session in sessions:
        if session.result is not None:
            by_day[session.date].append(session)
    return by_day


def calculate_prior_daily_accuracies(
    sessions: list[SessionRecord], today: date, days: int = 2
) -> list[float]:
    """
    Daily accuracies of the most recent active days before today.

    A day's accuracy is the mean accuracy of its completed sessions.

    Args:
        sessions: Completed sessions (any order).
        today: Current date; sessions on or after it are ignored.
        days: Number of active days to return.

    Returns:
        list[float]: Accuracies, most recent day first.
    """
    by_day = _group_by_day([s for s in sessions if s.date < today])
    recent_days = sorted(by_day, reverse=True)[:days]
    return [
        sum(session_accuracy(s.result) for s in by_day[d]) / len(by_day[d])
        for d in recent_days
    ]


def build_accuracy_trend(sessions: list[SessionRecord]) -> list[AccuracyTrendPoint]:
    """
    Per-day grammar, vocab and sentence accuracy.

    Grammar pools grammar + transfer answers over the day, vocab averages
    the sessions' vocab accuracy, sentence pools passes over submissions.
    Days without completed sessions are omitted.

    Args:
        sessions: Completed sessions (any order).

    Returns:
        list[AccuracyTrendPoint]: One point per active day, oldest first.
    """
    points = []
    by_day = _group_by_day(sessions)
    for day in sorted(by_day):
        results = [s.result for s in by_day[day]]
        grammar_total = sum(r.grammar.total + r.transfer.total for r in results)
        grammar_correct = sum(r.grammar.correct + r.transfer.correct for r in results)
        sentence_total = sum(r.sentence.total for r in results)
        sentence_passed = sum(r.sentence.passed for r in results)

        points.append(
            AccuracyTrendPoint(
                date=day,
                grammar_accuracy=grammar_correct / grammar_total if grammar_total else 0.0,
                vocab_accuracy=sum(r.vocab.accuracy for r in results) / len(results),
                sentence_accuracy=(
                    sentence_passed / sentence_total if sentence_total else 0.0
                ),
            )
        )
    return points
