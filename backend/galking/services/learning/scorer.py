"""
Score Aggregator

Converts raw answer records into per-item mastery/strength updates and the
overall session outcome (stars, level change, offline coach summary).

All functions here are pure; applying the updates is the job of
ProgressService.

Usage:
    from galking.services.learning.scorer import (
        calculate_grammar_update,
        calculate_session_result,
    )

    update = calculate_grammar_update(grammar_id, answers, state)
    result = calculate_session_result(SessionScoreInput(...))
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

from galking.enums.learning import CoachSource, LevelChange
from galking.models.content import KeyPoint
from galking.models.learning import (
    AnswerRecord,
    CoachSummary,
    GrammarMasteryState,
    GrammarOutcome,
    SentenceOutcome,
    SentenceSubmission,
    SessionResult,
    TransferOutcome,
    VocabOutcome,
    VocabStrengthState,
)
from galking.services.learning.constants import (
    GRAMMAR_CORRECT_DELTA,
    GRAMMAR_WRONG_DELTA,
    LEVEL_HISTORY_DAYS,
    LEVEL_PAUSE_ACCURACY,
    METRIC_MAX,
    METRIC_MIN,
    SENTENCE_MIN_HITS_FOR_PASS,
    SENTENCE_PASS_GRAMMAR_BONUS,
    SENTENCE_PASS_HIT_RATE,
    SENTENCE_PENALTY_REVIEW_DAYS,
    STAR_BANDS,
    VOCAB_BLOCKING_WRONG_COUNT,
    VOCAB_CORRECT_DELTA,
    VOCAB_FAST_BONUS,
    VOCAB_WRONG_DELTA,
)
from galking.services.learning.scheduler import grade_interval, vocab_interval


def clamp_metric(value: int) -> int:
    """Clamp a mastery/strength value to [0, 100]."""
    return max(METRIC_MIN, min(METRIC_MAX, value))


# ===========================================
# Grammar Mastery
# ===========================================


@dataclass
class GrammarScoreUpdate:
    """Update for one grammar point computed from a group of answers."""

    grammar_id: int
    mastery_delta: int
    new_mastery: int
    new_wrong_count: int
    correct_streak: int
    all_correct: bool
    next_review_days: int


def calculate_grammar_update(
    grammar_id: int,
    answers: Sequence[AnswerRecord],
    current: Optional[GrammarMasteryState] = None,
) -> GrammarScoreUpdate:
    """
    Apply a group of answers sharing a grammar point, in order.

    Args:
        grammar_id: Grammar point the answers belong to
        answers: Answers in the order they were given
        current: Existing state, or None for a fresh item

    Returns:
        GrammarScoreUpdate with the clamped mastery and next review delay
    """
    mastery = current.mastery if current else 0
    wrong_count = current.wrong_count_7d if current else 0
    streak = current.correct_streak if current else 0

    delta = 0
    for answer in answers:
        if answer.is_correct:
            delta += GRAMMAR_CORRECT_DELTA
            streak += 1
        else:
            delta += GRAMMAR_WRONG_DELTA
            wrong_count += 1
            streak = 0

    new_mastery = clamp_metric(mastery + delta)
    all_correct = all(a.is_correct for a in answers)

    return GrammarScoreUpdate(
        grammar_id=grammar_id,
        mastery_delta=delta,
        new_mastery=new_mastery,
        new_wrong_count=wrong_count,
        correct_streak=streak,
        all_correct=all_correct,
        next_review_days=grade_interval(new_mastery, streak, all_correct),
    )


# ===========================================
# Vocab Strength
# ===========================================


@dataclass
class VocabScoreUpdate:
    """Update for one vocabulary item."""

    vocab_id: int
    strength_delta: int
    new_strength: int
    new_wrong_count: int
    next_review_days: int
    should_block: bool


def calculate_vocab_update(
    vocab_id: int,
    answers: Sequence[AnswerRecord],
    current: Optional[VocabStrengthState] = None,
    fast_threshold_ms: int = 3000,
) -> VocabScoreUpdate:
    """
    Apply the answers given for one vocabulary item, in order.

    A correct answer faster than `fast_threshold_ms` earns a +1 bonus. The
    item should block once its accumulated wrong count reaches 3.

    Args:
        vocab_id: Vocabulary item id
        answers: Answers for this item (normally exactly one)
        current: Existing state, or None for a fresh item
        fast_threshold_ms: Reaction time bound for the speed bonus

    Returns:
        VocabScoreUpdate with the clamped strength and next review delay
    """
    strength = current.strength if current else 0
    wrong_count = current.wrong_count_7d if current else 0

    delta = 0
    for answer in answers:
        if answer.is_correct:
            delta += VOCAB_CORRECT_DELTA
            if answer.time_ms < fast_threshold_ms:
                delta += VOCAB_FAST_BONUS
        else:
            delta += VOCAB_WRONG_DELTA
            wrong_count += 1

    new_strength = clamp_metric(strength + delta)
    all_correct = all(a.is_correct for a in answers)

    return VocabScoreUpdate(
        vocab_id=vocab_id,
        strength_delta=delta,
        new_strength=new_strength,
        new_wrong_count=wrong_count,
        next_review_days=vocab_interval(new_strength, all_correct),
        should_block=wrong_count >= VOCAB_BLOCKING_WRONG_COUNT,
    )


# ===========================================
# Sentence Key Points
# ===========================================


@dataclass
class SentenceScore:
    """Key-point coverage of a single sentence submission."""

    hit_count: int
    total_count: int
    hit_rate: float
    passed: bool
    grammar_bonus: int
    review_penalty: bool


def score_sentence_submission(
    checked_ids: Sequence[str],
    key_points: Sequence[KeyPoint],
) -> SentenceScore:
    """
    Score flagged key points against a sentence's expected set.

    hit_rate = |flagged ∩ expected| / |expected|. The submission passes
    with at least 3 hits or a hit rate of at least 0.7.
    """
    expected = {kp.id for kp in key_points}
    hit_count = len(set(checked_ids) & expected)
    hit_rate = hit_count / len(expected) if expected else 0.0
    passed = hit_count >= SENTENCE_MIN_HITS_FOR_PASS or hit_rate >= SENTENCE_PASS_HIT_RATE

    return SentenceScore(
        hit_count=hit_count,
        total_count=len(expected),
        hit_rate=hit_rate,
        passed=passed,
        grammar_bonus=SENTENCE_PASS_GRAMMAR_BONUS if passed else 0,
        review_penalty=not passed,
    )


# ===========================================
# Session Aggregate
# ===========================================


def calculate_stars(
    grammar_accuracy: float,
    vocab_accuracy: float,
    key_point_hit_rate: float,
) -> int:
    """
    Map the mean of the three sub-accuracies onto 0-5 stars.

    Boundary values belong to the higher band.
    """
    # Absorb float noise so e.g. (0.95 + 0.95 + 0.95) / 3 stays on its band
    avg = round((grammar_accuracy + vocab_accuracy + key_point_hit_rate) / 3, 9)
    for threshold, stars in STAR_BANDS:
        if avg >= threshold:
            return stars
    return 0


def decide_level_change(
    session_accuracy: float,
    recent_accuracies: Sequence[float],
) -> LevelChange:
    """
    Decide the level movement for a finished session.

    Pauses only when the two most recent prior daily accuracies and the
    current accuracy are all below 0.6. Never returns DOWN. Sentence passes
    are not part of `session_accuracy`.

    Args:
        session_accuracy: Grammar + transfer accuracy of this session
        recent_accuracies: Prior daily accuracies, most recent first
    """
    prior = list(recent_accuracies)[:LEVEL_HISTORY_DAYS]
    if (
        len(prior) == LEVEL_HISTORY_DAYS
        and all(acc < LEVEL_PAUSE_ACCURACY for acc in prior)
        and session_accuracy < LEVEL_PAUSE_ACCURACY
    ):
        return LevelChange.PAUSE
    return LevelChange.UP


def build_offline_coach_summary(
    stars: int,
    grammar_correct: int,
    grammar_total: int,
    vocab_accuracy: float,
    sentence_passed: int,
    sentence_total: int,
) -> str:
    """Assemble the offline narrative from fixed fragments."""
    parts: list[str] = []

    if stars >= 4:
        parts.append("Excellent work!")
    elif stars >= 3:
        parts.append("Good session, keep it up!")
    elif stars >= 2:
        parts.append("Room to improve; review today's material again tomorrow.")
    else:
        parts.append("A tough day. Go back over the core grammar points.")

    if grammar_total > 0:
        grammar_rate = grammar_correct / grammar_total
        if grammar_rate < 0.7:
            parts.append("The grammar drills need more practice.")
        elif grammar_rate == 1:
            parts.append("Perfect score on grammar!")

    if vocab_accuracy < 0.7:
        parts.append("Vocabulary recognition could be quicker.")
    elif vocab_accuracy >= 0.9:
        parts.append("Vocabulary recognition was fluent!")

    if sentence_total > 0 and sentence_passed < sentence_total:
        parts.append(
            "Sentence reading needs more depth; focus on the key grammar points."
        )

    return " ".join(parts)


@dataclass
class SessionScoreInput:
    """Everything needed to score a finished session."""

    step1_answers: list[AnswerRecord] = field(default_factory=list)
    step2_answers: list[AnswerRecord] = field(default_factory=list)
    vocab_correct: int = 0
    vocab_total: int = 0
    vocab_avg_rt_ms: float = 0.0
    submissions: list[SentenceSubmission] = field(default_factory=list)
    recent_accuracies: list[float] = field(default_factory=list)
    new_blocking_count: int = 0


def calculate_session_result(data: SessionScoreInput) -> SessionResult:
    """
    Compute the immutable result of a session.

    Session accuracy is the combined grammar + transfer accuracy; it feeds
    the star rating, the level decision and the daily accuracy history.

    Args:
        data: Answers and step statistics of the session

    Returns:
        SessionResult with an offline coach summary
    """
    grammar_correct = sum(1 for a in data.step1_answers if a.is_correct)
    grammar_total = len(data.step1_answers)
    top_mistake = next((a for a in data.step1_answers if not a.is_correct), None)

    transfer_correct = sum(1 for a in data.step2_answers if a.is_correct)
    transfer_total = len(data.step2_answers)

    vocab_accuracy = (
        data.vocab_correct / data.vocab_total if data.vocab_total > 0 else 0.0
    )

    sentence_passed = sum(1 for s in data.submissions if s.passed)
    sentence_total = len(data.submissions)
    hit_rate = (
        sum(s.hit_rate for s in data.submissions) / sentence_total
        if sentence_total > 0
        else 0.0
    )

    answered = grammar_total + transfer_total
    accuracy = (grammar_correct + transfer_correct) / answered if answered > 0 else 0.0

    stars = calculate_stars(accuracy, vocab_accuracy, hit_rate)

    return SessionResult(
        stars=stars,
        accuracy=accuracy,
        grammar=GrammarOutcome(
            correct=grammar_correct,
            total=grammar_total,
            top_mistake_grammar_id=top_mistake.question.grammar_id if top_mistake else None,
        ),
        transfer=TransferOutcome(correct=transfer_correct, total=transfer_total),
        vocab=VocabOutcome(
            correct=data.vocab_correct,
            total=data.vocab_total,
            accuracy=vocab_accuracy,
            avg_rt_ms=data.vocab_avg_rt_ms,
            new_blocking_count=data.new_blocking_count,
        ),
        sentence=SentenceOutcome(
            passed=sentence_passed,
            total=sentence_total,
            key_point_hit_rate=hit_rate,
        ),
        level_change=decide_level_change(accuracy, data.recent_accuracies),
        coach=CoachSummary(
            source=CoachSource.OFFLINE,
            summary=build_offline_coach_summary(
                stars,
                grammar_correct,
                grammar_total,
                vocab_accuracy,
                sentence_passed,
                sentence_total,
            ),
        ),
    )


def apply_sentence_outcome(
    update: GrammarScoreUpdate,
    passed_count: int,
    review_penalty: bool,
) -> GrammarScoreUpdate:
    """
    Fold step-4 results into the governing grammar's update.

    Each passing sentence adds +3 mastery. Any failed sentence forces the
    next review to 1 day.

    Args:
        update: Update computed from the grammar's drill answers (may be empty)
        passed_count: Number of passing sentence submissions
        review_penalty: Whether any submission failed

    Returns:
        A new GrammarScoreUpdate
    """
    bonus = passed_count * SENTENCE_PASS_GRAMMAR_BONUS
    new_mastery = clamp_metric(update.new_mastery + bonus)
    next_review_days = (
        SENTENCE_PENALTY_REVIEW_DAYS
        if review_penalty
        else grade_interval(new_mastery, update.correct_streak, update.all_correct)
    )
    return GrammarScoreUpdate(
        grammar_id=update.grammar_id,
        mastery_delta=update.mastery_delta + bonus,
        new_mastery=new_mastery,
        new_wrong_count=update.new_wrong_count,
        correct_streak=update.correct_streak,
        all_correct=update.all_correct,
        next_review_days=next_review_days,
    )
