"""
Unit tests for the score aggregator.

Tests per-item mastery/strength updates, sentence scoring, star bands,
level decisions and the session aggregate.
"""

import pytest

from galking.enums.learning import CoachSource, LevelChange
from galking.models.content import KeyPoint
from galking.models.learning import (
    GrammarMasteryState,
    SentenceSubmission,
    VocabStrengthState,
)
from galking.services.learning.scorer import (
    SessionScoreInput,
    apply_sentence_outcome,
    build_offline_coach_summary,
    calculate_grammar_update,
    calculate_session_result,
    calculate_stars,
    calculate_vocab_update,
    clamp_metric,
    decide_level_change,
    score_sentence_submission,
)
from tests.fakes import make_answer, make_vocab_answer


def _key_points(n: int) -> list[KeyPoint]:
    return [KeyPoint(id=f"kp{i}", label=f"point {i}") for i in range(1, n + 1)]


class TestClamp:
    @pytest.mark.parametrize("value,expected", [(-5, 0), (0, 0), (55, 55), (100, 100), (130, 100)])
    def test_clamp_metric(self, value, expected):
        assert clamp_metric(value) == expected


class TestGrammarUpdate:
    """Tests for calculate_grammar_update."""

    def test_single_correct_answer_advances_streak(self):
        current = GrammarMasteryState(grammar_id=101, mastery=70, correct_streak=2)

        update = calculate_grammar_update(101, [make_answer(True)], current)

        assert update.new_mastery == 80
        assert update.correct_streak == 3
        assert update.all_correct is True
        assert update.next_review_days == 7

    def test_wrong_answer_resets_streak(self):
        current = GrammarMasteryState(
            grammar_id=101, mastery=50, correct_streak=4, wrong_count_7d=1
        )

        update = calculate_grammar_update(
            101, [make_answer(True), make_answer(False)], current
        )

        assert update.mastery_delta == 6
        assert update.new_mastery == 56
        assert update.correct_streak == 0
        assert update.new_wrong_count == 2
        assert update.next_review_days == 1

    def test_fresh_item_starts_from_zero(self):
        update = calculate_grammar_update(101, [make_answer(False)])

        assert update.new_mastery == 0
        assert update.new_wrong_count == 1

    def test_mastery_clamped_at_100(self):
        current = GrammarMasteryState(grammar_id=101, mastery=98)

        update = calculate_grammar_update(101, [make_answer(True)], current)

        assert update.new_mastery == 100


class TestVocabUpdate:
    """Tests for calculate_vocab_update."""

    def test_incorrect_answer(self):
        current = VocabStrengthState(vocab_id=1, strength=50)

        update = calculate_vocab_update(1, [make_vocab_answer(False)], current)

        assert update.new_strength == 48
        assert update.next_review_days == 1
        assert update.new_wrong_count == 1
        assert update.should_block is False

    def test_third_wrong_answer_blocks(self):
        current = VocabStrengthState(vocab_id=1, strength=50, wrong_count_7d=2)

        update = calculate_vocab_update(1, [make_vocab_answer(False)], current)

        assert update.new_wrong_count == 3
        assert update.should_block is True

    def test_fast_correct_answer_earns_bonus(self):
        update = calculate_vocab_update(1, [make_vocab_answer(True, time_ms=1200)])

        assert update.strength_delta == 3

    def test_threshold_is_exclusive(self):
        update = calculate_vocab_update(1, [make_vocab_answer(True, time_ms=3000)])

        assert update.strength_delta == 2

    def test_custom_threshold(self):
        update = calculate_vocab_update(
            1, [make_vocab_answer(True, time_ms=4000)], fast_threshold_ms=5000
        )

        assert update.strength_delta == 3


class TestSentenceScoring:
    """Tests for score_sentence_submission."""

    def test_three_hits_pass_below_hit_rate(self):
        score = score_sentence_submission(["kp1", "kp2", "kp3"], _key_points(5))

        assert score.hit_count == 3
        assert score.hit_rate == pytest.approx(0.6)
        assert score.passed is True
        assert score.grammar_bonus == 3
        assert score.review_penalty is False

    def test_hit_rate_pass_with_few_points(self):
        score = score_sentence_submission(["kp1", "kp2"], _key_points(2))

        assert score.hit_rate == 1.0
        assert score.passed is True

    def test_failure_sets_review_penalty(self):
        score = score_sentence_submission(["kp1", "kp2"], _key_points(5))

        assert score.passed is False
        assert score.grammar_bonus == 0
        assert score.review_penalty is True

    def test_unexpected_ids_are_ignored(self):
        score = score_sentence_submission(["kp1", "kp1", "bogus"], _key_points(4))

        assert score.hit_count == 1
        assert score.hit_rate == pytest.approx(0.25)

    def test_no_key_points(self):
        score = score_sentence_submission(["kp1"], [])

        assert score.hit_rate == 0.0
        assert score.passed is False


class TestStars:
    """Star bands; boundary values belong to the higher band."""

    @pytest.mark.parametrize(
        "value,stars",
        [
            (1.0, 5),
            (0.95, 5),
            (0.949, 4),
            (0.85, 4),
            (0.70, 3),
            (0.50, 2),
            (0.30, 1),
            (0.29, 0),
            (0.0, 0),
        ],
    )
    def test_bands(self, value, stars):
        assert calculate_stars(value, value, value) == stars

    def test_average_of_sub_accuracies(self):
        # (0.8 + 0.9 + 0.8) / 3 = 0.833, below the 4-star band
        assert calculate_stars(0.8, 0.9, 0.8) == 3


class TestLevelChange:
    def test_pause_after_three_weak_days(self):
        assert decide_level_change(0.5, [0.5, 0.4]) == LevelChange.PAUSE

    def test_up_without_enough_history(self):
        assert decide_level_change(0.1, [0.1]) == LevelChange.UP

    def test_up_when_any_day_is_good(self):
        assert decide_level_change(0.5, [0.5, 0.7]) == LevelChange.UP
        assert decide_level_change(0.6, [0.5, 0.5]) == LevelChange.UP

    def test_only_two_most_recent_days_count(self):
        assert decide_level_change(0.5, [0.5, 0.5, 0.9]) == LevelChange.PAUSE

    def test_sentence_passes_do_not_lift_level_accuracy(self):
        data = SessionScoreInput(
            step1_answers=[make_answer(True), make_answer(False)],
            submissions=[
                SentenceSubmission(sentence_id=i, hit_count=5, total_count=5, passed=True)
                for i in range(1, 5)
            ],
            recent_accuracies=[0.3, 0.3],
        )

        result = calculate_session_result(data)

        assert result.accuracy == pytest.approx(0.5)
        assert result.sentence.passed == 4
        assert result.level_change == LevelChange.PAUSE


class TestSessionResult:
    """Tests for calculate_session_result."""

    def test_aggregate(self):
        data = SessionScoreInput(
            step1_answers=[
                make_answer(True),
                make_answer(False, grammar_id=102, drill_id="g102_d1"),
                make_answer(True),
            ],
            step2_answers=[make_answer(True), make_answer(True)],
            vocab_correct=9,
            vocab_total=10,
            vocab_avg_rt_ms=1500.0,
            submissions=[
                SentenceSubmission(sentence_id=1, hit_count=4, total_count=5, passed=True),
                SentenceSubmission(sentence_id=2, hit_count=1, total_count=5, passed=False),
            ],
            recent_accuracies=[0.9],
            new_blocking_count=1,
        )

        result = calculate_session_result(data)

        assert result.accuracy == pytest.approx(0.8)
        assert result.grammar.correct == 2
        assert result.grammar.total == 3
        assert result.grammar.top_mistake_grammar_id == 102
        assert result.transfer.correct == 2
        assert result.vocab.accuracy == pytest.approx(0.9)
        assert result.vocab.new_blocking_count == 1
        assert result.sentence.passed == 1
        assert result.sentence.pass_rate == pytest.approx(0.5)
        assert result.sentence.key_point_hit_rate == pytest.approx(0.5)
        # (0.8 + 0.9 + 0.5) / 3 = 0.733
        assert result.stars == 3
        assert result.level_change == LevelChange.UP
        assert result.coach.source == CoachSource.OFFLINE
        assert result.coach.summary

    def test_empty_session(self):
        result = calculate_session_result(SessionScoreInput())

        assert result.stars == 0
        assert result.accuracy == 0.0
        assert result.grammar.top_mistake_grammar_id is None


class TestCoachSummary:
    def test_excellent_session(self):
        summary = build_offline_coach_summary(5, 3, 3, 0.95, 2, 2)

        assert summary == (
            "Excellent work! Perfect score on grammar! Vocabulary recognition was fluent!"
        )

    def test_weak_session_mentions_each_area(self):
        summary = build_offline_coach_summary(1, 1, 3, 0.5, 0, 2)

        assert summary.startswith("A tough day.")
        assert "grammar drills" in summary
        assert "Vocabulary recognition could be quicker." in summary
        assert "Sentence reading" in summary


class TestSentenceOutcome:
    """Tests for apply_sentence_outcome."""

    def test_passing_sentences_add_bonus(self):
        current = GrammarMasteryState(grammar_id=101, mastery=70, correct_streak=2)
        base = calculate_grammar_update(101, [make_answer(True)], current)

        update = apply_sentence_outcome(base, passed_count=2, review_penalty=False)

        assert update.new_mastery == 86
        assert update.mastery_delta == 16
        # round(3 * 2.332)
        assert update.next_review_days == 7

    def test_failed_sentence_forces_one_day(self):
        current = GrammarMasteryState(grammar_id=101, mastery=70, correct_streak=2)
        base = calculate_grammar_update(101, [make_answer(True)], current)

        update = apply_sentence_outcome(base, passed_count=1, review_penalty=True)

        assert update.new_mastery == 83
        assert update.next_review_days == 1

    def test_bonus_without_drill_answers(self):
        base = calculate_grammar_update(101, [])

        update = apply_sentence_outcome(base, passed_count=1, review_penalty=False)

        assert update.new_mastery == 3
