"""
Unit tests for the daily plan generator.
"""

import pytest

from galking.enums.learning import QuestionKind, SessionStep, TransferVariant
from galking.middleware.error_handling import NotFoundError
from galking.models.content import ContentDataset
from galking.models.learning import (
    GrammarMasteryState,
    QuestionRef,
    UserProgressState,
    VocabStrengthState,
)
from galking.services.learning import PlanGenerator
from tests.fakes import InMemoryContentLookup


def _progress(lesson_id: int = 1, index: int = 0, level: int = 1) -> UserProgressState:
    return UserProgressState(
        current_lesson_id=lesson_id, current_grammar_index=index, current_level=level
    )


class TestGrammarSelection:
    @pytest.mark.asyncio
    async def test_fresh_learner_starts_at_first_grammar(self, plan_generator):
        plan = await plan_generator.generate(_progress())

        assert plan.lesson_id == 1
        assert plan.grammar_id == 101
        assert plan.grammar_index == 0
        assert plan.level == 1
        assert plan.step_state.current_step == SessionStep.GRAMMAR_DRILL

    @pytest.mark.asyncio
    async def test_skips_mastered_grammar(self, plan_generator, repo):
        await repo.save_grammar_state(GrammarMasteryState(grammar_id=101, mastery=85))

        plan = await plan_generator.generate(_progress())

        assert plan.grammar_id == 102
        assert plan.grammar_index == 1

    @pytest.mark.asyncio
    async def test_all_mastered_falls_back_to_first(self, plan_generator, repo):
        await repo.save_grammar_state(GrammarMasteryState(grammar_id=101, mastery=85))
        await repo.save_grammar_state(GrammarMasteryState(grammar_id=102, mastery=90))

        plan = await plan_generator.generate(_progress(index=1))

        assert plan.grammar_id == 101
        assert plan.grammar_index == 0

    @pytest.mark.asyncio
    async def test_missing_lesson_falls_back_to_first_lesson(self, plan_generator):
        plan = await plan_generator.generate(_progress(lesson_id=99))

        assert plan.lesson_id == 1
        assert plan.grammar_id == 101

    @pytest.mark.asyncio
    async def test_no_content_raises(self, repo, clock):
        generator = PlanGenerator(repo, InMemoryContentLookup(ContentDataset()), clock)

        with pytest.raises(NotFoundError):
            await generator.generate(_progress())


class TestSteps:
    """Tests for the per-step content of a plan."""

    @pytest.mark.asyncio
    async def test_drill_steps_from_pool(self, plan_generator):
        plan = await plan_generator.generate(_progress())
        state = plan.step_state

        assert state.grammar_drill.questions == [
            QuestionRef.drill(101, "g101_d1"),
            QuestionRef.drill(101, "g101_d2"),
            QuestionRef.drill(101, "g101_d3"),
        ]
        assert state.transfer.questions == [
            QuestionRef.drill(101, "g101_d3"),
            QuestionRef.drill(101, "g101_d4"),
        ]

    @pytest.mark.asyncio
    async def test_due_review_drill_from_other_grammar(self, plan_generator, repo, clock):
        await repo.save_grammar_state(
            GrammarMasteryState(grammar_id=201, mastery=40, next_review_at=clock.now_ms() - 1)
        )

        plan = await plan_generator.generate(_progress())
        review = plan.step_state.grammar_drill.questions[2]

        assert review.kind == QuestionKind.REVIEW_DRILL
        assert review.grammar_id == 201
        assert review.drill_id in ("g201_d1", "g201_d2")

    @pytest.mark.asyncio
    async def test_transfer_generated_when_pool_is_short(self, plan_generator, repo):
        await repo.save_grammar_state(GrammarMasteryState(grammar_id=101, mastery=85))

        plan = await plan_generator.generate(_progress())

        assert plan.step_state.grammar_drill.questions == [QuestionRef.drill(102, "g102_d1")]
        assert plan.step_state.transfer.questions == [
            QuestionRef.transfer(102, TransferVariant.MEANING),
            QuestionRef.transfer(102, TransferVariant.COUNTER),
        ]

    @pytest.mark.asyncio
    async def test_vocab_from_lesson_pack(self, plan_generator):
        plan = await plan_generator.generate(_progress())

        assert plan.step_state.vocab.pack_id == 1
        assert plan.step_state.vocab.vocab_ids == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_due_vocab_first(self, plan_generator, repo, clock):
        await repo.save_vocab_state(
            VocabStrengthState(vocab_id=3, strength=20, next_review_at=clock.now_ms())
        )
        await repo.save_vocab_state(
            VocabStrengthState(vocab_id=1, strength=20, next_review_at=clock.now_ms() + 1)
        )

        plan = await plan_generator.generate(_progress())

        assert plan.step_state.vocab.vocab_ids == [3, 1, 2]

    @pytest.mark.asyncio
    async def test_sentences_prefer_gal_style(self, plan_generator):
        plan = await plan_generator.generate(_progress())

        assert plan.step_state.sentence.sentence_ids == [1001, 1003]

    @pytest.mark.asyncio
    async def test_sentences_filtered_by_level(self, plan_generator):
        plan = await plan_generator.generate(_progress(level=3))

        assert plan.step_state.sentence.sentence_ids == [1003]

    @pytest.mark.asyncio
    async def test_sentences_level_filter_falls_back(self, plan_generator):
        plan = await plan_generator.generate(_progress(level=6))

        assert plan.step_state.sentence.sentence_ids == [1001, 1003]

    @pytest.mark.asyncio
    async def test_textbook_sentences_when_no_gal_style(self, plan_generator):
        plan = await plan_generator.generate(_progress(lesson_id=2))

        assert plan.step_state.sentence.sentence_ids == [2001]
