"""
Unit tests for the review queue: due listing and self-assessment ratings.
"""

import pytest
import pytest_asyncio

from galking.enums.learning import ReviewItemKind, ReviewRating
from galking.middleware.error_handling import NotFoundError
from galking.models.learning import GrammarMasteryState, VocabStrengthState
from galking.services.learning.constants import MS_PER_DAY


class TestDueItems:
    @pytest_asyncio.fixture
    async def seeded(self, repo, clock):
        now = clock.now_ms()
        await repo.save_grammar_state(
            GrammarMasteryState(grammar_id=101, mastery=40, next_review_at=now - 100, wrong_count_7d=1)
        )
        await repo.save_grammar_state(
            GrammarMasteryState(grammar_id=102, mastery=40, next_review_at=now + 1)
        )
        await repo.save_vocab_state(
            VocabStrengthState(vocab_id=1, strength=10, next_review_at=now - 500, wrong_count_7d=3)
        )
        await repo.save_vocab_state(
            VocabStrengthState(vocab_id=2, strength=20, next_review_at=now - 1000, wrong_count_7d=1)
        )
        await repo.save_vocab_state(VocabStrengthState(vocab_id=3))

    @pytest.mark.asyncio
    async def test_most_missed_first(self, review_service, seeded):
        items = await review_service.get_due_items()

        assert [(i.kind, i.item_id) for i in items] == [
            (ReviewItemKind.VOCAB, 1),
            (ReviewItemKind.VOCAB, 2),
            (ReviewItemKind.GRAMMAR, 101),
        ]
        assert items[2].metric == 40

    @pytest.mark.asyncio
    async def test_limit(self, review_service, seeded):
        items = await review_service.get_due_items(limit=2)

        assert [i.item_id for i in items] == [1, 2]

    @pytest.mark.asyncio
    async def test_nothing_due(self, review_service):
        assert await review_service.get_due_items() == []


class TestRateGrammar:
    @pytest.mark.asyncio
    async def test_again(self, review_service, repo, clock):
        await repo.save_grammar_state(
            GrammarMasteryState(grammar_id=101, mastery=40, correct_streak=4, wrong_count_7d=1)
        )

        response = await review_service.rate(ReviewItemKind.GRAMMAR, 101, ReviewRating.AGAIN)

        assert response.metric == 38
        assert response.next_review_days == 1
        assert response.next_review_at == clock.now_ms() + MS_PER_DAY
        state = repo.grammar[101]
        assert state.correct_streak == 0
        assert state.wrong_count_7d == 2
        assert state.last_seen_at == clock.now_ms()

    @pytest.mark.asyncio
    async def test_good(self, review_service, repo):
        await repo.save_grammar_state(
            GrammarMasteryState(grammar_id=101, mastery=70, correct_streak=2)
        )

        response = await review_service.rate(ReviewItemKind.GRAMMAR, 101, ReviewRating.GOOD)

        # 3 * ease(72) = 6.49
        assert response.metric == 72
        assert response.next_review_days == 6
        assert repo.grammar[101].correct_streak == 3

    @pytest.mark.asyncio
    async def test_easy(self, review_service, repo):
        await repo.save_grammar_state(
            GrammarMasteryState(grammar_id=101, mastery=70, correct_streak=2)
        )

        response = await review_service.rate(ReviewItemKind.GRAMMAR, 101, ReviewRating.EASY)

        # grade_interval(74, 4) = 14, x1.5
        assert response.metric == 74
        assert response.next_review_days == 21
        assert repo.grammar[101].correct_streak == 4

    @pytest.mark.asyncio
    async def test_easy_on_long_streak(self, review_service, repo):
        await repo.save_grammar_state(
            GrammarMasteryState(grammar_id=101, mastery=90, correct_streak=800)
        )

        response = await review_service.rate(ReviewItemKind.GRAMMAR, 101, ReviewRating.EASY)

        # Capped 60-day interval x1.5
        assert response.next_review_days == 90
        assert repo.grammar[101].correct_streak == 802

    @pytest.mark.asyncio
    async def test_fresh_item(self, review_service, repo):
        response = await review_service.rate(ReviewItemKind.GRAMMAR, 102, ReviewRating.GOOD)

        assert response.metric == 2
        assert response.next_review_days == 1
        assert repo.grammar[102].correct_streak == 1

    @pytest.mark.asyncio
    async def test_metric_floor(self, review_service, repo):
        await repo.save_grammar_state(GrammarMasteryState(grammar_id=101, mastery=1))

        response = await review_service.rate(ReviewItemKind.GRAMMAR, 101, ReviewRating.AGAIN)

        assert response.metric == 0

    @pytest.mark.asyncio
    async def test_unknown_grammar(self, review_service):
        with pytest.raises(NotFoundError):
            await review_service.rate(ReviewItemKind.GRAMMAR, 999, ReviewRating.GOOD)


class TestRateVocab:
    @pytest.mark.asyncio
    async def test_good(self, review_service, repo):
        await repo.save_vocab_state(VocabStrengthState(vocab_id=1, strength=62))

        response = await review_service.rate(ReviewItemKind.VOCAB, 1, ReviewRating.GOOD)

        assert response.kind == ReviewItemKind.VOCAB
        assert response.metric == 64
        assert response.next_review_days == 9

    @pytest.mark.asyncio
    async def test_easy(self, review_service, repo):
        await repo.save_vocab_state(VocabStrengthState(vocab_id=1, strength=60))

        response = await review_service.rate(ReviewItemKind.VOCAB, 1, ReviewRating.EASY)

        # vocab_interval(64) = 9, x1.5 = 13.5
        assert response.metric == 64
        assert response.next_review_days == 14

    @pytest.mark.asyncio
    async def test_again_blocks_at_threshold(self, review_service, repo):
        await repo.save_vocab_state(VocabStrengthState(vocab_id=1, strength=10, wrong_count_7d=2))

        response = await review_service.rate(ReviewItemKind.VOCAB, 1, ReviewRating.AGAIN)

        assert response.metric == 8
        assert response.next_review_days == 1
        assert repo.vocab[1].wrong_count_7d == 3
        assert repo.vocab[1].is_blocking is True

    @pytest.mark.asyncio
    async def test_blocking_survives_good_rating(self, review_service, repo):
        await repo.save_vocab_state(
            VocabStrengthState(vocab_id=1, strength=10, is_blocking=True, wrong_count_7d=3)
        )

        await review_service.rate(ReviewItemKind.VOCAB, 1, ReviewRating.GOOD)

        assert repo.vocab[1].is_blocking is True

    @pytest.mark.asyncio
    async def test_unknown_vocab(self, review_service):
        with pytest.raises(NotFoundError):
            await review_service.rate(ReviewItemKind.VOCAB, 999, ReviewRating.AGAIN)
