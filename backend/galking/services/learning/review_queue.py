"""
Review Queue Service

Rates already-due grammar and vocab items outside a full session, using
the same interval functions as session finish.

Ratings:
- AGAIN: metric -2, next review in 1 day, wrong count +1
  (grammar streak resets; vocab may become blocking)
- GOOD:  metric +2, regular interval (grammar streak +1)
- EASY:  metric +4, regular interval x 1.5 (grammar streak +2)

Usage:
    from galking.services.learning import ReviewQueueService

    service = ReviewQueueService(repo, content, clock)
    due = await service.get_due_items(limit=20)
    response = await service.rate(ReviewItemKind.GRAMMAR, 12, ReviewRating.GOOD)
"""

import logging

from galking.config import settings
from galking.enums.learning import ReviewItemKind, ReviewRating
from galking.middleware.error_handling import NotFoundError
from galking.models.learning import (
    DueItem,
    GrammarMasteryState,
    ReviewRateResponse,
    VocabStrengthState,
)
from galking.repositories.base import Clock, ContentLookup, LearningRepository
from galking.services.learning.constants import (
    REVIEW_AGAIN_DELTA,
    REVIEW_EASY_DELTA,
    REVIEW_EASY_INTERVAL_MULTIPLIER,
    REVIEW_GOOD_DELTA,
    VOCAB_BLOCKING_WRONG_COUNT,
)
from galking.services.learning.scheduler import (
    grade_interval,
    review_at,
    round_half_up,
    vocab_interval,
)
from galking.services.learning.scorer import clamp_metric

logger = logging.getLogger(__name__)


class ReviewQueueService:
    """Due-item listing and self-assessment ratings."""

    def __init__(
        self,
        repo: LearningRepository,
        content: ContentLookup,
        clock: Clock,
    ):
        self.repo = repo
        self.content = content
        self.clock = clock

    async def get_due_items(
        self, limit: int = settings.REVIEW_QUEUE_DEFAULT_LIMIT
    ) -> list[DueItem]:
        """
        Items whose next review is due, most-missed first.

        Ordered by wrong count (descending), then next review time
        (ascending).
        """
        now = self.clock.now_ms()
        items = [
            DueItem(
                kind=ReviewItemKind.GRAMMAR,
                item_id=s.grammar_id,
                metric=s.mastery,
                next_review_at=s.next_review_at,
                wrong_count_7d=s.wrong_count_7d,
            )
            for s in await self.repo.list_grammar_states()
            if s.next_review_at is not None and s.next_review_at <= now
        ]
        items += [
            DueItem(
                kind=ReviewItemKind.VOCAB,
                item_id=s.vocab_id,
                metric=s.strength,
                next_review_at=s.next_review_at,
                wrong_count_7d=s.wrong_count_7d,
            )
            for s in await self.repo.list_vocab_states()
            if s.next_review_at is not None and s.next_review_at <= now
        ]
        items.sort(key=lambda i: (-i.wrong_count_7d, i.next_review_at))
        return items[:limit]

    async def rate(
        self, kind: ReviewItemKind, item_id: int, rating: ReviewRating
    ) -> ReviewRateResponse:
        """
        Apply a rating to one item.

        Raises:
            NotFoundError: If the item does not exist in the content set
        """
        if kind == ReviewItemKind.GRAMMAR:
            response = await self._rate_grammar(item_id, rating)
        else:
            response = await self._rate_vocab(item_id, rating)

        logger.info(
            f"Rated {kind.value} {item_id} {rating.value}: metric={response.metric}, "
            f"next review in {response.next_review_days}d"
        )
        return response

    async def _rate_grammar(self, grammar_id: int, rating: ReviewRating) -> ReviewRateResponse:
        if await self.content.get_grammar_point(grammar_id) is None:
            raise NotFoundError(f"Grammar point {grammar_id} not found")

        now = self.clock.now_ms()
        state = await self.repo.get_grammar_state(grammar_id) or GrammarMasteryState(
            grammar_id=grammar_id
        )
        wrong_count = state.wrong_count_7d

        if rating == ReviewRating.AGAIN:
            mastery = clamp_metric(state.mastery + REVIEW_AGAIN_DELTA)
            streak = 0
            days = 1
            wrong_count += 1
        elif rating == ReviewRating.GOOD:
            mastery = clamp_metric(state.mastery + REVIEW_GOOD_DELTA)
            streak = state.correct_streak + 1
            days = grade_interval(mastery, streak, True)
        else:
            mastery = clamp_metric(state.mastery + REVIEW_EASY_DELTA)
            streak = state.correct_streak + 2
            days = round_half_up(
                grade_interval(mastery, streak, True) * REVIEW_EASY_INTERVAL_MULTIPLIER
            )

        state = await self.repo.save_grammar_state(
            state.model_copy(
                update={
                    "mastery": mastery,
                    "correct_streak": streak,
                    "wrong_count_7d": wrong_count,
                    "last_seen_at": now,
                    "next_review_at": review_at(now, days),
                }
            )
        )
        return ReviewRateResponse(
            kind=ReviewItemKind.GRAMMAR,
            item_id=grammar_id,
            metric=state.mastery,
            next_review_days=days,
            next_review_at=state.next_review_at,
        )

    async def _rate_vocab(self, vocab_id: int, rating: ReviewRating) -> ReviewRateResponse:
        if await self.content.get_vocab(vocab_id) is None:
            raise NotFoundError(f"Vocab {vocab_id} not found")

        now = self.clock.now_ms()
        state = await self.repo.get_vocab_state(vocab_id) or VocabStrengthState(
            vocab_id=vocab_id
        )
        wrong_count = state.wrong_count_7d

        if rating == ReviewRating.AGAIN:
            strength = clamp_metric(state.strength + REVIEW_AGAIN_DELTA)
            days = 1
            wrong_count += 1
        elif rating == ReviewRating.GOOD:
            strength = clamp_metric(state.strength + REVIEW_GOOD_DELTA)
            days = vocab_interval(strength, True)
        else:
            strength = clamp_metric(state.strength + REVIEW_EASY_DELTA)
            days = round_half_up(
                vocab_interval(strength, True) * REVIEW_EASY_INTERVAL_MULTIPLIER
            )

        state = await self.repo.save_vocab_state(
            state.model_copy(
                update={
                    "strength": strength,
                    "wrong_count_7d": wrong_count,
                    "is_blocking": state.is_blocking
                    or wrong_count >= VOCAB_BLOCKING_WRONG_COUNT,
                    "last_seen_at": now,
                    "next_review_at": review_at(now, days),
                }
            )
        )
        return ReviewRateResponse(
            kind=ReviewItemKind.VOCAB,
            item_id=vocab_id,
            metric=state.strength,
            next_review_days=days,
            next_review_at=state.next_review_at,
        )
