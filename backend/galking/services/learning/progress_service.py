"""
Progress Service

Applies scored session updates to long-lived learner state and decides
grammar/lesson advancement.

Responsibilities:
- Write grammar mastery and vocab strength updates (zeroed rows on first use)
- Move the level per the session's level decision, clamped to [1, 10]
- Maintain the daily streak
- Advance the grammar index and complete lessons
- Manual lesson jumps, lesson progress and accuracy history queries

Advancement policy:
- The grammar index advances once the current item reaches mastery 80.
- A lesson completes only when every grammar item has mastery >= 80, the
  average vocab accuracy over up to the 7 most recent sessions planned
  against the lesson is >= 0.85, and the average sentence pass rate over
  the same sessions is >= 0.70. The next lesson (by order) must have
  grammar content.

Usage:
    from galking.services.learning import ProgressService

    service = ProgressService(repo, content, clock)
    advancement = await service.apply_session_results(
        result, grammar_updates, vocab_updates, lesson_id
    )
"""

import logging
from datetime import timedelta
from typing import Optional

from galking.config import settings
from galking.enums.learning import LevelChange
from galking.middleware.error_handling import NotFoundError
from galking.models.content import Lesson
from galking.models.learning import (
    AccuracyTrendPoint,
    AdvancementResult,
    GrammarMasteryState,
    LessonProgress,
    SessionResult,
    UserProgressState,
    VocabStrengthState,
)
from galking.repositories.base import Clock, ContentLookup, LearningRepository
from galking.services.learning.constants import (
    ADVANCE_MASTERY,
    LESSON_RECENT_SESSIONS,
    LESSON_SENTENCE_PASS_RATE,
    LESSON_VOCAB_ACCURACY,
    LEVEL_HISTORY_DAYS,
    LEVEL_MAX,
    LEVEL_MIN,
)
from galking.services.learning.scheduler import review_at
from galking.services.learning.scorer import GrammarScoreUpdate, VocabScoreUpdate
from galking.services.learning.streak_tracking import (
    build_accuracy_trend,
    calculate_prior_daily_accuracies,
    next_streak,
)

logger = logging.getLogger(__name__)


class ProgressService:
    """
    Service owning the learner's long-lived progress.

    The single writer of grammar/vocab state after a session; the review
    queue is the only other path that mutates those rows.
    """

    def __init__(
        self,
        repo: LearningRepository,
        content: ContentLookup,
        clock: Clock,
    ):
        """
        Initialize the progress service.

        Args:
            repo: Learner-state repository
            content: Read-only content lookup
            clock: Time source
        """
        self.repo = repo
        self.content = content
        self.clock = clock

    # ===========================================
    # Progress Row
    # ===========================================

    async def get_progress(self) -> UserProgressState:
        """
        Get the progress row, creating it at the first lesson if absent.

        Raises:
            NotFoundError: If no lessons exist to start from
        """
        progress = await self.repo.get_progress()
        if progress is not None:
            return progress

        lessons = await self.content.list_lessons()
        if not lessons:
            raise NotFoundError("No lessons available")

        progress = UserProgressState(current_lesson_id=lessons[0].lesson_id)
        logger.info(f"Created progress at lesson {progress.current_lesson_id}")
        return await self.repo.save_progress(progress)

    # ===========================================
    # Session Results
    # ===========================================

    async def apply_session_results(
        self,
        result: SessionResult,
        grammar_updates: list[GrammarScoreUpdate],
        vocab_updates: list[VocabScoreUpdate],
        lesson_id: Optional[int] = None,
    ) -> AdvancementResult:
        """
        Persist a finished session's updates and check advancement.

        Each row is written independently; a failure part-way leaves the
        earlier rows written.

        Args:
            result: The session result (level decision, lesson gate inputs)
            grammar_updates: One update per grammar point answered
            vocab_updates: One update per vocab item answered
            lesson_id: Lesson the session was planned against; its result
                counts toward that lesson's completion gate

        Returns:
            AdvancementResult describing any index or lesson change
        """
        now = self.clock.now_ms()
        today = self.clock.today()

        for update in grammar_updates:
            await self.repo.save_grammar_state(
                GrammarMasteryState(
                    grammar_id=update.grammar_id,
                    mastery=update.new_mastery,
                    last_seen_at=now,
                    next_review_at=review_at(now, update.next_review_days),
                    wrong_count_7d=update.new_wrong_count,
                    correct_streak=update.correct_streak,
                )
            )

        for update in vocab_updates:
            current = await self.repo.get_vocab_state(update.vocab_id)
            await self.repo.save_vocab_state(
                VocabStrengthState(
                    vocab_id=update.vocab_id,
                    strength=update.new_strength,
                    last_seen_at=now,
                    next_review_at=review_at(now, update.next_review_days),
                    is_blocking=update.should_block
                    or (current.is_blocking if current else False),
                    wrong_count_7d=update.new_wrong_count,
                )
            )

        progress = await self.get_progress()
        level = progress.current_level
        if result.level_change == LevelChange.UP:
            level = min(level + 1, LEVEL_MAX)
        elif result.level_change == LevelChange.DOWN:
            level = max(level - 1, LEVEL_MIN)

        progress = progress.model_copy(
            update={
                "current_level": level,
                "streak_days": next_streak(
                    progress.streak_days, progress.last_active_date, today
                ),
                "last_active_date": today,
            }
        )
        await self.repo.save_progress(progress)
        logger.info(
            f"Applied session results: {len(grammar_updates)} grammar, "
            f"{len(vocab_updates)} vocab, level={level} ({result.level_change.value}), "
            f"streak={progress.streak_days}"
        )

        pending = (lesson_id, result) if lesson_id is not None else None
        return await self.check_and_advance(pending)

    # ===========================================
    # Advancement
    # ===========================================

    async def check_and_advance(
        self, pending: Optional[tuple[int, SessionResult]] = None
    ) -> AdvancementResult:
        """
        Advance the grammar index or complete the current lesson.

        Args:
            pending: (lesson_id, result) of a session being finished but not
                yet marked completed; counted as the most recent session

        Returns:
            AdvancementResult
        """
        progress = await self.get_progress()
        lesson = await self.content.get_lesson(progress.current_lesson_id)
        if lesson is None or progress.current_grammar_index >= len(lesson.grammar_ids):
            return AdvancementResult()

        grammar_id = lesson.grammar_ids[progress.current_grammar_index]
        state = await self.repo.get_grammar_state(grammar_id)
        if state is None or state.mastery < ADVANCE_MASTERY:
            return AdvancementResult()

        next_index = progress.current_grammar_index + 1
        if next_index < len(lesson.grammar_ids):
            await self.repo.save_progress(
                progress.model_copy(update={"current_grammar_index": next_index})
            )
            logger.info(
                f"Advanced to grammar index {next_index} in lesson {lesson.lesson_id}"
            )
            return AdvancementResult(advanced=True, new_grammar_index=next_index)

        if not await self.is_lesson_complete(lesson, pending):
            return AdvancementResult()

        next_lesson = await self._next_lesson(lesson)
        if next_lesson is None or not next_lesson.grammar_ids:
            logger.info(f"Lesson {lesson.lesson_id} complete; no further lesson")
            return AdvancementResult(lesson_completed=True)

        await self.repo.save_progress(
            progress.model_copy(
                update={
                    "current_lesson_id": next_lesson.lesson_id,
                    "current_grammar_index": 0,
                }
            )
        )
        logger.info(
            f"Lesson {lesson.lesson_id} complete; advanced to lesson {next_lesson.lesson_id}"
        )
        return AdvancementResult(
            advanced=True,
            lesson_completed=True,
            new_lesson_id=next_lesson.lesson_id,
            new_grammar_index=0,
        )

    async def is_lesson_complete(
        self,
        lesson: Lesson,
        pending: Optional[tuple[int, SessionResult]] = None,
    ) -> bool:
        """
        Check all three lesson-completion gates.

        Args:
            lesson: Lesson to check
            pending: (lesson_id, result) of the session being finished

        Returns:
            True only if grammar mastery, vocab accuracy and sentence pass
            rate all meet their thresholds
        """
        for grammar_id in lesson.grammar_ids:
            state = await self.repo.get_grammar_state(grammar_id)
            if state is None or state.mastery < ADVANCE_MASTERY:
                return False

        results: list[SessionResult] = []
        if pending is not None and pending[0] == lesson.lesson_id:
            results.append(pending[1])
        sessions = await self.repo.list_completed_sessions(
            lesson_id=lesson.lesson_id,
            limit=LESSON_RECENT_SESSIONS - len(results),
        )
        results.extend(s.result for s in sessions if s.result is not None)

        if not results:
            return False

        avg_vocab = sum(r.vocab.accuracy for r in results) / len(results)
        if avg_vocab < LESSON_VOCAB_ACCURACY:
            return False

        avg_pass_rate = sum(r.sentence.pass_rate for r in results) / len(results)
        return avg_pass_rate >= LESSON_SENTENCE_PASS_RATE

    async def _next_lesson(self, lesson: Lesson) -> Optional[Lesson]:
        lessons = await self.content.list_lessons()
        for candidate in lessons:
            if candidate.order_index > lesson.order_index:
                return candidate
        return None

    async def jump_to_lesson(self, lesson_id: int) -> UserProgressState:
        """
        Reposition progress at a lesson without the completion gate.

        Starts at the first grammar item with mastery < 80, or index 0 if
        all are mastered.

        Raises:
            NotFoundError: If the lesson is missing or has no grammar
        """
        lesson = await self.content.get_lesson(lesson_id)
        if lesson is None or not lesson.grammar_ids:
            raise NotFoundError(f"Lesson {lesson_id} not found or has no grammar")

        start_index = 0
        for i, grammar_id in enumerate(lesson.grammar_ids):
            state = await self.repo.get_grammar_state(grammar_id)
            if state is None or state.mastery < ADVANCE_MASTERY:
                start_index = i
                break

        progress = await self.get_progress()
        progress = progress.model_copy(
            update={"current_lesson_id": lesson_id, "current_grammar_index": start_index}
        )
        logger.info(f"Jumped to lesson {lesson_id} at grammar index {start_index}")
        return await self.repo.save_progress(progress)

    # ===========================================
    # Queries
    # ===========================================

    async def get_lesson_progress(self, lesson_id: int) -> LessonProgress:
        """
        Mastery summary of one lesson.

        Raises:
            NotFoundError: If the lesson does not exist
        """
        lesson = await self.content.get_lesson(lesson_id)
        if lesson is None:
            raise NotFoundError(f"Lesson {lesson_id} not found")

        masteries = []
        for grammar_id in lesson.grammar_ids:
            state = await self.repo.get_grammar_state(grammar_id)
            masteries.append(state.mastery if state else 0)

        return LessonProgress(
            lesson_id=lesson_id,
            grammar_count=len(masteries),
            mastered_count=sum(1 for m in masteries if m >= ADVANCE_MASTERY),
            avg_mastery=sum(masteries) / len(masteries) if masteries else 0.0,
        )

    async def get_recent_accuracies(self, days: int = LEVEL_HISTORY_DAYS) -> list[float]:
        """Prior daily accuracies (before today), most recent first."""
        today = self.clock.today()
        sessions = await self.repo.list_completed_sessions(before=today)
        return calculate_prior_daily_accuracies(sessions, today, days)

    async def get_accuracy_trend(
        self, days: int = settings.ACCURACY_TREND_DEFAULT_DAYS
    ) -> list[AccuracyTrendPoint]:
        """Per-day accuracy over the last `days` days, oldest first."""
        since = self.clock.today() - timedelta(days=days - 1)
        sessions = await self.repo.list_completed_sessions(since=since)
        return build_accuracy_trend(sessions)

    async def clear_blocking(self, vocab_id: int) -> VocabStrengthState:
        """
        Externally reset a vocab item's blocking flag and wrong count.

        Raises:
            NotFoundError: If the item has no state yet
        """
        state = await self.repo.get_vocab_state(vocab_id)
        if state is None:
            raise NotFoundError(f"No state for vocab {vocab_id}")

        state = state.model_copy(update={"is_blocking": False, "wrong_count_7d": 0})
        logger.info(f"Cleared blocking flag of vocab {vocab_id}")
        return await self.repo.save_vocab_state(state)
