"""
Achievement Evaluation

A fixed, ordered rule table maps each achievement id to a predicate over
aggregate learner statistics. Evaluation skips ids already unlocked,
inserts an unlock for every predicate that now holds, and reports those
as newly unlocked. Insertion is idempotent, so a repeated evaluation with
unchanged statistics unlocks nothing.

Streak rules use max(current streak, historical max) so unlocks survive a
streak reset. The historical max is refreshed on every evaluation.

Callers must not let evaluation failures block session completion; wrap
calls in try/except and log.

Usage:
    from galking.services.learning.achievements import AchievementService

    service = AchievementService(repo, content, clock)
    newly_unlocked = await service.evaluate()
    await service.unlock_special("first_review")
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from galking.enums.learning import AchievementCategory
from galking.models.learning import AchievementResponse, AchievementUnlock
from galking.repositories.base import Clock, ContentLookup, LearningRepository
from galking.services.learning.constants import ACHIEVEMENT_MASTERY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementStats:
    """Aggregate statistics the rule predicates are evaluated against."""

    streak: int = 0
    completed_sessions: int = 0
    five_star_sessions: int = 0
    mastered_grammar: int = 0
    first_lesson_mastered: bool = False
    seen_vocab: int = 0
    level: int = 1


@dataclass(frozen=True)
class AchievementDef:
    """
    Catalog entry.

    A None predicate marks a special achievement unlocked explicitly by
    its call site rather than by evaluation.
    """

    achievement_id: str
    category: AchievementCategory
    name: str
    description: str
    icon: str
    predicate: Optional[Callable[[AchievementStats], bool]] = None


def _streak(days: int) -> Callable[[AchievementStats], bool]:
    return lambda s: s.streak >= days


def _sessions(count: int) -> Callable[[AchievementStats], bool]:
    return lambda s: s.completed_sessions >= count


def _grammar(count: int) -> Callable[[AchievementStats], bool]:
    return lambda s: s.mastered_grammar >= count


def _vocab(count: int) -> Callable[[AchievementStats], bool]:
    return lambda s: s.seen_vocab >= count


def _level(level: int) -> Callable[[AchievementStats], bool]:
    return lambda s: s.level >= level


STREAK = AchievementCategory.STREAK
SESSION = AchievementCategory.SESSION
MASTERY = AchievementCategory.MASTERY
VOCAB = AchievementCategory.VOCAB
SPECIAL = AchievementCategory.SPECIAL

ACHIEVEMENTS: tuple[AchievementDef, ...] = (
    # Streak
    AchievementDef("streak_3", STREAK, "Three-Day Start", "Study 3 days in a row", "🔥", _streak(3)),
    AchievementDef("streak_7", STREAK, "One-Week Regular", "Study 7 days in a row", "🔥", _streak(7)),
    AchievementDef("streak_14", STREAK, "Two-Week Warrior", "Study 14 days in a row", "🔥", _streak(14)),
    AchievementDef("streak_30", STREAK, "Moon Guardian", "Study 30 days in a row", "🌙", _streak(30)),
    AchievementDef("streak_60", STREAK, "Relentless", "Study 60 days in a row", "⚡", _streak(60)),
    AchievementDef("streak_100", STREAK, "Hundred-Day Master", "Study 100 days in a row", "👑", _streak(100)),
    # Session
    AchievementDef(
        "stars_first5", SESSION, "Flawless Debut", "Earn a 5-star rating for the first time", "⭐",
        lambda s: s.five_star_sessions > 0,
    ),
    AchievementDef("sessions_10", SESSION, "Veteran of Ten", "Complete 10 sessions", "🎮", _sessions(10)),
    AchievementDef("sessions_50", SESSION, "Fifty Victories", "Complete 50 sessions", "🏆", _sessions(50)),
    AchievementDef("sessions_100", SESSION, "Hero of a Hundred", "Complete 100 sessions", "💎", _sessions(100)),
    # Mastery
    AchievementDef("grammar_first", MASTERY, "Grammar Beginner", "Reach 50% mastery on a grammar point", "📖", _grammar(1)),
    AchievementDef("grammar_10", MASTERY, "Grammar Adept", "Reach 50% mastery on 10 grammar points", "📚", _grammar(10)),
    AchievementDef("grammar_30", MASTERY, "Grammar Scholar", "Reach 50% mastery on 30 grammar points", "🎓", _grammar(30)),
    AchievementDef(
        "lesson_first", MASTERY, "First Lesson Done", "Master every grammar point of the first lesson", "📗",
        lambda s: s.first_lesson_mastered,
    ),
    # Vocab
    AchievementDef("vocab_50", VOCAB, "Word Collector", "Study 50 words", "📝", _vocab(50)),
    AchievementDef("vocab_100", VOCAB, "Word Hunter", "Study 100 words", "🏹", _vocab(100)),
    AchievementDef("vocab_200", VOCAB, "Word Master", "Study 200 words", "🗡️", _vocab(200)),
    # Special
    AchievementDef("first_review", SPECIAL, "Review Begins", "Complete your first review-queue rating", "🔄"),
    AchievementDef("level_5", SPECIAL, "Intermediate Scholar", "Reach level 5", "🌟", _level(5)),
    AchievementDef("level_10", SPECIAL, "Final Form", "Reach the top level 10", "💫", _level(10)),
)

ACHIEVEMENT_MAP: dict[str, AchievementDef] = {a.achievement_id: a for a in ACHIEVEMENTS}


def to_response(
    definition: AchievementDef, unlocked_at: Optional[int] = None
) -> AchievementResponse:
    return AchievementResponse(
        achievement_id=definition.achievement_id,
        category=definition.category,
        name=definition.name,
        description=definition.description,
        icon=definition.icon,
        unlocked_at=unlocked_at,
    )


class AchievementService:
    """Evaluates the rule table and records unlocks."""

    def __init__(
        self,
        repo: LearningRepository,
        content: ContentLookup,
        clock: Clock,
    ):
        self.repo = repo
        self.content = content
        self.clock = clock

    async def gather_stats(self) -> AchievementStats:
        """Collect the aggregate statistics used by the predicates."""
        progress = await self.repo.get_progress()
        grammar_states = await self.repo.list_grammar_states()
        vocab_states = await self.repo.list_vocab_states()
        sessions = await self.repo.list_completed_sessions()

        mastery = {g.grammar_id: g.mastery for g in grammar_states}

        first_lesson_mastered = False
        lessons = await self.content.list_lessons()
        if lessons and lessons[0].grammar_ids:
            first_lesson_mastered = all(
                mastery.get(gid, 0) >= ACHIEVEMENT_MASTERY
                for gid in lessons[0].grammar_ids
            )

        return AchievementStats(
            streak=max(progress.streak_days, progress.max_streak_days) if progress else 0,
            completed_sessions=await self.repo.count_completed_sessions(),
            five_star_sessions=sum(1 for s in sessions if s.stars == 5),
            mastered_grammar=sum(1 for m in mastery.values() if m >= ACHIEVEMENT_MASTERY),
            first_lesson_mastered=first_lesson_mastered,
            seen_vocab=sum(1 for v in vocab_states if v.last_seen_at is not None),
            level=progress.current_level if progress else 1,
        )

    async def evaluate(self) -> list[AchievementResponse]:
        """
        Run one evaluation pass.

        Returns:
            Achievements unlocked by this pass, in catalog order
        """
        unlocked_ids = {u.achievement_id for u in await self.repo.list_achievements()}
        stats = await self.gather_stats()
        now = self.clock.now_ms()

        newly_unlocked = []
        for definition in ACHIEVEMENTS:
            if definition.achievement_id in unlocked_ids or definition.predicate is None:
                continue
            if not definition.predicate(stats):
                continue

            inserted = await self.repo.add_achievement(
                AchievementUnlock(
                    achievement_id=definition.achievement_id,
                    category=definition.category,
                    unlocked_at=now,
                )
            )
            if inserted:
                newly_unlocked.append(to_response(definition, now))

        await self._refresh_max_streak()

        if newly_unlocked:
            logger.info(
                f"Unlocked achievements: {[a.achievement_id for a in newly_unlocked]}"
            )
        return newly_unlocked

    async def _refresh_max_streak(self) -> None:
        progress = await self.repo.get_progress()
        if progress and progress.streak_days > progress.max_streak_days:
            await self.repo.save_progress(
                progress.model_copy(update={"max_streak_days": progress.streak_days})
            )

    async def unlock_special(self, achievement_id: str) -> Optional[AchievementResponse]:
        """
        Unlock an achievement from its call site.

        Returns:
            The achievement if newly unlocked, None if unknown or already unlocked
        """
        definition = ACHIEVEMENT_MAP.get(achievement_id)
        if definition is None:
            logger.warning(f"Unknown achievement id: {achievement_id}")
            return None

        now = self.clock.now_ms()
        inserted = await self.repo.add_achievement(
            AchievementUnlock(
                achievement_id=achievement_id,
                category=definition.category,
                unlocked_at=now,
            )
        )
        if not inserted:
            return None

        logger.info(f"Unlocked special achievement: {achievement_id}")
        return to_response(definition, now)

    async def list_unlocked(self) -> list[AchievementResponse]:
        """The full catalog, with unlock times for unlocked entries."""
        unlocked = {u.achievement_id: u.unlocked_at for u in await self.repo.list_achievements()}
        return [to_response(a, unlocked.get(a.achievement_id)) for a in ACHIEVEMENTS]
