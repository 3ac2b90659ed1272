"""
Repository Contracts

Collaborator interfaces the learning engine depends on. Every service
receives its collaborators explicitly; nothing reaches for a global
database handle.

- LearningRepository: keyed reads/writes of learner state. Each write is
  independent; a multi-row update (several grammar deltas in one finish)
  is not atomic as a group.
- ContentLookup: read-only lessons, grammar points, vocabulary and sentences.
- Clock: wall-clock time in ms and the current calendar date.

Usage:
    from galking.repositories.base import LearningRepository, SystemClock

    service = SessionService(repo, content, SystemClock())
"""

import time
from datetime import date
from typing import Optional, Protocol

from galking.models.content import GrammarPoint, Lesson, Sentence, Vocab, VocabPack
from galking.models.learning import (
    AchievementUnlock,
    GrammarMasteryState,
    SessionRecord,
    UserProgressState,
    VocabStrengthState,
)


class Clock(Protocol):
    """Source of the current time."""

    def now_ms(self) -> int: ...

    def today(self) -> date: ...


class SystemClock:
    """Clock backed by the local system time."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def today(self) -> date:
        return date.today()


class LearningRepository(Protocol):
    """Persistence contract for learner state, sessions and unlocks."""

    # Progress
    async def get_progress(self) -> Optional[UserProgressState]: ...

    async def save_progress(self, progress: UserProgressState) -> UserProgressState: ...

    # Grammar mastery
    async def get_grammar_state(self, grammar_id: int) -> Optional[GrammarMasteryState]: ...

    async def list_grammar_states(self) -> list[GrammarMasteryState]: ...

    async def save_grammar_state(self, state: GrammarMasteryState) -> GrammarMasteryState: ...

    # Vocab strength
    async def get_vocab_state(self, vocab_id: int) -> Optional[VocabStrengthState]: ...

    async def list_vocab_states(self) -> list[VocabStrengthState]: ...

    async def save_vocab_state(self, state: VocabStrengthState) -> VocabStrengthState: ...

    # Sessions
    async def get_session(self, session_id: int) -> Optional[SessionRecord]: ...

    async def list_sessions_by_date(self, day: date) -> list[SessionRecord]:
        """Sessions of one calendar date, oldest first."""
        ...

    async def create_session(self, record: SessionRecord) -> SessionRecord:
        """Insert a new session and return it with its assigned id."""
        ...

    async def save_session(self, record: SessionRecord) -> SessionRecord: ...

    async def list_completed_sessions(
        self,
        lesson_id: Optional[int] = None,
        since: Optional[date] = None,
        before: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[SessionRecord]:
        """
        Completed sessions, most recent first.

        Args:
            lesson_id: Only sessions planned against this lesson.
            since: Only sessions dated on or after this date.
            before: Only sessions dated strictly before this date.
            limit: Maximum number of sessions returned.
        """
        ...

    async def count_completed_sessions(self) -> int: ...

    # Achievements
    async def list_achievements(self) -> list[AchievementUnlock]: ...

    async def add_achievement(self, unlock: AchievementUnlock) -> bool:
        """Insert an unlock; returns False if the id was already unlocked."""
        ...


class ContentLookup(Protocol):
    """Read-only access to the content dataset. Missing ids yield None."""

    async def get_lesson(self, lesson_id: int) -> Optional[Lesson]: ...

    async def list_lessons(self) -> list[Lesson]:
        """All lessons ordered by order_index."""
        ...

    async def get_grammar_point(self, grammar_id: int) -> Optional[GrammarPoint]: ...

    async def get_vocab(self, vocab_id: int) -> Optional[Vocab]: ...

    async def get_vocab_pack(self, pack_id: int) -> Optional[VocabPack]: ...

    async def get_sentence(self, sentence_id: int) -> Optional[Sentence]: ...

    async def list_sentences(
        self,
        grammar_id: Optional[int] = None,
        lesson_id: Optional[int] = None,
    ) -> list[Sentence]:
        """Sentences testing a grammar point and/or belonging to a lesson."""
        ...
