"""
SQLAlchemy Repositories

Default adapters for the LearningRepository and ContentLookup contracts,
backed by an async SQLAlchemy session.

Every write commits on its own. A failed write is rolled back and surfaced
as PersistenceError; earlier successful writes are left in place, so the
last persisted session snapshot remains the resume point.

Usage:
    from galking.repositories.sql import SqlLearningRepository

    async with async_session_maker() as db:
        repo = SqlLearningRepository(db)
        progress = await repo.get_progress()
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from galking.db.models import (
    GrammarPointRow,
    LessonRow,
    SentenceRow,
    SessionRow,
    UserAchievementRow,
    UserGrammarStateRow,
    UserProgressRow,
    UserVocabStateRow,
    VocabPackRow,
    VocabRow,
)
from galking.enums.learning import AchievementCategory, SessionStatus
from galking.middleware.error_handling import PersistenceError
from galking.models.content import (
    ContentDataset,
    GrammarPoint,
    Lesson,
    Sentence,
    Vocab,
    VocabPack,
)
from galking.models.learning import (
    AchievementUnlock,
    GrammarMasteryState,
    SessionRecord,
    SessionResult,
    StepState,
    UserProgressState,
    VocabStrengthState,
)

logger = logging.getLogger(__name__)

PROGRESS_ROW_ID = 1


async def _commit(db: AsyncSession, what: str) -> None:
    """Commit the pending write, rolling back and wrapping any failure."""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to persist {what}: {e}")
        raise PersistenceError(f"Failed to persist {what}") from e


def _session_from_row(row: SessionRow) -> SessionRecord:
    return SessionRecord(
        session_id=row.id,
        date=row.date,
        planned_lesson_id=row.planned_lesson_id,
        planned_grammar_id=row.planned_grammar_id,
        planned_level=row.planned_level,
        step_state=StepState.model_validate(row.step_state),
        result=SessionResult.model_validate(row.result) if row.result else None,
        status=SessionStatus(row.status),
        stars=row.stars,
        started_at=row.started_at,
        finished_at=row.finished_at,
    )


def _apply_session(row: SessionRow, record: SessionRecord) -> None:
    row.date = record.date
    row.planned_lesson_id = record.planned_lesson_id
    row.planned_grammar_id = record.planned_grammar_id
    row.planned_level = record.planned_level
    row.step_state = record.step_state.model_dump(mode="json")
    row.result = record.result.model_dump(mode="json") if record.result else None
    row.status = record.status.value
    row.stars = record.stars
    row.started_at = record.started_at
    row.finished_at = record.finished_at


class SqlLearningRepository:
    """LearningRepository backed by the learner-state tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # Progress
    # ===========================================

    async def get_progress(self) -> Optional[UserProgressState]:
        row = await self.db.get(UserProgressRow, PROGRESS_ROW_ID)
        return UserProgressState.model_validate(row) if row else None

    async def save_progress(self, progress: UserProgressState) -> UserProgressState:
        row = await self.db.get(UserProgressRow, PROGRESS_ROW_ID)
        if row is None:
            row = UserProgressRow(id=PROGRESS_ROW_ID)
            self.db.add(row)
        row.current_lesson_id = progress.current_lesson_id
        row.current_grammar_index = progress.current_grammar_index
        row.current_level = progress.current_level
        row.streak_days = progress.streak_days
        row.max_streak_days = progress.max_streak_days
        row.last_active_date = progress.last_active_date
        await _commit(self.db, "progress")
        return progress

    # ===========================================
    # Grammar / Vocab State
    # ===========================================

    async def get_grammar_state(self, grammar_id: int) -> Optional[GrammarMasteryState]:
        row = await self.db.get(UserGrammarStateRow, grammar_id)
        return GrammarMasteryState.model_validate(row) if row else None

    async def list_grammar_states(self) -> list[GrammarMasteryState]:
        result = await self.db.execute(
            select(UserGrammarStateRow).order_by(UserGrammarStateRow.grammar_id)
        )
        return [GrammarMasteryState.model_validate(r) for r in result.scalars().all()]

    async def save_grammar_state(self, state: GrammarMasteryState) -> GrammarMasteryState:
        row = await self.db.get(UserGrammarStateRow, state.grammar_id)
        if row is None:
            row = UserGrammarStateRow(grammar_id=state.grammar_id)
            self.db.add(row)
        row.mastery = state.mastery
        row.last_seen_at = state.last_seen_at
        row.next_review_at = state.next_review_at
        row.wrong_count_7d = state.wrong_count_7d
        row.correct_streak = state.correct_streak
        await _commit(self.db, f"grammar state {state.grammar_id}")
        return state

    async def get_vocab_state(self, vocab_id: int) -> Optional[VocabStrengthState]:
        row = await self.db.get(UserVocabStateRow, vocab_id)
        return VocabStrengthState.model_validate(row) if row else None

    async def list_vocab_states(self) -> list[VocabStrengthState]:
        result = await self.db.execute(
            select(UserVocabStateRow).order_by(UserVocabStateRow.vocab_id)
        )
        return [VocabStrengthState.model_validate(r) for r in result.scalars().all()]

    async def save_vocab_state(self, state: VocabStrengthState) -> VocabStrengthState:
        row = await self.db.get(UserVocabStateRow, state.vocab_id)
        if row is None:
            row = UserVocabStateRow(vocab_id=state.vocab_id)
            self.db.add(row)
        row.strength = state.strength
        row.last_seen_at = state.last_seen_at
        row.next_review_at = state.next_review_at
        row.is_blocking = state.is_blocking
        row.wrong_count_7d = state.wrong_count_7d
        await _commit(self.db, f"vocab state {state.vocab_id}")
        return state

    # ===========================================
    # Sessions
    # ===========================================

    async def get_session(self, session_id: int) -> Optional[SessionRecord]:
        row = await self.db.get(SessionRow, session_id)
        return _session_from_row(row) if row else None

    async def list_sessions_by_date(self, day: date) -> list[SessionRecord]:
        result = await self.db.execute(
            select(SessionRow).where(SessionRow.date == day).order_by(SessionRow.id)
        )
        return [_session_from_row(r) for r in result.scalars().all()]

    async def create_session(self, record: SessionRecord) -> SessionRecord:
        row = SessionRow()
        _apply_session(row, record)
        self.db.add(row)
        await _commit(self.db, f"new session for {record.date}")
        await self.db.refresh(row)
        return record.model_copy(update={"session_id": row.id})

    async def save_session(self, record: SessionRecord) -> SessionRecord:
        row = await self.db.get(SessionRow, record.session_id)
        if row is None:
            raise PersistenceError(f"Session {record.session_id} does not exist")
        _apply_session(row, record)
        await _commit(self.db, f"session {record.session_id}")
        return record

    async def list_completed_sessions(
        self,
        lesson_id: Optional[int] = None,
        since: Optional[date] = None,
        before: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[SessionRecord]:
        query = select(SessionRow).where(
            SessionRow.status == SessionStatus.COMPLETED.value
        )
        if lesson_id is not None:
            query = query.where(SessionRow.planned_lesson_id == lesson_id)
        if since is not None:
            query = query.where(SessionRow.date >= since)
        if before is not None:
            query = query.where(SessionRow.date < before)
        query = query.order_by(SessionRow.date.desc(), SessionRow.id.desc())
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return [_session_from_row(r) for r in result.scalars().all()]

    async def count_completed_sessions(self) -> int:
        result = await self.db.execute(
            select(func.count(SessionRow.id)).where(
                SessionRow.status == SessionStatus.COMPLETED.value
            )
        )
        return result.scalar() or 0

    # ===========================================
    # Achievements
    # ===========================================

    async def list_achievements(self) -> list[AchievementUnlock]:
        result = await self.db.execute(
            select(UserAchievementRow).order_by(UserAchievementRow.unlocked_at)
        )
        return [
            AchievementUnlock(
                achievement_id=r.achievement_id,
                category=AchievementCategory(r.category),
                unlocked_at=r.unlocked_at,
            )
            for r in result.scalars().all()
        ]

    async def add_achievement(self, unlock: AchievementUnlock) -> bool:
        if await self.db.get(UserAchievementRow, unlock.achievement_id) is not None:
            return False

        self.db.add(
            UserAchievementRow(
                achievement_id=unlock.achievement_id,
                category=unlock.category.value,
                unlocked_at=unlock.unlocked_at,
            )
        )
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost an insert race; the id is unlocked either way
            await self.db.rollback()
            return False
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(
                f"Failed to persist achievement {unlock.achievement_id}"
            ) from e
        return True


# ===========================================
# Content
# ===========================================


def _lesson_from_row(row: LessonRow) -> Lesson:
    return Lesson(
        lesson_id=row.id,
        title=row.title,
        goal=row.goal or "",
        order_index=row.order_index,
        grammar_ids=row.grammar_ids or [],
        vocab_pack_ids=row.vocab_pack_ids or [],
        tags=row.tags or [],
    )


def _grammar_from_row(row: GrammarPointRow) -> GrammarPoint:
    return GrammarPoint(
        grammar_id=row.id,
        lesson_id=row.lesson_id,
        name=row.name,
        core_rule=row.core_rule or "",
        structure=row.structure or "",
        mnemonic=row.mnemonic or "",
        examples=row.examples or [],
        counter_examples=row.counter_examples or [],
        drills=[{**d, "grammar_id": row.id} for d in row.drills or []],
        level=row.level,
        tags=row.tags or [],
    )


def _sentence_from_row(row: SentenceRow) -> Sentence:
    return Sentence(
        sentence_id=row.id,
        text=row.text,
        style_tag=row.style_tag,
        lesson_id=row.lesson_id,
        level=row.level,
        grammar_ids=row.grammar_ids or [],
        key_points=row.key_points or [],
        blocking_vocab_ids=row.blocking_vocab_ids or [],
    )


class SqlContentRepository:
    """ContentLookup backed by the content tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_lesson(self, lesson_id: int) -> Optional[Lesson]:
        row = await self.db.get(LessonRow, lesson_id)
        return _lesson_from_row(row) if row else None

    async def list_lessons(self) -> list[Lesson]:
        result = await self.db.execute(
            select(LessonRow).order_by(LessonRow.order_index, LessonRow.id)
        )
        return [_lesson_from_row(r) for r in result.scalars().all()]

    async def get_grammar_point(self, grammar_id: int) -> Optional[GrammarPoint]:
        row = await self.db.get(GrammarPointRow, grammar_id)
        return _grammar_from_row(row) if row else None

    async def get_vocab(self, vocab_id: int) -> Optional[Vocab]:
        row = await self.db.get(VocabRow, vocab_id)
        if row is None:
            return None
        return Vocab(
            vocab_id=row.id,
            surface=row.surface,
            reading=row.reading or "",
            meanings=row.meanings or [],
            level=row.level,
            tags=row.tags or [],
        )

    async def get_vocab_pack(self, pack_id: int) -> Optional[VocabPack]:
        row = await self.db.get(VocabPackRow, pack_id)
        if row is None:
            return None
        return VocabPack(
            pack_id=row.id,
            name=row.name,
            type=row.type,
            lesson_id=row.lesson_id,
            vocab_ids=row.vocab_ids or [],
            level=row.level,
        )

    async def get_sentence(self, sentence_id: int) -> Optional[Sentence]:
        row = await self.db.get(SentenceRow, sentence_id)
        return _sentence_from_row(row) if row else None

    async def list_sentences(
        self,
        grammar_id: Optional[int] = None,
        lesson_id: Optional[int] = None,
    ) -> list[Sentence]:
        query = select(SentenceRow).order_by(SentenceRow.id)
        if lesson_id is not None:
            query = query.where(SentenceRow.lesson_id == lesson_id)
        result = await self.db.execute(query)
        sentences = [_sentence_from_row(r) for r in result.scalars().all()]
        # JSON containment differs per dialect; filter grammar in Python
        if grammar_id is not None:
            sentences = [s for s in sentences if grammar_id in s.grammar_ids]
        return sentences

    async def import_dataset(self, dataset: ContentDataset) -> dict[str, int]:
        """
        Insert or replace every record of a content dataset.

        Args:
            dataset: Parsed content dataset

        Returns:
            Number of records written per table
        """
        for lesson in dataset.lessons:
            await self.db.merge(
                LessonRow(
                    id=lesson.lesson_id,
                    title=lesson.title,
                    goal=lesson.goal,
                    order_index=lesson.order_index,
                    grammar_ids=lesson.grammar_ids,
                    vocab_pack_ids=lesson.vocab_pack_ids,
                    tags=lesson.tags,
                )
            )
        # Lessons must exist before rows referencing them
        await self.db.flush()

        for gp in dataset.grammar_points:
            await self.db.merge(
                GrammarPointRow(
                    id=gp.grammar_id,
                    lesson_id=gp.lesson_id,
                    name=gp.name,
                    core_rule=gp.core_rule,
                    structure=gp.structure,
                    mnemonic=gp.mnemonic,
                    examples=[e.model_dump(mode="json") for e in gp.examples],
                    counter_examples=[
                        e.model_dump(mode="json") for e in gp.counter_examples
                    ],
                    drills=[d.model_dump(mode="json") for d in gp.drills],
                    level=gp.level,
                    tags=gp.tags,
                )
            )
        for v in dataset.vocab:
            await self.db.merge(
                VocabRow(
                    id=v.vocab_id,
                    surface=v.surface,
                    reading=v.reading,
                    meanings=v.meanings,
                    level=v.level,
                    tags=v.tags,
                )
            )
        for pack in dataset.vocab_packs:
            await self.db.merge(
                VocabPackRow(
                    id=pack.pack_id,
                    name=pack.name,
                    type=pack.type.value,
                    lesson_id=pack.lesson_id,
                    vocab_ids=pack.vocab_ids,
                    level=pack.level,
                )
            )
        for s in dataset.sentences:
            await self.db.merge(
                SentenceRow(
                    id=s.sentence_id,
                    text=s.text,
                    style_tag=s.style_tag,
                    lesson_id=s.lesson_id,
                    level=s.level,
                    grammar_ids=s.grammar_ids,
                    key_points=[k.model_dump(mode="json") for k in s.key_points],
                    blocking_vocab_ids=s.blocking_vocab_ids,
                )
            )
        await _commit(self.db, "content dataset")

        counts = {
            "lessons": len(dataset.lessons),
            "grammar_points": len(dataset.grammar_points),
            "vocab": len(dataset.vocab),
            "vocab_packs": len(dataset.vocab_packs),
            "sentences": len(dataset.sentences),
        }
        logger.info(f"Imported content dataset: {counts}")
        return counts
