"""
SQLAlchemy Database Models

These models define the schema for the learning engine: the read-only
content dataset and the learner's long-lived state.

Tables:
- lessons: Ordered lessons with their grammar and vocab pack lists
- grammar_points: Grammar points with their drill pools
- vocab: Vocabulary items
- vocab_packs: Ordered groups of vocabulary items
- sentences: Sentences with expected key points
- user_progress: Single progress row (lesson position, level, streak)
- user_grammar_state: Per-grammar mastery state
- user_vocab_state: Per-vocab strength state
- sessions: Daily practice sessions with their step snapshots
- user_achievements: Append-only achievement unlocks

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    The corresponding Pydantic files are galking/models/content.py and
    galking/models/learning.py.

    Timestamps are stored as epoch milliseconds (BIGINT); calendar dates
    as DATE.
"""

import datetime as dt
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from galking.db.base import Base


# JSONB on PostgreSQL, plain JSON elsewhere
JsonType = JSON().with_variant(JSONB(), "postgresql")


# ===========================================
# Content (read-only at runtime)
# ===========================================


class LessonRow(Base):
    """
    Lessons in curriculum order.

    Attributes:
        id: Lesson identifier from the content dataset.
        order_index: Curriculum position; lessons are traversed by this.
        grammar_ids: Ordered grammar point ids taught in the lesson.
        vocab_pack_ids: Vocabulary packs attached to the lesson.
    """

    __tablename__ = "lessons"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(200))
    goal: Mapped[str] = mapped_column(Text, default="")
    order_index: Mapped[int] = mapped_column(Integer, index=True)
    grammar_ids: Mapped[list] = mapped_column(JsonType, default=list)
    vocab_pack_ids: Mapped[list] = mapped_column(JsonType, default=list)
    tags: Mapped[list] = mapped_column(JsonType, default=list)


class GrammarPointRow(Base):
    """Grammar points with their drill pools stored as JSON."""

    __tablename__ = "grammar_points"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    lesson_id: Mapped[int] = mapped_column(ForeignKey("lessons.id"), index=True)
    name: Mapped[str] = mapped_column(String(200))
    core_rule: Mapped[str] = mapped_column(Text, default="")
    structure: Mapped[str] = mapped_column(Text, default="")
    mnemonic: Mapped[str] = mapped_column(Text, default="")
    examples: Mapped[list] = mapped_column(JsonType, default=list)
    counter_examples: Mapped[list] = mapped_column(JsonType, default=list)
    drills: Mapped[list] = mapped_column(JsonType, default=list)
    level: Mapped[int] = mapped_column(Integer, default=1)
    tags: Mapped[list] = mapped_column(JsonType, default=list)


class VocabRow(Base):
    """Vocabulary items."""

    __tablename__ = "vocab"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    surface: Mapped[str] = mapped_column(String(200))
    reading: Mapped[str] = mapped_column(String(200), default="")
    meanings: Mapped[list] = mapped_column(JsonType, default=list)
    level: Mapped[int] = mapped_column(Integer, default=1)
    tags: Mapped[list] = mapped_column(JsonType, default=list)


class VocabPackRow(Base):
    """Ordered groups of vocabulary items."""

    __tablename__ = "vocab_packs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(200))
    type: Mapped[str] = mapped_column(String(20), default="lesson")
    lesson_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("lessons.id"), index=True
    )
    vocab_ids: Mapped[list] = mapped_column(JsonType, default=list)
    level: Mapped[int] = mapped_column(Integer, default=1)


class SentenceRow(Base):
    """Sentences with their expected key points."""

    __tablename__ = "sentences"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    text: Mapped[str] = mapped_column(Text)
    style_tag: Mapped[str] = mapped_column(String(20), default="textbook")
    lesson_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("lessons.id"), index=True
    )
    level: Mapped[int] = mapped_column(Integer, default=1)
    grammar_ids: Mapped[list] = mapped_column(JsonType, default=list)
    key_points: Mapped[list] = mapped_column(JsonType, default=list)
    blocking_vocab_ids: Mapped[list] = mapped_column(JsonType, default=list)


# ===========================================
# Learner State
# ===========================================


class UserProgressRow(Base):
    """
    The single progress row (id is always 1).

    Attributes:
        current_lesson_id: Lesson the learner is working through.
        current_grammar_index: Position within the lesson's grammar list.
        current_level: Difficulty level, 1-10.
        streak_days: Consecutive active days.
        max_streak_days: Highest streak ever reached.
        last_active_date: Date of the last completed session.
        updated_at: Last write time (ms).
    """

    __tablename__ = "user_progress"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    current_lesson_id: Mapped[int] = mapped_column(Integer)
    current_grammar_index: Mapped[int] = mapped_column(Integer, default=0)
    current_level: Mapped[int] = mapped_column(Integer, default=1)
    streak_days: Mapped[int] = mapped_column(Integer, default=0)
    max_streak_days: Mapped[int] = mapped_column(Integer, default=0)
    last_active_date: Mapped[Optional[dt.date]] = mapped_column(Date)
    updated_at: Mapped[int] = mapped_column(BigInteger, default=0)


class UserGrammarStateRow(Base):
    """Per-grammar mastery state."""

    __tablename__ = "user_grammar_state"

    grammar_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    mastery: Mapped[int] = mapped_column(Integer, default=0)
    last_seen_at: Mapped[Optional[int]] = mapped_column(BigInteger)
    next_review_at: Mapped[Optional[int]] = mapped_column(BigInteger, index=True)
    wrong_count_7d: Mapped[int] = mapped_column(Integer, default=0)
    correct_streak: Mapped[int] = mapped_column(Integer, default=0)


class UserVocabStateRow(Base):
    """Per-vocab strength state."""

    __tablename__ = "user_vocab_state"

    vocab_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    strength: Mapped[int] = mapped_column(Integer, default=0)
    last_seen_at: Mapped[Optional[int]] = mapped_column(BigInteger)
    next_review_at: Mapped[Optional[int]] = mapped_column(BigInteger, index=True)
    is_blocking: Mapped[bool] = mapped_column(Boolean, default=False)
    wrong_count_7d: Mapped[int] = mapped_column(Integer, default=0)


# ===========================================
# Sessions & Achievements
# ===========================================


class SessionRow(Base):
    """
    Daily practice sessions.

    The partial unique index allows at most one in-progress session per
    calendar date; completed sessions on the same date are unrestricted.

    Attributes:
        step_state: Serialized StepState snapshot, rewritten on every mutation.
        result: Serialized SessionResult, set when the session finishes.
        status: "in_progress" or "completed".
        stars: Star rating copied out of the result for querying.
    """

    __tablename__ = "sessions"
    __table_args__ = (
        Index(
            "uq_sessions_in_progress_date",
            "date",
            unique=True,
            postgresql_where=text("status = 'in_progress'"),
            sqlite_where=text("status = 'in_progress'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    planned_lesson_id: Mapped[int] = mapped_column(Integer)
    planned_grammar_id: Mapped[int] = mapped_column(Integer)
    planned_level: Mapped[int] = mapped_column(Integer)
    step_state: Mapped[dict] = mapped_column(JsonType)
    result: Mapped[Optional[dict]] = mapped_column(JsonType)
    status: Mapped[str] = mapped_column(String(20), default="in_progress")
    stars: Mapped[Optional[int]] = mapped_column(Integer)
    started_at: Mapped[int] = mapped_column(BigInteger)
    finished_at: Mapped[Optional[int]] = mapped_column(BigInteger)


class UserAchievementRow(Base):
    """Append-only achievement unlocks; each id unlocks at most once."""

    __tablename__ = "user_achievements"

    achievement_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    category: Mapped[str] = mapped_column(String(20))
    unlocked_at: Mapped[int] = mapped_column(BigInteger)
