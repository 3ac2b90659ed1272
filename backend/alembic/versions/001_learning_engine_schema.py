"""Learning engine schema

Revision ID: 001_learning_engine
Revises:
Create Date: 2026-10-17

Creates the following tables:
- lessons, grammar_points, vocab, vocab_packs, sentences: Content dataset
- user_progress: Single progress row
- user_grammar_state: Per-grammar mastery
- user_vocab_state: Per-vocab strength
- sessions: Daily sessions (one in-progress session per date)
- user_achievements: Achievement unlocks
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001_learning_engine"
down_revision = None
branch_labels = None
depends_on = None


def _json() -> sa.types.TypeEngine:
    return postgresql.JSONB(astext_type=sa.Text())


def upgrade() -> None:
    # Content
    op.create_table(
        "lessons",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("goal", sa.Text(), nullable=False, server_default=""),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("grammar_ids", _json(), nullable=False),
        sa.Column("vocab_pack_ids", _json(), nullable=False),
        sa.Column("tags", _json(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lessons_order_index", "lessons", ["order_index"])

    op.create_table(
        "grammar_points",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("lesson_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("core_rule", sa.Text(), nullable=False, server_default=""),
        sa.Column("structure", sa.Text(), nullable=False, server_default=""),
        sa.Column("mnemonic", sa.Text(), nullable=False, server_default=""),
        sa.Column("examples", _json(), nullable=False),
        sa.Column("counter_examples", _json(), nullable=False),
        sa.Column("drills", _json(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("tags", _json(), nullable=False),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_grammar_points_lesson_id", "grammar_points", ["lesson_id"])

    op.create_table(
        "vocab",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("surface", sa.String(200), nullable=False),
        sa.Column("reading", sa.String(200), nullable=False, server_default=""),
        sa.Column("meanings", _json(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("tags", _json(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "vocab_packs",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="lesson"),
        sa.Column("lesson_id", sa.Integer(), nullable=True),
        sa.Column("vocab_ids", _json(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vocab_packs_lesson_id", "vocab_packs", ["lesson_id"])

    op.create_table(
        "sentences",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("style_tag", sa.String(20), nullable=False, server_default="textbook"),
        sa.Column("lesson_id", sa.Integer(), nullable=True),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("grammar_ids", _json(), nullable=False),
        sa.Column("key_points", _json(), nullable=False),
        sa.Column("blocking_vocab_ids", _json(), nullable=False),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sentences_lesson_id", "sentences", ["lesson_id"])

    # Learner state
    op.create_table(
        "user_progress",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("current_lesson_id", sa.Integer(), nullable=False),
        sa.Column("current_grammar_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("streak_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_streak_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_active_date", sa.Date(), nullable=True),
        sa.Column("updated_at", sa.BigInteger(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_grammar_state",
        sa.Column("grammar_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("mastery", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_seen_at", sa.BigInteger(), nullable=True),
        sa.Column("next_review_at", sa.BigInteger(), nullable=True),
        sa.Column("wrong_count_7d", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("correct_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("grammar_id"),
    )
    op.create_index(
        "ix_user_grammar_state_next_review_at", "user_grammar_state", ["next_review_at"]
    )

    op.create_table(
        "user_vocab_state",
        sa.Column("vocab_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("strength", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_seen_at", sa.BigInteger(), nullable=True),
        sa.Column("next_review_at", sa.BigInteger(), nullable=True),
        sa.Column("is_blocking", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("wrong_count_7d", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("vocab_id"),
    )
    op.create_index(
        "ix_user_vocab_state_next_review_at", "user_vocab_state", ["next_review_at"]
    )

    # Sessions & achievements
    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("planned_lesson_id", sa.Integer(), nullable=False),
        sa.Column("planned_grammar_id", sa.Integer(), nullable=False),
        sa.Column("planned_level", sa.Integer(), nullable=False),
        sa.Column("step_state", _json(), nullable=False),
        sa.Column("result", _json(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="in_progress"),
        sa.Column("stars", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.BigInteger(), nullable=False),
        sa.Column("finished_at", sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sessions_date", "sessions", ["date"])
    op.create_index(
        "uq_sessions_in_progress_date",
        "sessions",
        ["date"],
        unique=True,
        postgresql_where=sa.text("status = 'in_progress'"),
    )

    op.create_table(
        "user_achievements",
        sa.Column("achievement_id", sa.String(50), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("unlocked_at", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("achievement_id"),
    )


def downgrade() -> None:
    op.drop_table("user_achievements")
    op.drop_index("uq_sessions_in_progress_date", table_name="sessions")
    op.drop_table("sessions")
    op.drop_table("user_vocab_state")
    op.drop_table("user_grammar_state")
    op.drop_table("user_progress")
    op.drop_table("sentences")
    op.drop_table("vocab_packs")
    op.drop_table("vocab")
    op.drop_table("grammar_points")
    op.drop_table("lessons")
