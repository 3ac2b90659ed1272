"""
Learning System Models (Pydantic)

Engine records and request/response schemas:
- Long-lived learner state (grammar mastery, vocab strength, progress)
- Session records with their tagged per-step snapshots
- Scored session results
- Achievement unlocks
- Review queue items

ARCHITECTURE NOTE:
    This file contains PYDANTIC models. The corresponding SQLAlchemy tables
    live in galking/db/models.py; repositories convert between the two.

    Data flows: Service Layer → Pydantic → Repository → SQLAlchemy → Database

Step state:
    StepState holds one payload per step. Each payload carries a literal
    `kind` tag so a stored snapshot can only rehydrate into the payload
    shape of its own step.

All timestamps are epoch milliseconds.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from galking.enums.learning import (
    AchievementCategory,
    CoachSource,
    LevelChange,
    QuestionKind,
    ReviewItemKind,
    ReviewRating,
    SessionStatus,
    SessionStep,
    TransferVariant,
)
from galking.models.base import FrozenRecord, StrictRequest, StrictResponse


# ===========================================
# Learner State
# ===========================================


class GrammarMasteryState(StrictResponse):
    """
    Mastery state of one grammar point.

    Attributes:
        grammar_id: Grammar point identifier.
        mastery: Confidence score, always clamped to [0, 100].
        last_seen_at: When the item was last practised (ms), None if never.
        next_review_at: When the item is next due (ms), None if unscheduled.
        wrong_count_7d: Accumulated wrong answers; only an external reset
            lowers it.
        correct_streak: Consecutive correct answers.
    """

    grammar_id: int
    mastery: int = Field(0, ge=0, le=100)
    last_seen_at: Optional[int] = None
    next_review_at: Optional[int] = None
    wrong_count_7d: int = Field(0, ge=0)
    correct_streak: int = Field(0, ge=0)


class VocabStrengthState(StrictResponse):
    """
    Strength state of one vocabulary item.

    `is_blocking` turns on once wrong_count_7d reaches the blocking
    threshold and stays on until cleared externally.
    """

    vocab_id: int
    strength: int = Field(0, ge=0, le=100)
    last_seen_at: Optional[int] = None
    next_review_at: Optional[int] = None
    is_blocking: bool = False
    wrong_count_7d: int = Field(0, ge=0)


class UserProgressState(StrictResponse):
    """The single long-lived progress row."""

    current_lesson_id: int
    current_grammar_index: int = Field(0, ge=0)
    current_level: int = Field(1, ge=1, le=10)
    streak_days: int = Field(0, ge=0)
    max_streak_days: int = Field(0, ge=0)
    last_active_date: Optional[date] = None


# ===========================================
# Question References & Answer Entries
# ===========================================


class QuestionRef(FrozenRecord):
    """
    Structured reference to a question.

    Carries the question kind and its target ids explicitly so answers can
    be grouped by grammar or vocab without parsing string keys.
    """

    kind: QuestionKind
    grammar_id: Optional[int] = None
    drill_id: Optional[str] = None
    variant: Optional[TransferVariant] = None
    vocab_id: Optional[int] = None

    @classmethod
    def drill(cls, grammar_id: int, drill_id: str) -> QuestionRef:
        return cls(kind=QuestionKind.DRILL, grammar_id=grammar_id, drill_id=drill_id)

    @classmethod
    def review_drill(cls, grammar_id: int, drill_id: str) -> QuestionRef:
        return cls(
            kind=QuestionKind.REVIEW_DRILL, grammar_id=grammar_id, drill_id=drill_id
        )

    @classmethod
    def transfer(cls, grammar_id: int, variant: TransferVariant) -> QuestionRef:
        return cls(kind=QuestionKind.TRANSFER, grammar_id=grammar_id, variant=variant)

    @classmethod
    def vocab(cls, vocab_id: int) -> QuestionRef:
        return cls(kind=QuestionKind.VOCAB, vocab_id=vocab_id)

    @property
    def key(self) -> str:
        """Human-readable key for logs and client display."""
        if self.kind == QuestionKind.VOCAB:
            return f"vocab:{self.vocab_id}"
        if self.kind == QuestionKind.TRANSFER:
            return f"transfer:{self.grammar_id}:{self.variant.value}"
        return f"{self.kind.value}:{self.grammar_id}:{self.drill_id}"


class AnswerRecord(FrozenRecord):
    """One immutable answer entry of steps 1-3."""

    question: QuestionRef
    selected_id: str
    correct_id: str
    is_correct: bool
    time_ms: int = Field(0, ge=0)


class SentenceSubmission(FrozenRecord):
    """One immutable key-point submission of step 4."""

    sentence_id: int
    checked_key_point_ids: tuple[str, ...] = ()
    hit_count: int
    total_count: int
    passed: bool

    @property
    def hit_rate(self) -> float:
        return self.hit_count / self.total_count if self.total_count > 0 else 0.0


# ===========================================
# Step State (tagged payloads)
# ===========================================


class GrammarDrillStep(StrictResponse):
    """Step 1 payload: grammar recall drills."""

    kind: Literal["grammar_drill"] = "grammar_drill"
    questions: list[QuestionRef] = Field(default_factory=list)
    current_index: int = 0
    answers: list[AnswerRecord] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.questions)


class TransferStep(StrictResponse):
    """Step 2 payload: transfer/application drills."""

    kind: Literal["transfer"] = "transfer"
    questions: list[QuestionRef] = Field(default_factory=list)
    current_index: int = 0
    answers: list[AnswerRecord] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.questions)


class VocabStep(StrictResponse):
    """Step 3 payload: vocabulary speed recognition."""

    kind: Literal["vocab"] = "vocab"
    pack_id: Optional[int] = None
    vocab_ids: list[int] = Field(default_factory=list)
    current_index: int = 0
    correct: int = 0
    wrong: int = 0
    avg_rt_ms: float = 0.0
    answers: list[AnswerRecord] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.vocab_ids)


class SentenceStep(StrictResponse):
    """Step 4 payload: sentence key-point production."""

    kind: Literal["sentence"] = "sentence"
    sentence_ids: list[int] = Field(default_factory=list)
    current_index: int = 0
    submissions: list[SentenceSubmission] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.sentence_ids)


StepPayload = Annotated[
    Union[GrammarDrillStep, TransferStep, VocabStep, SentenceStep],
    Field(discriminator="kind"),
]


class StepTiming(StrictResponse):
    """Wall-clock bookkeeping for a session."""

    started_at: int
    elapsed_ms: int = 0


class StepState(StrictResponse):
    """Full snapshot of a session's step machine, persisted on every mutation."""

    current_step: SessionStep = SessionStep.GRAMMAR_DRILL
    grammar_drill: GrammarDrillStep
    transfer: TransferStep
    vocab: VocabStep
    sentence: SentenceStep
    timing: StepTiming

    def payload_for(self, step: SessionStep) -> Optional[StepPayload]:
        """Return the payload of a step, or None for the terminal step."""
        return {
            SessionStep.GRAMMAR_DRILL: self.grammar_drill,
            SessionStep.TRANSFER: self.transfer,
            SessionStep.VOCAB: self.vocab,
            SessionStep.SENTENCE: self.sentence,
        }.get(step)


# ===========================================
# Session Result
# ===========================================


class GrammarOutcome(StrictResponse):
    correct: int = 0
    total: int = 0
    top_mistake_grammar_id: Optional[int] = None


class TransferOutcome(StrictResponse):
    correct: int = 0
    total: int = 0


class VocabOutcome(StrictResponse):
    correct: int = 0
    total: int = 0
    accuracy: float = 0.0
    avg_rt_ms: float = 0.0
    new_blocking_count: int = 0


class SentenceOutcome(StrictResponse):
    passed: int = 0
    total: int = 0
    key_point_hit_rate: float = 0.0

    @property
    def pass_rate(self) -> float:
        return self.passed / self.total if self.total > 0 else 0.0


class CoachSummary(StrictResponse):
    source: CoachSource = CoachSource.OFFLINE
    summary: str = ""


class SessionResult(StrictResponse):
    """
    Scored outcome of a completed session.

    Attributes:
        stars: 0-5 star rating.
        accuracy: Combined grammar + transfer accuracy, also used for the
            level-change decision and daily accuracy history.
        level_change: Level decision for the progress row.
        coach: Narrative summary, offline until replaced by the assistant.
    """

    stars: int = Field(ge=0, le=5)
    accuracy: float = 0.0
    grammar: GrammarOutcome
    transfer: TransferOutcome
    vocab: VocabOutcome
    sentence: SentenceOutcome
    level_change: LevelChange = LevelChange.UP
    coach: CoachSummary = Field(default_factory=CoachSummary)


# ===========================================
# Session Record
# ===========================================


class SessionRecord(StrictResponse):
    """
    One practice session.

    The planned lesson/grammar/level are fixed at creation. The record is
    immutable once completed, except for the coach-summary patch.
    """

    session_id: Optional[int] = None
    date: date
    planned_lesson_id: int
    planned_grammar_id: int
    planned_level: int
    step_state: StepState
    result: Optional[SessionResult] = None
    status: SessionStatus = SessionStatus.IN_PROGRESS
    stars: Optional[int] = None
    started_at: int
    finished_at: Optional[int] = None


# ===========================================
# Achievements
# ===========================================


class AchievementUnlock(StrictResponse):
    """Append-only unlock event."""

    achievement_id: str
    category: AchievementCategory
    unlocked_at: int


class AchievementResponse(StrictResponse):
    """Catalog entry, with its unlock time when unlocked."""

    achievement_id: str
    category: AchievementCategory
    name: str
    description: str
    icon: str = ""
    unlocked_at: Optional[int] = None


# ===========================================
# Session API Models
# ===========================================


class StepProgress(StrictResponse):
    current: int = 0
    total: int = 0


class SessionStateResponse(StrictResponse):
    """Client view of a session."""

    session_id: int
    date: date
    status: SessionStatus
    current_step: SessionStep
    step_progress: StepProgress
    current_question: Optional[QuestionRef] = None
    current_sentence_id: Optional[int] = None
    planned_lesson_id: int
    planned_grammar_id: int
    planned_level: int
    stars: Optional[int] = None
    result: Optional[SessionResult] = None


class AnswerSubmitRequest(StrictRequest):
    """Answer to the current question of steps 1-3."""

    selected_id: str = Field(..., min_length=1)
    time_ms: int = Field(0, ge=0, description="Reaction time in milliseconds")


class AnswerResult(StrictResponse):
    is_correct: bool
    correct_id: str
    explanation: str = ""
    can_continue: bool


class SentenceSubmitRequest(StrictRequest):
    """Key points the learner flagged for the current sentence."""

    checked_key_point_ids: list[str] = Field(default_factory=list)


class SentenceScoreResponse(StrictResponse):
    hit_rate: float
    passed: bool
    can_continue: bool


class CoachUpdateRequest(StrictRequest):
    summary: str = Field(..., min_length=1)


class FinishResponse(StrictResponse):
    """Finished session result plus achievements unlocked by it."""

    session_id: int
    result: SessionResult
    newly_unlocked: list[AchievementResponse] = Field(default_factory=list)


# ===========================================
# Progress API Models
# ===========================================


class LessonProgress(StrictResponse):
    lesson_id: int
    grammar_count: int = 0
    mastered_count: int = 0
    avg_mastery: float = 0.0


class AccuracyTrendPoint(StrictResponse):
    date: date
    grammar_accuracy: float = 0.0
    vocab_accuracy: float = 0.0
    sentence_accuracy: float = 0.0


class AdvancementResult(StrictResponse):
    """Outcome of an advancement check."""

    advanced: bool = False
    lesson_completed: bool = False
    new_lesson_id: Optional[int] = None
    new_grammar_index: Optional[int] = None


class JumpRequest(StrictRequest):
    lesson_id: int


# ===========================================
# Review Queue Models
# ===========================================


class DueItem(StrictResponse):
    kind: ReviewItemKind
    item_id: int
    metric: int
    next_review_at: Optional[int] = None
    wrong_count_7d: int = 0


class ReviewRateRequest(StrictRequest):
    kind: ReviewItemKind
    item_id: int
    rating: ReviewRating


class ReviewRateResponse(StrictResponse):
    kind: ReviewItemKind
    item_id: int
    metric: int
    next_review_days: int
    next_review_at: int
    newly_unlocked: list[AchievementResponse] = Field(default_factory=list)
