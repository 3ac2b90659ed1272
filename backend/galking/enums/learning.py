"""
Learning System Enums

Defines enums for the practice session state machine, scoring outcomes,
review-queue ratings and the achievement catalog.
"""

from enum import Enum


class SessionStep(int, Enum):
    """
    Steps of the daily practice session.

    Transitions are strictly forward, one step at a time:
    GRAMMAR_DRILL → TRANSFER → VOCAB → SENTENCE → FINISHED
    """

    GRAMMAR_DRILL = 1  # Grammar recall drills
    TRANSFER = 2  # Transfer/application drills
    VOCAB = 3  # Vocabulary speed recognition
    SENTENCE = 4  # Sentence key-point production
    FINISHED = 5  # Terminal


class SessionStatus(str, Enum):
    """Lifecycle status of a session record."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LevelChange(str, Enum):
    """
    Level decision produced when a session is scored.

    DOWN is representable but never produced by the scorer: levels only
    go up or pause.
    """

    UP = "up"
    PAUSE = "pause"
    DOWN = "down"


class CoachSource(str, Enum):
    """Origin of the narrative session summary."""

    OFFLINE = "offline"  # Assembled from template fragments
    LLM = "llm"  # Attached later by the external assistant


class QuestionKind(str, Enum):
    """
    Kind of question referenced by an answer record.

    - DRILL: a drill from the governing grammar point's drill pool
    - REVIEW_DRILL: a drill from another grammar point that is due for review
    - TRANSFER: a generated transfer question (see TransferVariant)
    - VOCAB: a vocabulary recognition item
    """

    DRILL = "drill"
    REVIEW_DRILL = "review_drill"
    TRANSFER = "transfer"
    VOCAB = "vocab"


class TransferVariant(str, Enum):
    """Generated transfer question variants."""

    MEANING = "meaning"  # Pick the grammar point's core rule
    COUNTER = "counter"  # Spot the incorrect sentence


class DrillType(str, Enum):
    """Drill formats in the content dataset."""

    CHOICE = "choice"
    FILL = "fill"
    REORDER = "reorder"
    JUDGE = "judge"  # Normalized to a two-option choice on lookup


class VocabPackType(str, Enum):
    """Vocabulary pack categories."""

    LESSON = "lesson"
    GAL = "gal"
    BLOCKING = "blocking"
    REVIEW = "review"


class ReviewItemKind(str, Enum):
    """Item tracks handled by the review queue."""

    GRAMMAR = "grammar"
    VOCAB = "vocab"


class ReviewRating(str, Enum):
    """
    Self-assessment ratings in the review queue.

    AGAIN resets the item to a 1-day interval, GOOD applies the regular
    interval functions, EASY boosts the metric and stretches the interval.
    """

    AGAIN = "again"
    GOOD = "good"
    EASY = "easy"


class AchievementCategory(str, Enum):
    """Achievement catalog categories."""

    STREAK = "streak"
    SESSION = "session"
    MASTERY = "mastery"
    VOCAB = "vocab"
    SPECIAL = "special"
