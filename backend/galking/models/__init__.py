"""
Pydantic models for the application.

- content: Read-only content dataset (lessons, grammar, vocab, sentences)
- learning: Learner state, session snapshots and API contracts
"""

from galking.models.base import FrozenRecord, StrictRequest, StrictResponse
from galking.models.content import ContentDataset, GrammarPoint, Lesson, Sentence, Vocab, VocabPack
from galking.models.learning import (
    GrammarMasteryState,
    SessionRecord,
    SessionResult,
    StepState,
    UserProgressState,
    VocabStrengthState,
)

__all__ = [
    "FrozenRecord",
    "StrictRequest",
    "StrictResponse",
    "ContentDataset",
    "GrammarPoint",
    "Lesson",
    "Sentence",
    "Vocab",
    "VocabPack",
    "GrammarMasteryState",
    "SessionRecord",
    "SessionResult",
    "StepState",
    "UserProgressState",
    "VocabStrengthState",
]
