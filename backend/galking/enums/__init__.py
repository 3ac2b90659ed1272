"""
Centralized enum definitions for the application.

Usage:
    from galking.enums import SessionStep, SessionStatus, ReviewRating

    # Or import from the module
    from galking.enums.learning import QuestionKind
"""

from galking.enums.learning import (
    AchievementCategory,
    CoachSource,
    DrillType,
    LevelChange,
    QuestionKind,
    ReviewItemKind,
    ReviewRating,
    SessionStatus,
    SessionStep,
    TransferVariant,
    VocabPackType,
)

__all__ = [
    "AchievementCategory",
    "CoachSource",
    "DrillType",
    "LevelChange",
    "QuestionKind",
    "ReviewItemKind",
    "ReviewRating",
    "SessionStatus",
    "SessionStep",
    "TransferVariant",
    "VocabPackType",
]
