"""
Repositories

Persistence and content-lookup contracts plus their SQLAlchemy adapters.
"""

from galking.repositories.base import (
    Clock,
    ContentLookup,
    LearningRepository,
    SystemClock,
)
from galking.repositories.sql import SqlContentRepository, SqlLearningRepository

__all__ = [
    "Clock",
    "ContentLookup",
    "LearningRepository",
    "SqlContentRepository",
    "SqlLearningRepository",
    "SystemClock",
]
