"""
FastAPI Dependencies

Providers for the clock, repositories and learning services. Each request
gets repositories bound to its own database session; tests override
get_clock, get_learning_repo and get_content_repo.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from galking.db.base import get_db
from galking.repositories import (
    Clock,
    ContentLookup,
    LearningRepository,
    SqlContentRepository,
    SqlLearningRepository,
    SystemClock,
)
from galking.services.learning import (
    AchievementService,
    ProgressService,
    ReviewQueueService,
    SessionService,
)

_system_clock = SystemClock()


def get_clock() -> Clock:
    """Get the time source."""
    return _system_clock


async def get_learning_repo(db: AsyncSession = Depends(get_db)) -> LearningRepository:
    """Get the learner-state repository."""
    return SqlLearningRepository(db)


async def get_content_repo(db: AsyncSession = Depends(get_db)) -> ContentLookup:
    """Get the read-only content repository."""
    return SqlContentRepository(db)


async def get_progress_service(
    repo: LearningRepository = Depends(get_learning_repo),
    content: ContentLookup = Depends(get_content_repo),
    clock: Clock = Depends(get_clock),
) -> ProgressService:
    return ProgressService(repo, content, clock)


async def get_session_service(
    repo: LearningRepository = Depends(get_learning_repo),
    content: ContentLookup = Depends(get_content_repo),
    clock: Clock = Depends(get_clock),
    progress: ProgressService = Depends(get_progress_service),
) -> SessionService:
    return SessionService(repo, content, clock, progress_service=progress)


async def get_achievement_service(
    repo: LearningRepository = Depends(get_learning_repo),
    content: ContentLookup = Depends(get_content_repo),
    clock: Clock = Depends(get_clock),
) -> AchievementService:
    return AchievementService(repo, content, clock)


async def get_review_queue_service(
    repo: LearningRepository = Depends(get_learning_repo),
    content: ContentLookup = Depends(get_content_repo),
    clock: Clock = Depends(get_clock),
) -> ReviewQueueService:
    return ReviewQueueService(repo, content, clock)
