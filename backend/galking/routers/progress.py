"""
Progress API Router

Endpoints for the learner's long-lived progress.

Endpoints:
- GET /api/progress - Current lesson, grammar index, level and streak
- GET /api/progress/lessons/{id} - Mastery summary of a lesson
- GET /api/progress/accuracy - Per-day accuracy trend
- POST /api/progress/jump - Reposition at a lesson
- POST /api/progress/vocab/{id}/unblock - Clear a vocab blocking flag
"""

from fastapi import APIRouter, Depends, Query

from galking.config import settings
from galking.dependencies import get_progress_service
from galking.models.learning import (
    AccuracyTrendPoint,
    JumpRequest,
    LessonProgress,
    UserProgressState,
    VocabStrengthState,
)
from galking.services.learning import ProgressService

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.get("", response_model=UserProgressState)
async def get_progress(
    service: ProgressService = Depends(get_progress_service),
) -> UserProgressState:
    """Get the progress row, creating it at the first lesson if absent."""
    return await service.get_progress()


@router.get("/lessons/{lesson_id}", response_model=LessonProgress)
async def get_lesson_progress(
    lesson_id: int,
    service: ProgressService = Depends(get_progress_service),
) -> LessonProgress:
    return await service.get_lesson_progress(lesson_id)


@router.get("/accuracy", response_model=list[AccuracyTrendPoint])
async def get_accuracy_trend(
    days: int = Query(
        settings.ACCURACY_TREND_DEFAULT_DAYS, ge=1, le=365, description="Days to cover"
    ),
    service: ProgressService = Depends(get_progress_service),
) -> list[AccuracyTrendPoint]:
    """Per-day accuracy of completed sessions, oldest first."""
    return await service.get_accuracy_trend(days)


@router.post("/jump", response_model=UserProgressState)
async def jump_to_lesson(
    request: JumpRequest,
    service: ProgressService = Depends(get_progress_service),
) -> UserProgressState:
    """
    Move to a lesson without the completion gate.

    Starts at the first grammar point below advancement mastery.
    """
    return await service.jump_to_lesson(request.lesson_id)


@router.post("/vocab/{vocab_id}/unblock", response_model=VocabStrengthState)
async def clear_vocab_blocking(
    vocab_id: int,
    service: ProgressService = Depends(get_progress_service),
) -> VocabStrengthState:
    return await service.clear_blocking(vocab_id)
