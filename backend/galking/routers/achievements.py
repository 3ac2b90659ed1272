"""
Achievements API Router

Endpoints:
- GET /api/achievements - Full catalog with unlock times
- POST /api/achievements/evaluate - Run an evaluation pass
"""

from fastapi import APIRouter, Depends

from galking.dependencies import get_achievement_service
from galking.models.learning import AchievementResponse
from galking.services.learning import AchievementService

router = APIRouter(prefix="/api/achievements", tags=["achievements"])


@router.get("", response_model=list[AchievementResponse])
async def list_achievements(
    service: AchievementService = Depends(get_achievement_service),
) -> list[AchievementResponse]:
    """Get every achievement in catalog order; locked ones have no unlocked_at."""
    return await service.list_unlocked()


@router.post("/evaluate", response_model=list[AchievementResponse])
async def evaluate_achievements(
    service: AchievementService = Depends(get_achievement_service),
) -> list[AchievementResponse]:
    """Unlock every achievement whose rule now holds; returns the new ones."""
    return await service.evaluate()
