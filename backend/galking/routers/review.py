"""
Review API Router

Endpoints for rating due grammar and vocab items outside a session.

Endpoints:
- GET /api/review/due - Get items due for review
- POST /api/review/rate - Submit an again/good/easy rating
"""

import logging

from fastapi import APIRouter, Depends, Query

from galking.config import settings
from galking.dependencies import get_achievement_service, get_review_queue_service
from galking.models.learning import DueItem, ReviewRateRequest, ReviewRateResponse
from galking.services.learning import AchievementService, ReviewQueueService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/review", tags=["review"])


@router.get("/due", response_model=list[DueItem])
async def get_due_items(
    limit: int = Query(
        settings.REVIEW_QUEUE_DEFAULT_LIMIT, ge=1, le=200, description="Maximum items to return"
    ),
    service: ReviewQueueService = Depends(get_review_queue_service),
) -> list[DueItem]:
    """
    Get items whose next review time has passed.

    Most-missed items come first, then the longest overdue.
    """
    return await service.get_due_items(limit)


@router.post("/rate", response_model=ReviewRateResponse)
async def rate_item(
    request: ReviewRateRequest,
    service: ReviewQueueService = Depends(get_review_queue_service),
    achievements: AchievementService = Depends(get_achievement_service),
) -> ReviewRateResponse:
    """
    Apply a self-assessment rating to one item.

    The first rating ever unlocks the review achievement; failures there are
    logged and never fail the request.
    """
    response = await service.rate(request.kind, request.item_id, request.rating)

    try:
        unlocked = await achievements.unlock_special("first_review")
        if unlocked is not None:
            response = response.model_copy(update={"newly_unlocked": [unlocked]})
    except Exception:
        logger.exception("Failed to unlock review achievement")

    return response
