"""API Routers package."""

from galking.routers import achievements as achievements_router
from galking.routers import health as health_router
from galking.routers import progress as progress_router
from galking.routers import review as review_router
from galking.routers import sessions as sessions_router

__all__ = [
    "achievements_router",
    "health_router",
    "progress_router",
    "review_router",
    "sessions_router",
]
