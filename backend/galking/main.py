"""
Galking API

Application factory: logging, CORS, error handling and routers.

Run with:
    uvicorn galking.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from galking.config import settings
from galking.db.base import init_db
from galking.middleware import setup_error_handling
from galking.routers import (
    achievements_router,
    health_router,
    progress_router,
    review_router,
    sessions_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info(f"{settings.APP_NAME} started")
    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(app, debug=settings.DEBUG)

    app.include_router(health_router.router)
    app.include_router(sessions_router.router)
    app.include_router(progress_router.router)
    app.include_router(achievements_router.router)
    app.include_router(review_router.router)

    @app.get("/")
    async def root():
        return {"message": settings.APP_NAME}

    return app


app = create_app()
