"""
Integration Test Fixtures

Runs the SQL adapters and the HTTP API against an in-memory SQLite
database (aiosqlite). Every test gets a fresh schema; the app's get_db and
get_clock dependencies are overridden so the configured database is never
touched.
"""

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from galking.db.base import Base, get_db
from galking.dependencies import get_clock
from galking.repositories import SqlContentRepository, SqlLearningRepository
from tests.fakes import sample_dataset

pytestmark = pytest.mark.integration


# =============================================================================
# Database
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def session_maker() -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory over a fresh in-memory database.

    StaticPool keeps the single SQLite connection alive for the whole test.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """Session over a database holding the sample content dataset."""
    await SqlContentRepository(db_session).import_dataset(sample_dataset())
    return db_session


@pytest.fixture
def learning_repo(db_session) -> SqlLearningRepository:
    return SqlLearningRepository(db_session)


@pytest.fixture
def content_repo(db_session) -> SqlContentRepository:
    return SqlContentRepository(db_session)


# =============================================================================
# API Client
# =============================================================================


@pytest.fixture
def app(session_maker, clock):
    """Application with database and clock dependencies overridden."""
    from galking.main import create_app

    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_clock] = lambda: clock
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def api_client(app, seeded_db) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for the app, with sample content loaded."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
