"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit and integration tests.
"""

import os
import random
import sys
from pathlib import Path

# Point settings at SQLite before any galking module builds the engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest  # noqa: E402

from galking.services.learning import (  # noqa: E402
    AchievementService,
    PlanGenerator,
    ProgressService,
    ReviewQueueService,
    SessionService,
)
from tests.fakes import (  # noqa: E402
    FakeClock,
    InMemoryContentLookup,
    InMemoryLearningRepository,
    sample_dataset,
)


# ============================================================================
# Collaborators
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo() -> InMemoryLearningRepository:
    return InMemoryLearningRepository()


@pytest.fixture
def content() -> InMemoryContentLookup:
    return InMemoryContentLookup(sample_dataset())


# ============================================================================
# Services
# ============================================================================


@pytest.fixture
def progress_service(repo, content, clock) -> ProgressService:
    return ProgressService(repo, content, clock)


@pytest.fixture
def plan_generator(repo, content, clock) -> PlanGenerator:
    return PlanGenerator(repo, content, clock, rng=random.Random(7))


@pytest.fixture
def session_service(repo, content, clock, progress_service, plan_generator) -> SessionService:
    return SessionService(
        repo,
        content,
        clock,
        progress_service=progress_service,
        plan_generator=plan_generator,
    )


@pytest.fixture
def achievement_service(repo, content, clock) -> AchievementService:
    return AchievementService(repo, content, clock)


@pytest.fixture
def review_service(repo, content, clock) -> ReviewQueueService:
    return ReviewQueueService(repo, content, clock)


