"""
Learning Engine Services

Adaptive review scheduling and practice-session scoring.

Modules:
- scheduler: Pure interval functions for the grammar and vocab tracks
- scorer: Answer aggregation, stars, level change, offline coach summary
- drills: Drill resolution, judge normalization, generated transfer drills
- plan_generator: Daily session plan
- session_service: Session state machine
- progress_service: State updates, streak, level, advancement
- streak_tracking: Streak and accuracy history helpers
- achievements: Achievement catalog and evaluator
- review_queue: Due items and again/good/easy ratings

Usage:
    from galking.services.learning import (
        SessionService,
        ProgressService,
        AchievementService,
        ReviewQueueService,
    )
"""

from galking.services.learning.achievements import (
    ACHIEVEMENTS,
    AchievementService,
)
from galking.services.learning.plan_generator import DailyPlan, PlanGenerator
from galking.services.learning.progress_service import ProgressService
from galking.services.learning.review_queue import ReviewQueueService
from galking.services.learning.scheduler import (
    ease_factor,
    grade_interval,
    vocab_interval,
)
from galking.services.learning.session_service import SessionService

__all__ = [
    # Scheduling
    "ease_factor",
    "grade_interval",
    "vocab_interval",
    # Services
    "ACHIEVEMENTS",
    "AchievementService",
    "DailyPlan",
    "PlanGenerator",
    "ProgressService",
    "ReviewQueueService",
    "SessionService",
]
