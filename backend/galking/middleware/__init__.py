"""
Middleware Package

Provides the engine exception hierarchy and the FastAPI error handling
middleware.

Usage:
    from galking.middleware import ErrorHandlingMiddleware, NotFoundError

    raise NotFoundError("Lesson 25 not found")
"""

from galking.middleware.error_handling import (
    ErrorHandlingMiddleware,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ServiceError,
    setup_error_handling,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "InvalidStateError",
    "NotFoundError",
    "PersistenceError",
    "ServiceError",
    "setup_error_handling",
]
