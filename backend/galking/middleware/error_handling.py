"""
Error Handling

Engine exception hierarchy plus the middleware that turns those exceptions
into consistent JSON error responses.

Error kinds:
- NotFoundError: a referenced lesson/grammar/vocab/sentence/drill/session is
  absent. Fatal to the operation, never retried.
- InvalidStateError: an operation was attempted against the wrong session
  step, or after the session became terminal. Indicates a caller-logic error.
- PersistenceError: a write to the keyed store failed. Surfaced as-is; the
  engine performs no retry or rollback, the last persisted snapshot remains
  the resume point.

Usage:
    from galking.middleware.error_handling import (
        ErrorHandlingMiddleware,
        InvalidStateError,
        NotFoundError,
    )

    # Add middleware to app
    app.add_middleware(ErrorHandlingMiddleware)

    # Raise from services
    raise NotFoundError(f"Sentence {sentence_id} not found")

Exception handling hierarchy inside the middleware:
    - HTTPException: Re-raised for FastAPI's built-in handler
    - ServiceError: Engine exceptions → structured JSON response
    - Exception: Catch-all for unexpected errors → sanitized response
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# =============================================================================
# Error Response Schema
# =============================================================================


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error: str  # Error code (e.g., "invalid_state")
    message: str  # Human-readable message
    error_id: str  # For log correlation
    details: Optional[dict] = None  # Additional context (sanitized)
    timestamp: datetime


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for engine errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise ServiceError("Database connection failed", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = None,
        error_code: str = None,
        details: dict = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class NotFoundError(ServiceError):
    """
    Resource not found error.

    Raised when a referenced content item or session doesn't exist.
    """

    status_code = 404
    error_code = "not_found"


class InvalidStateError(ServiceError):
    """
    Session state error.

    Raised when an operation does not match the session's current step,
    the step has no remaining items, or the session is already completed.
    """

    status_code = 409
    error_code = "invalid_state"


class PersistenceError(ServiceError):
    """
    Keyed store write/read failure.

    Wraps the underlying driver error; callers may resume from the last
    successfully persisted snapshot.
    """

    status_code = 503
    error_code = "persistence_failure"


# =============================================================================
# Error Handling Middleware
# =============================================================================


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    - Catches unhandled exceptions
    - Logs with correlation ID
    - Returns consistent error format
    - Hides internal details in production
    """

    def __init__(self, app, debug: bool = False):
        """
        Initialize middleware.

        Args:
            app: FastAPI/Starlette application
            debug: Whether to include stack traces in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any errors."""
        error_id = str(uuid4())[:8]

        try:
            response = await call_next(request)
            return response

        except HTTPException:
            # Let FastAPI handle HTTP exceptions
            raise

        except ServiceError as e:
            logger.warning(
                f"[{error_id}] {e.error_code}: {e.message}",
                extra={
                    "error_id": error_id,
                    "error_code": e.error_code,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            return create_error_response(
                error_code=e.error_code,
                message=e.message,
                status_code=e.status_code,
                details=e.details if self.debug else None,
                error_id=error_id,
            )

        except Exception as e:
            # Log full traceback for unexpected errors
            logger.error(
                f"[{error_id}] Unhandled error: {type(e).__name__}: {e}",
                extra={
                    "error_id": error_id,
                    "path": request.url.path,
                    "method": request.method,
                    "traceback": traceback.format_exc(),
                },
            )

            details = None
            if self.debug:
                details = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(),
                }

            return create_error_response(
                error_code="internal_server_error",
                message="An unexpected error occurred",
                status_code=500,
                details=details,
                error_id=error_id,
            )


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    Args:
        app: FastAPI application instance
        debug: Whether to include stack traces in responses
    """
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


# =============================================================================
# Helper Functions
# =============================================================================


def create_error_response(
    error_code: str,
    message: str,
    status_code: int = 500,
    details: dict = None,
    error_id: str = None,
) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        error_code: Error code for categorization
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional details
        error_id: Correlation id (generated when omitted)

    Returns:
        JSONResponse with standardized error format
    """
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_code,
            "message": message,
            "error_id": error_id or str(uuid4())[:8],
            "details": details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
