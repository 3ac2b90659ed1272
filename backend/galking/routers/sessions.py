"""
Sessions API Router

Endpoints driving the five-step daily practice session.

Endpoints:
- POST /api/sessions/today - Resume today's session or plan a new one
- GET /api/sessions/{id} - Get session state
- POST /api/sessions/{id}/answer - Answer the current step 1-3 question
- POST /api/sessions/{id}/sentence - Submit the current step 4 sentence
- POST /api/sessions/{id}/next - Advance to the next step
- POST /api/sessions/{id}/finish - Score and complete the session
- PATCH /api/sessions/{id}/coach - Replace the coach summary
"""

import logging

from fastapi import APIRouter, Depends

from galking.dependencies import get_achievement_service, get_session_service
from galking.models.learning import (
    AnswerResult,
    AnswerSubmitRequest,
    CoachUpdateRequest,
    FinishResponse,
    SentenceScoreResponse,
    SentenceSubmitRequest,
    SessionStateResponse,
)
from galking.services.learning import AchievementService, SessionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post("/today", response_model=SessionStateResponse)
async def create_or_resume_session(
    service: SessionService = Depends(get_session_service),
) -> SessionStateResponse:
    """
    Get today's in-progress session, creating one from a fresh plan if
    none exists.
    """
    record = await service.create_or_resume()
    return service.build_state_response(record)


@router.get("/{session_id}", response_model=SessionStateResponse)
async def get_session(
    session_id: int,
    service: SessionService = Depends(get_session_service),
) -> SessionStateResponse:
    """Get a session's current step, progress and pending item."""
    record = await service.get_session(session_id)
    return service.build_state_response(record)


@router.post("/{session_id}/answer", response_model=AnswerResult)
async def answer_question(
    session_id: int,
    request: AnswerSubmitRequest,
    service: SessionService = Depends(get_session_service),
) -> AnswerResult:
    """Answer the current grammar, transfer or vocab question."""
    return await service.answer_question(session_id, request.selected_id, request.time_ms)


@router.post("/{session_id}/sentence", response_model=SentenceScoreResponse)
async def submit_sentence(
    session_id: int,
    request: SentenceSubmitRequest,
    service: SessionService = Depends(get_session_service),
) -> SentenceScoreResponse:
    """Self-check the current sentence against its key points."""
    return await service.submit_sentence(session_id, request.checked_key_point_ids)


@router.post("/{session_id}/next", response_model=SessionStateResponse)
async def next_step(
    session_id: int,
    service: SessionService = Depends(get_session_service),
) -> SessionStateResponse:
    """Move to the next step."""
    record = await service.next_step(session_id)
    return service.build_state_response(record)


@router.post("/{session_id}/finish", response_model=FinishResponse)
async def finish_session(
    session_id: int,
    service: SessionService = Depends(get_session_service),
    achievements: AchievementService = Depends(get_achievement_service),
) -> FinishResponse:
    """
    Score the session, persist learner updates and evaluate achievements.

    Achievement failures are logged and never fail the request.
    """
    record = await service.finish_session(session_id)

    newly_unlocked = []
    try:
        newly_unlocked = await achievements.evaluate()
    except Exception:
        logger.exception(f"Achievement evaluation failed after session {session_id}")

    return FinishResponse(
        session_id=session_id,
        result=record.result,
        newly_unlocked=newly_unlocked,
    )


@router.patch("/{session_id}/coach", response_model=SessionStateResponse)
async def update_coach_summary(
    session_id: int,
    request: CoachUpdateRequest,
    service: SessionService = Depends(get_session_service),
) -> SessionStateResponse:
    """Replace the offline coach narrative of a completed session."""
    record = await service.attach_coach_summary(session_id, request.summary)
    return service.build_state_response(record)
