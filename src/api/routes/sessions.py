"""Coaching session routes.

This module handles HTTP endpoints for booking sessions and moving them
through their lifecycle.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from api.responses import envelope, spread
from api.routes.auth import CoachDep, CurrentUserDep, StudentDep
from core.dependencies import SessionManagerDep
from schemas.coaching_session import CreateSessionRequest
from schemas.enums import SessionStatus, SessionType

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


@router.get("", summary="List my sessions")
def list_sessions(
    current_user: CurrentUserDep,
    session_manager: SessionManagerDep,
    session_type: Optional[SessionType] = Query(default=None, alias="type"),
    session_status: Optional[SessionStatus] = Query(default=None, alias="status"),
) -> dict:
    """List the sessions the caller runs (coach) or booked and joined (student).

    Args:
        current_user: Current authenticated user.
        session_manager: Injected SessionManager instance.
        session_type: Optional session type filter.
        session_status: Optional status filter.

    Returns:
        Envelope with the sessions ordered by date and time.
    """
    sessions = session_manager.list_sessions(
        current_user, session_type=session_type, status=session_status
    )
    return envelope(sessions=sessions)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Book a session")
def create_session(
    req: CreateSessionRequest,
    current_user: StudentDep,
    session_manager: SessionManagerDep,
) -> dict:
    """Book an individual or group session with a coach.

    The session starts ``pending`` and carries the coach's current price.

    Raises:
        NotFoundError: If the mentor is not a coach.
        ValidationError: If a group session has no capacity.
    """
    session = session_manager.create_session(
        current_user,
        mentor_id=req.mentor_id,
        session_type=req.type,
        session_date=req.date,
        session_time=req.time,
        duration=req.duration,
        max_participants=req.max_participants,
        location=req.location,
        notes=req.notes,
    )
    return spread(session)


@router.get("/groups", summary="List open group sessions")
def list_group_sessions(
    current_user: CurrentUserDep,
    session_manager: SessionManagerDep,
) -> dict:
    return envelope(sessions=session_manager.list_open_group_sessions())


@router.get("/{session_id}", summary="Get a session")
def get_session(
    session_id: str,
    current_user: CurrentUserDep,
    session_manager: SessionManagerDep,
) -> dict:
    return spread(session_manager.get_session(session_id))


@router.get("/{session_id}/participants", summary="List session participants")
def list_participants(
    session_id: str,
    current_user: CurrentUserDep,
    session_manager: SessionManagerDep,
) -> dict:
    return envelope(participants=session_manager.list_participants(session_id, current_user))


@router.post("/{session_id}/join", summary="Join a group session")
def join_session(
    session_id: str,
    current_user: StudentDep,
    session_manager: SessionManagerDep,
) -> dict:
    """Join a confirmed group session with free capacity.

    Raises:
        NotFoundError: If the session does not exist.
        ConflictError: If the session is not a joinable group session, is
            full, or the student already joined.
    """
    session = session_manager.join_session(session_id, current_user)
    return spread(session, message="Successfully joined session")


@router.post("/{session_id}/confirm", summary="Confirm a session")
def confirm_session(
    session_id: str,
    current_user: CoachDep,
    session_manager: SessionManagerDep,
) -> dict:
    session = session_manager.confirm_session(session_id, current_user)
    return spread(session, message="Session confirmed")


@router.post("/{session_id}/cancel", summary="Cancel a session")
def cancel_session(
    session_id: str,
    current_user: CurrentUserDep,
    session_manager: SessionManagerDep,
) -> dict:
    """Cancel a pending or confirmed session. Coach or booking student only."""
    session = session_manager.cancel_session(session_id, current_user)
    return spread(session, message="Session cancelled successfully")


@router.post("/{session_id}/complete", summary="Complete a session")
def complete_session(
    session_id: str,
    current_user: CoachDep,
    session_manager: SessionManagerDep,
) -> dict:
    session = session_manager.complete_session(session_id, current_user)
    return spread(session, message="Session completed")
