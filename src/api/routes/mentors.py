"""Mentor directory routes. Public, no token required."""

from typing import Optional

from fastapi import APIRouter

from api.responses import envelope, spread
from core.dependencies import UserManagerDep

router = APIRouter(prefix="/api/mentors", tags=["Mentors"])


@router.get("", summary="List coaches")
def list_mentors(
    user_manager: UserManagerDep,
    search: Optional[str] = None,
    specialty: Optional[str] = None,
) -> dict:
    """List coaches ordered by rating.

    Args:
        user_manager: Injected UserManager instance.
        search: Substring matched against name, email and bio.
        specialty: Only coaches listing this specialty.
    """
    return envelope(mentors=user_manager.list_mentors(search=search, specialty=specialty))


@router.get("/{mentor_id}", summary="Get a coach")
def get_mentor(mentor_id: str, user_manager: UserManagerDep) -> dict:
    return spread(user_manager.get_mentor(mentor_id))
