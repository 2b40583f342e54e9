"""Coach area routes. Coach role only."""

from typing import Optional

from fastapi import APIRouter

from api.responses import envelope
from api.routes.auth import CoachDep
from core.dependencies import CoachManagerDep
from schemas.user import UpdateCoachProfileRequest

router = APIRouter(prefix="/api/coach", tags=["Coach"])


@router.get("/dashboard", summary="Coach dashboard")
def get_dashboard(current_user: CoachDep, coach_manager: CoachManagerDep) -> dict:
    """Return the coach's student, session and video counters and recent sessions."""
    return envelope(dashboard=coach_manager.get_dashboard(current_user.user_id))


@router.get("/users", summary="List my students")
def list_users(
    current_user: CoachDep,
    coach_manager: CoachManagerDep,
    search: Optional[str] = None,
) -> dict:
    return envelope(users=coach_manager.list_students(current_user.user_id, search=search))


@router.put("/profile", summary="Update my coach listing")
def update_profile(
    req: UpdateCoachProfileRequest,
    current_user: CoachDep,
    coach_manager: CoachManagerDep,
) -> dict:
    """Partially update name, bio, specialties, price and phone.

    Sessions already booked keep their price.
    """
    mentor = coach_manager.update_profile(
        current_user.user_id,
        name=req.name,
        bio=req.bio,
        specialties=req.specialties,
        price=req.price,
        phone=req.phone,
    )
    return envelope(user=mentor)
