"""User profile routes.

The router has no prefix of its own: app.py mounts it at ``/api/user``, the
path the mobile client calls, and at ``/api/users``.
"""

from fastapi import APIRouter

from api.responses import envelope
from api.routes.auth import CurrentUserDep
from core.dependencies import UserManagerDep
from core.policy import ensure_owner_or_privileged
from schemas.enums import UserRole
from schemas.user import UpdateProfileRequest

router = APIRouter(tags=["Users"])


@router.get("/profile", summary="Get own profile")
def get_profile(current_user: CurrentUserDep) -> dict:
    return envelope(user=current_user.public())


@router.put("/profile", summary="Update own profile")
def update_profile(
    req: UpdateProfileRequest,
    current_user: CurrentUserDep,
    user_manager: UserManagerDep,
) -> dict:
    """Partially update the caller's profile.

    Args:
        req: Fields to change; omitted fields are kept, null clears.
        current_user: Current authenticated user.
        user_manager: Injected UserManager instance.

    Returns:
        Envelope with the updated user.
    """
    user = user_manager.update_profile(
        current_user.user_id, **req.model_dump(exclude_unset=True)
    )
    return envelope(user=user.public())


@router.get("/{user_id}", summary="Get a user's profile")
def get_user(
    user_id: str,
    current_user: CurrentUserDep,
    user_manager: UserManagerDep,
) -> dict:
    """Read a user's profile. Allowed for the user themself and for coaches.

    Raises:
        NotFoundError: If the user does not exist.
        AuthorizationError: If the caller is another student.
    """
    user = user_manager.require_user(user_id)
    ensure_owner_or_privileged(current_user, user.user_id, privileged_roles=(UserRole.COACH,))
    return envelope(user=user.public())
