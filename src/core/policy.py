"""Authorization policy.

Pure functions mapping (user role, resource ownership) to allow/deny. They
raise instead of returning a flag so that callers cannot forget to act on a
denial. Resource checks always run after the resource has been loaded, so a
missing resource reports "not found" rather than "denied".
"""

from typing import Iterable, Optional

from core.exceptions import AuthenticationError, AuthorizationError
from schemas.enums import UserRole
from schemas.user import User


def authorize(user: Optional[User], *allowed_roles: UserRole) -> User:
    """Check that a user is present and holds one of ``allowed_roles``.

    Args:
        user: The acting user, or None when the request is anonymous.
        *allowed_roles: Roles permitted to proceed. No roles means any
            authenticated user.

    Returns:
        The user, for chaining.

    Raises:
        AuthenticationError: If ``user`` is None.
        AuthorizationError: If the user's role is not allowed.
    """
    if user is None:
        raise AuthenticationError("Authentication required")
    if allowed_roles and user.role not in allowed_roles:
        raise AuthorizationError("Insufficient permissions")
    return user


def is_owner_or_privileged(
    user: User, owner_id: Optional[str], privileged_roles: Iterable[UserRole] = ()
) -> bool:
    return user.role in tuple(privileged_roles) or (
        owner_id is not None and user.user_id == owner_id
    )


def ensure_owner_or_privileged(
    user: User,
    owner_id: Optional[str],
    privileged_roles: Iterable[UserRole] = (),
    message: str = "Access denied",
) -> None:
    """Allow the resource owner or any user holding a privileged role.

    Raises:
        AuthorizationError: Otherwise, regardless of the user's role.
    """
    if not is_owner_or_privileged(user, owner_id, privileged_roles):
        raise AuthorizationError(message)
