"""Authentication routes.

This module handles HTTP endpoints for registration, sign-in, token rotation
and logout, and provides the bearer-token dependencies used by every other
router.
"""

import logging
from typing import Annotated, Callable, Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.responses import envelope, spread
from core.dependencies import AuthManagerDep, UserManagerDep
from core.exceptions import AuthenticationError
from core.policy import authorize
from core.security import decode_access_token
from schemas.auth import (
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    SocialLoginRequest,
)
from schemas.enums import UserRole
from schemas.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# Missing headers are reported through AuthenticationError, not HTTPBearer's 403
security = HTTPBearer(auto_error=False)


def get_current_user(
    user_manager: UserManagerDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> User:
    """Resolve the bearer access token to the current user.

    Args:
        user_manager: Injected UserManager instance.
        credentials: HTTP Bearer token credentials, if sent.

    Returns:
        Current User object.

    Raises:
        AuthenticationError: If the token is missing, invalid, expired, or
            its user no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")

    payload = decode_access_token(credentials.credentials)
    user = user_manager.get_user_by_id(payload["sub"])
    if user is None:
        logger.warning("Access token for unknown user %s", payload["sub"])
        raise AuthenticationError("Invalid or expired token")
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: UserRole) -> Callable[..., User]:
    """Build a dependency that admits only users holding one of ``roles``."""

    def dependency(current_user: CurrentUserDep) -> User:
        return authorize(current_user, *roles)

    return dependency


StudentDep = Annotated[User, Depends(require_roles(UserRole.STUDENT))]
CoachDep = Annotated[User, Depends(require_roles(UserRole.COACH))]


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register")
def register(req: RegisterRequest, auth_manager: AuthManagerDep) -> dict:
    """Register a new user and sign them in.

    Registration requirements:
    - Student: open.
    - Coach: requires ``coachToken`` when COACH_REGISTRATION_TOKEN is set.

    Args:
        req: Registration request with name, email, password and role.
        auth_manager: Injected AuthManager instance.

    Returns:
        Envelope with token, refreshToken and user.
    """
    result = auth_manager.register(
        email=req.email,
        password=req.password,
        name=req.name,
        role=req.role,
        coach_token=req.coach_token,
    )
    return spread(result)


@router.post("/login", summary="Sign in with email and password")
def login(req: LoginRequest, auth_manager: AuthManagerDep) -> dict:
    return spread(auth_manager.login(req.email, req.password))


@router.post("/social", summary="Sign in with a social provider")
def social_login(req: SocialLoginRequest, auth_manager: AuthManagerDep) -> dict:
    """Sign in with Google, Facebook or Apple.

    The first sign-in creates a student account.
    """
    return spread(auth_manager.social_login(req.provider, req.token, req.user_info))


@router.post("/refresh", summary="Rotate a refresh token")
def refresh(req: RefreshRequest, auth_manager: AuthManagerDep) -> dict:
    """Exchange a refresh token for a new token pair.

    The presented refresh token is consumed and cannot be used again.
    """
    return spread(auth_manager.refresh(req.refresh_token))


@router.post("/logout", summary="Sign out")
def logout(
    current_user: CurrentUserDep,
    auth_manager: AuthManagerDep,
    req: Optional[LogoutRequest] = None,
) -> dict:
    """Revoke the given refresh token, or all of them with ``allDevices``.

    Always succeeds; clearing tokens on the client is what ends the session.
    """
    req = req or LogoutRequest()
    auth_manager.logout(current_user, req.refresh_token, all_devices=req.all_devices)
    return envelope(message="Logged out successfully")


@router.get("/me", summary="Get the current user")
def me(current_user: CurrentUserDep) -> dict:
    return envelope(user=current_user.public())
