"""Dependency injection module for FastAPI.

Every manager is built per request around the request-scoped DB session.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import auth_manager
from utils import coach_manager
from utils import payment_manager
from utils import session_manager
from utils import token_manager
from utils import user_manager
from utils import video_manager


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db)


def get_token_manager(db: Session = Depends(get_db)) -> token_manager.TokenManager:
    """Get TokenManager instance with request-scoped DB session."""
    return token_manager.TokenManager(db)


def get_auth_manager(db: Session = Depends(get_db)) -> auth_manager.AuthManager:
    """Get AuthManager instance with request-scoped DB session."""
    return auth_manager.AuthManager(db)


def get_session_manager(db: Session = Depends(get_db)) -> session_manager.SessionManager:
    """Get SessionManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        SessionManager instance.
    """
    return session_manager.SessionManager(db)


def get_coach_manager(db: Session = Depends(get_db)) -> coach_manager.CoachManager:
    """Get CoachManager instance with request-scoped DB session."""
    return coach_manager.CoachManager(db)


def get_payment_manager(db: Session = Depends(get_db)) -> payment_manager.PaymentManager:
    """Get PaymentManager instance with request-scoped DB session."""
    return payment_manager.PaymentManager(db)


def get_video_manager(db: Session = Depends(get_db)) -> video_manager.VideoManager:
    """Get VideoManager instance with request-scoped DB session."""
    return video_manager.VideoManager(db)


# Type aliases for dependency injection
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
TokenManagerDep = Annotated[
    token_manager.TokenManager, Depends(get_token_manager)
]
AuthManagerDep = Annotated[
    auth_manager.AuthManager, Depends(get_auth_manager)
]
SessionManagerDep = Annotated[
    session_manager.SessionManager, Depends(get_session_manager)
]
CoachManagerDep = Annotated[
    coach_manager.CoachManager, Depends(get_coach_manager)
]
PaymentManagerDep = Annotated[
    payment_manager.PaymentManager, Depends(get_payment_manager)
]
VideoManagerDep = Annotated[
    video_manager.VideoManager, Depends(get_video_manager)
]
