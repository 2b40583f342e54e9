"""User management utilities.

This module provides user storage, lookups by email or external identity,
profile updates and the mentor (coach) directory.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

import pytz
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError
from core.security import hash_password
from models.coaching_session import CoachingSessionModel
from models.user import UserModel
from schemas.enums import UserRole
from schemas.user import MentorInfo, User
from utils.converters import model_to_mentor, model_to_user, user_to_model

logger = logging.getLogger(__name__)

# Provider name -> column holding that provider's account id
EXTERNAL_ID_COLUMNS: Dict[str, str] = {
    "google": "google_id",
    "facebook": "facebook_id",
    "apple": "apple_id",
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def create_user(
        self,
        email: str,
        name: str,
        role: UserRole = UserRole.STUDENT,
        password: Optional[str] = None,
        avatar: Optional[str] = None,
        external_ids: Optional[Dict[str, str]] = None,
    ) -> User:
        """Create a new user.

        Args:
            email: Email address; compared and stored lower-case.
            name: Display name.
            role: User role. Immutable after creation.
            password: Plain text password, or None for a social-only account.
            avatar: Optional avatar URL.
            external_ids: Optional mapping of provider name to provider user id.

        Returns:
            Created User object.

        Raises:
            ConflictError: If a user with this email already exists.
        """
        email = normalize_email(email)
        if self._get_model_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        user = User(
            email=email,
            name=name,
            role=role,
            password_hash=hash_password(password) if password is not None else None,
            avatar=avatar,
        )
        for provider, external_id in (external_ids or {}).items():
            setattr(user, EXTERNAL_ID_COLUMNS[provider], external_id)

        # Two concurrent registrations can both pass the check above; the
        # unique constraint on email catches the loser
        try:
            self.db.add(user_to_model(user))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("User with this email already exists") from e

        logger.info("Created %s user: %s", role.value, user.user_id)
        return user

    def _get_model_by_email(self, email: str) -> Optional[UserModel]:
        return (
            self.db.query(UserModel)
            .filter(UserModel.email == normalize_email(email))
            .first()
        )

    def _get_model(self, user_id: str) -> UserModel:
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if not model:
            raise NotFoundError("User")
        return model

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive).

        Returns:
            User object if found, None otherwise.
        """
        model = self._get_model_by_email(email)
        if model:
            return model_to_user(model)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by user ID.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if model:
            return model_to_user(model)
        return None

    def require_user(self, user_id: str) -> User:
        """Like get_user_by_id, but raises NotFoundError("User") when absent."""
        return model_to_user(self._get_model(user_id))

    def find_for_social_login(
        self, email: str, provider: str, external_id: Optional[str]
    ) -> Optional[User]:
        """Find the account a social sign-in belongs to.

        The provider's account id is matched first, the email second.

        Raises:
            ConflictError: If the email matches an account that is already
                linked to a different account of the same provider.
        """
        column = EXTERNAL_ID_COLUMNS[provider]
        if external_id:
            model = (
                self.db.query(UserModel)
                .filter(getattr(UserModel, column) == external_id)
                .first()
            )
            if model:
                return model_to_user(model)

        model = self._get_model_by_email(email)
        if model is None:
            return None
        linked = getattr(model, column)
        if external_id and linked is not None and linked != external_id:
            logger.warning(
                "Rejected %s sign-in for user %s: another account is linked",
                provider,
                model.user_id,
            )
            raise ConflictError(f"This email is linked to a different {provider} account")
        return model_to_user(model)

    def link_external_id(self, user_id: str, provider: str, external_id: str) -> User:
        """Store the provider account id on a user that does not have one yet.

        An id that is already set is never overwritten.

        Raises:
            ConflictError: If another user already holds this provider id.
        """
        model = self._get_model(user_id)
        column = EXTERNAL_ID_COLUMNS[provider]
        if getattr(model, column) is None:
            setattr(model, column, external_id)
            model.updated_at = datetime.now(pytz.utc).isoformat()
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise ConflictError(
                    f"This {provider} account is linked to another user"
                ) from e
            logger.info("Linked %s account to user %s", provider, user_id)
        return model_to_user(model)

    def update_profile(self, user_id: str, **fields) -> User:
        """Apply a partial update to a user's profile.

        Args:
            user_id: The user to update.
            **fields: Attribute values to write. Only the given attributes
                change; a None value clears the attribute.

        Returns:
            Updated User object.

        Raises:
            NotFoundError: If the user does not exist.
        """
        model = self._get_model(user_id)
        if fields:
            for key, value in fields.items():
                setattr(model, key, value)
            model.updated_at = datetime.now(pytz.utc).isoformat()
            self.db.commit()
            logger.info("Updated profile for user %s: %s", user_id, sorted(fields))
        return model_to_user(model)

    def list_mentors(
        self, search: Optional[str] = None, specialty: Optional[str] = None
    ) -> List[MentorInfo]:
        """List coaches, best rated first.

        Args:
            search: Optional substring matched against name, email and bio.
            specialty: Optional specialty that must be listed by the coach.

        Returns:
            List of MentorInfo objects.
        """
        query = self.db.query(UserModel).filter(UserModel.role == UserRole.COACH.value)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    UserModel.name.ilike(pattern),
                    UserModel.email.ilike(pattern),
                    UserModel.bio.ilike(pattern),
                )
            )
        models = query.order_by(UserModel.rating.desc(), UserModel.name).all()

        if specialty:
            wanted = specialty.strip().lower()
            models = [
                m for m in models
                if any(wanted == s.lower() for s in (m.specialties or []))
            ]

        counts = self._session_counts([m.user_id for m in models])
        return [model_to_mentor(m, counts.get(m.user_id, 0)) for m in models]

    def get_mentor(self, mentor_id: str) -> MentorInfo:
        """Get one coach from the directory.

        Raises:
            NotFoundError: If no coach has this id.
        """
        model = (
            self.db.query(UserModel)
            .filter(
                UserModel.user_id == mentor_id,
                UserModel.role == UserRole.COACH.value,
            )
            .first()
        )
        if not model:
            raise NotFoundError("Mentor")
        counts = self._session_counts([model.user_id])
        return model_to_mentor(model, counts.get(model.user_id, 0))

    def _session_counts(self, mentor_ids: List[str]) -> Dict[str, int]:
        if not mentor_ids:
            return {}
        rows = (
            self.db.query(CoachingSessionModel.mentor_id, func.count())
            .filter(CoachingSessionModel.mentor_id.in_(mentor_ids))
            .group_by(CoachingSessionModel.mentor_id)
            .all()
        )
        return {mentor_id: count for mentor_id, count in rows}
