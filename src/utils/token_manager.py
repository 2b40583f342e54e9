"""Refresh token storage.

Refresh tokens are single-use: ``consume`` deletes the stored record with a
conditional delete, so when two requests present the same token only one of
them gets the record back.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytz
from sqlalchemy.orm import Session

from core.security import create_access_token, create_refresh_token
from models.refresh_token import RefreshTokenModel
from schemas.auth import TokenPair
from schemas.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshRecord:
    token: str
    user_id: str
    expires_at: str


class TokenManager:
    """Issues token pairs and manages the server-side refresh token records."""

    def __init__(self, db: Session):
        """Initialize TokenManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def issue_tokens(self, user: User) -> TokenPair:
        """Issue an access/refresh pair and persist the refresh token.

        Earlier refresh tokens of the same user stay valid.
        """
        access_token = create_access_token(user)
        refresh_token, expires_at = create_refresh_token(user)
        self.db.add(
            RefreshTokenModel(
                token=refresh_token,
                user_id=user.user_id,
                expires_at=expires_at.isoformat(),
                created_at=datetime.now(pytz.utc).isoformat(),
            )
        )
        self.db.commit()
        return TokenPair(token=access_token, refresh_token=refresh_token)

    def consume(self, token: str) -> Optional[RefreshRecord]:
        """Atomically delete a stored refresh token and return its record.

        Returns:
            The deleted record, or None if the token is unknown, was consumed
            by someone else first, or has expired.
        """
        record = (
            self.db.query(RefreshTokenModel)
            .filter(RefreshTokenModel.token == token)
            .first()
        )
        if record is None:
            return None

        user_id, expires_at = record.user_id, record.expires_at
        deleted = (
            self.db.query(RefreshTokenModel)
            .filter(RefreshTokenModel.id == record.id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted != 1:
            logger.warning("Refresh token for user %s was already consumed", user_id)
            return None

        if datetime.fromisoformat(expires_at) < datetime.now(pytz.utc):
            logger.info("Discarded expired refresh token for user %s", user_id)
            return None

        return RefreshRecord(token=token, user_id=user_id, expires_at=expires_at)

    def revoke(self, token: str, user_id: str) -> int:
        """Delete the record matching ``token`` if it belongs to ``user_id``.

        Returns:
            Number of records removed (0 if the token was already invalid or
            belongs to another user).
        """
        deleted = (
            self.db.query(RefreshTokenModel)
            .filter(
                RefreshTokenModel.token == token,
                RefreshTokenModel.user_id == user_id,
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def revoke_all_for_user(self, user_id: str) -> int:
        deleted = (
            self.db.query(RefreshTokenModel)
            .filter(RefreshTokenModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info("Revoked %d refresh tokens for user %s", deleted, user_id)
        return deleted
