"""Refresh token database model.

Refresh tokens are stored server-side so they can be rotated and revoked.
"""

from sqlalchemy import Column, ForeignKey, Integer, String

from .base import Base


class RefreshTokenModel(Base):
    """Refresh token database model."""

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(
        String, ForeignKey("users.user_id", ondelete="CASCADE"), index=True, nullable=False
    )
    expires_at = Column(String, nullable=False)  # ISO format string
    created_at = Column(String, nullable=False)  # ISO format string
