"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from sqlalchemy import Column, Float, JSON, String

from .base import Base


class UserModel(Base):
    """User database model. Students and coaches share one table."""

    __tablename__ = "users"

    user_id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # lower-case
    password_hash = Column(String, nullable=True)  # None for social-only accounts
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, index=True)  # 'student' or 'coach'
    avatar = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    bio = Column(String, nullable=True)

    # Coach listing
    specialties = Column(JSON, default=list)
    price = Column(Float, nullable=True)
    rating = Column(Float, nullable=False, default=0.0)

    # External identities
    google_id = Column(String, unique=True, nullable=True)
    facebook_id = Column(String, unique=True, nullable=True)
    apple_id = Column(String, unique=True, nullable=True)

    created_at = Column(String, nullable=False)  # ISO format string
    updated_at = Column(String, nullable=False)  # ISO format string
