"""User schema definitions.

``User`` is the internal value object (it carries the password hash and must
never be returned by the API). ``UserPublic`` and ``MentorInfo`` are the
shapes the API exposes.
"""

import uuid
from datetime import datetime
from typing import List, Optional

import pytz
from pydantic import BaseModel, Field, field_validator

from schemas.base import CamelModel
from schemas.enums import UserRole


def _now() -> str:
    return datetime.now(pytz.utc).isoformat()


class User(BaseModel):
    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    email: str = Field(description="Lower-case email address, unique.")
    password_hash: Optional[str] = Field(
        default=None,
        description="Bcrypt hash. None for accounts created through social login.",
    )
    name: str
    role: UserRole = UserRole.STUDENT
    avatar: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None

    specialties: List[str] = Field(default_factory=list)
    price: Optional[float] = None
    rating: float = 0.0

    google_id: Optional[str] = None
    facebook_id: Optional[str] = None
    apple_id: Optional[str] = None

    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)

    def public(self) -> "UserPublic":
        return UserPublic(
            id=self.user_id,
            name=self.name,
            email=self.email,
            role=self.role,
            avatar=self.avatar,
            phone=self.phone,
            bio=self.bio,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class UserPublic(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole
    avatar: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class UserBrief(CamelModel):
    """Name and avatar, embedded in session and dashboard views."""

    id: str
    name: str
    avatar: Optional[str] = None


class MentorInfo(CamelModel):
    """A coach as listed in the mentor directory."""

    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    rating: float = 0.0
    total_sessions: int = 0
    price: Optional[float] = None
    phone: Optional[str] = None
    created_at: Optional[str] = None


class UpdateProfileRequest(CamelModel):
    """Fields left out are kept; an explicit null clears phone, bio or avatar."""

    name: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> str:
        # Only runs when the field is sent, so null is rejected here
        if v is None or not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("avatar")
    @classmethod
    def avatar_is_url(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Avatar must be a valid URL")
        return v


class UpdateCoachProfileRequest(CamelModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    specialties: Optional[List[str]] = None
    price: Optional[float] = Field(default=None, ge=0)
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Name cannot be empty")
        return v
