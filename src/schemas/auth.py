"""Authentication request and response schemas."""

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from schemas.base import CamelModel
from schemas.enums import UserRole
from schemas.user import UserPublic


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6, description="At least 6 characters.")
    role: UserRole = UserRole.STUDENT
    coach_token: Optional[str] = Field(
        default=None,
        description="Required to register as a coach when the server sets COACH_REGISTRATION_TOKEN.",
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class SocialUserInfo(CamelModel):
    id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None


class SocialLoginRequest(CamelModel):
    provider: str
    token: str = Field(min_length=1)
    user_info: Optional[SocialUserInfo] = None


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(CamelModel):
    refresh_token: Optional[str] = None
    all_devices: bool = Field(
        default=False, description="Revoke every refresh token of the user."
    )


class TokenPair(CamelModel):
    token: str
    refresh_token: str


class AuthResult(TokenPair):
    user: UserPublic
