"""Password hashing and JWT issuance/verification.

Access and refresh tokens are signed with different secrets and carry a
``type`` claim, so neither class of token is accepted in place of the other.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

import bcrypt
import pytz
from jose import JWTError, jwt

from config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    BCRYPT_ROUNDS,
    JWT_ALGORITHM,
    JWT_REFRESH_SECRET_KEY,
    JWT_SECRET_KEY,
    REFRESH_TOKEN_EXPIRE_DAYS,
)
from core.exceptions import AuthenticationError
from schemas.user import User

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > _BCRYPT_MAX_BYTES:
        password_bytes = password_bytes[:_BCRYPT_MAX_BYTES]
    return password_bytes


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password.

    Returns:
        Hashed password (bcrypt hash string).
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against a bcrypt hash.

    Args:
        plain_password: Plain text password to verify.
        hashed_password: Bcrypt hash string, or None for accounts without one.

    Returns:
        True if password matches, False otherwise.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            _password_bytes(plain_password), hashed_password.encode("utf-8")
        )
    except ValueError as e:
        logger.error("Password verification error: %s", e)
        return False


def _claims(user: User, token_type: str) -> dict:
    return {
        "sub": user.user_id,
        "email": user.email,
        "role": user.role.value,
        "type": token_type,
    }


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived JWT access token for ``user``."""
    to_encode = _claims(user, ACCESS_TOKEN_TYPE)
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode["exp"] = datetime.now(pytz.utc) + expires_delta
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_refresh_token(
    user: User, expires_delta: Optional[timedelta] = None
) -> Tuple[str, datetime]:
    """Create a long-lived JWT refresh token for ``user``.

    Returns:
        Tuple of (encoded token, expiry datetime in UTC).
    """
    to_encode = _claims(user, REFRESH_TOKEN_TYPE)
    if expires_delta is None:
        expires_delta = timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    expires_at = datetime.now(pytz.utc) + expires_delta
    to_encode["exp"] = expires_at
    # Two tokens issued in the same second must still differ
    to_encode["jti"] = secrets.token_hex(16)
    token = jwt.encode(to_encode, JWT_REFRESH_SECRET_KEY, algorithm=JWT_ALGORITHM)
    return token, expires_at


def _decode(token: str, secret: str, token_type: str, message: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise AuthenticationError(message)
    if payload.get("type") != token_type or not payload.get("sub"):
        raise AuthenticationError(message)
    return payload


def decode_access_token(token: str) -> dict:
    """Verify an access token and return its payload.

    Raises:
        AuthenticationError: If the token is malformed, expired, signed with
            the wrong secret or is not an access token.
    """
    return _decode(token, JWT_SECRET_KEY, ACCESS_TOKEN_TYPE, "Invalid or expired token")


def decode_refresh_token(token: str) -> dict:
    """Verify a refresh token signature and return its payload.

    Raises:
        AuthenticationError: If the token is not a valid refresh token.
    """
    return _decode(
        token,
        JWT_REFRESH_SECRET_KEY,
        REFRESH_TOKEN_TYPE,
        "Invalid or expired refresh token",
    )
