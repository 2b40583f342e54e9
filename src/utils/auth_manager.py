"""Authentication flows: register, login, social login, refresh and logout.

Every successful flow ends the same way: a fresh access/refresh pair is
issued and the refresh token is stored server-side.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from config import COACH_REGISTRATION_TOKEN, SOCIAL_PROVIDERS
from core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from core.security import decode_refresh_token, verify_password
from schemas.auth import AuthResult, SocialUserInfo, TokenPair
from schemas.enums import UserRole
from schemas.user import User
from utils.token_manager import TokenManager
from utils.user_manager import EXTERNAL_ID_COLUMNS, UserManager

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"


class AuthManager:
    """Coordinates UserManager and TokenManager for the auth endpoints."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserManager(db)
        self.tokens = TokenManager(db)

    def _result(self, user: User) -> AuthResult:
        pair = self.tokens.issue_tokens(user)
        return AuthResult(
            token=pair.token, refresh_token=pair.refresh_token, user=user.public()
        )

    def register(
        self,
        email: str,
        password: str,
        name: str,
        role: UserRole = UserRole.STUDENT,
        coach_token: Optional[str] = None,
    ) -> AuthResult:
        """Register a password account and sign it in.

        Registration requirements:
        - Student: open.
        - Coach: requires ``coach_token`` to match COACH_REGISTRATION_TOKEN
          when that setting is configured.

        Raises:
            AuthorizationError: If coach registration is not permitted.
            ConflictError: If the email is already registered.
        """
        if role == UserRole.COACH and COACH_REGISTRATION_TOKEN:
            if coach_token != COACH_REGISTRATION_TOKEN:
                logger.warning("Rejected coach registration with a bad token")
                raise AuthorizationError("Invalid coach registration token")

        user = self.users.create_user(email=email, name=name, role=role, password=password)
        return self._result(user)

    def login(self, email: str, password: str) -> AuthResult:
        """Sign in with email and password.

        The error never reveals whether the email or the password was wrong.

        Raises:
            AuthenticationError: On any credential failure.
        """
        user = self.users.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("User %s logged in", user.user_id)
        return self._result(user)

    def social_login(
        self, provider: str, token: str, user_info: Optional[SocialUserInfo]
    ) -> AuthResult:
        """Sign in through an external identity provider.

        The provider token is trusted as issued by the mobile client SDK;
        the account is matched on email or on the provider's account id.
        New accounts are students.

        Raises:
            ValidationError: If the provider is not supported.
            AuthenticationError: If the claims carry no email.
        """
        if provider not in SOCIAL_PROVIDERS or provider not in EXTERNAL_ID_COLUMNS:
            raise ValidationError(
                "Validation failed", {"provider": ["Invalid provider"]}
            )
        if user_info is None or not user_info.email:
            raise AuthenticationError("Email is required for social login")

        user = self.users.find_for_social_login(user_info.email, provider, user_info.id)
        if user is None:
            user = self.users.create_user(
                email=user_info.email,
                name=user_info.name or "User",
                role=UserRole.STUDENT,
                avatar=user_info.picture,
                external_ids={provider: user_info.id} if user_info.id else None,
            )
        elif user_info.id:
            user = self.users.link_external_id(user.user_id, provider, user_info.id)

        logger.info("User %s logged in with %s", user.user_id, provider)
        return self._result(user)

    def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate a refresh token.

        The presented token is consumed; a second call with the same token
        fails.

        Raises:
            AuthenticationError: If the token is invalid, expired, unknown or
                already used, or its user no longer exists.
        """
        decode_refresh_token(refresh_token)

        record = self.tokens.consume(refresh_token)
        if record is None:
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        user = self.users.get_user_by_id(record.user_id)
        if user is None:
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        logger.info("Rotated refresh token for user %s", user.user_id)
        return self.tokens.issue_tokens(user)

    def logout(
        self, user: User, refresh_token: Optional[str] = None, all_devices: bool = False
    ) -> None:
        """Revoke the user's refresh tokens.

        Never fails on an unknown token; a token owned by someone else is
        left alone.
        """
        if all_devices:
            self.tokens.revoke_all_for_user(user.user_id)
        elif refresh_token:
            self.tokens.revoke(refresh_token, user.user_id)
        logger.info("User %s logged out", user.user_id)
