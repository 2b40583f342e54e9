"""ORM models.

Importing this package registers every table with ``Base.metadata``.
"""

from .base import Base
from .user import UserModel
from .refresh_token import RefreshTokenModel
from .coaching_session import CoachingSessionModel
from .session_participant import SessionParticipantModel
from .payment import PaymentModel
from .video import VideoModel, VideoFeedbackModel

__all__ = [
    "Base",
    "UserModel",
    "RefreshTokenModel",
    "CoachingSessionModel",
    "SessionParticipantModel",
    "PaymentModel",
    "VideoModel",
    "VideoFeedbackModel",
]
