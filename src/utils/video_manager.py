"""Training videos and coach feedback.

A video belongs to its uploader and optionally to a coaching session. Each
video has at most one feedback record, written by the coach of that session.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from config import ALLOWED_VIDEO_EXTENSIONS, MAX_VIDEO_SIZE, UPLOAD_DIR
from core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from models.coaching_session import CoachingSessionModel
from models.session_participant import SessionParticipantModel
from models.video import VideoFeedbackModel, VideoModel
from schemas.enums import UserRole
from schemas.user import User
from schemas.video import Video, VideoFeedback
from utils.converters import model_to_feedback, model_to_video

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(pytz.utc).isoformat()


class VideoManager:
    """Manages video records and their feedback using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize VideoManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _get_model(self, video_id: str) -> VideoModel:
        model = (
            self.db.query(VideoModel)
            .options(joinedload(VideoModel.session), joinedload(VideoModel.feedback))
            .filter(VideoModel.video_id == video_id)
            .first()
        )
        if not model:
            raise NotFoundError("Video")
        return model

    def _ensure_session_member(self, session_id: str, user_id: str) -> None:
        session = (
            self.db.query(CoachingSessionModel)
            .filter(CoachingSessionModel.session_id == session_id)
            .first()
        )
        if not session:
            raise NotFoundError("Session")
        if session.student_id == user_id:
            return
        joined = (
            self.db.query(SessionParticipantModel.id)
            .filter(
                SessionParticipantModel.session_id == session_id,
                SessionParticipantModel.student_id == user_id,
            )
            .first()
        )
        if joined is None:
            raise AuthorizationError("You can only upload videos for your own sessions")

    def create_video(
        self,
        user: User,
        url: str,
        filename: str,
        size: Optional[int] = None,
        duration: Optional[float] = None,
        session_id: Optional[str] = None,
    ) -> Video:
        """Register an uploaded video.

        Args:
            user: The uploader.
            url: Where the file is stored.
            filename: Original file name.
            size: Size in bytes.
            duration: Length in seconds.
            session_id: Optional session the video belongs to.

        Returns:
            The stored video, without feedback.

        Raises:
            NotFoundError: If ``session_id`` names no session.
            AuthorizationError: If the uploader neither booked nor joined it.
        """
        if session_id:
            self._ensure_session_member(session_id, user.user_id)

        model = VideoModel(
            video_id=str(uuid.uuid4()),
            user_id=user.user_id,
            session_id=session_id or None,
            url=url,
            filename=filename,
            size=size,
            duration=duration,
            created_at=_now(),
        )
        self.db.add(model)
        self.db.commit()

        logger.info("Video %s registered by %s", model.video_id, user.user_id)
        return model_to_video(self._get_model(model.video_id))

    def store_upload(
        self,
        user: User,
        filename: Optional[str],
        content: bytes,
        base_url: str,
        session_id: Optional[str] = None,
    ) -> Video:
        """Write an uploaded video file to UPLOAD_DIR and register it.

        Args:
            user: The uploader.
            filename: Client-side file name, used for its extension.
            content: The file bytes.
            base_url: Scheme and host the file will be served from.
            session_id: Optional session the video belongs to.

        Returns:
            The stored video, with its ``/uploads`` url.

        Raises:
            ValidationError: If the file is empty or not a video file.
            PayloadTooLargeError: If the file exceeds MAX_VIDEO_SIZE.
            NotFoundError: If ``session_id`` names no session.
            AuthorizationError: If the uploader neither booked nor joined it.
        """
        if not content:
            raise ValidationError("No video file uploaded", {"video": ["No video file uploaded"]})

        extension = Path(filename or "").suffix.lower()
        if extension not in ALLOWED_VIDEO_EXTENSIONS:
            raise ValidationError(
                "Invalid file type",
                {"video": [f"Allowed types: {', '.join(ALLOWED_VIDEO_EXTENSIONS)}"]},
            )
        if len(content) > MAX_VIDEO_SIZE:
            raise PayloadTooLargeError(
                f"Video exceeds maximum allowed size of {MAX_VIDEO_SIZE // (1024 * 1024)}MB"
            )

        if session_id:
            self._ensure_session_member(session_id, user.user_id)

        stored_name = f"{uuid.uuid4().hex}{extension}"
        UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
        with open(UPLOAD_DIR / stored_name, "wb") as f:
            f.write(content)
        logger.info("Stored upload %s (%d bytes) for %s", stored_name, len(content), user.user_id)

        return self.create_video(
            user,
            url=f"{base_url.rstrip('/')}/uploads/{stored_name}",
            filename=stored_name,
            size=len(content),
            session_id=session_id,
        )

    def list_videos(self, user: User, session_id: Optional[str] = None) -> List[Video]:
        """List videos visible to a user, newest first.

        Students see their own uploads. Coaches see the videos attached to
        the sessions they run.
        """
        query = self.db.query(VideoModel).options(joinedload(VideoModel.feedback))
        if user.role == UserRole.COACH:
            query = query.join(
                CoachingSessionModel,
                CoachingSessionModel.session_id == VideoModel.session_id,
            ).filter(CoachingSessionModel.mentor_id == user.user_id)
        else:
            query = query.filter(VideoModel.user_id == user.user_id)
        if session_id:
            query = query.filter(VideoModel.session_id == session_id)

        models = query.order_by(VideoModel.created_at.desc()).all()
        return [model_to_video(m) for m in models]

    def get_feedback(self, video_id: str, user: User) -> Optional[VideoFeedback]:
        """Read the feedback of a video, None when there is none yet.

        Raises:
            NotFoundError: If the video does not exist.
            AuthorizationError: If the user is neither the uploader nor the
                coach of the video's session.
        """
        video = self._get_model(video_id)
        coach_id = video.session.mentor_id if video.session else None
        if user.user_id not in (video.user_id, coach_id):
            raise AuthorizationError("You do not have access to this video")
        return model_to_feedback(video.feedback) if video.feedback else None

    def upsert_feedback(
        self,
        video_id: str,
        coach: User,
        rating: Optional[int] = None,
        comments: Optional[str] = None,
        improvements: Optional[List[str]] = None,
    ) -> VideoFeedback:
        """Create or update the single feedback record of a video.

        On update only the supplied (non-None) fields change, so repeating a
        call with the same input leaves the record as it was.

        Raises:
            NotFoundError: If the video does not exist.
            AuthorizationError: If the video is not on a session run by ``coach``.
        """
        video = self._get_model(video_id)
        if video.session is None or video.session.mentor_id != coach.user_id:
            raise AuthorizationError("You can only review videos from your own sessions")

        now = _now()
        feedback = video.feedback
        if feedback is None:
            feedback = VideoFeedbackModel(
                feedback_id=str(uuid.uuid4()),
                video_id=video_id,
                coach_id=coach.user_id,
                rating=rating,
                comments=comments,
                improvements=list(improvements or []),
                created_at=now,
                updated_at=now,
            )
            self.db.add(feedback)
            try:
                self.db.commit()
            except IntegrityError:
                # Another request created it first; apply this call as an update
                self.db.rollback()
                return self.upsert_feedback(video_id, coach, rating, comments, improvements)
            logger.info("Feedback created for video %s by %s", video_id, coach.user_id)
        else:
            updates = {
                "rating": rating,
                "comments": comments,
                "improvements": list(improvements) if improvements is not None else None,
            }
            changed = False
            for key, value in updates.items():
                if value is not None and getattr(feedback, key) != value:
                    setattr(feedback, key, value)
                    changed = True
            if changed:
                feedback.coach_id = coach.user_id
                feedback.updated_at = now
                self.db.commit()
                logger.info("Feedback updated for video %s by %s", video_id, coach.user_id)

        self.db.refresh(feedback)
        return model_to_feedback(feedback)
