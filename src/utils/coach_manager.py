"""Coach-facing read models: dashboard statistics and student roster."""

import logging
from datetime import date
from typing import List, Optional, Set

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from config import RECENT_SESSIONS_LIMIT
from models.coaching_session import CoachingSessionModel
from models.session_participant import SessionParticipantModel
from models.user import UserModel
from models.video import VideoFeedbackModel, VideoModel
from schemas.dashboard import CoachDashboard, DashboardSession
from schemas.enums import SessionStatus, SessionType
from schemas.user import MentorInfo, UserPublic
from utils.converters import model_to_brief, model_to_user
from utils.user_manager import UserManager

logger = logging.getLogger(__name__)


class CoachManager:
    """Aggregates a coach's sessions, students and videos."""

    def __init__(self, db: Session):
        self.db = db

    def _student_ids(self, coach_id: str) -> Set[str]:
        """Booking students and group participants across the coach's sessions."""
        booked = (
            self.db.query(CoachingSessionModel.student_id)
            .filter(
                CoachingSessionModel.mentor_id == coach_id,
                CoachingSessionModel.student_id.isnot(None),
            )
            .distinct()
            .all()
        )
        joined = (
            self.db.query(SessionParticipantModel.student_id)
            .join(
                CoachingSessionModel,
                CoachingSessionModel.session_id == SessionParticipantModel.session_id,
            )
            .filter(CoachingSessionModel.mentor_id == coach_id)
            .distinct()
            .all()
        )
        return {row[0] for row in booked} | {row[0] for row in joined}

    def get_dashboard(self, coach_id: str) -> CoachDashboard:
        """Compute the coach dashboard from current persisted state.

        Args:
            coach_id: User id of the coach.

        Returns:
            CoachDashboard with distinct students, total sessions, videos
            awaiting feedback, upcoming confirmed sessions and the most recent
            sessions.
        """
        total_sessions = (
            self.db.query(func.count(CoachingSessionModel.session_id))
            .filter(CoachingSessionModel.mentor_id == coach_id)
            .scalar()
        )

        pending_videos = (
            self.db.query(func.count(VideoModel.video_id))
            .select_from(VideoModel)
            .join(
                CoachingSessionModel,
                CoachingSessionModel.session_id == VideoModel.session_id,
            )
            .outerjoin(VideoFeedbackModel, VideoFeedbackModel.video_id == VideoModel.video_id)
            .filter(
                CoachingSessionModel.mentor_id == coach_id,
                VideoFeedbackModel.feedback_id.is_(None),
            )
            .scalar()
        )

        upcoming_sessions = (
            self.db.query(func.count(CoachingSessionModel.session_id))
            .filter(
                CoachingSessionModel.mentor_id == coach_id,
                CoachingSessionModel.status == SessionStatus.CONFIRMED.value,
                CoachingSessionModel.date >= date.today().isoformat(),
            )
            .scalar()
        )

        recent = (
            self.db.query(CoachingSessionModel)
            .options(joinedload(CoachingSessionModel.student))
            .filter(CoachingSessionModel.mentor_id == coach_id)
            .order_by(CoachingSessionModel.date.desc(), CoachingSessionModel.time.desc())
            .limit(RECENT_SESSIONS_LIMIT)
            .all()
        )

        total_students = len(self._student_ids(coach_id))
        logger.debug(
            "Dashboard for coach %s: %d students, %d sessions", coach_id, total_students, total_sessions
        )
        return CoachDashboard(
            total_students=total_students,
            total_sessions=total_sessions or 0,
            pending_videos=pending_videos or 0,
            upcoming_sessions=upcoming_sessions or 0,
            recent_sessions=[
                DashboardSession(
                    id=m.session_id,
                    type=SessionType(m.type),
                    date=m.date,
                    time=m.time,
                    status=SessionStatus(m.status),
                    student=model_to_brief(m.student),
                )
                for m in recent
            ],
        )

    def list_students(self, coach_id: str, search: Optional[str] = None) -> List[UserPublic]:
        """List the students who booked or joined the coach's sessions.

        Args:
            coach_id: User id of the coach.
            search: Optional substring matched against name and email.

        Returns:
            List of UserPublic ordered by name.
        """
        student_ids = self._student_ids(coach_id)
        if not student_ids:
            return []

        query = self.db.query(UserModel).filter(UserModel.user_id.in_(student_ids))
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(UserModel.name.ilike(pattern), UserModel.email.ilike(pattern))
            )
        models = query.order_by(UserModel.name.asc()).all()
        return [model_to_user(m).public() for m in models]

    def update_profile(
        self,
        coach_id: str,
        name: Optional[str] = None,
        bio: Optional[str] = None,
        specialties: Optional[List[str]] = None,
        price: Optional[float] = None,
        phone: Optional[str] = None,
    ) -> MentorInfo:
        """Partially update the coach's directory listing.

        Sessions already booked keep the price they were booked at.
        """
        fields = {
            "name": name,
            "bio": bio,
            "specialties": list(specialties) if specialties is not None else None,
            "price": price,
            "phone": phone,
        }
        users = UserManager(self.db)
        users.update_profile(coach_id, **{k: v for k, v in fields.items() if v is not None})
        return users.get_mentor(coach_id)
