"""Conversions between ORM models and pydantic value objects.

Managers return value objects only, so callers never touch lazy-loaded ORM
state after the request session closes.
"""

from typing import Optional

from models.coaching_session import CoachingSessionModel
from models.payment import PaymentModel
from models.session_participant import SessionParticipantModel
from models.user import UserModel
from models.video import VideoFeedbackModel, VideoModel
from schemas.coaching_session import CoachingSession, Participant
from schemas.enums import PaymentStatus, SessionStatus, SessionType, UserRole
from schemas.payment import Payment
from schemas.user import MentorInfo, User, UserBrief
from schemas.video import Video, VideoFeedback


def user_to_model(user: User) -> UserModel:
    return UserModel(
        user_id=user.user_id,
        email=user.email,
        password_hash=user.password_hash,
        name=user.name,
        role=user.role.value,
        avatar=user.avatar,
        phone=user.phone,
        bio=user.bio,
        specialties=list(user.specialties),
        price=user.price,
        rating=user.rating,
        google_id=user.google_id,
        facebook_id=user.facebook_id,
        apple_id=user.apple_id,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def model_to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        email=model.email,
        password_hash=model.password_hash,
        name=model.name,
        role=UserRole(model.role),
        avatar=model.avatar,
        phone=model.phone,
        bio=model.bio,
        specialties=model.specialties or [],
        price=model.price,
        rating=model.rating or 0.0,
        google_id=model.google_id,
        facebook_id=model.facebook_id,
        apple_id=model.apple_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_mentor(model: UserModel, total_sessions: int = 0) -> MentorInfo:
    return MentorInfo(
        id=model.user_id,
        name=model.name,
        email=model.email,
        avatar=model.avatar,
        bio=model.bio,
        specialties=model.specialties or [],
        rating=model.rating or 0.0,
        total_sessions=total_sessions,
        price=model.price,
        phone=model.phone,
        created_at=model.created_at,
    )


def model_to_brief(model: Optional[UserModel]) -> Optional[UserBrief]:
    if model is None:
        return None
    return UserBrief(id=model.user_id, name=model.name, avatar=model.avatar)


def model_to_session(model: CoachingSessionModel) -> CoachingSession:
    """Convert a session row; ``coach`` and ``student`` should be eager-loaded."""
    coach = model.coach
    student = model.student
    return CoachingSession(
        id=model.session_id,
        mentor_id=model.mentor_id,
        mentor_name=coach.name if coach else None,
        mentor_avatar=coach.avatar if coach else None,
        student_id=model.student_id,
        student_name=student.name if student else None,
        student_avatar=student.avatar if student else None,
        type=SessionType(model.type),
        date=model.date,
        time=model.time,
        duration=model.duration,
        status=SessionStatus(model.status),
        max_participants=model.max_participants,
        current_participants=model.current_participants or 0,
        price=model.price,
        location=model.location,
        notes=model.notes,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_participant(
    membership: SessionParticipantModel, user: UserModel
) -> Participant:
    return Participant(
        student_id=user.user_id,
        name=user.name,
        avatar=user.avatar,
        joined_at=membership.joined_at,
    )


def model_to_payment(model: PaymentModel) -> Payment:
    return Payment(
        id=model.payment_id,
        session_id=model.session_id,
        user_id=model.user_id,
        amount=model.amount,
        currency=model.currency,
        status=PaymentStatus(model.status),
        created_at=model.created_at,
    )


def model_to_feedback(model: VideoFeedbackModel) -> VideoFeedback:
    return VideoFeedback(
        id=model.feedback_id,
        video_id=model.video_id,
        coach_id=model.coach_id,
        rating=model.rating,
        comments=model.comments,
        improvements=model.improvements or [],
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_video(model: VideoModel) -> Video:
    return Video(
        id=model.video_id,
        user_id=model.user_id,
        session_id=model.session_id,
        url=model.url,
        filename=model.filename,
        size=model.size,
        duration=model.duration,
        created_at=model.created_at,
        feedback=model_to_feedback(model.feedback) if model.feedback else None,
    )
