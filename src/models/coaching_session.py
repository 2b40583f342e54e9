"""Coaching session (booking) database model."""

from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import Base


class CoachingSessionModel(Base):
    """One coaching engagement between a coach and one or more students."""

    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint(
            "max_participants IS NULL OR current_participants <= max_participants",
            name="ck_sessions_capacity",
        ),
    )

    session_id = Column(String, primary_key=True, index=True)
    mentor_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    student_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=True)
    type = Column(String, nullable=False)  # 'individual' or 'group'
    date = Column(String, nullable=False)  # YYYY-MM-DD
    time = Column(String, nullable=False)  # HH:MM
    duration = Column(Integer, nullable=False)  # minutes
    status = Column(String, nullable=False, index=True)
    price = Column(Float, nullable=False)  # snapshot of the coach's price at booking
    max_participants = Column(Integer, nullable=True)
    current_participants = Column(Integer, nullable=False, default=0)
    location = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    coach = relationship("UserModel", foreign_keys=[mentor_id])
    student = relationship("UserModel", foreign_keys=[student_id])
    participants = relationship(
        "SessionParticipantModel",
        back_populates="session",
        cascade="all, delete-orphan",
    )
