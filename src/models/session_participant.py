from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base


class SessionParticipantModel(Base):
    __tablename__ = "session_participants"
    __table_args__ = (
        UniqueConstraint(
            "session_id",
            "student_id",
            name="uq_session_participants_session_student",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        String, ForeignKey("sessions.session_id", ondelete="CASCADE"), index=True, nullable=False
    )
    student_id = Column(
        String, ForeignKey("users.user_id", ondelete="CASCADE"), index=True, nullable=False
    )
    joined_at = Column(String, nullable=False)

    session = relationship("CoachingSessionModel", back_populates="participants")
    student = relationship("UserModel")
