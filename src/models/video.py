from sqlalchemy import Column, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from .base import Base


class VideoModel(Base):
    __tablename__ = "videos"

    video_id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    session_id = Column(String, ForeignKey("sessions.session_id"), index=True, nullable=True)
    url = Column(String, nullable=False)
    filename = Column(String, nullable=False)
    size = Column(Integer, nullable=True)  # bytes
    duration = Column(Float, nullable=True)  # seconds
    created_at = Column(String, nullable=False)

    session = relationship("CoachingSessionModel")
    feedback = relationship(
        "VideoFeedbackModel",
        back_populates="video",
        uselist=False,
        cascade="all, delete-orphan",
    )


class VideoFeedbackModel(Base):
    __tablename__ = "video_feedback"

    feedback_id = Column(String, primary_key=True, index=True)
    # One feedback record per video
    video_id = Column(
        String, ForeignKey("videos.video_id", ondelete="CASCADE"), unique=True, nullable=False
    )
    coach_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    rating = Column(Integer, nullable=True)
    comments = Column(Text, nullable=True)
    improvements = Column(JSON, default=list)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    video = relationship("VideoModel", back_populates="feedback")
