"""Coaching session schema definitions."""

import datetime as dt
from typing import Optional

from pydantic import Field

from config import MIN_GROUP_PARTICIPANTS, MIN_SESSION_DURATION
from schemas.base import CamelModel
from schemas.enums import SessionStatus, SessionType


class CoachingSession(CamelModel):
    """A session with the coach's and booking student's display fields resolved."""

    id: str
    mentor_id: str
    mentor_name: Optional[str] = None
    mentor_avatar: Optional[str] = None
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    student_avatar: Optional[str] = None
    type: SessionType
    date: str
    time: str
    duration: int
    status: SessionStatus
    max_participants: Optional[int] = None
    current_participants: int = 0
    price: float
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: str
    updated_at: str


class CreateSessionRequest(CamelModel):
    mentor_id: str = Field(min_length=1, description="User id of the coach.")
    type: SessionType
    date: dt.date
    time: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="HH:MM, 24h.")
    duration: Optional[int] = Field(default=None, ge=MIN_SESSION_DURATION)
    max_participants: Optional[int] = Field(default=None, ge=MIN_GROUP_PARTICIPANTS)
    location: Optional[str] = None
    notes: Optional[str] = None


class Participant(CamelModel):
    student_id: str
    name: str
    avatar: Optional[str] = None
    joined_at: str
