from typing import List, Optional

from schemas.base import CamelModel
from schemas.enums import SessionStatus, SessionType
from schemas.user import UserBrief


class DashboardSession(CamelModel):
    id: str
    type: SessionType
    date: str
    time: str
    status: SessionStatus
    student: Optional[UserBrief] = None


class CoachDashboard(CamelModel):
    total_students: int
    total_sessions: int
    pending_videos: int
    upcoming_sessions: int
    recent_sessions: List[DashboardSession]
