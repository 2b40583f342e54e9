"""
Closed enumerations shared by models, schemas and managers.
"""

from enum import Enum


class UserRole(str, Enum):
    STUDENT = "student"
    COACH = "coach"


class SessionType(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"


class SessionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.CANCELLED)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
