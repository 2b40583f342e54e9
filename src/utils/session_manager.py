"""Coaching session lifecycle management.

This module handles booking, confirmation, group joins, cancellation and
completion of coaching sessions.

State machine::

    pending --confirm--> confirmed --complete--> completed
       |                     |
       +------cancel---------+-----> cancelled

``completed`` and ``cancelled`` are terminal. Group capacity is enforced by a
single conditional UPDATE so concurrent joins cannot overflow it.
"""

import logging
import uuid
from datetime import date, datetime
from typing import List, Optional

import pytz
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession, joinedload

from config import (
    DEFAULT_SESSION_DURATION,
    DEFAULT_SESSION_PRICE,
    MIN_GROUP_PARTICIPANTS,
)
from core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from models.coaching_session import CoachingSessionModel
from models.session_participant import SessionParticipantModel
from models.user import UserModel
from schemas.coaching_session import CoachingSession, Participant
from schemas.enums import SessionStatus, SessionType, UserRole
from schemas.user import User
from utils.converters import model_to_participant, model_to_session

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(pytz.utc).isoformat()


class SessionManager:
    """Manages coaching session operations using SQLAlchemy."""

    def __init__(self, db: DBSession):
        """Initialize SessionManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _query(self):
        return self.db.query(CoachingSessionModel).options(
            joinedload(CoachingSessionModel.coach),
            joinedload(CoachingSessionModel.student),
        )

    def _get_model(self, session_id: str) -> CoachingSessionModel:
        """Helper to get ORM model."""
        model = (
            self._query()
            .filter(CoachingSessionModel.session_id == session_id)
            .first()
        )
        if not model:
            raise NotFoundError("Session")
        return model

    def _is_participant(self, session_id: str, student_id: str) -> bool:
        return (
            self.db.query(SessionParticipantModel.id)
            .filter(
                SessionParticipantModel.session_id == session_id,
                SessionParticipantModel.student_id == student_id,
            )
            .first()
            is not None
        )

    def is_related(self, session: CoachingSession, user_id: str) -> bool:
        """Whether the user is the coach, the booking student or a participant."""
        if user_id in (session.mentor_id, session.student_id):
            return True
        return self._is_participant(session.id, user_id)

    def get_session(self, session_id: str) -> CoachingSession:
        """Read a session.

        Raises:
            NotFoundError: If the session does not exist.
        """
        return model_to_session(self._get_model(session_id))

    def list_sessions(
        self,
        user: User,
        session_type: Optional[SessionType] = None,
        status: Optional[SessionStatus] = None,
    ) -> List[CoachingSession]:
        """List the sessions relevant to a user.

        Coaches see the sessions they run. Students see the sessions they
        booked or joined.

        Returns:
            List of CoachingSession objects ordered by date and time.
        """
        query = self._query()
        if user.role == UserRole.COACH:
            query = query.filter(CoachingSessionModel.mentor_id == user.user_id)
        else:
            joined = select(SessionParticipantModel.session_id).where(
                SessionParticipantModel.student_id == user.user_id
            )
            query = query.filter(
                or_(
                    CoachingSessionModel.student_id == user.user_id,
                    CoachingSessionModel.session_id.in_(joined),
                )
            )
        if session_type is not None:
            query = query.filter(CoachingSessionModel.type == session_type.value)
        if status is not None:
            query = query.filter(CoachingSessionModel.status == status.value)

        models = query.order_by(
            CoachingSessionModel.date.asc(), CoachingSessionModel.time.asc()
        ).all()
        return [model_to_session(m) for m in models]

    def list_open_group_sessions(self) -> List[CoachingSession]:
        """List confirmed group sessions that still have free places."""
        models = (
            self._query()
            .filter(
                CoachingSessionModel.type == SessionType.GROUP.value,
                CoachingSessionModel.status == SessionStatus.CONFIRMED.value,
                CoachingSessionModel.current_participants
                < CoachingSessionModel.max_participants,
                CoachingSessionModel.date >= date.today().isoformat(),
            )
            .order_by(CoachingSessionModel.date.asc(), CoachingSessionModel.time.asc())
            .all()
        )
        return [model_to_session(m) for m in models]

    def create_session(
        self,
        student: User,
        mentor_id: str,
        session_type: SessionType,
        session_date: date,
        session_time: str,
        duration: Optional[int] = None,
        max_participants: Optional[int] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> CoachingSession:
        """Book a session with a coach.

        The coach's current price is copied onto the session; later price
        changes do not affect it.

        Args:
            student: The booking student.
            mentor_id: User id of the coach.
            session_type: Individual or group.
            session_date: Day of the session.
            session_time: Start time, HH:MM.
            duration: Length in minutes; defaults to DEFAULT_SESSION_DURATION.
            max_participants: Capacity, required for group sessions.
            location: Optional free text.
            notes: Optional free text.

        Returns:
            The created session, status ``pending``.

        Raises:
            NotFoundError: If ``mentor_id`` is not a coach.
            ValidationError: If a group session has no valid capacity.
        """
        mentor = (
            self.db.query(UserModel)
            .filter(
                UserModel.user_id == mentor_id,
                UserModel.role == UserRole.COACH.value,
            )
            .first()
        )
        if not mentor:
            raise NotFoundError("Mentor")

        if session_type == SessionType.GROUP:
            if max_participants is None or max_participants < MIN_GROUP_PARTICIPANTS:
                raise ValidationError(
                    "Validation failed",
                    {
                        "maxParticipants": [
                            f"Max participants must be at least {MIN_GROUP_PARTICIPANTS}"
                        ]
                    },
                )
        else:
            max_participants = None

        now = _now()
        model = CoachingSessionModel(
            session_id=str(uuid.uuid4()),
            mentor_id=mentor.user_id,
            student_id=student.user_id,
            type=session_type.value,
            date=session_date.isoformat(),
            time=session_time,
            duration=duration or DEFAULT_SESSION_DURATION,
            status=SessionStatus.PENDING.value,
            price=mentor.price if mentor.price is not None else DEFAULT_SESSION_PRICE,
            max_participants=max_participants,
            current_participants=0,
            location=location,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        self.db.add(model)
        self.db.commit()

        logger.info(
            "Created %s session %s for coach %s by student %s",
            session_type.value,
            model.session_id,
            mentor_id,
            student.user_id,
        )
        return self.get_session(model.session_id)

    def confirm_session(self, session_id: str, coach: User) -> CoachingSession:
        """Confirm a pending session. Only the session's coach may do this.

        Raises:
            NotFoundError: If the session does not exist.
            AuthorizationError: If ``coach`` does not run this session.
            ConflictError: If the session is not pending.
        """
        model = self._get_model(session_id)
        if model.mentor_id != coach.user_id:
            raise AuthorizationError("Only the session's coach can confirm it")
        return self._transition(
            model, SessionStatus.PENDING, SessionStatus.CONFIRMED,
            "Only pending sessions can be confirmed",
        )

    def complete_session(self, session_id: str, coach: User) -> CoachingSession:
        """Mark a confirmed session as completed. Only the session's coach may do this.

        Raises:
            NotFoundError: If the session does not exist.
            AuthorizationError: If ``coach`` does not run this session.
            ConflictError: If the session is not confirmed.
        """
        model = self._get_model(session_id)
        if model.mentor_id != coach.user_id:
            raise AuthorizationError("Only the session's coach can complete it")
        return self._transition(
            model, SessionStatus.CONFIRMED, SessionStatus.COMPLETED,
            "Only confirmed sessions can be completed",
        )

    def _transition(
        self,
        model: CoachingSessionModel,
        from_status: SessionStatus,
        to_status: SessionStatus,
        conflict_message: str,
    ) -> CoachingSession:
        # Conditional on the current status so a concurrent transition wins once
        result = self.db.execute(
            update(CoachingSessionModel)
            .where(
                CoachingSessionModel.session_id == model.session_id,
                CoachingSessionModel.status == from_status.value,
            )
            .values(status=to_status.value, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise ConflictError(conflict_message)
        self.db.commit()
        logger.info(
            "Session %s: %s -> %s", model.session_id, from_status.value, to_status.value
        )
        return self.get_session(model.session_id)

    def join_session(self, session_id: str, student: User) -> CoachingSession:
        """Join a confirmed group session.

        Capacity is checked and consumed by one conditional UPDATE; the
        participant row is written in the same transaction.

        Raises:
            NotFoundError: If the session does not exist.
            ConflictError: If the session is not a group session, is not
                confirmed, is full, or the student already joined.
        """
        model = self._get_model(session_id)

        if model.type != SessionType.GROUP.value:
            raise ConflictError("Only group sessions can be joined")
        if model.status != SessionStatus.CONFIRMED.value:
            raise ConflictError("Session is not available for joining")
        if self._is_participant(session_id, student.user_id):
            raise ConflictError("You have already joined this session")

        now = _now()
        result = self.db.execute(
            update(CoachingSessionModel)
            .where(
                CoachingSessionModel.session_id == session_id,
                CoachingSessionModel.type == SessionType.GROUP.value,
                CoachingSessionModel.status == SessionStatus.CONFIRMED.value,
                CoachingSessionModel.current_participants
                < CoachingSessionModel.max_participants,
            )
            .values(
                current_participants=CoachingSessionModel.current_participants + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            logger.info("Join rejected, session %s is full", session_id)
            raise ConflictError("Session is full")

        self.db.add(
            SessionParticipantModel(
                session_id=session_id,
                student_id=student.user_id,
                joined_at=now,
            )
        )
        try:
            self.db.commit()
        except IntegrityError as e:
            # Same student joining twice concurrently; the increment rolls back too
            self.db.rollback()
            raise ConflictError("You have already joined this session") from e

        logger.info("Student %s joined session %s", student.user_id, session_id)
        return self.get_session(session_id)

    def cancel_session(self, session_id: str, user: User) -> CoachingSession:
        """Cancel a session.

        Only the session's coach or its booking student may cancel, and only
        while the session is pending or confirmed.

        Raises:
            NotFoundError: If the session does not exist.
            ConflictError: If the user has no relationship to the session, or
                the session is already completed or cancelled.
        """
        model = self._get_model(session_id)
        if user.user_id not in (model.mentor_id, model.student_id):
            raise ConflictError("You do not have permission to cancel this session")

        current = SessionStatus(model.status)
        if current.is_terminal:
            raise ConflictError(f"Session is already {current.value}")

        result = self.db.execute(
            update(CoachingSessionModel)
            .where(
                CoachingSessionModel.session_id == session_id,
                CoachingSessionModel.status.in_(
                    [SessionStatus.PENDING.value, SessionStatus.CONFIRMED.value]
                ),
            )
            .values(status=SessionStatus.CANCELLED.value, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise ConflictError("Session can no longer be cancelled")
        self.db.commit()

        logger.info("Session %s cancelled by %s", session_id, user.user_id)
        return self.get_session(session_id)

    def list_participants(self, session_id: str, user: User) -> List[Participant]:
        """List the students who joined a session.

        Raises:
            NotFoundError: If the session does not exist.
            AuthorizationError: If the user has no relationship to the session.
        """
        session = self.get_session(session_id)
        if not self.is_related(session, user.user_id):
            raise AuthorizationError("You do not have access to this session")

        rows = (
            self.db.query(SessionParticipantModel, UserModel)
            .join(UserModel, UserModel.user_id == SessionParticipantModel.student_id)
            .filter(SessionParticipantModel.session_id == session_id)
            .order_by(SessionParticipantModel.joined_at.asc())
            .all()
        )
        return [model_to_participant(membership, u) for membership, u in rows]
