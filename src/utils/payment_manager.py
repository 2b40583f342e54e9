"""Payment records linked to coaching sessions."""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy.orm import Session

from config import DEFAULT_CURRENCY, SUPPORTED_CURRENCIES
from core.exceptions import AuthorizationError, NotFoundError, ValidationError
from core.policy import ensure_owner_or_privileged
from models.coaching_session import CoachingSessionModel
from models.payment import PaymentModel
from models.session_participant import SessionParticipantModel
from schemas.enums import PaymentStatus
from schemas.payment import Payment
from schemas.user import User
from utils.converters import model_to_payment

logger = logging.getLogger(__name__)


class PaymentManager:
    """Records and reads payments. There is no gateway; payments are final."""

    def __init__(self, db: Session):
        self.db = db

    def _is_payer_for(self, session: CoachingSessionModel, user_id: str) -> bool:
        if session.student_id == user_id:
            return True
        return (
            self.db.query(SessionParticipantModel.id)
            .filter(
                SessionParticipantModel.session_id == session.session_id,
                SessionParticipantModel.student_id == user_id,
            )
            .first()
            is not None
        )

    def create_payment(
        self,
        user: User,
        session_id: str,
        amount: float,
        currency: Optional[str] = None,
    ) -> Payment:
        """Record a payment for a session.

        Args:
            user: The paying user.
            session_id: Session being paid for.
            amount: Non-negative amount.
            currency: ISO currency code; defaults to DEFAULT_CURRENCY.

        Returns:
            The stored payment, status ``completed``.

        Raises:
            NotFoundError: If the session does not exist.
            AuthorizationError: If the user neither booked nor joined the session.
            ValidationError: If the currency is not supported.
        """
        session = (
            self.db.query(CoachingSessionModel)
            .filter(CoachingSessionModel.session_id == session_id)
            .first()
        )
        if not session:
            raise NotFoundError("Session")
        if not self._is_payer_for(session, user.user_id):
            raise AuthorizationError("You can only pay for your own sessions")

        currency = (currency or DEFAULT_CURRENCY).upper()
        if currency not in SUPPORTED_CURRENCIES:
            raise ValidationError(
                "Validation failed", {"currency": ["Unsupported currency"]}
            )

        model = PaymentModel(
            payment_id=str(uuid.uuid4()),
            session_id=session_id,
            user_id=user.user_id,
            amount=amount,
            currency=currency,
            status=PaymentStatus.COMPLETED.value,
            created_at=datetime.now(pytz.utc).isoformat(),
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)

        logger.info(
            "Payment %s of %.2f %s recorded for session %s",
            model.payment_id,
            amount,
            currency,
            session_id,
        )
        return model_to_payment(model)

    def get_payment(self, payment_id: str, user: User) -> Payment:
        """Read a payment. Only the payer may read it.

        Raises:
            NotFoundError: If the payment does not exist.
            AuthorizationError: If the user is not the payer.
        """
        model = (
            self.db.query(PaymentModel)
            .filter(PaymentModel.payment_id == payment_id)
            .first()
        )
        if not model:
            raise NotFoundError("Payment")
        ensure_owner_or_privileged(user, model.user_id, message="Access denied")
        return model_to_payment(model)

    def list_payments(self, user: User) -> List[Payment]:
        models = (
            self.db.query(PaymentModel)
            .filter(PaymentModel.user_id == user.user_id)
            .order_by(PaymentModel.created_at.desc())
            .all()
        )
        return [model_to_payment(m) for m in models]
