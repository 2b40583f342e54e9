"""Payment database model."""

from sqlalchemy import Column, Float, ForeignKey, String

from .base import Base


class PaymentModel(Base):
    """Payment database model. Always tied to an existing session."""

    __tablename__ = "payments"

    payment_id = Column(String, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("sessions.session_id"), index=True, nullable=False)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="USD")
    status = Column(String, nullable=False)  # pending/completed/failed/refunded
    created_at = Column(String, nullable=False)
