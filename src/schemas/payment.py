from typing import Optional

from pydantic import Field

from schemas.base import CamelModel
from schemas.enums import PaymentStatus


class CreatePaymentRequest(CamelModel):
    session_id: str = Field(min_length=1)
    amount: float = Field(ge=0, description="Amount must be a positive number.")
    currency: Optional[str] = None


class Payment(CamelModel):
    id: str
    session_id: str
    user_id: str
    amount: float
    currency: str
    status: PaymentStatus
    created_at: str
