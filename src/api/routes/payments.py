"""Payment routes."""

from fastapi import APIRouter, status

from api.responses import envelope
from api.routes.auth import CurrentUserDep
from core.dependencies import PaymentManagerDep
from schemas.payment import CreatePaymentRequest

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.get("", summary="List my payments")
def list_payments(current_user: CurrentUserDep, payment_manager: PaymentManagerDep) -> dict:
    return envelope(payments=payment_manager.list_payments(current_user))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Pay for a session")
def create_payment(
    req: CreatePaymentRequest,
    current_user: CurrentUserDep,
    payment_manager: PaymentManagerDep,
) -> dict:
    """Record a payment for a session the caller booked or joined.

    Raises:
        NotFoundError: If the session does not exist.
        AuthorizationError: If the caller is not on the session.
        ValidationError: If the currency is not supported.
    """
    payment = payment_manager.create_payment(
        current_user, req.session_id, req.amount, currency=req.currency
    )
    return envelope(payment=payment)


@router.get("/{payment_id}", summary="Get a payment")
def get_payment(
    payment_id: str,
    current_user: CurrentUserDep,
    payment_manager: PaymentManagerDep,
) -> dict:
    return envelope(payment=payment_manager.get_payment(payment_id, current_user))
