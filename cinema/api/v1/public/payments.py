from fastapi import APIRouter, Depends

from cinema.api.deps import get_reservation_service
from cinema.services.reservations import ReservationService, SeatAssignment
from cinema.schemas.common import ReservationLostError
from cinema.schemas.ticket import (
    HoldReleaseResponse,
    PaymentCancelRequest,
    PaymentConfirmRequest,
    PaymentConfirmResponse,
    Ticket as TicketSchema,
)

router = APIRouter(prefix="/payments", tags=["Payments"])


# ---------------------------------------------------------------------------
# Callbacks from the payment provider. Deliveries may repeat.
# ---------------------------------------------------------------------------


@router.post(
    "/confirm",
    response_model=PaymentConfirmResponse,
    responses={409: {"model": ReservationLostError}},
)
def confirm_payment(
    body: PaymentConfirmRequest,
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Payment succeeded: the order's held seats become sold tickets.
    - A repeated delivery for the same order is answered with the original
      tickets and `duplicate: true`.
    - 409 RESERVATION_LOST when the holds expired before payment arrived;
      the payment then needs a manual refund.
    """
    result = service.confirm(
        body.order_token,
        [SeatAssignment(row=s.row, seat=s.seat, price=s.price) for s in body.seats],
    )
    return PaymentConfirmResponse(
        order_token=body.order_token,
        amount=result.payment.amount,
        duplicate=result.duplicate,
        tickets=[TicketSchema.model_validate(t) for t in result.tickets],
    )


@router.post("/cancel", response_model=HoldReleaseResponse)
def cancel_payment(
    body: PaymentCancelRequest,
    service: ReservationService = Depends(get_reservation_service),
):
    """Payment was cancelled: release the order's seat holds."""
    return HoldReleaseResponse(released=service.cancel_order(body.order_token))
