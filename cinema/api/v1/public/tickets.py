from uuid import UUID

from fastapi import APIRouter, Depends, Query

from cinema.api.deps import get_reservation_service
from cinema.services.reservations import ReservationService, TicketView
from cinema.schemas.ticket import (
    BuyerTicket,
    BuyerTicketsResponse,
    Ticket as TicketSchema,
    TicketCancelRequest,
)

router = APIRouter(prefix="/tickets", tags=["Tickets"])


def _buyer_ticket(view: TicketView) -> BuyerTicket:
    ticket = view.ticket
    screening = ticket.screening
    return BuyerTicket(
        id=ticket.id,
        screening_id=ticket.screening_id,
        movie_title=screening.movie.title,
        hall_name=screening.hall.name,
        start_time=screening.start_time,
        row_number=ticket.row_number,
        seat_number=ticket.seat_number,
        status=ticket.status,
        price=ticket.price,
        access_token=ticket.access_token,
        sold_at=ticket.sold_at,
        refunded_at=ticket.refunded_at,
        is_future=view.is_future,
        is_cancellable=view.is_cancellable,
        cancellation_deadline=view.cancellation_deadline,
    )


# ---------------------------------------------------------------------------
# Buyer: my tickets
# ---------------------------------------------------------------------------


@router.get("/", response_model=BuyerTicketsResponse)
def list_my_tickets(
    user_id: UUID = Query(..., description="Buyer whose tickets are listed"),
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Paid and refunded tickets of a buyer.
    - `upcoming`: sold tickets for screenings that have not started yet.
    - `past`: sold tickets for screenings that already started.
    - `refunded`: refunded tickets, whatever the screening date.
    """
    tickets = service.buyer_tickets(user_id)
    return BuyerTicketsResponse(
        upcoming=[_buyer_ticket(v) for v in tickets.upcoming],
        past=[_buyer_ticket(v) for v in tickets.past],
        refunded=[_buyer_ticket(v) for v in tickets.refunded],
    )


@router.get("/{ticket_id}", response_model=BuyerTicket)
def get_my_ticket(
    ticket_id: UUID,
    user_id: UUID = Query(..., description="Owner of the ticket"),
    service: ReservationService = Depends(get_reservation_service),
):
    """Ticket details with the access token and whether it can still be cancelled."""
    return _buyer_ticket(service.buyer_ticket(ticket_id, user_id))


@router.post("/{ticket_id}/cancel", response_model=TicketSchema)
def cancel_ticket(
    ticket_id: UUID,
    body: TicketCancelRequest,
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Cancel a paid ticket and free its seat.
    Only allowed up to the refund deadline before the screening; the money
    itself is returned by the payment provider.
    """
    ticket = service.cancel_sale(
        ticket_id,
        user_id=body.user_id,
        enforce_deadline=True,
        reason="Cancelled by customer",
    )
    return TicketSchema.model_validate(ticket)
