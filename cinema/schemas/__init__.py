from cinema.schemas.common import ErrorResponse, SeatsUnavailableError, ReservationLostError, SweepResult
from cinema.schemas.hall import Hall, HallCreate, HallSummary
from cinema.schemas.movie import Movie, MovieCreate, MovieSummary
from cinema.schemas.screening import (
    Screening, ScreeningCreate, ScreeningDetail, OccupiedSlot,
    ScheduleConflictResponse, HallScheduleResponse, ScreeningCancelResponse,
)
from cinema.schemas.ticket import (
    SeatMapResponse, HoldRequest, HoldResponse, HoldReleaseResponse,
    PaymentConfirmRequest, PaymentCancelRequest, PaymentConfirmResponse,
    Ticket, TicketCancelRequest, BuyerTicket, BuyerTicketsResponse,
)
