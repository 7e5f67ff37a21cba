from cinema.models.hall import Hall
from cinema.models.movie import Movie
from cinema.models.screening import Screening
from cinema.models.ticket import Ticket, TicketStatus
from cinema.models.payment import PaymentRecord, Refund
