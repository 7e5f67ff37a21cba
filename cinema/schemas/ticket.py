from typing import Annotated, List, Optional, Union
from pydantic import BaseModel, Field, UUID4
from decimal import Decimal
from datetime import datetime


# --- Seat map ---

class SeatStatus(BaseModel):
    seat: int
    status: str  # available, held, sold


class SeatRow(BaseModel):
    row: int
    seats: List[SeatStatus]


class SeatMapResponse(BaseModel):
    screening_id: UUID4
    start_time: datetime
    hall_name: str
    movie_title: str
    base_price: Decimal
    available: int
    rows: List[SeatRow]


# --- Seat holds ---

class SeatRef(BaseModel):
    row: int = Field(gt=0)
    seat: int = Field(gt=0)


class HoldRequest(BaseModel):
    user_id: Optional[UUID4] = None
    contact: Optional[str] = None
    # "3-7" or {"row": 3, "seat": 7}
    seats: Annotated[List[Union[str, SeatRef]], Field(min_length=1)]


class HeldTicket(BaseModel):
    id: UUID4
    row_number: int
    seat_number: int
    access_token: str

    class Config:
        from_attributes = True


class HoldResponse(BaseModel):
    order_token: str
    screening_id: UUID4
    expires_at: datetime
    ttl_seconds: int
    tickets: List[HeldTicket]


class HoldReleaseResponse(BaseModel):
    released: int


# --- Payment callbacks ---

class SeatAssignmentIn(BaseModel):
    row: int = Field(gt=0)
    seat: int = Field(gt=0)
    price: Optional[Decimal] = None


class PaymentConfirmRequest(BaseModel):
    order_token: str = Field(min_length=1)
    seats: Annotated[List[SeatAssignmentIn], Field(min_length=1)]


class PaymentCancelRequest(BaseModel):
    order_token: str = Field(min_length=1)


class Ticket(BaseModel):
    id: UUID4
    screening_id: UUID4
    row_number: int
    seat_number: int
    status: str
    price: Optional[Decimal] = None
    access_token: str
    sold_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentConfirmResponse(BaseModel):
    order_token: str
    amount: Decimal
    duplicate: bool
    tickets: List[Ticket]


# --- Refunds ---

class TicketCancelRequest(BaseModel):
    user_id: UUID4


# --- Buyer ticket list ---

class BuyerTicket(BaseModel):
    id: UUID4
    screening_id: UUID4
    movie_title: str
    hall_name: str
    start_time: datetime
    row_number: int
    seat_number: int
    status: str
    price: Optional[Decimal] = None
    access_token: str       # shown as QR code at the entrance
    sold_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    is_future: bool
    is_cancellable: bool
    cancellation_deadline: datetime


class BuyerTicketsResponse(BaseModel):
    upcoming: List[BuyerTicket]
    past: List[BuyerTicket]
    refunded: List[BuyerTicket]
