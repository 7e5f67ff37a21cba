import uuid
from sqlalchemy import Column, String, Integer, DECIMAL, DateTime, ForeignKey, Index, Uuid, func, text
from sqlalchemy.orm import relationship
from cinema.db.session import Base


class TicketStatus:
    HELD = "held"
    SOLD = "sold"
    RELEASED = "released"
    EXPIRED = "expired"
    REFUNDED = "refunded"

    # A seat is taken while a ticket for it is in one of these states
    OCCUPYING = (HELD, SOLD)


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    screening_id = Column(Uuid(as_uuid=True), ForeignKey("screenings.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    contact = Column(String(255), nullable=True)  # e-mail or messenger id for notices
    row_number = Column(Integer, nullable=False)
    seat_number = Column(Integer, nullable=False)
    status = Column(String(20), default=TicketStatus.HELD, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=True, index=True)  # only meaningful while held
    price = Column(DECIMAL(10, 2), nullable=True)  # set when sold
    access_token = Column(String(64), unique=True, nullable=False)
    order_token = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    sold_at = Column(DateTime, nullable=True)
    refunded_at = Column(DateTime, nullable=True)

    screening = relationship("Screening", back_populates="tickets")
    refunds = relationship("Refund", back_populates="ticket")

    __table_args__ = (
        # Backstop for concurrent holds: one held-or-sold ticket per seat and screening
        Index(
            "uq_tickets_occupying_seat",
            "screening_id",
            "row_number",
            "seat_number",
            unique=True,
            postgresql_where=text("status IN ('held', 'sold')"),
            sqlite_where=text("status IN ('held', 'sold')"),
        ),
    )

    @property
    def seat_label(self) -> str:
        return f"{self.row_number}-{self.seat_number}"
