import uuid
from sqlalchemy import Column, String, Integer, DECIMAL, DateTime, ForeignKey, Text, Uuid, func
from sqlalchemy.orm import relationship
from cinema.db.session import Base

class PaymentRecord(Base):
    __tablename__ = "payment_records"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # One record per order; duplicate confirmations collide here
    order_token = Column(String(64), unique=True, nullable=False, index=True)
    amount = Column(DECIMAL(10, 2), nullable=False)
    ticket_count = Column(Integer, nullable=False)
    status = Column(String(20), default="succeeded", nullable=False)
    created_at = Column(DateTime, server_default=func.now())

class Refund(Base):
    __tablename__ = "refunds"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ticket_id = Column(Uuid(as_uuid=True), ForeignKey("tickets.id"), nullable=False, index=True)
    order_token = Column(String(64), nullable=True)
    amount = Column(DECIMAL(10, 2), nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    ticket = relationship("Ticket", back_populates="refunds")
