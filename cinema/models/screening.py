import uuid
from sqlalchemy import Column, Boolean, DateTime, ForeignKey, Index, Uuid, func, text
from sqlalchemy.orm import relationship
from cinema.db.session import Base

class Screening(Base):
    __tablename__ = "screenings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    hall_id = Column(Uuid(as_uuid=True), ForeignKey("halls.id"), nullable=False, index=True)
    movie_id = Column(Uuid(as_uuid=True), ForeignKey("movies.id"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False, index=True)  # local wall-clock time
    is_cancelled = Column(Boolean, default=False, nullable=False)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    hall = relationship("Hall", back_populates="screenings")
    movie = relationship("Movie", back_populates="screenings")
    tickets = relationship("Ticket", back_populates="screening")

    __table_args__ = (
        # Two schedulers racing for the same start in the same hall: one insert fails
        Index(
            "uq_screenings_active_hall_start",
            "hall_id",
            "start_time",
            unique=True,
            postgresql_where=text("is_cancelled = false"),
            sqlite_where=text("is_cancelled = 0"),
        ),
    )
