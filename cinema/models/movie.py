import uuid
from sqlalchemy import Column, String, Boolean, Integer, DECIMAL, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from cinema.db.session import Base

class Movie(Base):
    __tablename__ = "movies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    duration_min = Column(Integer, nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    screenings = relationship("Screening", back_populates="movie")

    __table_args__ = (
        CheckConstraint("duration_min > 0", name="ck_movies_duration_positive"),
        CheckConstraint("price >= 0", name="ck_movies_price_non_negative"),
    )
