import uuid
from sqlalchemy import Column, String, Boolean, Integer, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from cinema.db.session import Base

class Hall(Base):
    __tablename__ = "halls"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    rows_count = Column(Integer, nullable=False)
    seats_per_row = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    screenings = relationship("Screening", back_populates="hall")

    __table_args__ = (
        CheckConstraint("rows_count > 0 AND seats_per_row > 0", name="ck_halls_geometry_positive"),
    )

    @property
    def capacity(self) -> int:
        return self.rows_count * self.seats_per_row
