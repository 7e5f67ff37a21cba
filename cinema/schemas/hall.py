from typing import Optional
from pydantic import BaseModel, Field, UUID4


# Hall: base fields
class HallBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    rows_count: int = Field(gt=0)
    seats_per_row: int = Field(gt=0)


class HallCreate(HallBase):
    pass


class Hall(HallBase):
    id: UUID4
    is_active: bool = True
    capacity: int

    class Config:
        from_attributes = True


class HallSummary(BaseModel):
    id: UUID4
    name: str

    class Config:
        from_attributes = True
