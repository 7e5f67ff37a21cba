from decimal import Decimal
from pydantic import BaseModel, Field, UUID4


class MovieBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    duration_min: int = Field(gt=0)
    price: Decimal = Field(ge=0)


class MovieCreate(MovieBase):
    pass


class Movie(MovieBase):
    id: UUID4
    is_active: bool = True

    class Config:
        from_attributes = True


class MovieSummary(BaseModel):
    id: UUID4
    title: str
    duration_min: int

    class Config:
        from_attributes = True
