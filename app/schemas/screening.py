from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from datetime import datetime

from app.utils.timeslots import as_utc


# Screening: Create (POST /screenings)
class ScreeningCreate(BaseModel):
    movie_id: str
    theater_id: str
    hall_id: str
    start_time: datetime
    price: Decimal = Field(..., ge=0)
    quality: str


# Screening: Update (PATCH /screenings/{id}); omitted fields keep their value
class ScreeningUpdate(BaseModel):
    movie_id: Optional[str] = None
    theater_id: Optional[str] = None
    hall_id: Optional[str] = None
    start_time: Optional[datetime] = None
    price: Optional[Decimal] = Field(None, ge=0)
    quality: Optional[str] = None


class Screening(BaseModel):
    screening_id: str
    movie_id: str
    theater_id: str
    hall_id: str
    start_time: datetime
    price: Decimal
    quality: str

    @field_validator("start_time")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    class Config:
        from_attributes = True


# Movie stats (GET /movies/{id}/stats)
class MovieStatsBooking(BaseModel):
    booking_id: str
    user_id: str
    seats_number: int
    booked_at: datetime

    @field_validator("booked_at")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    class Config:
        from_attributes = True


class MovieStatsDay(BaseModel):
    date: str
    seats: int


class MovieStats(BaseModel):
    movie_id: str
    total_bookings: int
    total_seats: int
    daily: List[MovieStatsDay]
    bookings: List[MovieStatsBooking]
