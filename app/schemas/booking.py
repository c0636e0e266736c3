from typing import Annotated, Optional, List
from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from datetime import datetime

from app.models.booking import BookingStatus
from app.services.seat_layout import seat_label
from app.utils.timeslots import as_utc


def _seat_to_str(value):
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return seat_label(value) or str(value)
    return value


def _seat_ids_to_str(v):
    # Seat labels come from the hall grid and may be numbers
    if isinstance(v, list):
        return [_seat_to_str(s) for s in v]
    return v


# Booking: Create (POST /bookings)
class BookingCreate(BaseModel):
    screening_id: str
    user_id: Optional[str] = None  # defaults to the authenticated user
    seat_ids: Optional[Annotated[List[str], Field(max_length=50)]] = None
    seats_number: Optional[int] = Field(None, ge=1)

    @field_validator("seat_ids", mode="before")
    @classmethod
    def stringify_seat_ids(cls, v):
        return _seat_ids_to_str(v)


# Booking: Partial update (PATCH /bookings/{id})
class BookingUpdate(BaseModel):
    status: Optional[BookingStatus] = None
    seats_number: Optional[int] = Field(None, ge=1)
    booking_date: Optional[datetime] = None


# Seat release (POST /bookings/{id}/release-seats)
class SeatRelease(BaseModel):
    seat_ids: Annotated[List[str], Field(min_length=1)]

    @field_validator("seat_ids", mode="before")
    @classmethod
    def stringify_seat_ids(cls, v):
        return _seat_ids_to_str(v)


# Booking: Full response
class Booking(BaseModel):
    booking_id: str
    user_id: str
    screening_id: str
    seats_number: int
    status: BookingStatus
    booking_date: Optional[datetime] = None
    total_price: Decimal
    seat_ids: List[str] = []

    @field_validator("booking_date")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v else v

    class Config:
        from_attributes = True
