import uuid
import enum
from sqlalchemy import Column, String, DateTime, DECIMAL, Integer, ForeignKey, Enum as SAEnum, func
from sqlalchemy.orm import relationship
from app.db.session import Base

# Longest seat label that fits a reservation row
SEAT_ID_MAX_LENGTH = 32

class BookingStatus(str, enum.Enum):
    pending = "pending"
    used = "used"
    canceled = "canceled"

class Booking(Base):
    __tablename__ = "bookings"

    booking_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    screening_id = Column(String(36), ForeignKey("screenings.screening_id", ondelete="CASCADE"), nullable=False, index=True)
    seats_number = Column(Integer, nullable=False)
    status = Column(SAEnum(BookingStatus, name="booking_status", native_enum=False), nullable=False, default=BookingStatus.pending, index=True)
    booking_date = Column(DateTime(timezone=True), server_default=func.now())
    total_price = Column(DECIMAL(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    screening = relationship("Screening", back_populates="bookings")
    seats = relationship("BookedSeat", back_populates="booking", cascade="all, delete-orphan")

class BookedSeat(Base):
    """One reserved seat. The primary key is the (screening, seat) uniqueness guarantee."""
    __tablename__ = "seat_bookings"

    screening_id = Column(String(36), ForeignKey("screenings.screening_id", ondelete="CASCADE"), primary_key=True)
    seat_id = Column(String(SEAT_ID_MAX_LENGTH), primary_key=True)
    booking_id = Column(String(36), ForeignKey("bookings.booking_id", ondelete="CASCADE"), nullable=False, index=True)

    booking = relationship("Booking", back_populates="seats")
