from sqlalchemy import Column, String, Integer, DateTime, func
from app.db.session import Base

class MovieStatsEntry(Base):
    """Derived booking counter per movie, written after the booking commits."""
    __tablename__ = "movie_stats"

    booking_id = Column(String(36), primary_key=True)
    movie_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False)
    seats_number = Column(Integer, nullable=False)
    booked_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
