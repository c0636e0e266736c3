import uuid
from sqlalchemy import Column, String, DateTime, DECIMAL, ForeignKey, ForeignKeyConstraint, func
from sqlalchemy.orm import relationship
from app.db.session import Base

SCREENING_QUALITIES = ("2D", "3D", "IMAX", "4DX", "Dolby")

class Screening(Base):
    __tablename__ = "screenings"
    __table_args__ = (
        ForeignKeyConstraint(
            ["theater_id", "hall_id"],
            ["movie_halls.theater_id", "movie_halls.hall_id"],
        ),
    )

    screening_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    movie_id = Column(String(36), ForeignKey("movies.movie_id"), nullable=False, index=True)
    theater_id = Column(String(36), nullable=False, index=True)
    hall_id = Column(String(16), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    price = Column(DECIMAL(10, 2), nullable=False)
    quality = Column(String(10), nullable=False)  # one of SCREENING_QUALITIES
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    movie = relationship("Movie", back_populates="screenings")
    hall = relationship("MovieHall")
    bookings = relationship("Booking", back_populates="screening")
