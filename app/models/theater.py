from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from app.db.session import Base

class MovieTheater(Base):
    __tablename__ = "movie_theaters"

    theater_id = Column(String(36), primary_key=True)  # slug-like, e.g. "paris-01"
    name = Column(String(255), nullable=False)
    city = Column(String(100), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    halls = relationship("MovieHall", back_populates="theater", cascade="all, delete-orphan")
