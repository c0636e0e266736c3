from sqlalchemy import Column, String, ForeignKey, JSON
from sqlalchemy.orm import relationship
from app.db.session import Base

class MovieHall(Base):
    __tablename__ = "movie_halls"

    theater_id = Column(String(36), ForeignKey("movie_theaters.theater_id", ondelete="CASCADE"), primary_key=True)
    hall_id = Column(String(16), primary_key=True)
    # Ragged 2D grid: seat labels (str or positive int), 0 / "" mark aisles
    seats_layout = Column(JSON, nullable=False)

    theater = relationship("MovieTheater", back_populates="halls")
