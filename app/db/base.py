from app.db.session import Base
from app.models.movie import Movie
from app.models.theater import MovieTheater
from app.models.hall import MovieHall
from app.models.screening import Screening
from app.models.booking import Booking, BookedSeat
from app.models.movie_stats import MovieStatsEntry
