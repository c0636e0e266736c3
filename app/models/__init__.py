from app.models.movie import Movie
from app.models.theater import MovieTheater
from app.models.hall import MovieHall
from app.models.screening import Screening, SCREENING_QUALITIES
from app.models.booking import Booking, BookedSeat, BookingStatus
from app.models.movie_stats import MovieStatsEntry
