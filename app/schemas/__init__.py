from app.schemas.common import ApiResponse, ErrorResponse, SeatsUnavailableError
from app.schemas.booking import (
    Booking, BookingCreate, BookingUpdate, SeatRelease,
)
from app.schemas.screening import (
    Screening, ScreeningCreate, ScreeningUpdate,
    MovieStats, MovieStatsDay, MovieStatsBooking,
)
