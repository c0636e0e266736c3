from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.core.exceptions import ConflictError
from app.db.session import SessionLocal
from app.models.booking import Booking, BookedSeat, BookingStatus
from app.models.hall import MovieHall
from app.models.movie import Movie
from app.models.screening import Screening
from app.repositories.base import (
    AbstractUnitOfWork,
    BookingRepository,
    HallRepository,
    MovieRepository,
    ReservationRepository,
    ScheduledScreening,
    ScreeningRepository,
)


class SqlMovieRepository(MovieRepository):
    def __init__(self, db: Session):
        self.db = db

    def get(self, movie_id: str) -> Optional[Movie]:
        return db_get(self.db.query(Movie).filter(Movie.movie_id == movie_id))


class SqlHallRepository(HallRepository):
    def __init__(self, db: Session):
        self.db = db

    def get(self, theater_id: str, hall_id: str, lock: bool = False) -> Optional[MovieHall]:
        query = self.db.query(MovieHall).filter(
            MovieHall.theater_id == theater_id,
            MovieHall.hall_id == hall_id,
        )
        return db_get(query, lock)


class SqlScreeningRepository(ScreeningRepository):
    def __init__(self, db: Session):
        self.db = db

    def get(self, screening_id: str, lock: bool = False) -> Optional[Screening]:
        query = self.db.query(Screening).filter(Screening.screening_id == screening_id)
        return db_get(query, lock)

    def hall_schedule(
        self,
        theater_id: str,
        hall_id: str,
        exclude_screening_id: Optional[str] = None,
    ) -> List[ScheduledScreening]:
        filters = [
            Screening.theater_id == theater_id,
            Screening.hall_id == hall_id,
        ]
        if exclude_screening_id:
            filters.append(Screening.screening_id != exclude_screening_id)

        rows = (
            self.db.query(Screening, Movie.title, Movie.duration_minutes)
            .join(Movie, Movie.movie_id == Screening.movie_id)
            .filter(*filters)
            .order_by(Screening.start_time)
            .all()
        )
        return [
            ScheduledScreening(
                screening_id=screening.screening_id,
                movie_id=screening.movie_id,
                movie_title=title,
                start_time=screening.start_time,
                duration_minutes=duration,
            )
            for screening, title, duration in rows
        ]

    def add(self, screening: Screening) -> None:
        self.db.add(screening)
        self.db.flush()

    def delete(self, screening: Screening) -> None:
        self.db.delete(screening)
        self.db.flush()


class SqlBookingRepository(BookingRepository):
    def __init__(self, db: Session):
        self.db = db

    def get(self, booking_id: str, lock: bool = False) -> Optional[Booking]:
        query = self.db.query(Booking).filter(Booking.booking_id == booking_id)
        return db_get(query, lock)

    def list_for_screening(self, screening_id: str) -> List[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.screening_id == screening_id)
            .order_by(Booking.booking_date.desc())
            .all()
        )

    def booked_count(self, screening_id: str, exclude_booking_id: Optional[str] = None) -> int:
        query = self.db.query(func.coalesce(func.sum(Booking.seats_number), 0)).filter(
            Booking.screening_id == screening_id,
            Booking.status != BookingStatus.canceled,
        )
        if exclude_booking_id:
            query = query.filter(Booking.booking_id != exclude_booking_id)
        return int(query.scalar() or 0)

    def add(self, booking: Booking) -> None:
        self.db.add(booking)
        self.db.flush()

    def delete(self, booking: Booking) -> None:
        self.db.delete(booking)
        self.db.flush()


class SqlReservationRepository(ReservationRepository):
    def __init__(self, db: Session):
        self.db = db

    def find(self, screening_id: str, seat_ids: Iterable[str]) -> List[BookedSeat]:
        seat_ids = list(seat_ids)
        if not seat_ids:
            return []
        return (
            self.db.query(BookedSeat)
            .filter(
                BookedSeat.screening_id == screening_id,
                BookedSeat.seat_id.in_(seat_ids),
            )
            .all()
        )

    def list_for_screening(self, screening_id: str) -> List[BookedSeat]:
        return (
            self.db.query(BookedSeat)
            .filter(BookedSeat.screening_id == screening_id)
            .order_by(BookedSeat.seat_id)
            .all()
        )

    def list_for_booking(self, booking_id: str) -> List[BookedSeat]:
        return (
            self.db.query(BookedSeat)
            .filter(BookedSeat.booking_id == booking_id)
            .order_by(BookedSeat.seat_id)
            .all()
        )

    def add_many(self, reservations: Sequence[BookedSeat]) -> None:
        # The (screening_id, seat_id) primary key rejects a seat claimed by a
        # transaction that committed after our availability check
        self.db.add_all(reservations)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise ConflictError(
                "One or more seats were booked concurrently, please choose again",
                seat_ids=[r.seat_id for r in reservations],
            ) from exc

    def delete_for_booking(self, booking_id: str, seat_ids: Optional[Iterable[str]] = None) -> int:
        query = self.db.query(BookedSeat).filter(BookedSeat.booking_id == booking_id)
        if seat_ids is not None:
            query = query.filter(BookedSeat.seat_id.in_(list(seat_ids)))
        return query.delete(synchronize_session="fetch")

    def delete_for_screening(self, screening_id: str) -> int:
        return (
            self.db.query(BookedSeat)
            .filter(BookedSeat.screening_id == screening_id)
            .delete(synchronize_session="fetch")
        )


def db_get(query, lock: bool = False):
    """First row of ``query``, taking a row lock (SELECT ... FOR UPDATE) if asked."""
    if lock:
        query = query.with_for_update().populate_existing()
    return query.first()


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory
        self.session: Optional[Session] = None

    def __enter__(self):
        # Committed rows are handed back to callers after the session closes
        self.session = self.session_factory(expire_on_commit=False)
        self.movies = SqlMovieRepository(self.session)
        self.halls = SqlHallRepository(self.session)
        self.screenings = SqlScreeningRepository(self.session)
        self.bookings = SqlBookingRepository(self.session)
        self.reservations = SqlReservationRepository(self.session)
        return super().__enter__()

    def __exit__(self, *args):
        super().__exit__(*args)
        self.session.close()

    def _commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
