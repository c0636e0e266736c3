"""Repository and unit-of-work interfaces used by the booking/scheduling core.

Every check and write in ``app.services`` receives a unit of work explicitly;
only the coordinators open one.
"""
from __future__ import annotations

import abc
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from app.models.booking import Booking, BookedSeat
from app.models.hall import MovieHall
from app.models.movie import Movie
from app.models.screening import Screening


@dataclass(frozen=True)
class ScheduledScreening:
    """A screening already in a hall, with the duration of its movie."""
    screening_id: str
    movie_id: str
    movie_title: str
    start_time: datetime
    duration_minutes: int


class MovieRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, movie_id: str) -> Optional[Movie]:
        raise NotImplementedError


class HallRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, theater_id: str, hall_id: str, lock: bool = False) -> Optional[MovieHall]:
        raise NotImplementedError


class ScreeningRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, screening_id: str, lock: bool = False) -> Optional[Screening]:
        raise NotImplementedError

    @abc.abstractmethod
    def hall_schedule(
        self,
        theater_id: str,
        hall_id: str,
        exclude_screening_id: Optional[str] = None,
    ) -> List[ScheduledScreening]:
        raise NotImplementedError

    @abc.abstractmethod
    def add(self, screening: Screening) -> None:
        """Stage a new or modified screening."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, screening: Screening) -> None:
        raise NotImplementedError


class BookingRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, booking_id: str, lock: bool = False) -> Optional[Booking]:
        raise NotImplementedError

    @abc.abstractmethod
    def list_for_screening(self, screening_id: str) -> List[Booking]:
        raise NotImplementedError

    @abc.abstractmethod
    def booked_count(self, screening_id: str, exclude_booking_id: Optional[str] = None) -> int:
        """Sum of seats held by non-canceled bookings of a screening."""
        raise NotImplementedError

    @abc.abstractmethod
    def add(self, booking: Booking) -> None:
        """Stage a new or modified booking."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, booking: Booking) -> None:
        raise NotImplementedError


class ReservationRepository(abc.ABC):
    @abc.abstractmethod
    def find(self, screening_id: str, seat_ids: Iterable[str]) -> List[BookedSeat]:
        """Reservations of ``screening_id`` whose seat id is in ``seat_ids``."""
        raise NotImplementedError

    @abc.abstractmethod
    def list_for_screening(self, screening_id: str) -> List[BookedSeat]:
        raise NotImplementedError

    @abc.abstractmethod
    def list_for_booking(self, booking_id: str) -> List[BookedSeat]:
        raise NotImplementedError

    @abc.abstractmethod
    def add_many(self, reservations: Sequence[BookedSeat]) -> None:
        """Insert reservations; raises ConflictError if a seat is already held."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete_for_booking(self, booking_id: str, seat_ids: Optional[Iterable[str]] = None) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def delete_for_screening(self, screening_id: str) -> int:
        raise NotImplementedError


class AbstractUnitOfWork(abc.ABC):
    """One transaction. Leaving the ``with`` block without commit rolls back."""

    movies: MovieRepository
    halls: HallRepository
    screenings: ScreeningRepository
    bookings: BookingRepository
    reservations: ReservationRepository

    def __enter__(self) -> AbstractUnitOfWork:
        return self

    def __exit__(self, *args) -> None:
        self.rollback()

    def commit(self) -> None:
        self._commit()

    @abc.abstractmethod
    def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self) -> None:
        raise NotImplementedError
