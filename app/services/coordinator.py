"""
Transactional write coordinator for bookings and screenings.

Every mutation of ``screenings``, ``bookings`` and ``seat_bookings`` goes
through the two coordinators below. Each operation runs in one unit of work:

1. lock the parent row the invariant hangs on (screening for seats, hall for
   scheduling, booking for lifecycle changes),
2. re-run the existence / availability / overlap checks under that lock,
3. write, then commit.

Any error raised along the way leaves the ``with`` block, which rolls the
transaction back; the typed error reaches the caller unchanged. Stats
notifications happen after commit and are best-effort.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from app.core.exceptions import BadRequestError, NotFoundError
from app.models.booking import Booking, BookedSeat, BookingStatus
from app.models.screening import Screening, SCREENING_QUALITIES
from app.repositories.base import AbstractUnitOfWork
from app.services import booking_lifecycle
from app.services.movie_stats import NullStatsNotifier, StatsNotifier
from app.services.screening_conflicts import assert_no_overlap
from app.services.seat_availability import (
    assert_capacity,
    assert_no_duplicates,
    assert_seats_available,
    assert_seats_exist,
    resolve_hall,
)
from app.utils.timeslots import as_utc

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]


@dataclass
class BookingResult:
    booking: Booking
    seat_ids: List[str]


def _lock_screening(uow: AbstractUnitOfWork, screening_id: str) -> Screening:
    screening = uow.screenings.get(screening_id, lock=True)
    if not screening:
        raise NotFoundError(f"Screening with id {screening_id} not found")
    return screening


def _lock_booking(uow: AbstractUnitOfWork, booking_id: str) -> Booking:
    booking = uow.bookings.get(booking_id, lock=True)
    if not booking:
        raise NotFoundError(f"Booking with id {booking_id} not found")
    return booking


def _lock_booking_and_screening(uow: AbstractUnitOfWork, booking_id: str):
    # Screening first, then booking. Every path that touches a booking takes
    # its locks in this order, as do screening deletes and booking creation
    booking = uow.bookings.get(booking_id)
    if not booking:
        raise NotFoundError(f"Booking with id {booking_id} not found")
    screening = _lock_screening(uow, booking.screening_id)
    return _lock_booking(uow, booking_id), screening


def _price(value) -> Decimal:
    return Decimal(str(value))


class BookingCoordinator:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        stats_notifier: Optional[StatsNotifier] = None,
    ):
        self.uow_factory = uow_factory
        self.stats_notifier = stats_notifier or NullStatsNotifier()

    # -----------------------------------------------------------------------
    # Create / delete
    # -----------------------------------------------------------------------

    def create_booking(
        self,
        user_id: str,
        screening_id: str,
        seat_ids: Optional[Sequence[str]] = None,
        seats_number: Optional[int] = None,
    ) -> BookingResult:
        """
        Book seats for a screening.

        With ``seat_ids`` the named seats are reserved; without them the
        booking only claims ``seats_number`` seats out of the hall capacity.
        """
        seat_ids = [str(s) for s in seat_ids] if seat_ids else []
        if not seat_ids and not seats_number:
            raise BadRequestError("No seats selected")
        if seat_ids and seats_number is not None and seats_number != len(seat_ids):
            raise BadRequestError("Seats number mismatch")
        if seats_number is not None and seats_number < 1:
            raise BadRequestError("seats_number must be at least 1")
        assert_no_duplicates(seat_ids)
        count = len(seat_ids) if seat_ids else seats_number

        with self.uow_factory() as uow:
            screening = _lock_screening(uow, screening_id)
            hall = resolve_hall(uow, screening)

            if seat_ids:
                assert_seats_exist(uow, screening, seat_ids, hall=hall)
                assert_seats_available(uow, screening_id, seat_ids)
            # Count-only bookings share the hall with seat-based ones
            assert_capacity(uow, screening, count, hall=hall)

            booking = Booking(
                booking_id=str(uuid.uuid4()),
                user_id=str(user_id),
                screening_id=screening_id,
                seats_number=count,
                status=BookingStatus.pending,
                booking_date=datetime.now(timezone.utc),
                total_price=_price(screening.price) * count,
            )
            uow.bookings.add(booking)
            uow.reservations.add_many([
                BookedSeat(screening_id=screening_id, seat_id=seat_id, booking_id=booking.booking_id)
                for seat_id in seat_ids
            ])
            movie_id = screening.movie_id
            uow.commit()

        logger.info(
            "Booking %s created for screening %s (%d seat(s))",
            booking.booking_id, screening_id, count,
        )
        self._notify_added(booking, movie_id)
        return BookingResult(booking=booking, seat_ids=seat_ids)

    def delete_booking(self, booking_id: str) -> None:
        with self.uow_factory() as uow:
            booking, _ = _lock_booking_and_screening(uow, booking_id)
            uow.reservations.delete_for_booking(booking_id)
            uow.bookings.delete(booking)
            uow.commit()

        logger.info("Booking %s deleted", booking_id)
        self._notify_removed(booking_id)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def mark_used(self, booking_id: str) -> Booking:
        with self.uow_factory() as uow:
            booking, _ = _lock_booking_and_screening(uow, booking_id)
            booking_lifecycle.mark_used(booking)
            uow.bookings.add(booking)
            uow.commit()

        logger.info("Booking %s marked as used", booking_id)
        return booking

    def cancel_booking(self, booking_id: str) -> Booking:
        """Cancel a pending booking and give its seats back."""
        with self.uow_factory() as uow:
            booking, _ = _lock_booking_and_screening(uow, booking_id)
            booking_lifecycle.cancel(booking)
            uow.reservations.delete_for_booking(booking_id)
            uow.bookings.add(booking)
            uow.commit()

        logger.info("Booking %s canceled", booking_id)
        self._notify_removed(booking_id)
        return booking

    # -----------------------------------------------------------------------
    # Partial update / seat release
    # -----------------------------------------------------------------------

    def update_booking(
        self,
        booking_id: str,
        status: Optional[BookingStatus] = None,
        seats_number: Optional[int] = None,
        booking_date: Optional[datetime] = None,
    ) -> Booking:
        canceled = False
        with self.uow_factory() as uow:
            booking, screening = _lock_booking_and_screening(uow, booking_id)

            if seats_number is not None and seats_number != booking.seats_number:
                if seats_number < 1:
                    raise BadRequestError("seats_number must be at least 1")
                if booking_lifecycle.is_terminal(booking.status):
                    raise BadRequestError(
                        f"Cannot change seats of a {BookingStatus(booking.status).value} booking"
                    )
                if uow.reservations.list_for_booking(booking_id):
                    raise BadRequestError(
                        "Seat-based bookings cannot change seats_number; release seats instead"
                    )
                assert_capacity(uow, screening, seats_number, exclude_booking_id=booking_id)
                booking.seats_number = seats_number
                booking.total_price = _price(screening.price) * seats_number

            if booking_date is not None:
                booking.booking_date = booking_date

            if status is not None:
                booking_lifecycle.transition(booking, status)
                if BookingStatus(status) == BookingStatus.canceled:
                    uow.reservations.delete_for_booking(booking_id)
                    canceled = True

            uow.bookings.add(booking)
            uow.commit()

        logger.info("Booking %s updated", booking_id)
        if canceled:
            self._notify_removed(booking_id)
        return booking

    def release_seats(self, booking_id: str, seat_ids: Sequence[str]) -> BookingResult:
        """Give back some of the seats held by a pending booking."""
        seat_ids = [str(s) for s in seat_ids]
        if not seat_ids:
            raise BadRequestError("No seats selected")
        assert_no_duplicates(seat_ids)

        with self.uow_factory() as uow:
            booking, screening = _lock_booking_and_screening(uow, booking_id)
            if BookingStatus(booking.status) != BookingStatus.pending:
                raise BadRequestError(
                    f"Cannot release seats of a {BookingStatus(booking.status).value} booking"
                )

            held = [r.seat_id for r in uow.reservations.list_for_booking(booking_id)]
            not_held = [s for s in seat_ids if s not in held]
            if not_held:
                raise BadRequestError(
                    f"Seats not held by this booking: {', '.join(not_held)}"
                )
            remaining = [s for s in held if s not in seat_ids]
            if not remaining:
                raise BadRequestError("Cannot release every seat; cancel the booking instead")

            uow.reservations.delete_for_booking(booking_id, seat_ids)
            booking.seats_number = len(remaining)
            booking.total_price = _price(screening.price) * len(remaining)
            uow.bookings.add(booking)
            uow.commit()

        logger.info("Released %d seat(s) from booking %s", len(seat_ids), booking_id)
        return BookingResult(booking=booking, seat_ids=remaining)

    # -----------------------------------------------------------------------
    # Stats (post-commit, best-effort)
    # -----------------------------------------------------------------------

    def _notify_added(self, booking: Booking, movie_id: str) -> None:
        try:
            self.stats_notifier.booking_added(booking, movie_id)
        except Exception:
            logger.exception("Failed to record stats for booking %s", booking.booking_id)

    def _notify_removed(self, booking_id: str) -> None:
        try:
            self.stats_notifier.booking_removed(booking_id)
        except Exception:
            logger.exception("Failed to remove stats for booking %s", booking_id)


class ScreeningCoordinator:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        stats_notifier: Optional[StatsNotifier] = None,
    ):
        self.uow_factory = uow_factory
        self.stats_notifier = stats_notifier or NullStatsNotifier()

    def create_screening(self, data: dict) -> Screening:
        data = _clean_screening_fields(data)
        with self.uow_factory() as uow:
            duration = self._check_slot(uow, data)
            screening = Screening(screening_id=str(uuid.uuid4()), **data)
            uow.screenings.add(screening)
            uow.commit()

        logger.info(
            "Screening %s scheduled in hall %s/%s at %s (%d min)",
            screening.screening_id, data["theater_id"], data["hall_id"],
            as_utc(data["start_time"]).isoformat(), duration,
        )
        return screening

    def update_screening(self, screening_id: str, changes: dict) -> Screening:
        changes = _clean_screening_fields(changes, partial=True)
        with self.uow_factory() as uow:
            screening = _lock_screening(uow, screening_id)
            merged = {
                field: changes.get(field, getattr(screening, field))
                for field in ("movie_id", "theater_id", "hall_id", "start_time")
            }
            self._check_slot(uow, merged, exclude_screening_id=screening_id)

            for field, value in changes.items():
                setattr(screening, field, value)
            uow.screenings.add(screening)
            uow.commit()

        logger.info("Screening %s updated", screening_id)
        return screening

    def delete_screening(self, screening_id: str) -> None:
        """Remove a screening along with its bookings and seat reservations."""
        with self.uow_factory() as uow:
            screening = _lock_screening(uow, screening_id)
            uow.reservations.delete_for_screening(screening_id)
            booking_ids = []
            for booking in uow.bookings.list_for_screening(screening_id):
                booking_ids.append(booking.booking_id)
                uow.bookings.delete(booking)
            uow.screenings.delete(screening)
            uow.commit()

        logger.info("Screening %s deleted with %d booking(s)", screening_id, len(booking_ids))
        for booking_id in booking_ids:
            try:
                self.stats_notifier.booking_removed(booking_id)
            except Exception:
                logger.exception("Failed to remove stats for booking %s", booking_id)

    def _check_slot(
        self,
        uow: AbstractUnitOfWork,
        data: dict,
        exclude_screening_id: Optional[str] = None,
    ) -> int:
        """Movie and hall must exist; the hall must be free for the movie's runtime."""
        movie = uow.movies.get(data["movie_id"])
        if not movie:
            raise NotFoundError("Movie not found")
        hall = uow.halls.get(data["theater_id"], data["hall_id"], lock=True)
        if not hall:
            raise NotFoundError("Hall not found")

        assert_no_overlap(
            uow,
            hall_id=data["hall_id"],
            theater_id=data["theater_id"],
            start=data["start_time"],
            duration_minutes=movie.duration_minutes,
            exclude_screening_id=exclude_screening_id,
        )
        return movie.duration_minutes


SCREENING_FIELDS = ("movie_id", "theater_id", "hall_id", "start_time", "price", "quality")


def _clean_screening_fields(data: dict, partial: bool = False) -> dict:
    """Validate screening fields and return them with ``start_time`` in UTC."""
    unknown = set(data) - set(SCREENING_FIELDS)
    if unknown:
        raise BadRequestError(f"Unknown screening field(s): {', '.join(sorted(unknown))}")
    if not partial:
        missing = [f for f in SCREENING_FIELDS if data.get(f) is None]
        if missing:
            raise BadRequestError(f"Missing screening field(s): {', '.join(missing)}")
    for field, value in data.items():
        if value is None:
            raise BadRequestError(f"{field} cannot be null")

    quality = data.get("quality")
    if quality is not None and quality not in SCREENING_QUALITIES:
        raise BadRequestError(
            f"quality must be one of {', '.join(SCREENING_QUALITIES)}"
        )
    price = data.get("price")
    if price is not None and _price(price) < 0:
        raise BadRequestError("price must be zero or positive")

    cleaned = dict(data)
    if "start_time" in cleaned:
        cleaned["start_time"] = as_utc(cleaned["start_time"])
    return cleaned
