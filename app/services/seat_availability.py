import logging
from collections import Counter
from typing import Optional, Sequence

from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.models.booking import SEAT_ID_MAX_LENGTH
from app.models.hall import MovieHall
from app.models.screening import Screening
from app.repositories.base import AbstractUnitOfWork
from app.services.seat_layout import seat_capacity, valid_seat_ids

logger = logging.getLogger(__name__)


def resolve_hall(uow: AbstractUnitOfWork, screening: Screening) -> MovieHall:
    hall = uow.halls.get(screening.theater_id, screening.hall_id)
    if not hall:
        raise NotFoundError("Hall not found for this screening")
    return hall


def assert_no_duplicates(seat_ids: Sequence[str]) -> None:
    duplicates = [seat for seat, count in Counter(seat_ids).items() if count > 1]
    if duplicates:
        raise BadRequestError(f"Duplicate seat IDs in request: {', '.join(duplicates)}")


def assert_seats_exist(
    uow: AbstractUnitOfWork,
    screening: Screening,
    seat_ids: Sequence[str],
    hall: Optional[MovieHall] = None,
) -> None:
    """Every requested seat must be in the hall layout and short enough to store."""
    if not seat_ids:
        return
    hall = hall or resolve_hall(uow, screening)
    valid = valid_seat_ids(hall.seats_layout)
    for seat_id in seat_ids:
        if len(seat_id) > SEAT_ID_MAX_LENGTH or seat_id not in valid:
            raise BadRequestError(f"Invalid seat ID: {seat_id}")


def assert_seats_available(
    uow: AbstractUnitOfWork, screening_id: str, seat_ids: Sequence[str]
) -> None:
    """Raise 409 listing every requested seat already reserved for the screening."""
    if not seat_ids:
        return
    taken = {r.seat_id for r in uow.reservations.find(screening_id, seat_ids)}
    if taken:
        booked = [seat_id for seat_id in seat_ids if seat_id in taken]
        logger.warning("Seats already booked for screening %s: %s", screening_id, booked)
        raise ConflictError(
            f"The following seats are already booked: {', '.join(booked)}",
            seat_ids=booked,
        )


def assert_capacity(
    uow: AbstractUnitOfWork,
    screening: Screening,
    seats_number: int,
    exclude_booking_id: Optional[str] = None,
    hall: Optional[MovieHall] = None,
) -> None:
    """Count-only bookings: the hall must still have ``seats_number`` free seats."""
    hall = hall or resolve_hall(uow, screening)
    booked = uow.bookings.booked_count(
        screening.screening_id, exclude_booking_id=exclude_booking_id
    )
    remaining = max(seat_capacity(hall.seats_layout) - booked, 0)
    if seats_number > remaining:
        raise ConflictError(f"Only {remaining} seat(s) left for this screening")
