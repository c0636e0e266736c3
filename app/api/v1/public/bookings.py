from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import (
    get_booking_coordinator,
    get_current_staff_user,
    get_current_user,
)
from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.security import CurrentUser
from app.models.booking import Booking, BookedSeat, BookingStatus
from app.schemas.booking import (
    BookingCreate,
    BookingUpdate,
    SeatRelease,
    Booking as BookingSchema,
)
from app.schemas.common import ApiResponse, ErrorResponse, SeatsUnavailableError
from app.services.coordinator import BookingCoordinator

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _seat_ids_for(db: Session, booking_id: str) -> List[str]:
    rows = (
        db.query(BookedSeat.seat_id)
        .filter(BookedSeat.booking_id == booking_id)
        .order_by(BookedSeat.seat_id)
        .all()
    )
    return [seat_id for (seat_id,) in rows]


def _serialize_booking(booking: Booking, seat_ids: List[str]) -> BookingSchema:
    return BookingSchema(
        booking_id=booking.booking_id,
        user_id=booking.user_id,
        screening_id=booking.screening_id,
        seats_number=booking.seats_number,
        status=booking.status,
        booking_date=booking.booking_date,
        total_price=booking.total_price,
        seat_ids=seat_ids,
    )


def _serialize_many(db: Session, bookings: List[Booking]) -> List[BookingSchema]:
    return [_serialize_booking(b, _seat_ids_for(db, b.booking_id)) for b in bookings]


def _get_accessible_booking(db: Session, booking_id: str, current_user: CurrentUser) -> Booking:
    """Staff reach every booking; other users only their own."""
    booking = db.query(Booking).filter(Booking.booking_id == booking_id).first()
    if not booking:
        raise NotFoundError(f"Booking with id {booking_id} not found")
    if not current_user.is_staff and booking.user_id != current_user.user_id:
        raise ForbiddenError("You can only access your own bookings")
    return booking


# ---------------------------------------------------------------------------
# POST /bookings: book seats for a screening
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=ApiResponse[BookingSchema],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": SeatsUnavailableError},
    },
)
def create_booking(
    data: BookingCreate,
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Book seats for a screening.

    - Provide `seat_ids` to reserve specific seats from the hall grid
      (`seats_number`, if also sent, must match).
    - Or provide only `seats_number` for a booking checked against the
      remaining hall capacity.
    - `user_id` defaults to the authenticated user; only staff may book
      on behalf of someone else.
    """
    user_id = data.user_id or current_user.user_id
    if user_id != current_user.user_id and not current_user.is_staff:
        raise ForbiddenError("You can only create bookings for yourself")

    result = coordinator.create_booking(
        user_id=user_id,
        screening_id=data.screening_id,
        seat_ids=data.seat_ids,
        seats_number=data.seats_number,
    )
    return {
        "message": "Booking created successfully",
        "data": _serialize_booking(result.booking, result.seat_ids),
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("", response_model=ApiResponse[List[BookingSchema]])
def list_bookings(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_staff_user),
):
    bookings = db.query(Booking).order_by(Booking.booking_date.desc()).all()
    return {"message": "Bookings retrieved successfully", "data": _serialize_many(db, bookings)}


@router.get("/user/{user_id}", response_model=ApiResponse[List[BookingSchema]])
def list_user_bookings(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """A user's bookings, newest first. Users may only list their own."""
    if not current_user.is_staff and user_id != current_user.user_id:
        raise ForbiddenError("You can only access your own bookings")
    bookings = (
        db.query(Booking)
        .filter(Booking.user_id == user_id)
        .order_by(Booking.booking_date.desc())
        .all()
    )
    return {"message": "Bookings retrieved successfully", "data": _serialize_many(db, bookings)}


@router.get("/screening/{screening_id}", response_model=ApiResponse[List[BookingSchema]])
def list_screening_bookings(
    screening_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_staff_user),
):
    bookings = (
        db.query(Booking)
        .filter(Booking.screening_id == screening_id)
        .order_by(Booking.booking_date.desc())
        .all()
    )
    return {"message": "Bookings retrieved successfully", "data": _serialize_many(db, bookings)}


@router.get("/status/{booking_status}", response_model=ApiResponse[List[BookingSchema]])
def list_bookings_by_status(
    booking_status: BookingStatus,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_staff_user),
):
    bookings = (
        db.query(Booking)
        .filter(Booking.status == booking_status)
        .order_by(Booking.booking_date.desc())
        .all()
    )
    return {"message": "Bookings retrieved successfully", "data": _serialize_many(db, bookings)}


@router.get("/{booking_id}", response_model=ApiResponse[BookingSchema])
def get_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    booking = _get_accessible_booking(db, booking_id, current_user)
    return {
        "message": "Booking retrieved successfully",
        "data": _serialize_booking(booking, _seat_ids_for(db, booking_id)),
    }


# ---------------------------------------------------------------------------
# PATCH /bookings/{id}: partial update
# ---------------------------------------------------------------------------


@router.patch("/{booking_id}", response_model=ApiResponse[BookingSchema])
def update_booking(
    booking_id: str,
    data: BookingUpdate,
    db: Session = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Update `status`, `seats_number` or `booking_date`.

    Status changes follow the booking lifecycle (pending → used | canceled);
    a new `seats_number` is re-checked against the hall capacity and is only
    accepted for bookings without named seats.
    """
    _get_accessible_booking(db, booking_id, current_user)
    booking = coordinator.update_booking(
        booking_id,
        status=data.status,
        seats_number=data.seats_number,
        booking_date=data.booking_date,
    )
    return {
        "message": "Booking updated successfully",
        "data": _serialize_booking(booking, _seat_ids_for(db, booking_id)),
    }


# ---------------------------------------------------------------------------
# Lifecycle: mark used / cancel
# ---------------------------------------------------------------------------


@router.patch("/{booking_id}/mark-used", response_model=ApiResponse[BookingSchema])
def mark_booking_used(
    booking_id: str,
    db: Session = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    current_user: CurrentUser = Depends(get_current_staff_user),
):
    """Staff only: validate the ticket at the entrance."""
    booking = coordinator.mark_used(booking_id)
    return {
        "message": "Booking marked as used",
        "data": _serialize_booking(booking, _seat_ids_for(db, booking_id)),
    }


@router.patch("/{booking_id}/cancel", response_model=ApiResponse[BookingSchema])
def cancel_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Cancel a pending booking. Its seats become available again."""
    _get_accessible_booking(db, booking_id, current_user)
    booking = coordinator.cancel_booking(booking_id)
    return {"message": "Booking canceled successfully", "data": _serialize_booking(booking, [])}


# ---------------------------------------------------------------------------
# POST /bookings/{id}/release-seats: give back part of the seats
# ---------------------------------------------------------------------------


@router.post("/{booking_id}/release-seats", response_model=ApiResponse[BookingSchema])
def release_seats(
    booking_id: str,
    data: SeatRelease,
    db: Session = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    current_user: CurrentUser = Depends(get_current_user),
):
    _get_accessible_booking(db, booking_id, current_user)
    result = coordinator.release_seats(booking_id, data.seat_ids)
    return {
        "message": "Seats released successfully",
        "data": _serialize_booking(result.booking, result.seat_ids),
    }


# ---------------------------------------------------------------------------
# DELETE /bookings/{id}
# ---------------------------------------------------------------------------


@router.delete("/{booking_id}", response_model=ApiResponse[None])
def delete_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    current_user: CurrentUser = Depends(get_current_user),
):
    _get_accessible_booking(db, booking_id, current_user)
    coordinator.delete_booking(booking_id)
    return {"message": "Booking deleted successfully", "data": None}
