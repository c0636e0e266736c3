from app.core.exceptions import BadRequestError
from app.models.booking import Booking, BookingStatus

TERMINAL_STATUSES = (BookingStatus.used, BookingStatus.canceled)


def is_terminal(status: BookingStatus) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def mark_used(booking: Booking) -> Booking:
    status = BookingStatus(booking.status)
    if status == BookingStatus.used:
        raise BadRequestError("Booking is already marked as used")
    if status == BookingStatus.canceled:
        raise BadRequestError("Booking is canceled and cannot be marked as used")
    booking.status = BookingStatus.used
    return booking


def cancel(booking: Booking) -> Booking:
    status = BookingStatus(booking.status)
    if status == BookingStatus.canceled:
        raise BadRequestError("Booking is already canceled")
    if status == BookingStatus.used:
        raise BadRequestError("Booking has been used and cannot be canceled")
    booking.status = BookingStatus.canceled
    return booking


def transition(booking: Booking, target: BookingStatus) -> Booking:
    """Move a booking to ``target``; bookings never go back to pending."""
    target = BookingStatus(target)
    if target == BookingStatus.used:
        return mark_used(booking)
    if target == BookingStatus.canceled:
        return cancel(booking)
    if BookingStatus(booking.status) == BookingStatus.pending:
        return booking
    raise BadRequestError(f"Booking is {BookingStatus(booking.status).value} and cannot return to pending")
