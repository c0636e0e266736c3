"""
Per-movie booking counters.

The rows here are a derived, best-effort view: the booking coordinator writes
them after its own transaction committed, in a separate session, and a failure
never undoes the booking.
"""
import abc
import logging
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from app.db.session import SessionLocal
from app.models.booking import Booking
from app.models.movie_stats import MovieStatsEntry
from app.utils.timeslots import as_utc

logger = logging.getLogger(__name__)


class StatsNotifier(abc.ABC):
    @abc.abstractmethod
    def booking_added(self, booking: Booking, movie_id: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def booking_removed(self, booking_id: str) -> None:
        raise NotImplementedError


class NullStatsNotifier(StatsNotifier):
    def booking_added(self, booking: Booking, movie_id: str) -> None:
        pass

    def booking_removed(self, booking_id: str) -> None:
        pass


class SqlMovieStatsNotifier(StatsNotifier):

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def booking_added(self, booking: Booking, movie_id: str) -> None:
        db = self.session_factory()
        try:
            db.add(MovieStatsEntry(
                booking_id=booking.booking_id,
                movie_id=movie_id,
                user_id=booking.user_id,
                seats_number=booking.seats_number,
                booked_at=booking.booking_date or datetime.now(timezone.utc),
            ))
            db.commit()
        finally:
            db.close()

    def booking_removed(self, booking_id: str) -> None:
        db = self.session_factory()
        try:
            db.query(MovieStatsEntry).filter(
                MovieStatsEntry.booking_id == booking_id
            ).delete(synchronize_session=False)
            db.commit()
        finally:
            db.close()


def get_movie_stats(db: Session, movie_id: str) -> Optional[dict]:
    """Bookings recorded for a movie plus seat totals per day, newest first."""
    entries = (
        db.query(MovieStatsEntry)
        .filter(MovieStatsEntry.movie_id == movie_id)
        .order_by(MovieStatsEntry.booked_at.desc())
        .all()
    )
    if not entries:
        return None

    per_day = OrderedDict()
    for entry in entries:
        day = as_utc(entry.booked_at).date().isoformat()
        per_day[day] = per_day.get(day, 0) + entry.seats_number

    return {
        "movie_id": movie_id,
        "total_bookings": len(entries),
        "total_seats": sum(e.seats_number for e in entries),
        "daily": [{"date": day, "seats": seats} for day, seats in per_day.items()],
        "bookings": entries,
    }


def prune_movie_stats(db: Session, older_than_days: int = 7) -> int:
    """
    Delete stats entries booked before midnight (UTC) ``older_than_days`` ago.

    Returns the number of entries removed.
    """
    cutoff = datetime.now(timezone.utc).replace(
        hour=0, minute=0, second=0, microsecond=0
    ) - timedelta(days=older_than_days)

    count = (
        db.query(MovieStatsEntry)
        .filter(MovieStatsEntry.booked_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count
