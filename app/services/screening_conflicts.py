import logging
from datetime import datetime
from typing import Iterable, Optional

from app.core.exceptions import ConflictError
from app.repositories.base import AbstractUnitOfWork, ScheduledScreening
from app.utils.timeslots import as_utc, format_slot, intervals_overlap, slot_end

logger = logging.getLogger(__name__)


def find_overlap(
    start: datetime,
    duration_minutes: int,
    schedule: Iterable[ScheduledScreening],
) -> Optional[ScheduledScreening]:
    """Return the first scheduled screening overlapping the candidate, if any."""
    candidate_start = as_utc(start)
    candidate_end = slot_end(candidate_start, duration_minutes)

    for existing in schedule:
        existing_start = as_utc(existing.start_time)
        existing_end = slot_end(existing_start, existing.duration_minutes)
        if intervals_overlap(existing_start, existing_end, candidate_start, candidate_end):
            return existing
    return None


def assert_no_overlap(
    uow: AbstractUnitOfWork,
    hall_id: str,
    theater_id: str,
    start: datetime,
    duration_minutes: int,
    exclude_screening_id: Optional[str] = None,
) -> None:
    """Raise 409 if the hall already hosts a screening overlapping the candidate."""
    schedule = uow.screenings.hall_schedule(
        theater_id, hall_id, exclude_screening_id=exclude_screening_id
    )
    conflict = find_overlap(start, duration_minutes, schedule)
    if conflict is None:
        return

    conflict_start = as_utc(conflict.start_time)
    conflict_range = format_slot(
        conflict_start, slot_end(conflict_start, conflict.duration_minutes)
    )
    logger.warning(
        "Screening overlap in hall %s/%s: candidate %s collides with %s",
        theater_id, hall_id, as_utc(start).isoformat(), conflict.screening_id,
    )
    raise ConflictError(
        f"Screening overlaps '{conflict.movie_title}' scheduled {conflict_range} "
        f"in hall {hall_id} (screening {conflict.screening_id})"
    )
