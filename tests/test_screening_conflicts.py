"""Unit tests for hall overlap detection."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import ConflictError
from app.repositories.base import ScheduledScreening
from app.services.screening_conflicts import assert_no_overlap, find_overlap
from app.utils.timeslots import format_slot, intervals_overlap

T0 = datetime(2030, 6, 1, 18, 0, tzinfo=timezone.utc)


def _scheduled(start=T0, minutes=120, screening_id="s-1", title="Dune"):
    return ScheduledScreening(
        screening_id=screening_id,
        movie_id="movie-1",
        movie_title=title,
        start_time=start,
        duration_minutes=minutes,
    )


class TestIntervals:
    def test_touching_intervals_do_not_overlap(self):
        end = T0 + timedelta(hours=2)
        assert not intervals_overlap(T0, end, end, end + timedelta(hours=1))

    def test_containment_overlaps(self):
        assert intervals_overlap(
            T0, T0 + timedelta(hours=3), T0 + timedelta(hours=1), T0 + timedelta(hours=2)
        )

    def test_format_slot(self):
        assert format_slot(T0, T0 + timedelta(hours=2)) == "2030-06-01 18:00–20:00"


class TestFindOverlap:
    def test_back_to_back_is_allowed(self):
        assert find_overlap(T0 + timedelta(minutes=120), 90, [_scheduled()]) is None

    def test_starting_before_the_previous_ends_conflicts(self):
        existing = _scheduled()
        assert find_overlap(T0 + timedelta(minutes=119), 90, [existing]) is existing

    def test_ending_after_the_next_starts_conflicts(self):
        existing = _scheduled()
        assert find_overlap(T0 - timedelta(minutes=30), 31, [existing]) is existing

    def test_naive_times_are_read_as_utc(self):
        naive = datetime(2030, 6, 1, 19, 0)
        assert find_overlap(naive, 60, [_scheduled()]) is not None

    def test_other_timezones_are_compared_as_instants(self):
        paris = timezone(timedelta(hours=2))
        # 22:00+02:00 is 20:00 UTC, exactly when the existing screening ends
        assert find_overlap(datetime(2030, 6, 1, 22, 0, tzinfo=paris), 60, [_scheduled()]) is None


class TestAssertNoOverlap:
    def test_conflict_message_names_the_existing_screening(self, screening, uow_factory):
        with uow_factory() as uow:
            with pytest.raises(ConflictError) as exc_info:
                assert_no_overlap(uow, "A", "paris-01", T0 + timedelta(hours=1), 90)

        message = exc_info.value.message
        assert "Dune" in message
        assert "2030-06-01 18:00–20:00" in message
        assert "screening-1" in message

    def test_excluded_screening_is_ignored(self, screening, uow_factory):
        with uow_factory() as uow:
            assert_no_overlap(
                uow, "A", "paris-01", T0 + timedelta(minutes=30), 120,
                exclude_screening_id="screening-1",
            )

    def test_other_halls_do_not_conflict(self, screening, uow_factory):
        with uow_factory() as uow:
            assert_no_overlap(uow, "B", "paris-01", T0, 120)
