from datetime import datetime, timedelta, timezone


def as_utc(value: datetime) -> datetime:
    """
    Normalise an instant to an aware UTC datetime.

    Naive values are taken to be UTC already: SQLite hands timestamps back
    without their offset.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def slot_end(start: datetime, duration_minutes: int) -> datetime:
    return as_utc(start) + timedelta(minutes=duration_minutes)


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """
    Half-open overlap test for [start_a, end_a) and [start_b, end_b).

    Touching endpoints do not overlap, so back-to-back slots are allowed.
    """
    return start_a < end_b and end_a > start_b


def format_slot(start: datetime, end: datetime) -> str:
    """'2025-06-01 18:00–20:00' (UTC); the end carries its date if it differs."""
    start, end = as_utc(start), as_utc(end)
    if start.date() == end.date():
        return f"{start:%Y-%m-%d %H:%M}–{end:%H:%M}"
    return f"{start:%Y-%m-%d %H:%M}–{end:%Y-%m-%d %H:%M}"
