from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Iterable

from .errors import OrderingError, ParseError, PastError, ValidationError


@dataclass(frozen=True)
class Reservation:
    reservation_id: str
    room_id: str
    user_id: str
    start: datetime
    end: datetime
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError("Reservation start time must be earlier than end time.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.reservation_id,
            "roomId": self.room_id,
            "userId": self.user_id,
            "startTime": format_instant(self.start),
            "endTime": format_instant(self.end),
        }


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to an aware UTC instant; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_instant(value: datetime) -> str:
    return to_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_instant(raw: Any) -> datetime | ParseError:
    """Parse ISO-8601 date-time text into an aware UTC datetime.

    Text without an offset is read as UTC. Anything that does not name a real
    calendar instant (``2026-02-30T10:00Z``, ``not-a-date``) yields a ParseError
    instead of a default value.
    """
    if not isinstance(raw, str):
        return ParseError("startTime and endTime must be valid ISO date strings")

    text = raw.strip()
    if not text:
        return ParseError("startTime and endTime must be valid ISO date strings")

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return ParseError(f"Invalid ISO date string: {text!r}")

    # offsets near year 1 or 9999 can push the UTC value out of range
    try:
        return to_utc(parsed)
    except OverflowError:
        return ParseError(f"Invalid ISO date string: {text!r}")


def check_ordering(start: datetime, end: datetime) -> OrderingError | None:
    if start >= end:
        return OrderingError("startTime must be before endTime")
    return None


def check_not_past(start: datetime, now: datetime, tolerance: timedelta = timedelta(0)) -> PastError | None:
    if start < now - tolerance:
        return PastError("Reservations cannot be made in the past")
    return None


def validate_request(
    start: datetime,
    end: datetime,
    now: datetime,
    tolerance: timedelta = timedelta(0),
) -> ValidationError | None:
    """Run the input rules in order; the first failure wins."""
    return check_ordering(start, end) or check_not_past(start, now, tolerance)


def has_time_overlap(new_start: datetime, new_end: datetime, exist_start: datetime, exist_end: datetime) -> bool:
    """Return True when two time intervals overlap by any amount.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 10:00-11:00 and 11:00-12:00) do not overlap.
    """
    return exist_start < new_end and exist_end > new_start


def _collides(
    reservation: Reservation,
    room_id: str,
    start: datetime,
    end: datetime,
    exclude_id: str | None,
) -> bool:
    if reservation.room_id != room_id:
        return False
    if exclude_id is not None and reservation.reservation_id == exclude_id:
        return False
    return has_time_overlap(start, end, reservation.start, reservation.end)


def find_conflicts(
    candidates: Iterable[Reservation],
    room_id: str,
    start: datetime,
    end: datetime,
    exclude_id: str | None = None,
) -> list[Reservation]:
    """Return the reservations of ``room_id`` that collide with [start, end), earliest first.

    Naive ``start``/``end`` values are read as UTC, like everything the store keeps.
    """
    start, end = to_utc(start), to_utc(end)
    conflicts = [reservation for reservation in candidates if _collides(reservation, room_id, start, end, exclude_id)]
    conflicts.sort(key=lambda reservation: (reservation.start, reservation.end))
    return conflicts


def overlaps(
    candidates: Iterable[Reservation],
    room_id: str,
    start: datetime,
    end: datetime,
    exclude_id: str | None = None,
) -> bool:
    start, end = to_utc(start), to_utc(end)
    return any(_collides(reservation, room_id, start, end, exclude_id) for reservation in candidates)
