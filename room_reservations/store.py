from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Callable
from uuid import uuid4
import logging
import threading

from .booking import Reservation, find_conflicts, format_instant, parse_instant, to_utc, validate_request
from .errors import ConflictError, ForbiddenError, NotFoundError, ParseError, ValidationError

logger = logging.getLogger(__name__)

EVENT_CREATED = "RESERVATION_CREATED"
EVENT_REJECTED = "RESERVATION_REJECTED"
EVENT_DELETED = "RESERVATION_DELETED"
DEFAULT_EVENT_LOG_SIZE = 1000


@dataclass(frozen=True)
class ReservationEvent:
    event_time: datetime
    event_type: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_time": format_instant(self.event_time),
            "event_type": self.event_type,
            "payload": dict(self.payload),
        }


def _utc_now() -> datetime:
    return datetime.now(UTC)


class InMemoryReservationStore:
    """Owns the reservation collection and every rule that guards it.

    A single lock serializes create and delete, including the overlap check
    that create runs against the current contents, so two racing requests for
    the same slot can never both commit. Reads copy the index under the same
    lock and never see a half-applied change.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        past_tolerance: timedelta = timedelta(0),
        event_log_size: int = DEFAULT_EVENT_LOG_SIZE,
    ) -> None:
        if past_tolerance < timedelta(0):
            raise ValueError("past_tolerance must not be negative")
        if event_log_size <= 0:
            raise ValueError("event_log_size must be greater than zero")
        self._clock: Callable[[], datetime] = clock or _utc_now
        self._past_tolerance = past_tolerance
        self._lock = threading.Lock()
        self._by_id: dict[str, Reservation] = {}
        # oldest events fall off once the journal is full
        self._events: deque[ReservationEvent] = deque(maxlen=event_log_size)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)

    def create(
        self,
        room_id: str,
        user_id: str,
        start: datetime | str,
        end: datetime | str,
        now: datetime | None = None,
    ) -> Reservation | ValidationError | ConflictError:
        effective_now = to_utc(now or self._clock())

        start_value = _coerce_instant(start)
        end_value = _coerce_instant(end)
        for value in (start_value, end_value):
            if isinstance(value, ParseError):
                with self._lock:
                    self._reject(room_id, user_id, value, effective_now)
                return value

        with self._lock:
            error = validate_request(start_value, end_value, effective_now, self._past_tolerance)
            if error is not None:
                self._reject(room_id, user_id, error, effective_now)
                return error

            conflicts = find_conflicts(self._by_id.values(), room_id, start_value, end_value)
            if conflicts:
                conflict = ConflictError(
                    "Reservation overlaps with an existing reservation for this room",
                    conflicting_ids=tuple(reservation.reservation_id for reservation in conflicts),
                )
                self._reject(room_id, user_id, conflict, effective_now)
                return conflict

            record = Reservation(
                reservation_id=str(uuid4()),
                room_id=room_id,
                user_id=user_id,
                start=start_value,
                end=end_value,
                created_at=effective_now,
            )
            self._by_id[record.reservation_id] = record
            self._log_event(
                EVENT_CREATED,
                {
                    "reservation_id": record.reservation_id,
                    "room_id": room_id,
                    "user_id": user_id,
                    "start": format_instant(record.start),
                    "end": format_instant(record.end),
                },
                effective_now,
            )

        logger.info(
            "Created reservation %s for room %s (%s - %s)",
            record.reservation_id,
            room_id,
            format_instant(record.start),
            format_instant(record.end),
        )
        return record

    def find_by_id(self, reservation_id: str) -> Reservation | NotFoundError:
        with self._lock:
            record = self._by_id.get(reservation_id)
        if record is None:
            return NotFoundError("Reservation not found")
        return record

    def delete_by_id(
        self,
        reservation_id: str,
        user_id: str | None = None,
    ) -> Reservation | NotFoundError | ForbiddenError:
        with self._lock:
            record = self._by_id.get(reservation_id)
            if record is None:
                return NotFoundError("Reservation not found")
            if user_id is not None and record.user_id != user_id:
                return ForbiddenError("Reservation belongs to another user")

            del self._by_id[reservation_id]
            self._log_event(
                EVENT_DELETED,
                {
                    "reservation_id": reservation_id,
                    "room_id": record.room_id,
                    "user_id": record.user_id,
                },
                to_utc(self._clock()),
            )

        logger.info("Deleted reservation %s for room %s", reservation_id, record.room_id)
        return record

    def list_by_room(self, room_id: str) -> list[Reservation]:
        with self._lock:
            records = [record for record in self._by_id.values() if record.room_id == room_id]
        records.sort(key=lambda record: (record.start, record.end, record.reservation_id))
        return records

    def list_all(self) -> list[Reservation]:
        with self._lock:
            records = list(self._by_id.values())
        records.sort(key=lambda record: (record.start, record.room_id, record.reservation_id))
        return records

    def events(self) -> list[ReservationEvent]:
        with self._lock:
            return list(self._events)

    def _reject(self, room_id: str, user_id: str, error: ValidationError | ConflictError, now: datetime) -> None:
        # caller holds self._lock
        payload: dict[str, Any] = {
            "room_id": room_id,
            "user_id": user_id,
            "kind": error.kind,
            "reason": error.message,
        }
        if isinstance(error, ConflictError):
            payload["conflicting_ids"] = list(error.conflicting_ids)

        self._log_event(EVENT_REJECTED, payload, now)
        logger.debug("Rejected reservation for room %s: %s", room_id, error.message)

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime) -> None:
        # caller holds self._lock
        self._events.append(ReservationEvent(event_time=event_time, event_type=event_type, payload=payload))


def _coerce_instant(value: datetime | str) -> datetime | ParseError:
    if isinstance(value, datetime):
        try:
            return to_utc(value)
        except OverflowError:
            return ParseError(f"Instant out of range: {value.isoformat()}")
    return parse_instant(value)
