from __future__ import annotations


class ReservationError(Exception):
    """Base class for every expected reservation failure.

    Store and rule functions return these as values instead of raising them,
    so callers branch on ``isinstance`` or on ``kind``. They stay exceptions so
    an adapter can still ``raise`` one when that reads better.
    """

    kind = "reservation"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReservationError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ValidationError(ReservationError):
    kind = "validation"


class ParseError(ValidationError):
    kind = "parse"


class OrderingError(ValidationError):
    kind = "ordering"


class PastError(ValidationError):
    kind = "past"


class UnknownRoomError(ValidationError):
    kind = "unknown_room"


class ConflictError(ReservationError):
    kind = "conflict"

    def __init__(self, message: str, conflicting_ids: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.conflicting_ids = conflicting_ids


class NotFoundError(ReservationError):
    kind = "not_found"


class ForbiddenError(ReservationError):
    kind = "forbidden"
