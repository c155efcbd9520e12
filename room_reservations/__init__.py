from .booking import (
	Reservation,
	check_not_past,
	check_ordering,
	find_conflicts,
	has_time_overlap,
	overlaps,
	parse_instant,
	validate_request,
)
from .config import AppConfig, ConfigError, load_config
from .errors import (
	ConflictError,
	ForbiddenError,
	NotFoundError,
	OrderingError,
	ParseError,
	PastError,
	ReservationError,
	UnknownRoomError,
	ValidationError,
)
from .store import InMemoryReservationStore, ReservationEvent

__all__ = [
	"Reservation",
	"check_not_past",
	"check_ordering",
	"find_conflicts",
	"has_time_overlap",
	"overlaps",
	"parse_instant",
	"validate_request",
	"AppConfig",
	"ConfigError",
	"load_config",
	"ConflictError",
	"ForbiddenError",
	"NotFoundError",
	"OrderingError",
	"ParseError",
	"PastError",
	"ReservationError",
	"UnknownRoomError",
	"ValidationError",
	"InMemoryReservationStore",
	"ReservationEvent",
]
