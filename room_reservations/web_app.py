from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Callable
import logging

from flask import Flask, jsonify, request

from .booking import Reservation
from .config import AppConfig
from .errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ReservationError,
    UnknownRoomError,
    ValidationError,
)
from .store import InMemoryReservationStore

logger = logging.getLogger(__name__)

USER_HEADER = "x-user-id"
CREATE_FIELDS = ("roomId", "startTime", "endTime")


def create_app(
    config: AppConfig | None = None,
    store: InMemoryReservationStore | None = None,
    now_provider: Callable[[], datetime] | None = None,
) -> Flask:
    app = Flask(__name__)
    settings = config or AppConfig()
    clock: Callable[[], datetime] = now_provider or (lambda: datetime.now(UTC))
    repository = store or InMemoryReservationStore(
        clock=clock,
        past_tolerance=settings.past_tolerance,
        event_log_size=settings.event_log_size,
    )
    rooms = set(settings.rooms)

    def _user_id() -> str | None:
        value = request.headers.get(USER_HEADER, "").strip()
        return value or None

    def _unknown_room(room_id: str) -> UnknownRoomError | None:
        if room_id not in rooms:
            return UnknownRoomError(f"Unknown room: {room_id}")
        return None

    @app.get("/rooms")
    def list_rooms() -> Any:
        return jsonify(list(settings.rooms))

    @app.post("/reservations")
    def create_reservation() -> Any:
        user_id = _user_id()
        if user_id is None:
            return _message(f"{USER_HEADER} header is required", 400)

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _message("Request body must be a JSON object", 400)

        missing = [name for name in CREATE_FIELDS if not isinstance(payload.get(name), str) or not payload[name]]
        if missing:
            return _message("roomId, startTime and endTime are required", 400)
        extra = sorted(set(payload) - set(CREATE_FIELDS))
        if extra:
            return _message(f"Unexpected fields: {', '.join(extra)}", 400)

        room_id = payload["roomId"]
        room_error = _unknown_room(room_id)
        if room_error is not None:
            return _error_response(room_error)

        result = repository.create(room_id, user_id, payload["startTime"], payload["endTime"], now=clock())
        if isinstance(result, ReservationError):
            return _error_response(result)
        return jsonify(result.to_dict()), 201

    @app.get("/reservations/<reservation_id>")
    def get_reservation(reservation_id: str) -> Any:
        result = repository.find_by_id(reservation_id)
        if isinstance(result, ReservationError):
            return _error_response(result)
        return jsonify(result.to_dict())

    @app.delete("/reservations/<reservation_id>")
    def delete_reservation(reservation_id: str) -> Any:
        user_id = _user_id()
        if user_id is None:
            return _message(f"{USER_HEADER} header is required", 400)

        result = repository.delete_by_id(reservation_id, user_id=user_id)
        if isinstance(result, ReservationError):
            return _error_response(result)
        return jsonify(result.to_dict()), 200

    @app.get("/rooms/<room_id>/reservations")
    def get_room_reservations(room_id: str) -> Any:
        room_error = _unknown_room(room_id)
        if room_error is not None:
            return _error_response(room_error)
        return jsonify(_serialize(repository.list_by_room(room_id)))

    @app.get("/api/events")
    def get_events() -> Any:
        return jsonify([event.to_dict() for event in repository.events()])

    @app.errorhandler(404)
    def handle_not_found(_error: Any) -> Any:
        return _message("Not found", 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(_error: Any) -> Any:
        return _message("Method not allowed", 405)

    @app.errorhandler(500)
    def handle_internal_error(error: Any) -> Any:
        logger.error(
            "Unhandled error while serving %s %s",
            request.method,
            request.path,
            exc_info=getattr(error, "original_exception", None) or error,
        )
        return _message("Internal server error", 500)

    return app


def _serialize(records: list[Reservation]) -> list[dict[str, Any]]:
    return [record.to_dict() for record in records]


def _message(text: str, status: int) -> Any:
    return jsonify({"message": text}), status


def _error_response(error: ReservationError) -> Any:
    return _message(error.message, _status_for(error))


def _status_for(error: ReservationError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, ForbiddenError):
        return 403
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConflictError):
        return 409
    return 500
