from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from room_reservations import AppConfig, InMemoryReservationStore, ReservationError, UnknownRoomError, load_config
from room_reservations.config import configure_logging


def create_server(config: AppConfig | None = None, store: InMemoryReservationStore | None = None) -> FastMCP:
    settings = config or AppConfig()
    repository = store or InMemoryReservationStore(
        past_tolerance=settings.past_tolerance,
        event_log_size=settings.event_log_size,
    )

    mcp = FastMCP(
        "Room Reservation MCP Server",
        instructions="Create, cancel and list room reservations held in memory by this process.",
        json_response=True,
    )

    def _require_room(room_id: str) -> None:
        if room_id not in settings.rooms:
            raise UnknownRoomError(f"Unknown room: {room_id}")

    @mcp.resource("reservation://rooms")
    async def list_rooms() -> list[str]:
        """List the configured room ids."""
        return list(settings.rooms)

    @mcp.tool()
    def list_room_reservations(room_id: str) -> list[dict[str, str]]:
        """Return the reservations of one room, earliest first."""
        _require_room(room_id)
        return [record.to_dict() for record in repository.list_by_room(room_id)]

    @mcp.tool()
    def create_reservation(room_id: str, user_id: str, start_time: str, end_time: str) -> dict[str, str]:
        """Reserve a room between two ISO-8601 timestamps."""
        _require_room(room_id)
        result = repository.create(room_id, user_id, start_time, end_time)
        if isinstance(result, ReservationError):
            raise result
        return result.to_dict()

    @mcp.tool()
    def cancel_reservation(reservation_id: str, user_id: str) -> dict[str, str]:
        """Cancel a reservation owned by user_id."""
        result = repository.delete_by_id(reservation_id, user_id=user_id)
        if isinstance(result, ReservationError):
            raise result
        return result.to_dict()

    return mcp


def main() -> None:
    config = load_config()
    configure_logging(config.log_level)
    create_server(config).run()


if __name__ == "__main__":
    main()
