import asyncio
import json
import unittest
from datetime import UTC, datetime
from typing import Any

from mcp.server.fastmcp.exceptions import ToolError

from reservation_mcp_server import create_server
from room_reservations import AppConfig, InMemoryReservationStore

NOW = datetime(2026, 2, 24, 9, 0, tzinfo=UTC)


def _decode(result: Any, many: bool = False) -> Any:
    """Turn a FastMCP call_tool result into the tool's plain return value."""
    if isinstance(result, tuple):
        content, structured = result
        if structured is not None:
            return _decode(structured, many)
        result = content
    if isinstance(result, dict):
        if set(result) == {"result"}:
            return result["result"]
        return result

    decoded = [json.loads(block.text) for block in result]
    if many:
        # older servers send one content block per list item
        return decoded[0] if len(decoded) == 1 and isinstance(decoded[0], list) else decoded
    return decoded[0]


class TestMcpServer(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryReservationStore(clock=lambda: NOW)
        self.server = create_server(AppConfig(rooms=("A", "B")), store=self.store)

    def call(self, name: str, many: bool = False, **arguments: Any) -> Any:
        return _decode(asyncio.run(self.server.call_tool(name, arguments)), many)

    def create(self, room_id: str, user_id: str, start: str, end: str) -> Any:
        return self.call("create_reservation", room_id=room_id, user_id=user_id, start_time=start, end_time=end)

    def test_registers_reservation_tools(self) -> None:
        tools = asyncio.run(self.server.list_tools())

        self.assertEqual(
            {tool.name for tool in tools},
            {"list_room_reservations", "create_reservation", "cancel_reservation"},
        )

    def test_create_list_and_cancel(self) -> None:
        created = self.create("A", "alice", "2026-02-24T10:00:00Z", "2026-02-24T11:00:00Z")
        self.assertEqual(created["roomId"], "A")
        self.assertEqual(created["userId"], "alice")
        self.assertEqual(created["startTime"], "2026-02-24T10:00:00.000Z")

        listed = self.call("list_room_reservations", many=True, room_id="A")
        self.assertEqual([item["id"] for item in listed], [created["id"]])

        cancelled = self.call("cancel_reservation", reservation_id=created["id"], user_id="alice")
        self.assertEqual(cancelled, created)
        self.assertEqual(len(self.store), 0)

    def test_conflicting_create_is_a_tool_error(self) -> None:
        self.create("A", "alice", "2026-02-24T10:00:00Z", "2026-02-24T11:00:00Z")

        with self.assertRaises(ToolError) as caught:
            self.create("A", "bob", "2026-02-24T10:30:00Z", "2026-02-24T11:30:00Z")

        self.assertIn("overlaps", str(caught.exception))
        self.assertEqual(len(self.store), 1)

    def test_cancel_by_other_user_is_a_tool_error(self) -> None:
        created = self.create("A", "alice", "2026-02-24T10:00:00Z", "2026-02-24T11:00:00Z")

        with self.assertRaises(ToolError) as caught:
            self.call("cancel_reservation", reservation_id=created["id"], user_id="bob")

        self.assertIn("another user", str(caught.exception))
        self.assertEqual(len(self.store), 1)

    def test_unknown_room_is_a_tool_error(self) -> None:
        with self.assertRaises(ToolError) as caught:
            self.call("list_room_reservations", room_id="Z")

        self.assertIn("Unknown room", str(caught.exception))

    def test_unparseable_time_is_a_tool_error(self) -> None:
        with self.assertRaises(ToolError):
            self.create("A", "alice", "not-a-date", "2026-02-24T11:00:00Z")

        self.assertEqual(len(self.store), 0)


if __name__ == "__main__":
    unittest.main()
