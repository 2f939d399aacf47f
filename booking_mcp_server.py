from __future__ import annotations

from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from room_booking import BookingStore, BookingYamlRepository, QuerySpec, ROOM_NAMES

mcp = FastMCP(
    "Room Booking MCP Server",
    instructions="Expose room bookings and booking operations from the room_booking project.",
    json_response=True,
)

DATA_DIR = Path(__file__).parent / "data"
REPOSITORY = BookingYamlRepository(DATA_DIR)
STORE = BookingStore(REPOSITORY, event_log=REPOSITORY.events)


@mcp.resource("booking://rooms")
async def list_rooms() -> list[str]:
    """List bookable room names."""
    return list(ROOM_NAMES)


@mcp.tool()
def list_bookings(
    room: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    group: str | None = None,
) -> list[dict[str, Any]]:
    """Return bookings, optionally filtered by room, date range and group name."""
    spec = QuerySpec(start_date=start_date, end_date=end_date, room_name=room, group_name=group)
    return [booking.to_dict() for booking in STORE.list_bookings(spec).results]


@mcp.tool()
def create_booking(
    room: str,
    date: str,
    start_time: str,
    end_time: str,
    group_name: str,
    booked_by: str,
    purpose: str = "MCP booking",
) -> dict[str, Any]:
    """Book a room for one time slot on one date (times as HH:MM)."""
    created = STORE.create(
        {
            "className": room,
            "date": date,
            "startTime": start_time,
            "endTime": end_time,
            "groupName": group_name,
            "bookedBy": booked_by,
            "purpose": purpose,
        }
    )
    return created.to_dict()


@mcp.tool()
def delete_booking(booking_id: str) -> dict[str, bool]:
    """Delete one booking by id."""
    return {"success": STORE.remove(booking_id)}


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
