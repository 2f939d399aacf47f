from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
import traceback

from room_booking import BookingStore, BookingYamlRepository, ConflictError, QuerySpec, generate_test_bookings


def main() -> int:
    print("[INFO] Room Booking Quick Check")
    print("[INFO] Generating and validating demo data...")

    repo = BookingYamlRepository("data")
    now = datetime(2026, 3, 2, 9, 0)
    store = BookingStore(repo, event_log=repo.events, now_provider=lambda: now)

    generated = generate_test_bookings(date(2026, 3, 2), days=14, per_day=6, now=now)
    repo.write_all(generated)
    print(f"[OK] Demo bookings generated: {len(generated)} records")

    series = store.create(
        {
            "date": "2026-03-02",
            "startTime": "18:00",
            "endTime": "19:00",
            "groupName": "Quick Check",
            "className": "Seminar",
            "bookedBy": "quickcheck",
            "purpose": "Recurring smoke test",
            "recurring": {"frequency": "weekly", "interval": 1, "endDate": "2026-03-30"},
        }
    )
    print(f"[OK] Recurring series created: {len(series)} bookings")

    try:
        store.create(
            {
                "date": "2026-03-02",
                "startTime": "18:30",
                "endTime": "19:30",
                "groupName": "Quick Check",
                "className": "Seminar",
                "bookedBy": "quickcheck",
                "purpose": "Should collide",
            }
        )
        print("[ERROR] Overlapping booking was accepted.")
        return 1
    except ConflictError:
        print("[OK] Overlapping booking rejected")

    page = store.list_bookings(QuerySpec(room_name="Seminar", page=1, limit=5))
    print(f"[OK] Seminar bookings: {page.total} (first page: {len(page.results)})")
    print(f"[OK] Bookings YAML: {Path('data/bookings.yaml').resolve()}")
    print(f"[OK] Event Log YAML: {Path('data/booking_events.yaml').resolve()}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
