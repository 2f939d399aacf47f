import unittest
from datetime import date

from room_booking import Booking, RecurringPattern, booking_statistics, room_availability
from room_booking.availability import holiday_name


def make_booking(booking_id: str, start: str, end: str, **overrides: object) -> Booking:
    values = {
        "booking_id": booking_id,
        "date": "2026-03-02",
        "start_time": start,
        "end_time": end,
        "group_name": "Finance",
        "room_name": "PVH",
        "created_at": "2026-03-01T09:00:00",
    }
    values.update(overrides)
    return Booking(**values)


class TestRoomAvailability(unittest.TestCase):
    def test_free_slots_are_the_gaps_between_bookings(self) -> None:
        bookings = [
            make_booking("b2", "13:00", "14:30"),
            make_booking("b1", "09:00", "10:00"),
            make_booking("b3", "14:30", "15:00"),
            make_booking("other-room", "10:00", "12:00", room_name="PP"),
            make_booking("other-day", "10:00", "12:00", date="2026-03-03"),
        ]

        availability = room_availability(bookings, "PVH", "2026-03-02", country=None)

        self.assertEqual(availability.booked, [("09:00", "10:00"), ("13:00", "14:30"), ("14:30", "15:00")])
        self.assertEqual(availability.free, [("08:00", "09:00"), ("10:00", "13:00"), ("15:00", "18:00")])
        self.assertIsNone(availability.holiday)

    def test_bookings_outside_opening_hours_are_clipped(self) -> None:
        bookings = [make_booking("early", "07:00", "08:30"), make_booking("late", "17:30", "20:00")]

        availability = room_availability(bookings, "PVH", "2026-03-02", country=None)

        self.assertEqual(availability.free, [("08:30", "17:30")])

    def test_fully_booked_day_has_no_free_slots(self) -> None:
        availability = room_availability([make_booking("all", "08:00", "18:00")], "PVH", "2026-03-02", country=None)
        self.assertEqual(availability.free, [])

    def test_empty_day_is_entirely_free_with_custom_hours(self) -> None:
        availability = room_availability([], "PVH", "2026-03-02", day_start="07:00", day_end="21:00", country=None)
        self.assertEqual(availability.free, [("07:00", "21:00")])

    def test_invalid_opening_hours_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            room_availability([], "PVH", "2026-03-02", day_start="18:00", day_end="08:00", country=None)

    def test_to_dict_uses_wire_names(self) -> None:
        payload = room_availability([make_booking("b1", "09:00", "10:00")], "PVH", "2026-03-02", country=None).to_dict()
        self.assertEqual(payload["className"], "PVH")
        self.assertEqual(payload["booked"], [{"startTime": "09:00", "endTime": "10:00"}])


class TestHolidayName(unittest.TestCase):
    def test_new_year_is_a_public_holiday(self) -> None:
        self.assertIsNotNone(holiday_name(date(2026, 1, 1), "KH"))

    def test_no_country_means_no_holidays(self) -> None:
        self.assertIsNone(holiday_name(date(2026, 1, 1), None))


class TestBookingStatistics(unittest.TestCase):
    def test_counts_by_status_room_and_date(self) -> None:
        pattern = RecurringPattern("weekly", 1, date(2026, 3, 30))
        bookings = [
            make_booking("b1", "09:00", "10:00"),
            make_booking("b2", "10:00", "11:00", status="pending", room_name="SR"),
            make_booking("b3", "11:00", "12:00", date="2026-03-09", recurring_pattern=pattern),
        ]

        stats = booking_statistics(bookings)

        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["byStatus"], {"confirmed": 2, "pending": 1, "cancelled": 0})
        self.assertEqual(stats["byRoom"], {"PVH": 2, "SR": 1})
        self.assertEqual(stats["byDate"], {"2026-03-02": 2, "2026-03-09": 1})
        self.assertEqual(stats["recurring"], 1)

    def test_empty_collection(self) -> None:
        self.assertEqual(booking_statistics([])["total"], 0)


if __name__ == "__main__":
    unittest.main()
