import unittest
from datetime import date

from room_booking import Booking, InvalidPatternError, RecurringPattern, add_months, expand, occurrence_dates


def make_base(day: str = "2026-03-02", room: str = "Seminar", start: str = "14:00", end: str = "15:00") -> Booking:
    return Booking(
        booking_id="",
        date=day,
        start_time=start,
        end_time=end,
        group_name="Training",
        room_name=room,
        created_at="2026-03-01T09:00:00",
        booked_by="Sokha",
        purpose="Onboarding",
    )


class TestAddMonths(unittest.TestCase):
    def test_clamps_to_last_day_of_shorter_month(self) -> None:
        self.assertEqual(add_months(date(2026, 1, 31), 1), date(2026, 2, 28))
        self.assertEqual(add_months(date(2028, 1, 31), 1), date(2028, 2, 29))
        self.assertEqual(add_months(date(2026, 3, 31), 1), date(2026, 4, 30))

    def test_rolls_over_year_boundary(self) -> None:
        self.assertEqual(add_months(date(2026, 11, 15), 3), date(2027, 2, 15))


class TestOccurrenceDates(unittest.TestCase):
    def test_daily_interval_two_over_six_days_yields_four_dates(self) -> None:
        pattern = RecurringPattern("daily", 2, date(2026, 3, 8))
        dates = list(occurrence_dates(date(2026, 3, 2), pattern))
        self.assertEqual(dates, [date(2026, 3, 2), date(2026, 3, 4), date(2026, 3, 6), date(2026, 3, 8)])

    def test_weekly_steps_by_whole_weeks(self) -> None:
        pattern = RecurringPattern("weekly", 1, date(2026, 3, 23))
        dates = list(occurrence_dates(date(2026, 3, 2), pattern))
        self.assertEqual(len(dates), 4)
        self.assertTrue(all(value.weekday() == 0 for value in dates))

    def test_monthly_keeps_anchor_day_after_short_month(self) -> None:
        pattern = RecurringPattern("monthly", 1, date(2026, 4, 30))
        dates = list(occurrence_dates(date(2026, 1, 31), pattern))
        self.assertEqual(dates, [date(2026, 1, 31), date(2026, 2, 28), date(2026, 3, 31), date(2026, 4, 30)])

    def test_end_date_is_inclusive(self) -> None:
        pattern = RecurringPattern("weekly", 2, date(2026, 3, 16))
        self.assertEqual(list(occurrence_dates(date(2026, 3, 2), pattern))[-1], date(2026, 3, 16))

    def test_runaway_pattern_is_rejected(self) -> None:
        pattern = RecurringPattern("daily", 1, date(2030, 1, 1))
        with self.assertRaises(InvalidPatternError):
            list(occurrence_dates(date(2026, 1, 1), pattern))


class TestExpand(unittest.TestCase):
    def test_each_instance_gets_own_id_and_shares_pattern(self) -> None:
        pattern = RecurringPattern("daily", 2, date(2026, 3, 8))
        series = expand(make_base(), pattern)

        self.assertEqual([booking.date for booking in series], ["2026-03-02", "2026-03-04", "2026-03-06", "2026-03-08"])
        self.assertEqual(len({booking.booking_id for booking in series}), 4)
        self.assertTrue(all(booking.booking_id for booking in series))
        self.assertTrue(all(booking.recurring_pattern == pattern for booking in series))

    def test_conflicting_occurrence_is_skipped_and_generation_continues(self) -> None:
        blocker = make_base(day="2026-03-09", start="14:30", end="16:00").with_changes(booking_id="blocker")
        pattern = RecurringPattern("weekly", 1, date(2026, 3, 23))

        series = expand(make_base(), pattern, [blocker])

        self.assertEqual([booking.date for booking in series], ["2026-03-02", "2026-03-16", "2026-03-23"])

    def test_bookings_in_other_rooms_do_not_block(self) -> None:
        other_room = make_base(day="2026-03-09", room="KPS").with_changes(booking_id="other")
        pattern = RecurringPattern("weekly", 1, date(2026, 3, 23))
        self.assertEqual(len(expand(make_base(), pattern, [other_room])), 4)

    def test_every_occurrence_blocked_returns_empty_series(self) -> None:
        pattern = RecurringPattern("daily", 1, date(2026, 3, 3))
        blockers = [
            make_base(day="2026-03-02").with_changes(booking_id="one"),
            make_base(day="2026-03-03").with_changes(booking_id="two"),
        ]
        self.assertEqual(expand(make_base(), pattern, blockers), [])

    def test_missing_pattern_or_end_before_start_is_invalid(self) -> None:
        with self.assertRaises(InvalidPatternError):
            expand(make_base(), None)
        with self.assertRaises(InvalidPatternError):
            expand(make_base(), RecurringPattern("daily", 1, date(2026, 3, 1)))

    def test_non_positive_interval_is_invalid(self) -> None:
        with self.assertRaises(InvalidPatternError):
            expand(make_base(), RecurringPattern("daily", 0, date(2026, 3, 8)))


if __name__ == "__main__":
    unittest.main()
