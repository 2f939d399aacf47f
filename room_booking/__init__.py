from .booking import Booking, RecurringPattern, TimeSlot, ROOM_NAMES, has_conflict, has_time_overlap
from .errors import BookingError, ConflictError, InvalidPatternError, NotFoundError, StorageError, ValidationError
from .query import QueryResult, QuerySpec, query
from .recurrence import add_months, expand, occurrence_dates
from .store import BookingStore
from .yaml_store import BookingYamlRepository, YamlEventLog, generate_test_bookings
from .availability import RoomAvailability, booking_statistics, room_availability

__all__ = [
	"Booking",
	"RecurringPattern",
	"TimeSlot",
	"ROOM_NAMES",
	"has_conflict",
	"has_time_overlap",
	"BookingError",
	"ConflictError",
	"InvalidPatternError",
	"NotFoundError",
	"StorageError",
	"ValidationError",
	"QueryResult",
	"QuerySpec",
	"query",
	"add_months",
	"expand",
	"occurrence_dates",
	"BookingStore",
	"BookingYamlRepository",
	"YamlEventLog",
	"generate_test_bookings",
	"RoomAvailability",
	"booking_statistics",
	"room_availability",
]
