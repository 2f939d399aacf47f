from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Sequence
import logging
import random
import shutil
from uuid import uuid4

import yaml

from .booking import ROOM_NAMES, Booking, has_conflict
from .errors import StorageError

logger = logging.getLogger(__name__)

BOOKINGS_FILE_NAME = "bookings.yaml"
EVENTS_FILE_NAME = "booking_events.yaml"


class _CorruptYamlError(ValueError):
    pass


def _load_yaml_rows(path: Path) -> list[Any]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return []
    except (UnicodeDecodeError, yaml.YAMLError) as error:
        raise _CorruptYamlError(str(error)) from error
    except OSError as error:
        raise StorageError(f"Failed to read YAML file: {path}") from error

    if payload is None:
        return []
    if not isinstance(payload, list):
        raise _CorruptYamlError("top-level YAML is not a list")
    return payload


def _write_yaml_rows(path: Path, rows: list[Any]) -> None:
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
        temp_path.replace(path)
    except OSError as error:
        raise StorageError(f"Failed to write YAML file: {path}") from error
    finally:
        if temp_path.exists():
            temp_path.unlink(missing_ok=True)


def _backup_corrupted(path: Path) -> Path:
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
    try:
        if path.exists():
            shutil.copy2(path, backup_path)
    except OSError:
        logger.warning("Could not back up corrupted file %s", path)
    return backup_path


def _is_booking_row(row: Any) -> bool:
    if not isinstance(row, dict):
        return False
    try:
        Booking.from_dict(row)
    except (KeyError, TypeError, ValueError):
        return False
    return True


class YamlEventLog:
    """Append-only audit trail of booking events stored as a YAML list."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        if not self.path.exists():
            _write_yaml_rows(self.path, [])

    def read_events(self) -> list[dict[str, Any]]:
        try:
            rows = _load_yaml_rows(self.path)
        except _CorruptYamlError as error:
            backup_path = _backup_corrupted(self.path)
            logger.warning("Event log %s was corrupted (%s); backed up to %s", self.path, error, backup_path.name)
            _write_yaml_rows(self.path, [])
            return []
        return [row for row in rows if isinstance(row, dict)]

    def log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        events = self.read_events()
        events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
        _write_yaml_rows(self.path, events)


class BookingYamlRepository:
    """Whole-collection storage for bookings.

    Every write replaces the file through a temp file, so readers only ever
    see the previous or the new collection.
    """

    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.bookings_file = self.base_dir / BOOKINGS_FILE_NAME
        self.events = YamlEventLog(self.base_dir / EVENTS_FILE_NAME)
        self._ensure_files()

    def _ensure_files(self) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise StorageError(f"Failed to create data directory: {self.base_dir}") from error
        if not self.bookings_file.exists():
            _write_yaml_rows(self.bookings_file, [])

    def _read_rows(self) -> list[dict[str, Any]]:
        try:
            rows = _load_yaml_rows(self.bookings_file)
        except _CorruptYamlError as error:
            self._recover_corrupted_yaml(error)
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(rows):
            if isinstance(row, dict):
                sanitized.append(row)
            else:
                self.events.log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": self.bookings_file.name,
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _recover_corrupted_yaml(self, error: Exception) -> None:
        backup_path = _backup_corrupted(self.bookings_file)
        _write_yaml_rows(self.bookings_file, [])
        self.events.log_event(
            "YAML_RECOVERED",
            {
                "file": self.bookings_file.name,
                "backup": backup_path.name,
                "reason": str(error),
            },
        )

    def read_all(self) -> list[Booking]:
        bookings: list[Booking] = []
        for index, row in enumerate(self._read_rows()):
            try:
                bookings.append(Booking.from_dict(row))
            except (KeyError, TypeError, ValueError) as error:
                self.events.log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": self.bookings_file.name,
                        "index": index,
                        "reason": f"invalid booking record: {error}",
                    },
                )
        return bookings

    def write_all(self, bookings: Sequence[Booking]) -> None:
        """Replace the collection with ``bookings``.

        Rows that ``read_all`` skips are kept at the end of the file so they
        can still be repaired by hand.
        """
        rows: list[Any] = [booking.to_dict() for booking in bookings]
        rows.extend(self._unreadable_rows())
        _write_yaml_rows(self.bookings_file, rows)

    def _unreadable_rows(self) -> list[Any]:
        try:
            rows = _load_yaml_rows(self.bookings_file)
        except _CorruptYamlError as error:
            self._recover_corrupted_yaml(error)
            return []
        return [row for row in rows if not _is_booking_row(row)]

    def backup(self, target: str | Path | None = None, now: datetime | None = None) -> Path:
        """Copy the current collection file aside and return the copy's path."""
        effective_now = now or datetime.now()
        if target is None:
            timestamp = effective_now.strftime("%Y%m%d%H%M%S")
            target = self.base_dir / "backups" / f"bookings.{timestamp}.yaml"
        target_path = Path(target)
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.bookings_file, target_path)
        except OSError as error:
            raise StorageError(f"Failed to back up bookings to {target_path}") from error

        self.events.log_event("BOOKINGS_BACKED_UP", {"backup": str(target_path)}, effective_now)
        return target_path

    def restore(self, source: str | Path, now: datetime | None = None) -> list[Booking]:
        """Replace the collection with a backup after checking every record parses."""
        source_path = Path(source)
        if not source_path.exists():
            raise StorageError(f"Backup file not found: {source_path.name}")
        try:
            rows = _load_yaml_rows(source_path)
            bookings = [Booking.from_dict(row) for row in rows]
        except (_CorruptYamlError, KeyError, TypeError, ValueError) as error:
            raise StorageError(f"Backup file is not a valid booking collection: {source_path.name}") from error

        _write_yaml_rows(self.bookings_file, [booking.to_dict() for booking in bookings])
        self.events.log_event(
            "BOOKINGS_RESTORED",
            {"backup": str(source_path), "count": len(bookings)},
            now,
        )
        return bookings


def generate_test_bookings(
    start_date: date,
    days: int = 14,
    per_day: int = 6,
    rooms: Sequence[str] = ROOM_NAMES,
    now: datetime | None = None,
    id_factory: Callable[[], str] | None = None,
) -> list[Booking]:
    """Build a deterministic, overlap-free set of demo bookings."""
    if days <= 0:
        raise ValueError("days must be greater than zero")
    if per_day <= 0:
        raise ValueError("per_day must be greater than zero")
    if not rooms:
        raise ValueError("rooms must not be empty")

    rng = random.Random(f"demo:{start_date.isoformat()}:{days}:{per_day}")
    make_id = id_factory or (lambda: str(uuid4()))
    created_at = (now or datetime.now()).isoformat(timespec="seconds")
    groups = ["Finance", "Operations", "Marketing", "HR", "IT Support", "Sales"]
    purposes = ["Weekly sync", "Training", "Client meeting", "Interview", "Workshop", "Planning"]

    records: list[Booking] = []
    for offset in range(days):
        day = start_date + timedelta(days=offset)
        if day.weekday() >= 5:
            continue

        attempts = 0
        placed = 0
        while placed < per_day and attempts < per_day * 8:
            attempts += 1
            start_hour = rng.randint(8, 16)
            start_minute = rng.choice([0, 30])
            duration = rng.choice([30, 60, 90, 120])
            end_total = min(start_hour * 60 + start_minute + duration, 18 * 60)
            candidate = Booking(
                booking_id=make_id(),
                date=day.isoformat(),
                start_time=f"{start_hour:02d}:{start_minute:02d}",
                end_time=f"{end_total // 60:02d}:{end_total % 60:02d}",
                group_name=rng.choice(groups),
                room_name=rng.choice(list(rooms)),
                created_at=created_at,
                booked_by="Demo",
                purpose=rng.choice(purposes),
            )
            if has_conflict(candidate, records):
                continue
            records.append(candidate)
            placed += 1

    return records
