from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Sequence

from flask import Flask, jsonify, request

from .availability import HOLIDAY_COUNTRY
from .booking import ROOM_NAMES
from .errors import BookingError, ConflictError, NotFoundError, StorageError, ValidationError
from .query import QuerySpec, total_pages
from .store import BookingStore
from .yaml_store import BookingYamlRepository


def create_app(
    data_dir: str | Path = "data",
    now_provider: Callable[[], datetime] | None = None,
    rooms: Sequence[str] = ROOM_NAMES,
    holiday_country: str | None = HOLIDAY_COUNTRY,
) -> Flask:
    app = Flask(__name__)
    repository = BookingYamlRepository(data_dir)
    store = BookingStore(
        repository,
        event_log=repository.events,
        now_provider=now_provider,
        rooms=rooms,
        holiday_country=holiday_country,
    )
    app.config["BOOKING_STORE"] = store

    def _failure(error: Exception, message: str) -> tuple[Any, int]:
        if isinstance(error, StorageError) or not isinstance(error, BookingError):
            app.logger.exception("%s: %s", message, error)
            return jsonify({"message": message}), 500
        return jsonify({"message": error.message}), _status_for(error)

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.get("/api/rooms")
    def list_rooms() -> Any:
        return jsonify(list(store.rooms))

    @app.get("/api/rooms/<room_name>/availability")
    def get_availability(room_name: str) -> Any:
        day = str(request.args.get("date", "")).strip()
        if not day:
            return jsonify({"message": "date is required"}), 400
        try:
            availability = store.availability(room_name, day)
        except Exception as error:
            return _failure(error, "Failed to fetch availability")
        return jsonify(availability.to_dict())

    @app.get("/api/stats")
    def get_stats() -> Any:
        try:
            return jsonify(store.statistics())
        except Exception as error:
            return _failure(error, "Failed to fetch statistics")

    @app.get("/api/bookings")
    def list_bookings() -> Any:
        try:
            spec = QuerySpec.from_args(request.args)
            result = store.list_bookings(spec)
        except Exception as error:
            return _failure(error, "Failed to fetch bookings")

        bookings = [booking.to_dict() for booking in result.results]
        if spec.is_empty():
            return jsonify(bookings)

        return jsonify(
            {
                "bookings": bookings,
                "total": result.total,
                "page": spec.page or 1,
                "limit": spec.limit or result.total,
                "totalPages": total_pages(result.total, spec.limit),
            }
        )

    @app.get("/api/bookings/<booking_id>")
    def get_booking(booking_id: str) -> Any:
        try:
            booking = store.get(booking_id)
        except Exception as error:
            return _failure(error, "Failed to fetch booking")
        return jsonify(booking.to_dict())

    @app.post("/api/bookings")
    def create_booking() -> Any:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"message": "Request body must be a JSON object"}), 400

        try:
            created = store.create(payload)
        except Exception as error:
            message = "Failed to create recurring bookings" if payload.get("recurring") else "Failed to create booking"
            return _failure(error, message)

        if isinstance(created, list):
            return jsonify([booking.to_dict() for booking in created]), 201
        return jsonify(created.to_dict()), 201

    @app.put("/api/bookings/<booking_id>")
    def update_booking(booking_id: str) -> Any:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"message": "Request body must be a JSON object"}), 400

        try:
            updated = store.update(booking_id, payload)
        except Exception as error:
            return _failure(error, "Failed to update booking")
        return jsonify(updated.to_dict())

    @app.delete("/api/bookings/<booking_id>")
    def delete_booking(booking_id: str) -> Any:
        try:
            store.remove(booking_id)
        except Exception as error:
            return _failure(error, "Failed to delete booking")
        return jsonify({"success": True})

    return app


def _status_for(error: BookingError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConflictError):
        return 409
    if isinstance(error, ValidationError):
        return 400
    return 500


if __name__ == "__main__":
    app = create_app()
    app.run(host="127.0.0.1", port=5000, debug=False)
