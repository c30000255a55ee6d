from flask import Blueprint, request, jsonify, current_app, g

from models.user import User
from security.rate_limit import check_and_increment_booking_rate
from security.rbac import ROLE_READER
from services import BookingService, RateLimitError, ValidationError
from utils.auth_context import login_required, current_actor
from utils.audit import log_event
from utils.validation import is_valid_uuid

booking_bp = Blueprint("booking", __name__)


def _service() -> BookingService:
    return current_app.extensions["booking_service"]


def _booking_id(raw: str) -> str:
    if not is_valid_uuid(raw):
        raise ValidationError("Invalid booking id")
    return raw.lower()


# ---------- PUBLIC: list readers ----------
@booking_bp.get("/readers")
def list_readers():
    readers = User.query.filter_by(role=ROLE_READER).order_by(User.username.asc()).all()
    return jsonify(readers=[
        {"id": r.id, "username": r.username}
        for r in readers
    ]), 200


# ---------- CUSTOMERS: request a booking ----------
@booking_bp.post("/bookings")
@login_required
def create_booking():
    allowed, retry_after = check_and_increment_booking_rate()
    if not allowed:
        log_event("BOOKING_RATE_LIMIT", user_id=g.user.id, metadata={"retry_after": retry_after})
        raise RateLimitError("Too many booking requests. Slow down.", retry_after_seconds=retry_after)

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    booking = _service().create_booking(
        current_actor(),
        data.get("reader_id"),
        data.get("scheduled_at"),
        data.get("notes"),
    )

    log_event(
        "BOOKING_CREATE",
        user_id=g.user.id,
        entity="booking",
        entity_id=booking.id,
        metadata={"reader_id": booking.reader_id},
    )
    return jsonify(booking=booking.to_dict()), 201


# ---------- ANY ROLE: list visible bookings ----------
@booking_bp.get("/bookings")
@login_required
def list_bookings():
    rows = _service().list_bookings(current_actor())
    return jsonify(bookings=[b.to_dict() for b in rows], total=len(rows)), 200


@booking_bp.get("/bookings/<booking_id>")
@login_required
def get_booking(booking_id: str):
    booking = _service().get_booking(_booking_id(booking_id), current_actor())
    return jsonify(booking=booking.to_dict()), 200


# ---------- READER/ADMIN: confirm or reject; any party: cancel ----------
@booking_bp.patch("/bookings/<booking_id>/confirm")
@login_required
def confirm_booking(booking_id: str):
    booking = _service().confirm_booking(_booking_id(booking_id), current_actor())
    log_event("BOOKING_CONFIRM", user_id=g.user.id, entity="booking", entity_id=booking.id)
    return jsonify(booking=booking.to_dict()), 200


@booking_bp.patch("/bookings/<booking_id>/reject")
@login_required
def reject_booking(booking_id: str):
    booking = _service().reject_booking(_booking_id(booking_id), current_actor())
    log_event("BOOKING_REJECT", user_id=g.user.id, entity="booking", entity_id=booking.id)
    return jsonify(booking=booking.to_dict()), 200


@booking_bp.patch("/bookings/<booking_id>/cancel")
@login_required
def cancel_booking(booking_id: str):
    booking = _service().cancel_booking(_booking_id(booking_id), current_actor())
    log_event("BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking.id)
    return jsonify(booking=booking.to_dict()), 200
