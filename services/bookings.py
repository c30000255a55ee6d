"""
Booking lifecycle: creation, confirm/reject/cancel transitions and the
authorization rules gating each of them.

    PENDING --confirm--> CONFIRMED
    PENDING --reject---> REJECTED
    PENDING|CONFIRMED --cancel--> CANCELLED

REJECTED, CANCELLED and COMPLETED are terminal.
"""
import logging
from datetime import datetime
from typing import List, Optional

from security.rbac import ROLE_ADMIN, ROLE_READER, ROLE_USER, has_minimum_role
from services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from services.notifications import BookingNotifier, NotificationDispatcher
from services.repository import Actor, ActorDirectory, BookingRecord, BookingRepository
from utils.clock import parse_iso, to_naive_utc, utcnow

logger = logging.getLogger(__name__)

NOTES_MAX_LENGTH = 1000


class BookingStatus:
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class _Transition:
    def __init__(self, verb, sources, target, allow_customer):
        self.verb = verb
        self.sources = sources
        self.target = target
        self.allow_customer = allow_customer

    def permits(self, actor: Actor, booking: BookingRecord) -> bool:
        if has_minimum_role(actor.role, ROLE_ADMIN):
            return True
        if actor.id == booking.reader_id:
            return True
        return self.allow_customer and actor.id == booking.user_id


TRANSITIONS = {
    "confirm": _Transition("confirm", (BookingStatus.PENDING,), BookingStatus.CONFIRMED, allow_customer=False),
    "reject": _Transition("reject", (BookingStatus.PENDING,), BookingStatus.REJECTED, allow_customer=False),
    "cancel": _Transition(
        "cancel",
        (BookingStatus.PENDING, BookingStatus.CONFIRMED),
        BookingStatus.CANCELLED,
        allow_customer=True,
    ),
}


def _coerce_actor_id(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


class BookingService:

    def __init__(
        self,
        repository: BookingRepository,
        directory: ActorDirectory,
        notifier: BookingNotifier,
        dispatcher: Optional[NotificationDispatcher] = None,
        notes_max_length: int = NOTES_MAX_LENGTH,
        clock=utcnow,
    ):
        self.repository = repository
        self.directory = directory
        self.notifier = notifier
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.notes_max_length = notes_max_length
        self._clock = clock

    # ---------- helpers ----------

    def _notify(self, hook, *args):
        # runs after the commit; nothing here may fail the caller
        try:
            self.dispatcher.dispatch(hook, *args)
        except Exception:
            logger.exception("Failed to dispatch %s", getattr(hook, "__name__", hook))

    def _require_booking(self, booking_id) -> BookingRecord:
        booking = self.repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def _can_view(actor: Actor, booking: BookingRecord) -> bool:
        return has_minimum_role(actor.role, ROLE_ADMIN) or actor.id in (booking.user_id, booking.reader_id)

    def _parse_scheduled_at(self, value) -> datetime:
        if value is None or value == "":
            raise ValidationError("reader_id and scheduled_at are required")
        if isinstance(value, datetime):
            scheduled = to_naive_utc(value)
        else:
            try:
                scheduled = parse_iso(value)
            except (TypeError, ValueError):
                raise ValidationError("scheduled_at is not a valid date. Use ISO e.g. 2026-01-20T18:00:00Z")

        if scheduled <= self._clock():
            raise ValidationError("scheduled_at must be in the future")
        return scheduled

    def _validate_notes(self, notes) -> Optional[str]:
        if notes is None:
            return None
        if not isinstance(notes, str):
            raise ValidationError("notes must be a string")
        if len(notes) > self.notes_max_length:
            raise ValidationError(f"notes must be at most {self.notes_max_length} characters")
        return notes or None

    # ---------- operations ----------

    def create_booking(self, customer: Actor, reader_id, scheduled_at, notes=None) -> BookingRecord:
        if reader_id is None or reader_id == "":
            raise ValidationError("reader_id and scheduled_at are required")
        reader_key = _coerce_actor_id(reader_id)
        if reader_key is None:
            raise ValidationError("reader_id is invalid")

        scheduled = self._parse_scheduled_at(scheduled_at)
        clean_notes = self._validate_notes(notes)

        if reader_key == customer.id:
            raise ConflictError("You cannot book a session with yourself")

        # customers only: anything ranked at or above reader is refused
        if not has_minimum_role(customer.role, ROLE_USER) or has_minimum_role(customer.role, ROLE_READER):
            raise ForbiddenError("Only customers can create bookings")

        reader = self.directory.find_actor_by_id(reader_key)
        # the booked party must be a reader proper; admins outrank readers but are not bookable
        if reader is None or reader.role != ROLE_READER:
            raise NotFoundError("Reader not found")

        now = self._clock()
        booking_id = self.repository.insert_booking({
            "user_id": customer.id,
            "reader_id": reader.id,
            "scheduled_at": scheduled,
            "status": BookingStatus.PENDING,
            "notes": clean_notes,
            "created_at": now,
            "updated_at": now,
        })
        booking = self._require_booking(booking_id)

        self._notify(self.notifier.notify_reader_new_booking, booking)
        return booking

    def _transition(self, action: str, booking_id, actor: Actor) -> BookingRecord:
        rule = TRANSITIONS[action]
        booking = self._require_booking(booking_id)

        if not rule.permits(actor, booking):
            raise ForbiddenError(f"You are not allowed to {rule.verb} this booking")

        if booking.status not in rule.sources:
            raise ConflictError(
                f"Cannot {rule.verb} a booking with status {booking.status}",
                status=booking.status,
            )

        updated_at = max(self._clock(), booking.updated_at)
        cancelled_by = actor.id if rule.target == BookingStatus.CANCELLED else None
        updated = self.repository.update_booking_status(
            booking.id, rule.target, rule.sources, updated_at, cancelled_by=cancelled_by,
        )
        if updated is None:
            # lost a race with another writer; report what is stored now
            current = self.repository.get_booking_by_id(booking.id)
            status = current.status if current else booking.status
            raise ConflictError(f"Cannot {rule.verb} a booking with status {status}", status=status)

        return updated

    def confirm_booking(self, booking_id, actor: Actor) -> BookingRecord:
        booking = self._transition("confirm", booking_id, actor)
        self._notify(self.notifier.notify_customer_confirmed, booking)
        return booking

    def reject_booking(self, booking_id, actor: Actor) -> BookingRecord:
        booking = self._transition("reject", booking_id, actor)
        self._notify(self.notifier.notify_customer_rejected, booking)
        return booking

    def cancel_booking(self, booking_id, actor: Actor) -> BookingRecord:
        booking = self._transition("cancel", booking_id, actor)
        self._notify(self.notifier.notify_counterparty_cancelled, booking, actor.id)
        return booking

    def list_bookings(self, actor: Actor) -> List[BookingRecord]:
        if has_minimum_role(actor.role, ROLE_ADMIN):
            return self.repository.list_bookings_by_actor(None, None)
        if has_minimum_role(actor.role, ROLE_READER):
            return self.repository.list_bookings_by_actor(actor.id, ROLE_READER)
        return self.repository.list_bookings_by_actor(actor.id, ROLE_USER)

    def get_booking(self, booking_id, actor: Actor) -> BookingRecord:
        booking = self._require_booking(booking_id)
        if not self._can_view(actor, booking):
            raise ForbiddenError("You are not allowed to view this booking")
        return booking
