import threading
import uuid
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from services.repository import Actor, ActorDirectory, BookingRecord, BookingRepository


class InMemoryActorDirectory(ActorDirectory):
    """Actor lookup backed by a dict; used by tests and local tooling."""

    def __init__(self, actors: Iterable[Actor] = ()):
        self._actors: Dict[int, Actor] = {a.id: a for a in actors}

    def add(self, actor: Actor) -> Actor:
        self._actors[actor.id] = actor
        return actor

    def find_actor_by_id(self, actor_id) -> Optional[Actor]:
        return self._actors.get(actor_id)


class InMemoryBookingRepository(BookingRepository):
    """Thread-safe in-memory store with the same conditional-update semantics as the SQL one."""

    def __init__(self, directory: Optional[ActorDirectory] = None):
        self._rows: Dict[str, BookingRecord] = {}
        self._lock = threading.Lock()
        self._directory = directory

    def _with_actors(self, record: BookingRecord) -> BookingRecord:
        if self._directory is None:
            return replace(record)
        return replace(
            record,
            customer=self._directory.find_actor_by_id(record.user_id),
            reader=self._directory.find_actor_by_id(record.reader_id),
        )

    def insert_booking(self, fields: dict) -> str:
        booking_id = str(uuid.uuid4())
        with self._lock:
            self._rows[booking_id] = BookingRecord(id=booking_id, cancelled_by=None, **fields)
        return booking_id

    def get_booking_by_id(self, booking_id: str) -> Optional[BookingRecord]:
        with self._lock:
            row = self._rows.get(booking_id)
        return self._with_actors(row) if row else None

    def list_bookings_by_actor(self, actor_id: Optional[int], role_filter: Optional[str]) -> List[BookingRecord]:
        with self._lock:
            rows = list(self._rows.values())

        if role_filter == "user":
            rows = [r for r in rows if r.user_id == actor_id]
        elif role_filter == "render":
            rows = [r for r in rows if r.reader_id == actor_id]
        elif role_filter is not None:
            raise ValueError(f"Unknown role filter: {role_filter}")

        rows.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return [self._with_actors(r) for r in rows]

    def update_booking_status(self, booking_id, new_status, from_statuses, updated_at, cancelled_by=None):
        allowed = set(from_statuses)
        with self._lock:
            row = self._rows.get(booking_id)
            if row is None or row.status not in allowed:
                return None
            row.status = new_status
            row.updated_at = updated_at
            if cancelled_by is not None:
                row.cancelled_by = cancelled_by
            updated = replace(row)
        return self._with_actors(updated)
