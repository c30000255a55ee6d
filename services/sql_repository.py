import uuid
from typing import Iterable, List, Optional

from sqlalchemy.orm import joinedload

from models import db
from models.booking import Booking
from models.user import User
from services.repository import Actor, ActorDirectory, BookingRecord, BookingRepository


def actor_from_user(user: Optional[User]) -> Optional[Actor]:
    if user is None:
        return None
    return Actor(
        id=user.id,
        role=user.role,
        display_name=user.username,
        email=user.email,
        phone=user.phone,
    )


def _to_record(row: Booking) -> BookingRecord:
    return BookingRecord(
        id=row.id,
        user_id=row.user_id,
        reader_id=row.reader_id,
        scheduled_at=row.scheduled_at,
        status=row.status,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
        cancelled_by=row.cancelled_by,
        customer=actor_from_user(row.customer),
        reader=actor_from_user(row.reader),
    )


class SqlAlchemyBookingRepository(BookingRepository):

    def _query(self):
        return Booking.query.options(
            joinedload(Booking.customer),
            joinedload(Booking.reader),
        )

    def insert_booking(self, fields: dict) -> str:
        booking_id = str(uuid.uuid4())
        row = Booking(id=booking_id, **fields)
        db.session.add(row)
        db.session.commit()
        return booking_id

    def get_booking_by_id(self, booking_id: str) -> Optional[BookingRecord]:
        row = self._query().filter(Booking.id == booking_id).first()
        return _to_record(row) if row else None

    def list_bookings_by_actor(self, actor_id: Optional[int], role_filter: Optional[str]) -> List[BookingRecord]:
        q = self._query()
        if role_filter == "user":
            q = q.filter(Booking.user_id == actor_id)
        elif role_filter == "render":
            q = q.filter(Booking.reader_id == actor_id)
        elif role_filter is not None:
            raise ValueError(f"Unknown role filter: {role_filter}")

        rows = q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()
        return [_to_record(r) for r in rows]

    def update_booking_status(self, booking_id, new_status, from_statuses: Iterable[str], updated_at, cancelled_by=None):
        values = {"status": new_status, "updated_at": updated_at}
        if cancelled_by is not None:
            values["cancelled_by"] = cancelled_by

        # UPDATE ... WHERE id = ? AND status IN (...) closes the check-then-act race
        matched = (
            Booking.query
            .filter(Booking.id == booking_id, Booking.status.in_(list(from_statuses)))
            .update(values, synchronize_session=False)
        )
        db.session.commit()

        if not matched:
            return None
        return self.get_booking_by_id(booking_id)


class SqlAlchemyActorDirectory(ActorDirectory):

    def find_actor_by_id(self, actor_id) -> Optional[Actor]:
        try:
            actor_id = int(actor_id)
        except (TypeError, ValueError):
            return None
        return actor_from_user(db.session.get(User, actor_id))
