from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class Actor:
    id: int
    role: str
    display_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class BookingRecord:
    id: str
    user_id: int
    reader_id: int
    scheduled_at: datetime
    status: str
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    cancelled_by: Optional[int] = None
    # joined display fields, filled in by the repository when available
    customer: Optional[Actor] = field(default=None, compare=False)
    reader: Optional[Actor] = field(default=None, compare=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "reader_id": self.reader_id,
            "scheduled_at": self.scheduled_at.isoformat(),
            "status": self.status,
            "notes": self.notes,
            "cancelled_by": self.cancelled_by,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "user_name": self.customer.display_name if self.customer else None,
            "reader_name": self.reader.display_name if self.reader else None,
        }


class BookingRepository(ABC):
    """Persistence for bookings. Implementations must make status updates conditional."""

    @abstractmethod
    def insert_booking(self, fields: dict) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_booking_by_id(self, booking_id: str) -> Optional[BookingRecord]:
        raise NotImplementedError

    @abstractmethod
    def list_bookings_by_actor(self, actor_id: Optional[int], role_filter: Optional[str]) -> List[BookingRecord]:
        """
        role_filter "user" matches bookings where actor_id is the customer,
        "render" where actor_id is the reader, None returns every booking.
        Newest first, ties broken by id descending.
        """
        raise NotImplementedError

    @abstractmethod
    def update_booking_status(
        self,
        booking_id: str,
        new_status: str,
        from_statuses: Iterable[str],
        updated_at: datetime,
        cancelled_by: Optional[int] = None,
    ) -> Optional[BookingRecord]:
        """
        Atomically set status only when the current status is one of from_statuses.
        Returns the updated record, or None when no row matched.
        """
        raise NotImplementedError


class ActorDirectory(ABC):

    @abstractmethod
    def find_actor_by_id(self, actor_id) -> Optional[Actor]:
        raise NotImplementedError
