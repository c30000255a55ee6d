from .errors import (
    ServiceError,
    ValidationError,
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    RateLimitError,
)
from .bookings import BookingService, BookingStatus
