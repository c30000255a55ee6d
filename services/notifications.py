import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from services.repository import Actor, BookingRecord
from utils.emailer import send_email
from utils.sms import send_sms

logger = logging.getLogger(__name__)

APP_NAME = "Tarot Online"


class BookingNotifier(ABC):
    """Side-effect hooks fired after a booking transition has been committed."""

    @abstractmethod
    def notify_reader_new_booking(self, booking: BookingRecord):
        raise NotImplementedError

    @abstractmethod
    def notify_customer_confirmed(self, booking: BookingRecord):
        raise NotImplementedError

    @abstractmethod
    def notify_customer_rejected(self, booking: BookingRecord):
        raise NotImplementedError

    @abstractmethod
    def notify_counterparty_cancelled(self, booking: BookingRecord, cancelled_by: int):
        raise NotImplementedError


def _fmt(dt) -> str:
    return dt.strftime("%Y-%m-%d %H:%M UTC")


def _name(actor: Optional[Actor]) -> str:
    return actor.display_name if actor and actor.display_name else "there"


class EmailSmsBookingNotifier(BookingNotifier):
    """Sends each notification by email (SMTP) and SMS (Twilio) when the recipient has a contact for it."""

    def __init__(self, config, email_sender=send_email, sms_sender=send_sms):
        # snapshot, so delivery works on worker threads without an app context
        self._config = {
            k: v for k, v in dict(config).items()
            if k.startswith(("SMTP_", "TWILIO_"))
        }
        self._send_email = email_sender
        self._send_sms = sms_sender

    def _deliver(self, recipient: Optional[Actor], subject: str, body: str, sms_body: str) -> bool:
        if recipient is None:
            logger.warning("Notification '%s' skipped: recipient unknown", subject)
            return False

        delivered = False
        if recipient.email:
            ok, err = self._send_email(recipient.email, subject, body, config=self._config)
            if ok:
                logger.info("Email sent to user %s", recipient.id)
                delivered = True
            else:
                logger.warning("Email to user %s not sent: %s", recipient.id, err)

        if recipient.phone:
            ok, err = self._send_sms(recipient.phone, sms_body, config=self._config)
            if ok:
                logger.info("SMS sent to user %s", recipient.id)
                delivered = True
            else:
                logger.warning("SMS to user %s not sent: %s", recipient.id, err)

        return delivered

    def notify_reader_new_booking(self, booking: BookingRecord):
        customer = _name(booking.customer)
        lines = [
            f"Hello {_name(booking.reader)},",
            "",
            f"You have a new booking request from {customer}.",
            f"Time: {_fmt(booking.scheduled_at)}",
        ]
        if booking.notes:
            lines.append(f"Notes: {booking.notes}")
        lines.append(f"Booking ID: {booking.id}")
        return self._deliver(
            booking.reader,
            f"[{APP_NAME}] New booking from {customer}",
            "\n".join(lines),
            f"[{APP_NAME}] New booking from {customer} at {_fmt(booking.scheduled_at)}.",
        )

    def notify_customer_confirmed(self, booking: BookingRecord):
        reader = _name(booking.reader)
        body = "\n".join([
            f"Hello {_name(booking.customer)},",
            "",
            f"{reader} has confirmed your booking.",
            f"Time: {_fmt(booking.scheduled_at)}",
            f"Booking ID: {booking.id}",
        ])
        return self._deliver(
            booking.customer,
            f"[{APP_NAME}] Booking confirmed",
            body,
            f"[{APP_NAME}] {reader} confirmed your booking at {_fmt(booking.scheduled_at)}.",
        )

    def notify_customer_rejected(self, booking: BookingRecord):
        reader = _name(booking.reader)
        body = "\n".join([
            f"Hello {_name(booking.customer)},",
            "",
            f"Unfortunately {reader} cannot take your booking at {_fmt(booking.scheduled_at)}.",
            "You can book another time or another reader.",
            f"Booking ID: {booking.id}",
        ])
        return self._deliver(
            booking.customer,
            f"[{APP_NAME}] Booking declined",
            body,
            f"[{APP_NAME}] {reader} declined your booking at {_fmt(booking.scheduled_at)}.",
        )

    def notify_counterparty_cancelled(self, booking: BookingRecord, cancelled_by: int):
        if cancelled_by == booking.user_id:
            recipients = [booking.reader]
        elif cancelled_by == booking.reader_id:
            recipients = [booking.customer]
        else:
            # cancelled by an admin: both parties hear about it
            recipients = [booking.customer, booking.reader]

        delivered = False
        for recipient in recipients:
            body = "\n".join([
                f"Hello {_name(recipient)},",
                "",
                f"The booking at {_fmt(booking.scheduled_at)} has been cancelled.",
                f"Booking ID: {booking.id}",
            ])
            delivered = self._deliver(
                recipient,
                f"[{APP_NAME}] Booking cancelled",
                body,
                f"[{APP_NAME}] Booking at {_fmt(booking.scheduled_at)} was cancelled.",
            ) or delivered
        return delivered


class NotificationDispatcher:
    """
    Dispatch-and-detach: the caller never waits on or sees the outcome.
    Failures are logged and dropped (no retry).
    """

    def __init__(self, run_async: bool = True):
        self.run_async = run_async

    def dispatch(self, fn, *args, **kwargs):
        if not self.run_async:
            self._run(fn, args, kwargs)
            return None

        thread = threading.Thread(
            target=self._run,
            args=(fn, args, kwargs),
            name="booking-notify",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError:
            logger.exception("Could not start notification thread for %s", getattr(fn, "__name__", fn))
            return None
        return thread

    @staticmethod
    def _run(fn, args, kwargs):
        try:
            fn(*args, **kwargs)
        except Exception:
            logger.exception("Notification %s failed", getattr(fn, "__name__", fn))
