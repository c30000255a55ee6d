from datetime import timedelta
from flask import request, current_app

from models import db
from models.ip_rate_limit import IpRateLimit
from utils.clock import utcnow


def client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def check_and_increment(scope: str, max_requests: int, window_seconds: int) -> tuple[bool, int]:
    """
    Returns (allowed, retry_after_seconds).
    Simple fixed window per (scope, IP).
    """
    ip = client_ip()
    now = utcnow()

    row = IpRateLimit.query.filter_by(scope=scope, ip=ip).first()
    if not row:
        row = IpRateLimit(scope=scope, ip=ip, window_start=now, count=0)
        db.session.add(row)

    window_end = row.window_start + timedelta(seconds=window_seconds)

    # Reset window if expired
    if now >= window_end:
        row.window_start = now
        row.count = 0
        window_end = row.window_start + timedelta(seconds=window_seconds)

    row.count += 1
    db.session.commit()

    if row.count > max_requests:
        retry_after = int((window_end - now).total_seconds())
        return False, max(retry_after, 1)

    return True, 0


def check_and_increment_login_rate() -> tuple[bool, int]:
    return check_and_increment(
        "login",
        current_app.config.get("LOGIN_RATE_MAX_REQUESTS", 10),
        current_app.config.get("LOGIN_RATE_WINDOW_SECONDS", 60),
    )


def check_and_increment_booking_rate() -> tuple[bool, int]:
    return check_and_increment(
        "booking_create",
        current_app.config.get("BOOKING_RATE_MAX_REQUESTS", 20),
        current_app.config.get("BOOKING_RATE_WINDOW_SECONDS", 60),
    )
