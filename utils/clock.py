from datetime import datetime, timezone


def utcnow() -> datetime:
    # Naive UTC, matching how timestamps are stored in the database
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_iso(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp ("2026-01-20T18:00:00" or with a Z/offset suffix)
    into a naive UTC datetime.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("empty datetime")
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(raw))
