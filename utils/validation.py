import re
import uuid

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PASSWORD_MIN_LEN = 6
USERNAME_MIN_LEN = 3


def normalize_email(value) -> str:
    return (value or "").strip().lower() if isinstance(value, str) else ""


def is_valid_email(email: str) -> bool:
    return isinstance(email, str) and len(email) <= 255 and bool(EMAIL_RE.match(email))


def is_valid_uuid(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def registration_errors(email, username, password) -> list:
    errors = []
    if not is_valid_email(email):
        errors.append("Invalid email")
    if not isinstance(username, str) or len(username.strip()) < USERNAME_MIN_LEN:
        errors.append(f"Username must be at least {USERNAME_MIN_LEN} characters")
    elif len(username.strip()) > 80:
        errors.append("Username must be at most 80 characters")
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LEN:
        errors.append(f"Password must be at least {PASSWORD_MIN_LEN} characters")
    return errors
