import hashlib
import secrets
from datetime import timedelta
from flask import request, current_app

from models import db
from models.session import AuthSession
from utils.clock import utcnow

DEFAULT_COOKIE_NAME = "tarot_session"


def cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", DEFAULT_COOKIE_NAME)


def _hash_token(token: str) -> str:
    # SHA-256 is fine for hashing random session tokens
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(user_id: int) -> str:
    """
    Creates a server-side session and returns the RAW token. The same token
    works as the session cookie and as an `Authorization: Bearer` credential.
    """
    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 86400)

    db.session.add(AuthSession(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        expires_at=utcnow() + timedelta(seconds=lifetime),
    ))
    db.session.commit()
    return raw_token


def token_from_request():
    """Returns (raw_token, from_cookie). An explicit bearer header wins over the cookie."""
    auth = request.headers.get("Authorization") or ""
    if auth.startswith("Bearer ") and auth[7:].strip():
        return auth[7:].strip(), False
    raw_token = request.cookies.get(cookie_name())
    if raw_token:
        return raw_token, True
    return None, False


def get_session_from_request():
    raw_token, _ = token_from_request()
    if not raw_token:
        return None

    sess = AuthSession.query.filter_by(token_hash=_hash_token(raw_token)).first()
    now = utcnow()
    if not sess or not sess.is_active(now, current_app.config.get("IDLE_TIMEOUT_SECONDS", 3600)):
        return None

    sess.touch(now)
    db.session.commit()
    return sess


def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    sess = AuthSession.query.filter_by(token_hash=_hash_token(raw_token)).first()
    if not sess:
        return False
    sess.revoke()
    db.session.commit()
    return True


def revoke_all_sessions(user_id: int) -> int:
    sessions = AuthSession.query.filter_by(user_id=user_id, revoked=False).all()
    for s in sessions:
        s.revoke()
    db.session.commit()
    return len(sessions)


def current_raw_token():
    return token_from_request()[0]
