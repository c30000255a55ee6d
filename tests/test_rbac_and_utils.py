from datetime import datetime, timedelta

import pytest

from models.audit_log import AuditLog
from models.session import AuthSession
from security.password import hash_password, verify_password
from security.rbac import has_minimum_role, is_valid_role
from utils.clock import parse_iso
from utils.validation import is_valid_email, is_valid_uuid


@pytest.mark.parametrize("role, required, expected", [
    ("admin", "admin", True),
    ("admin", "render", True),
    ("admin", "user", True),
    ("render", "admin", False),
    ("render", "render", True),
    ("render", "user", True),
    ("user", "render", False),
    ("user", "user", True),
    ("wizard", "user", False),
    ("admin", "wizard", False),
])
def test_role_ordering(role, required, expected):
    assert has_minimum_role(role, required) is expected


def test_is_valid_role_rejects_non_strings():
    assert is_valid_role("render")
    assert not is_valid_role(["admin"])
    assert not is_valid_role(None)


def test_parse_iso_normalises_to_naive_utc():
    assert parse_iso("2026-01-20T18:00:00") == datetime(2026, 1, 20, 18, 0)
    assert parse_iso("2026-01-20T18:00:00Z") == datetime(2026, 1, 20, 18, 0)
    assert parse_iso("2026-01-21T01:00:00+07:00") == datetime(2026, 1, 20, 18, 0)
    with pytest.raises(ValueError):
        parse_iso("   ")


def test_validators():
    assert is_valid_email("a@b.co")
    assert not is_valid_email("a@b")
    assert is_valid_uuid("3f2a9c1d-7e40-4b7a-9d1e-0a1b2c3d4e5f")
    assert not is_valid_uuid("not-a-uuid")
    assert not is_valid_uuid(42)


def test_verify_password_rejects_non_string_input(app):
    stored = hash_password("secret123")
    assert verify_password("secret123", stored)
    for candidate in (123456, b"secret123", ["secret123"], None, ""):
        assert verify_password(candidate, stored) is False
    assert verify_password("secret123", None) is False
    assert verify_password("secret123", "not-a-bcrypt-hash") is False


def test_auth_session_expiry_rules():
    start = datetime(2026, 3, 1, 12, 0)
    sess = AuthSession(
        user_id=1,
        token_hash="h",
        created_at=start,
        last_seen_at=None,
        expires_at=start + timedelta(hours=24),
        revoked=False,
    )
    assert sess.is_active(start + timedelta(minutes=59), idle_seconds=3600)
    # idle since creation
    assert not sess.is_active(start + timedelta(hours=1), idle_seconds=3600)

    sess.touch(start + timedelta(hours=23, minutes=30))
    assert sess.is_active(start + timedelta(hours=23, minutes=59), idle_seconds=3600)
    # absolute expiry wins over recent activity
    assert not sess.is_active(start + timedelta(hours=24), idle_seconds=3600)

    sess.revoke()
    assert not sess.is_active(start + timedelta(hours=23, minutes=45), idle_seconds=3600)


def test_audit_log_to_dict_decodes_metadata():
    row = AuditLog(id=7, action="HISTORY_CLEAR", user_id=3, metadata_json='{"removed": 2}',
                   timestamp=datetime(2026, 3, 1, 12, 0))
    data = row.to_dict()
    assert data["metadata"] == {"removed": 2}
    assert data["created_at"] == "2026-03-01T12:00:00"
    assert AuditLog(action="LOGOUT", timestamp=datetime(2026, 3, 1)).to_dict()["metadata"] is None
