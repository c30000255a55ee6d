import uuid
from datetime import datetime

import pytest

from models import db
from models.audit_log import AuditLog
from models.reading_history import ReadingHistory

CARDS = [
    {"name": "The Fool", "position": "past", "reversed": False},
    {"name": "The Star", "position": "present", "reversed": True},
    {"name": "Ten of Cups", "position": "future", "reversed": False},
]


@pytest.fixture
def owner(make_user):
    return make_user("seeker")


@pytest.fixture
def owner_headers(owner, login):
    return login(owner)


def _save(client, headers, **overrides):
    body = {"spread_type": "three-card", "question": "What about work?", "cards": CARDS}
    body.update(overrides)
    return client.post("/history", json=body, headers=headers)


def test_save_and_list_reading(client, owner_headers):
    resp = _save(client, owner_headers, interpretation="A fresh start.")
    assert resp.status_code == 201
    reading = resp.get_json()["reading"]
    assert reading["spread_type"] == "three-card"
    assert reading["cards"] == CARDS
    assert reading["interpretation"] == "A fresh start."

    data = client.get("/history", headers=owner_headers).get_json()
    assert data["total"] == 1
    assert data["readings"][0]["id"] == reading["id"]


def test_optional_fields_default_to_null(client, owner_headers):
    reading = _save(client, owner_headers, question="").get_json()["reading"]
    assert reading["question"] is None
    assert reading["interpretation"] is None


@pytest.mark.parametrize("overrides", [
    {"cards": []},
    {"cards": "The Fool"},
    {"cards": None},
    {"spread_type": ""},
    {"spread_type": 3},
    {"spread_type": "x" * 51},
    {"question": ["why"]},
    {"question": "q" * 501},
    {"cards": [{"name": "card"}] * 79},
])
def test_invalid_reading_is_rejected(client, owner_headers, overrides):
    resp = _save(client, owner_headers, **overrides)
    assert resp.status_code == 400
    assert "error" in resp.get_json()
    assert ReadingHistory.query.count() == 0


def test_non_object_body_is_rejected(client, owner_headers):
    assert client.post("/history", json=[CARDS], headers=owner_headers).status_code == 400


def test_history_is_newest_first_and_private(client, owner, owner_headers, make_user, login):
    other = make_user("other")
    db.session.add_all([
        ReadingHistory(id=str(uuid.uuid4()), user_id=owner.id, spread_type="one-card",
                       cards_json='["The Sun"]', created_at=datetime(2026, 1, 1)),
        ReadingHistory(id=str(uuid.uuid4()), user_id=owner.id, spread_type="celtic-cross",
                       cards_json='["The Moon"]', created_at=datetime(2026, 2, 1)),
        ReadingHistory(id=str(uuid.uuid4()), user_id=other.id, spread_type="one-card",
                       cards_json='["Death"]', created_at=datetime(2026, 3, 1)),
    ])
    db.session.commit()

    mine = client.get("/history", headers=owner_headers).get_json()["readings"]
    assert [r["spread_type"] for r in mine] == ["celtic-cross", "one-card"]
    assert mine[0]["cards"] == ["The Moon"]

    theirs = client.get("/history", headers=login(other)).get_json()["readings"]
    assert [r["cards"] for r in theirs] == [["Death"]]


def test_delete_single_reading(client, owner_headers, make_user, login):
    reading_id = _save(client, owner_headers).get_json()["reading"]["id"]

    # someone else's reading looks missing
    intruder = login(make_user("intruder"))
    assert client.delete(f"/history/{reading_id}", headers=intruder).status_code == 404

    assert client.delete(f"/history/{reading_id}", headers=owner_headers).status_code == 200
    assert client.delete(f"/history/{reading_id}", headers=owner_headers).status_code == 404
    assert client.delete("/history/not-a-uuid", headers=owner_headers).status_code == 400
    assert AuditLog.query.filter_by(action="HISTORY_DELETE", entity_id=reading_id).count() == 1


def test_clear_removes_only_own_history(client, owner_headers, make_user, login):
    other_headers = login(make_user("other"))
    _save(client, owner_headers)
    _save(client, owner_headers)
    _save(client, other_headers)

    resp = client.delete("/history", headers=owner_headers)
    assert resp.status_code == 200
    assert resp.get_json()["removed"] == 2

    assert client.get("/history", headers=owner_headers).get_json()["total"] == 0
    assert client.get("/history", headers=other_headers).get_json()["total"] == 1


def test_history_requires_authentication(app):
    anonymous = app.test_client()
    assert anonymous.get("/history").status_code == 401
    assert anonymous.post("/history", json={"spread_type": "x", "cards": CARDS}).status_code == 401
    assert anonymous.delete("/history").status_code == 401
