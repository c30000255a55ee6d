import pytest

from models import db
from models.role_upgrade import RoleUpgrade
from models.user import User

from conftest import PASSWORD


def _register(client, email="new@example.com", username="newbie", password=PASSWORD, **extra):
    body = {"email": email, "username": username, "password": password}
    body.update(extra)
    return client.post("/auth/register", json=body)


# ---------- auth ----------

def test_register_creates_customer_and_session(client):
    resp = _register(client, phone="+84911111111")
    assert resp.status_code == 201
    data = resp.get_json()
    assert data["user"]["role"] == "user"
    assert data["user"]["email"] == "new@example.com"
    assert "password_hash" not in data["user"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["username"] == "newbie"


def test_register_validation(client):
    assert _register(client, email="not-an-email").status_code == 400
    assert _register(client, username="ab").status_code == 400
    assert _register(client, password="12345").status_code == 400
    assert _register(client).status_code == 201
    assert _register(client, email="NEW@example.com").status_code == 409


def test_login_rejects_bad_password(client, make_user):
    user = make_user("someone")
    resp = client.post("/auth/login", json={"email": user.email, "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid credentials"


@pytest.mark.parametrize("body", [[1, 2], "text", 42])
def test_auth_rejects_non_object_bodies(client, body):
    resp = client.post("/auth/register", json=body)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid email"

    assert client.post("/auth/login", json=body).status_code == 401


def test_login_with_non_string_password_is_invalid_credentials(client, make_user):
    user = make_user("someone")
    for password in (123456, ["secret123"], {"p": 1}, None):
        resp = client.post("/auth/login", json={"email": user.email, "password": password})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid credentials"


def test_login_rate_limited(app, client, make_user):
    app.config["LOGIN_RATE_MAX_REQUESTS"] = 1
    user = make_user("someone")
    assert client.post("/auth/login", json={"email": user.email, "password": PASSWORD}).status_code == 200
    assert client.post("/auth/login", json={"email": user.email, "password": PASSWORD}).status_code == 429


def test_logout_revokes_token(client, make_user, login):
    headers = login(make_user("someone"))
    assert client.post("/auth/logout", headers=headers).status_code == 200
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_cookie_session_requires_csrf_for_writes(client, make_user, tomorrow):
    reader = make_user("reader", role="render")
    customer = make_user("customer")
    resp = client.post("/auth/login", json={"email": customer.email, "password": PASSWORD})
    assert resp.status_code == 200

    body = {"reader_id": reader.id, "scheduled_at": tomorrow}
    assert client.post("/bookings", json=body).status_code == 403

    resp = client.post("/bookings", json=body, headers={"X-CSRF-Token": "forged"})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "CSRF validation failed"

    csrf = client.get_cookie("csrf_token").value
    resp = client.post("/bookings", json=body, headers={"X-CSRF-Token": csrf})
    assert resp.status_code == 201

    # the same token as a bearer credential skips the double-submit check
    token = client.get_cookie("tarot_session").value
    resp = client.post("/bookings", json=body, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 201


def test_upgrade_customer_to_reader(client, make_user, login):
    user = make_user("someone")
    headers = login(user)

    info = client.get("/auth/upgrade", headers=headers).get_json()
    assert info["can_upgrade"] is True
    assert info["upgrade_cost_vnd"] == 50000

    resp = client.post("/auth/upgrade", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["user"]["role"] == "render"
    assert RoleUpgrade.query.filter_by(user_id=user.id).count() == 1

    assert client.post("/auth/upgrade", headers=headers).status_code == 400


# ---------- admin ----------

def test_admin_user_management(client, make_user, login):
    admin = make_user("admin", role="admin")
    target = make_user("target")
    headers = login(admin)

    listing = client.get("/admin/users", headers=headers).get_json()
    assert listing["total"] == 2

    readers = client.get("/admin/users?role=render", headers=headers).get_json()
    assert readers["total"] == 0
    assert client.get("/admin/users?role=wizard", headers=headers).status_code == 400

    resp = client.patch(f"/admin/users/{target.id}", json={"role": "render"}, headers=headers)
    assert resp.status_code == 200
    assert db.session.get(User, target.id).role == "render"

    assert client.patch(f"/admin/users/{target.id}", json={"role": "wizard"}, headers=headers).status_code == 400
    assert client.patch(f"/admin/users/{target.id}", json=["admin"], headers=headers).status_code == 400
    assert client.patch(f"/admin/users/{target.id}", json={"role": ["admin"]}, headers=headers).status_code == 400
    assert client.patch(f"/admin/users/{admin.id}", json={"role": "user"}, headers=headers).status_code == 400
    assert client.get("/admin/users/9999", headers=headers).status_code == 404


def test_admin_routes_forbidden_below_admin(app, client, make_user, login):
    reader_headers = login(make_user("reader", role="render"))
    assert client.get("/admin/users", headers=reader_headers).status_code == 403

    # login left a session cookie on `client`; a fresh client carries none
    anonymous = app.test_client()
    assert anonymous.get("/admin/users").status_code == 401


# ---------- platform ----------

def test_health_reports_database_and_channels(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["status"] == "ok"
    assert data["services"]["database"]["status"] == "ok"
    assert data["services"]["email"]["status"] == "not_configured"


def test_security_headers_and_json_404(client):
    resp = client.get("/definitely-not-here")
    assert resp.status_code == 404
    assert "error" in resp.get_json()
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_admin_audit_log_listing(client, make_user, login):
    admin = make_user("admin", role="admin")
    headers = login(admin)

    data = client.get("/admin/audit-logs?action=LOGIN_SUCCESS", headers=headers).get_json()
    assert [row["user_id"] for row in data["logs"]] == [admin.id]
    assert data["logs"][0]["metadata"] == {"revoked_sessions": 0}
