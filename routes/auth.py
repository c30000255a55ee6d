from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.role_upgrade import RoleUpgrade
from models.user import User
from security.csrf import issue_csrf_token
from security.password import hash_password, verify_password
from security.rate_limit import check_and_increment_login_rate
from security.rbac import ROLE_USER, ROLE_READER
from security.session import create_session, revoke_session, revoke_all_sessions, cookie_name, current_raw_token
from services import AuthenticationError
from utils.audit import log_event
from utils.auth_context import login_required
from utils.validation import normalize_email, registration_errors

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _login_response(user: User, status: int, message: str):
    raw_token = create_session(user.id)
    max_age = current_app.config.get("SESSION_LIFETIME_SECONDS", 86400)

    resp = jsonify(message=message, token=raw_token, user=user.to_public())
    resp.set_cookie(
        cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=max_age,
        path="/",
    )
    resp = issue_csrf_token(resp)
    return resp, status


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    email = normalize_email(data.get("email"))
    username = data.get("username") or ""
    password = data.get("password") or ""
    phone = data.get("phone")

    errors = registration_errors(email, username, password)
    if errors:
        return jsonify(error=errors[0], details=errors), 400
    if phone is not None and (not isinstance(phone, str) or len(phone.strip()) > 30):
        return jsonify(error="Invalid phone"), 400

    if User.query.filter_by(email=email).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": email})
        return jsonify(error="Email already registered"), 409

    user = User(
        email=email,
        username=username.strip(),
        password_hash=hash_password(password),
        phone=phone.strip() if phone else None,
        role=ROLE_USER,
    )
    db.session.add(user)
    db.session.commit()
    log_event("REGISTER_SUCCESS", user_id=user.id)

    return _login_response(user, 201, "Registered successfully")


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""

    allowed, retry_after = check_and_increment_login_rate()
    if not allowed:
        log_event("LOGIN_RATE_LIMIT", metadata={"email": email, "retry_after": retry_after})
        return jsonify(error="Too many login requests. Slow down.", retry_after_seconds=retry_after), 429

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        raise AuthenticationError("Invalid credentials")

    # Rotate: revoke any existing sessions for this user
    revoked_count = revoke_all_sessions(user.id)
    log_event("LOGIN_SUCCESS", user_id=user.id, metadata={"revoked_sessions": revoked_count})
    return _login_response(user, 200, "Login OK")


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(user=g.user.to_public()), 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoke_session(current_raw_token())
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    resp.delete_cookie(cookie_name(), path="/")
    return resp, 200


# ---------- customers become readers (simulated payment) ----------
@auth_bp.get("/upgrade")
@login_required
def upgrade_info():
    records = (
        RoleUpgrade.query
        .filter_by(user_id=g.user.id)
        .order_by(RoleUpgrade.created_at.desc())
        .all()
    )
    return jsonify(
        upgrade_cost_vnd=current_app.config.get("UPGRADE_COST_VND", 50000),
        current_role=g.user.role,
        can_upgrade=g.user.role == ROLE_USER,
        records=[r.to_dict() for r in records],
    ), 200


@auth_bp.post("/upgrade")
@login_required
def upgrade():
    if g.user.role != ROLE_USER:
        return jsonify(error=f"Role '{g.user.role}' cannot be upgraded"), 400

    amount = current_app.config.get("UPGRADE_COST_VND", 50000)
    record = RoleUpgrade(
        user_id=g.user.id,
        from_role=g.user.role,
        to_role=ROLE_READER,
        amount_vnd=amount,
        status="completed",
    )
    g.user.role = ROLE_READER
    db.session.add(record)
    db.session.commit()

    log_event("ROLE_UPGRADE", user_id=g.user.id, entity="user", entity_id=g.user.id, metadata={"amount_vnd": amount})
    return jsonify(
        message="Upgrade successful. You are now a reader.",
        payment={"method": "simulated", "amount": amount, "currency": "VND", "status": "success"},
        upgrade_record=record.to_dict(),
        user=g.user.to_public(),
    ), 200
