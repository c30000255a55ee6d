from flask import Blueprint, jsonify, g, request

from models import db
from models.audit_log import AuditLog
from models.user import User
from security.rbac import require_role, is_valid_role, ROLE_ADMIN, VALID_ROLES
from utils.audit import log_event

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.get("/users")
@require_role(ROLE_ADMIN)
def list_users():
    role = request.args.get("role")
    q = User.query
    if role:
        if not is_valid_role(role):
            return jsonify(error=f"Invalid role. Valid roles: {', '.join(VALID_ROLES)}"), 400
        q = q.filter_by(role=role)

    users = q.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify(users=[u.to_public() for u in users], total=len(users)), 200


@admin_bp.get("/users/<int:user_id>")
@require_role(ROLE_ADMIN)
def get_user(user_id: int):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify(error="User not found"), 404
    return jsonify(user=user.to_public()), 200


@admin_bp.patch("/users/<int:user_id>")
@require_role(ROLE_ADMIN)
def update_user_role(user_id: int):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    role = data.get("role")

    if not is_valid_role(role):
        return jsonify(error=f"Invalid role. Valid roles: {', '.join(VALID_ROLES)}"), 400

    if user_id == g.user.id:
        return jsonify(error="You cannot change your own role"), 400

    user = db.session.get(User, user_id)
    if not user:
        return jsonify(error="User not found"), 404

    old_role = user.role
    user.role = role
    db.session.commit()

    log_event(
        "ADMIN_ROLE_CHANGE",
        user_id=g.user.id,
        entity="user",
        entity_id=user.id,
        metadata={"from": old_role, "to": role},
    )
    return jsonify(user=user.to_public()), 200


@admin_bp.get("/audit-logs")
@require_role(ROLE_ADMIN)
def list_audit_logs():
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 500))

    q = AuditLog.query
    action = request.args.get("action")
    if action:
        q = q.filter_by(action=action)
    user_id = request.args.get("user_id", type=int)
    if user_id is not None:
        q = q.filter_by(user_id=user_id)

    rows = q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
    return jsonify(logs=[r.to_dict() for r in rows], total=len(rows)), 200
