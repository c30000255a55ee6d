from functools import wraps
from flask import g, jsonify

ROLE_USER = "user"
ROLE_READER = "render"
ROLE_ADMIN = "admin"

# admin > render > user
ROLE_RANK = {
    ROLE_USER: 1,
    ROLE_READER: 2,
    ROLE_ADMIN: 3,
}

VALID_ROLES = tuple(ROLE_RANK)


def is_valid_role(role) -> bool:
    return isinstance(role, str) and role in ROLE_RANK


def has_minimum_role(role: str, required: str) -> bool:
    if not is_valid_role(role) or not is_valid_role(required):
        return False
    return ROLE_RANK[role] >= ROLE_RANK[required]


def require_role(minimum: str):
    """
    Usage: @require_role("admin")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401

            if not has_minimum_role(user.role, minimum):
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
