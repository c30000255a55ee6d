import secrets
from flask import request, jsonify, current_app, g

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"

UNSAFE_METHODS = ("POST", "PUT", "PATCH", "DELETE")

# reachable before a session (and so a CSRF cookie) exists
CSRF_EXEMPT_PATHS = frozenset({
    "/auth/login",
    "/auth/register",
    "/health",
})


def issue_csrf_token(resp):
    """Sets a fresh double-submit token alongside the session cookie."""
    resp.set_cookie(
        CSRF_COOKIE,
        secrets.token_urlsafe(32),
        httponly=False,  # the browser client echoes it back in CSRF_HEADER
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp


def csrf_required() -> bool:
    # bearer clients send no ambient credentials, so only cookie sessions are checked
    if request.method not in UNSAFE_METHODS or request.path in CSRF_EXEMPT_PATHS:
        return False
    return getattr(g, "user", None) is not None and getattr(g, "auth_via_cookie", False)


def csrf_protect():
    """before_request hook: returns a 403 response when the double-submit check fails."""
    if not csrf_required():
        return None

    cookie_token = request.cookies.get(CSRF_COOKIE)
    header_token = request.headers.get(CSRF_HEADER)
    if not cookie_token or not header_token:
        return jsonify(error="CSRF token missing"), 403
    if not secrets.compare_digest(cookie_token, header_token):
        return jsonify(error="CSRF validation failed"), 403
    return None
