from functools import wraps
from flask import g, jsonify
from security.session import get_session_from_request, token_from_request
from models import db
from models.user import User
from services.sql_repository import actor_from_user


def load_current_user():
    g.user = None
    g.session = None
    g.auth_via_cookie = False

    sess = get_session_from_request()
    if not sess:
        return
    g.session = sess
    g.user = db.session.get(User, sess.user_id)
    g.auth_via_cookie = token_from_request()[1]


def current_actor():
    return actor_from_user(getattr(g, "user", None))


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
