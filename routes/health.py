from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import db
from utils.clock import utcnow

health_bp = Blueprint("health", __name__)


def _configured(*keys) -> bool:
    return all(current_app.config.get(k) for k in keys)


@health_bp.get("/health")
def health():
    status = "ok"
    services = {}

    try:
        db.session.execute(text("SELECT 1"))
        services["database"] = {"status": "ok"}
    except SQLAlchemyError:
        # details stay in the server log
        current_app.logger.exception("Health check: database unreachable")
        services["database"] = {"status": "error", "message": "Database connection failed"}
        status = "error"

    services["email"] = {
        "status": "configured" if _configured("SMTP_HOST", "SMTP_FROM_EMAIL") else "not_configured"
    }
    services["sms"] = {
        "status": "configured"
        if _configured("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER")
        else "not_configured"
    }

    return jsonify(status=status, timestamp=utcnow().isoformat() + "Z", services=services), (
        200 if status == "ok" else 503
    )
