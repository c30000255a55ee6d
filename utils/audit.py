import json
import logging
from flask import request
from models import db
from models.audit_log import AuditLog

logger = logging.getLogger("audit")


def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None):
    """Persist a security/booking event and mirror it to the "audit" logger."""
    user_agent = request.headers.get("User-Agent", "")
    entity_id = str(entity_id) if entity_id is not None else None

    db.session.add(AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
        user_agent=user_agent[:255] or None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None,
    ))
    db.session.commit()

    logger.info("%s user=%s %s=%s", action, user_id, entity or "-", entity_id or "-")
