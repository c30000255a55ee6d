import json

from models.db import db
from utils.clock import utcnow


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True)  # null for anonymous attempts
    action = db.Column(db.String(80), nullable=False)  # LOGIN_FAIL, BOOKING_CONFIRM, HISTORY_CLEAR, ...
    entity = db.Column(db.String(80), nullable=True)  # booking, user, reading
    entity_id = db.Column(db.String(80), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    @property
    def event_metadata(self):
        return json.loads(self.metadata_json) if self.metadata_json else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.timestamp.isoformat(),
            "user_id": self.user_id,
            "action": self.action,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "ip": self.ip,
            "metadata": self.event_metadata,
        }
