from models.db import db
from utils.clock import utcnow

class IpRateLimit(db.Model):
    __tablename__ = "ip_rate_limits"

    id = db.Column(db.Integer, primary_key=True)
    # e.g. "login", "booking_create"
    scope = db.Column(db.String(40), nullable=False, default="login")
    ip = db.Column(db.String(64), nullable=False, index=True)

    window_start = db.Column(db.DateTime, nullable=False)
    count = db.Column(db.Integer, default=0, nullable=False)

    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("scope", "ip", name="uq_rate_limit_scope_ip"),
    )
