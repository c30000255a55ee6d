from models.db import db
from utils.clock import utcnow

class RoleUpgrade(db.Model):
    __tablename__ = "role_upgrades"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    from_role = db.Column(db.String(20), nullable=False)
    to_role = db.Column(db.String(20), nullable=False)
    amount_vnd = db.Column(db.Integer, nullable=False)

    # payment is simulated; always "completed" for now
    status = db.Column(db.String(20), nullable=False, default="completed")
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "from_role": self.from_role,
            "to_role": self.to_role,
            "amount_vnd": self.amount_vnd,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }
