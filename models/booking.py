from models.db import db
from utils.clock import utcnow

class Booking(db.Model):
    __tablename__ = "bookings"

    # opaque UUID string
    id = db.Column(db.String(36), primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    reader_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    scheduled_at = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="PENDING", index=True)
    # status values: PENDING, CONFIRMED, REJECTED, CANCELLED, COMPLETED

    notes = db.Column(db.String(1000), nullable=True)
    cancelled_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    customer = db.relationship("User", foreign_keys=[user_id])
    reader = db.relationship("User", foreign_keys=[reader_id])

    __table_args__ = (
        db.CheckConstraint("user_id <> reader_id", name="ck_booking_not_self"),
    )
