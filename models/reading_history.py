import json
import uuid

from models.db import db
from utils.clock import utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class ReadingHistory(db.Model):
    __tablename__ = "reading_histories"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    spread_type = db.Column(db.String(50), nullable=False)
    question = db.Column(db.String(500), nullable=True)
    # JSON array of drawn cards, stored as the client sent it
    cards_json = db.Column(db.Text, nullable=False)
    interpretation = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    @property
    def cards(self) -> list:
        return json.loads(self.cards_json) if self.cards_json else []

    @cards.setter
    def cards(self, value: list):
        self.cards_json = json.dumps(value)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.created_at.isoformat(),
            "spread_type": self.spread_type,
            "question": self.question,
            "cards": self.cards,
            "interpretation": self.interpretation,
        }
