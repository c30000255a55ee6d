from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.reading_history import ReadingHistory
from utils.audit import log_event
from utils.auth_context import login_required
from utils.validation import is_valid_uuid

history_bp = Blueprint("history", __name__, url_prefix="/history")


def _optional_text(value, field: str, max_length: int):
    """Returns (clean_value, error)."""
    if value is None or value == "":
        return None, None
    if not isinstance(value, str):
        return None, f"{field} must be a string"
    if len(value) > max_length:
        return None, f"{field} must be at most {max_length} characters"
    return value, None


@history_bp.get("")
@login_required
def list_readings():
    rows = (
        ReadingHistory.query
        .filter_by(user_id=g.user.id)
        .order_by(ReadingHistory.created_at.desc(), ReadingHistory.id.desc())
        .all()
    )
    return jsonify(readings=[r.to_dict() for r in rows], total=len(rows)), 200


@history_bp.post("")
@login_required
def save_reading():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    spread_type = data.get("spread_type")
    cards = data.get("cards")
    if not isinstance(spread_type, str) or not spread_type.strip() or not isinstance(cards, list) or not cards:
        return jsonify(error="spread_type and a non-empty cards list are required"), 400
    if len(spread_type.strip()) > 50:
        return jsonify(error="spread_type must be at most 50 characters"), 400

    max_cards = current_app.config.get("HISTORY_MAX_CARDS", 78)
    if len(cards) > max_cards:
        return jsonify(error=f"cards must hold at most {max_cards} entries"), 400

    question, err = _optional_text(
        data.get("question"), "question", current_app.config.get("HISTORY_QUESTION_MAX_LENGTH", 500),
    )
    if err:
        return jsonify(error=err), 400
    interpretation, err = _optional_text(
        data.get("interpretation"), "interpretation",
        current_app.config.get("HISTORY_INTERPRETATION_MAX_LENGTH", 20000),
    )
    if err:
        return jsonify(error=err), 400

    reading = ReadingHistory(
        user_id=g.user.id,
        spread_type=spread_type.strip(),
        question=question,
        interpretation=interpretation,
    )
    reading.cards = cards
    db.session.add(reading)
    db.session.commit()

    return jsonify(reading=reading.to_dict()), 201


@history_bp.delete("")
@login_required
def clear_readings():
    removed = ReadingHistory.query.filter_by(user_id=g.user.id).delete(synchronize_session=False)
    db.session.commit()

    log_event("HISTORY_CLEAR", user_id=g.user.id, metadata={"removed": removed})
    return jsonify(message="Reading history cleared", removed=removed), 200


@history_bp.delete("/<reading_id>")
@login_required
def delete_reading(reading_id: str):
    if not is_valid_uuid(reading_id):
        return jsonify(error="Invalid reading id"), 400

    # another user's reading is reported exactly like a missing one
    reading = ReadingHistory.query.filter_by(id=reading_id.lower(), user_id=g.user.id).first()
    if not reading:
        return jsonify(error="Reading not found"), 404

    db.session.delete(reading)
    db.session.commit()

    log_event("HISTORY_DELETE", user_id=g.user.id, entity="reading", entity_id=reading_id.lower())
    return jsonify(message="Reading deleted"), 200
