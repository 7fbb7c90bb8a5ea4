import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import csrf, db
from ..models.settings import UserSettings

logger = logging.getLogger(__name__)

settings_bp = Blueprint("settings", __name__)


@settings_bp.get("/api/settings")
@login_required
def get_settings():
    return jsonify(UserSettings.for_user(current_user).to_dict())


@settings_bp.patch("/api/settings")
@login_required
@csrf.exempt
def update_settings():
    data = request.get_json(silent=True) or {}
    settings = UserSettings.for_user(current_user)
    try:
        settings.update_from(data)
        db.session.commit()
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"ok": False, "error": str(exc)}), 400
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Error updating settings for user %s: %s", current_user.id, exc)
        return jsonify({"ok": False, "error": "Database error"}), 500
    return jsonify({"ok": True, "settings": settings.to_dict()})


@settings_bp.post("/api/settings/reset")
@login_required
@csrf.exempt
def reset_settings():
    settings = UserSettings.for_user(current_user)
    # keep the display name across a reset
    name = settings.display_name
    settings.apply_defaults(current_user)
    settings.display_name = name or current_user.username
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Error resetting settings for user %s: %s", current_user.id, exc)
        return jsonify({"ok": False, "error": "Database error"}), 500
    return jsonify({"ok": True, "settings": settings.to_dict()})
