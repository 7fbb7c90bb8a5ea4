import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_user, logout_user
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import csrf, db
from ..models import utcnow
from ..models.user import User

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/login")
@csrf.exempt  # JSON-only API
def login():
    # Support form or JSON body
    data = request.get_json(silent=True) or request.form
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    remember = str(data.get("remember", "")).lower() in {"1", "true", "on", "yes"}

    user = User.query.filter_by(username=username).first()
    if not user or not user.check_password(password):
        return jsonify({"ok": False, "error": "Invalid credentials"}), 401

    login_user(user, remember=remember)
    user.last_login = utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning("Could not record last login for %s: %s", user.username, exc)
    return jsonify({"ok": True, "username": user.username})


@auth_bp.post("/logout")
@csrf.exempt
def logout():
    if current_user.is_authenticated:
        logout_user()
    return ("", 204)


@auth_bp.get("/status")
def status():
    if current_user.is_authenticated:
        return jsonify({
            "authenticated": True,
            "id": current_user.id,
            "username": current_user.username,
        })
    return jsonify({"authenticated": False})
