# blueprints/auth/routes.py
from __future__ import annotations
import logging
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, request, jsonify, abort
from flask_login import login_user, logout_user, login_required, current_user

from extensions import db, login_manager
from models import User
from blueprints.members.services import is_admin

api_bp = Blueprint("auth_api", __name__)
log = logging.getLogger(__name__)

@login_manager.user_loader
def load_user(uid: str) -> Optional[User]:
    try:
        return db.session.get(User, int(uid))
    except (TypeError, ValueError):
        return None

# ---------- декораторы ролей ----------
def admin_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        # отказ до любого обращения к расписаниям
        if not is_admin(current_user):
            abort(403)
        return fn(*args, **kwargs)
    return wrapper

def actor_id() -> Optional[int]:
    return getattr(current_user, "id", None) if current_user.is_authenticated else None

# ---------- обработчики 401 ----------
@login_manager.unauthorized_handler
def _unauth():
    return jsonify({"error": "unauthorized"}), 401

# ---------- API ----------
@api_bp.post("/auth/login")
def api_login():
    payload = request.get_json(silent=True) or request.form or {}
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""

    if not email or not password:
        return jsonify({"error": "missing_credentials"}), 400

    user: Optional[User] = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        log.info("login rejected", extra={"event": "login_failed"})
        return jsonify({"error": "invalid_credentials"}), 401

    if not user.is_active:
        return jsonify({"error": "inactive"}), 403

    login_user(user, remember=True)
    return jsonify({"ok": True, "user": {
        "id": user.id, "email": user.email, "name": user.full_name, "role": user.role,
    }})

@api_bp.post("/auth/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})

@api_bp.get("/auth/me")
@login_required
def api_me():
    return jsonify({"ok": True, "user": {
        "id": current_user.id, "email": current_user.email,
        "name": current_user.full_name, "role": current_user.role,
        "is_admin": is_admin(current_user),
    }})
