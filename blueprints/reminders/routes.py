# blueprints/reminders/routes.py
from __future__ import annotations
import hmac

from flask import Blueprint, current_app, request, abort
from flask_login import current_user
from pydantic import ValidationError

from extensions import csrf
from blueprints.auth.routes import admin_required
from blueprints.core import responses as resp
from blueprints.members.services import is_admin
from blueprints.schedules.schemas import SweepIn
from .services import run_reminder_sweep, preview_reminders

api_bp = Blueprint("reminders_api", __name__)

def _cron_allowed() -> bool:
    expected = current_app.config.get("CRON_TOKEN")
    given = request.headers.get("X-Cron-Token", "")
    if expected and given and hmac.compare_digest(given, expected):
        return True
    return is_admin(current_user)

@api_bp.post("/cron/reminders")
@csrf.exempt          # вызывается внешним планировщиком, не браузером
def cron_reminders():
    if not _cron_allowed():
        if not current_user.is_authenticated and not request.headers.get("X-Cron-Token"):
            abort(401)
        abort(403)
    try:
        body = SweepIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return resp.validation_failed(ve)
    res = run_reminder_sweep(body.day, dry_run=body.dry_run)
    return resp.from_result(res, lambda r: r.to_dict())

@api_bp.post("/reminders/preview")
@admin_required
def reminders_preview():
    try:
        body = SweepIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return resp.validation_failed(ve)
    return resp.from_result(preview_reminders(body.day))
