# blueprints/maintenance/routes.py
from __future__ import annotations
from flask import Blueprint

from blueprints.auth.routes import admin_required, actor_id
from blueprints.core import responses as resp
from blueprints.schedules.services import ScheduleLifecycle

api_bp = Blueprint("maintenance_api", __name__)

# destructive: drops the active schedule row together with all of its assignments
@api_bp.post("/maintenance/clear-next-schedule")
@admin_required
def clear_next_schedule():
    res = ScheduleLifecycle().clear_next(actor_id=actor_id())
    return resp.from_result(res, lambda r: r.to_dict())

@api_bp.post("/maintenance/clear-current-schedule")
@admin_required
def clear_current_schedule():
    res = ScheduleLifecycle().clear_current(actor_id=actor_id())
    return resp.from_result(res, lambda r: r.to_dict())
