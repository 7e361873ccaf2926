# blueprints/schedules/routes.py
from __future__ import annotations
from flask import Blueprint, request
from flask_login import login_required
from pydantic import ValidationError

from blueprints.auth.routes import admin_required, actor_id
from blueprints.core import responses as resp
from .schemas import DateRangeIn, NextScheduleIn
from .services import ScheduleLifecycle, AssignmentEditor

api_bp = Blueprint("schedules_api", __name__)

# ---------- read ----------
@api_bp.get("/schedules/current")
@login_required
def current_schedule():
    data = ScheduleLifecycle().get_current()
    msg = "Current schedule retrieved successfully" if data["schedule"] else "No current schedule found"
    return resp.ok(data, msg)

@api_bp.get("/schedules/next")
@login_required
def next_schedule():
    data = ScheduleLifecycle().get_next()
    msg = "Next schedule retrieved successfully" if data["schedule"] else "No next schedule found"
    return resp.ok(data, msg)

# ----- ADMIN API -----
@api_bp.post("/schedules/next")
@admin_required
def create_next_schedule():
    try:
        body = NextScheduleIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return resp.validation_failed(ve)
    res = ScheduleLifecycle().create_next(body.name, body.start_date, body.end_date, actor_id=actor_id())
    return resp.from_result(res, status=201)

@api_bp.post("/schedules/next/add-dates")
@admin_required
def add_dates_to_next():
    try:
        body = DateRangeIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return resp.validation_failed(ve)
    res = ScheduleLifecycle().add_dates(body.start_date, body.end_date, actor_id=actor_id())
    return resp.from_result(res, status=201)

@api_bp.put("/schedules/assignments/<int:aid>")
@admin_required
def update_assignment(aid: int):
    js = request.get_json(silent=True)
    res = AssignmentEditor().update(aid, js if js is not None else {}, actor_id=actor_id())
    return resp.from_result(res)

@api_bp.delete("/schedules/assignments/<int:aid>")
@admin_required
def delete_assignment(aid: int):
    res = AssignmentEditor().delete(aid, actor_id=actor_id())
    return resp.from_result(res)

@api_bp.post("/schedules/promote")
@admin_required
def promote_next():
    res = ScheduleLifecycle().promote(actor_id=actor_id())
    return resp.from_result(res)
