# blueprints/schedules/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import AuditLog, ClubNightType, ScheduleType, User
from blueprints.core.results import (
    OpResult, PERSISTENCE_ERROR, not_found, validation_error,
)
from blueprints.settings.services import ClubSettings
from . import sequencer
from .repository import ScheduleRepository, UPDATABLE_FIELDS

log = logging.getLogger(__name__)


def _audit(action: str, entity: str, entity_id: Optional[int], actor_id: Optional[int], payload: dict | None = None):
    db.session.add(AuditLog(
        user_id=actor_id, action=action, entity=entity,
        entity_id=entity_id, payload=payload or {},
    ))


def _persistence_failed(action: str, ex: SQLAlchemyError) -> OpResult:
    db.session.rollback()
    log.exception("%s failed, rolled back", action)
    return OpResult.fail(PERSISTENCE_ERROR, f"Failed to {action}; no changes were saved", reason=str(ex.__class__.__name__))


def _check_range(start: date, end: date) -> Optional[OpResult]:
    if start > end:
        return validation_error("End date must be on or after start date",
                                end_date="must be on or after start_date")
    return None


@dataclass
class ClearResult:
    schedule_deleted: bool
    assignments_deleted: int
    schedule_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"schedule_deleted": self.schedule_deleted, "assignments_deleted": self.assignments_deleted}
        if self.schedule_name is not None:
            out["schedule_name"] = self.schedule_name
        return out


class ScheduleLifecycle:
    """Current/next roster state machine.

    States per type: an active Next schedule (draft) or none, an active
    Current schedule or none. Every multi-row transition below runs as one
    unit of work and is rolled back as a whole on failure.
    """

    def __init__(self, repo: Optional[ScheduleRepository] = None, settings: Optional[ClubSettings] = None):
        self.repo = repo or ScheduleRepository()
        self.settings = settings or ClubSettings()

    # ---------- queries ----------
    def get_current(self) -> Dict[str, Any]:
        return self.repo.schedule_view(self.repo.get_active(ScheduleType.CURRENT))

    def get_next(self) -> Dict[str, Any]:
        return self.repo.schedule_view(self.repo.get_active(ScheduleType.NEXT))

    # ---------- transitions ----------
    def create_next(self, name: str, start: date, end: date, actor_id: Optional[int] = None) -> OpResult[Dict[str, Any]]:
        name = (name or "").strip()
        if not name:
            return validation_error("Schedule name is required", name="required")
        bad = _check_range(start, end)
        if bad:
            return bad

        weekday = self.settings.club_weekday()
        try:
            previous = self.repo.get_active(ScheduleType.NEXT)
            if previous is not None:
                # history is kept: the old draft stays, it just stops being "the" next schedule
                self.repo.deactivate(previous)
            schedule = self.repo.create_schedule(name, start, end, ScheduleType.NEXT)
            created = self.repo.insert_assignments(schedule.id, sequencer.generate(start, end, weekday))
            _audit("CREATE_NEXT", "schedule", schedule.id, actor_id, {
                "name": name, "start_date": start.isoformat(), "end_date": end.isoformat(),
                "replaced_schedule_id": previous.id if previous else None,
            })
            db.session.commit()
        except SQLAlchemyError as ex:
            return _persistence_failed("create next schedule", ex)

        log.info("next schedule created", extra={"schedule_id": schedule.id, "count": len(created)})
        items = self.repo.enrich(created)
        return OpResult.success(
            {"schedule": schedule.to_dict(), "assignments": items, "count": len(items)},
            "Next schedule created successfully",
        )

    def add_dates(self, start: date, end: date, actor_id: Optional[int] = None) -> OpResult[Dict[str, Any]]:
        bad = _check_range(start, end)
        if bad:
            return bad
        schedule = self.repo.get_active(ScheduleType.NEXT)
        if schedule is None:
            return not_found("No next schedule exists to add dates to")

        weekday = self.settings.club_weekday()
        try:
            present = self.repo.existing_dates(schedule.id)
            fresh = [e for e in sequencer.generate(start, end, weekday) if e.date not in present]
            created = self.repo.insert_assignments(schedule.id, fresh)
            self.repo.widen_schedule_range(schedule, start, end)
            _audit("ADD_DATES", "schedule", schedule.id, actor_id, {
                "start_date": start.isoformat(), "end_date": end.isoformat(), "added": len(created),
            })
            db.session.commit()
        except SQLAlchemyError as ex:
            return _persistence_failed("add dates to next schedule", ex)

        log.info("next schedule extended", extra={"schedule_id": schedule.id, "count": len(created)})
        all_items = self.repo.enrich(self.repo.list_assignments(schedule.id))
        return OpResult.success({
            "schedule": schedule.to_dict(),
            "assignments": all_items,
            "new_assignments": self.repo.enrich(created),
            "count": len(all_items),
            "added_count": len(created),
        }, f"Added {len(created)} new dates to existing schedule")

    def promote(self, actor_id: Optional[int] = None) -> OpResult[Dict[str, Any]]:
        draft = self.repo.get_active(ScheduleType.NEXT)
        if draft is None:
            return not_found("No next schedule found to promote")

        try:
            current = self.repo.get_active(ScheduleType.CURRENT)
            if current is not None:
                self.repo.deactivate(current)
            self.repo.set_schedule_type(draft, ScheduleType.CURRENT)
            _audit("PROMOTE", "schedule", draft.id, actor_id, {
                "retired_schedule_id": current.id if current else None,
            })
            db.session.commit()
        except SQLAlchemyError as ex:
            return _persistence_failed("promote schedule", ex)

        log.info("next schedule promoted to current", extra={"schedule_id": draft.id})
        return OpResult.success(self.repo.schedule_view(draft), "Schedule promoted to current successfully")

    def clear(self, schedule_type: ScheduleType, actor_id: Optional[int] = None) -> OpResult[ClearResult]:
        label = schedule_type.value
        schedule = self.repo.get_active(schedule_type)
        if schedule is None:
            return OpResult.success(ClearResult(False, 0), f"No {label} schedule found to clear")

        name, schedule_id = schedule.name, schedule.id
        try:
            deleted = self.repo.delete_schedule(schedule)
            _audit("CLEAR", "schedule", schedule_id, actor_id, {
                "schedule_type": label, "assignments_deleted": deleted,
            })
            db.session.commit()
        except SQLAlchemyError as ex:
            return _persistence_failed(f"clear {label} schedule", ex)

        log.info("%s schedule cleared", label, extra={"schedule_id": schedule_id, "count": deleted})
        return OpResult.success(
            ClearResult(True, deleted, name),
            f"Successfully cleared {label} schedule '{name}' and {deleted} assignments",
        )

    def clear_next(self, actor_id: Optional[int] = None) -> OpResult[ClearResult]:
        return self.clear(ScheduleType.NEXT, actor_id)

    def clear_current(self, actor_id: Optional[int] = None) -> OpResult[ClearResult]:
        return self.clear(ScheduleType.CURRENT, actor_id)


def _coerce_member_id(field: str, value: Any) -> tuple[Optional[int], Optional[str]]:
    if value is None or value == "":
        return None, None
    # bool is an int subclass; floats must be whole numbers
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        return None, f"{field} must be a member id or null"
    try:
        return int(value), None
    except (TypeError, ValueError, OverflowError):
        return None, f"{field} must be a member id or null"


class AssignmentEditor:
    def __init__(self, repo: Optional[ScheduleRepository] = None):
        self.repo = repo or ScheduleRepository()

    def _validate(self, fields: Dict[str, Any]) -> tuple[Dict[str, Any], Dict[str, str]]:
        clean: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        for key in UPDATABLE_FIELDS:
            if key not in fields:
                continue
            value = fields[key]
            if key == "club_night_type":
                try:
                    clean[key] = ClubNightType(value)
                except ValueError:
                    allowed = ", ".join(t.value for t in ClubNightType)
                    errors[key] = f"Club night type must be one of: {allowed}"
            elif key == "notes":
                if value is not None and not isinstance(value, str):
                    errors[key] = "notes must be text or null"
                else:
                    clean[key] = value or None
            else:
                member_id, err = _coerce_member_id(key, value)
                if err:
                    errors[key] = err
                elif member_id is not None and db.session.get(User, member_id) is None:
                    errors[key] = f"Member {member_id} does not exist"
                else:
                    clean[key] = member_id
        return clean, errors

    def update(self, assignment_id: int, fields: Dict[str, Any], actor_id: Optional[int] = None) -> OpResult[Dict[str, Any]]:
        if not isinstance(fields, dict):
            return validation_error("Update data must be an object")
        if self.repo.get_assignment(assignment_id) is None:
            return not_found("Assignment not found", id=assignment_id)
        clean, errors = self._validate(fields)
        if errors:
            return validation_error("Invalid assignment fields", **errors)
        if not clean:
            return validation_error("No fields to update")

        try:
            a = self.repo.update_assignment(assignment_id, clean)
            if a is None:
                db.session.rollback()
                return not_found("Assignment not found", id=assignment_id)
            _audit("UPDATE", "assignment", a.id, actor_id, {
                k: (v.value if isinstance(v, ClubNightType) else v) for k, v in clean.items()
            })
            db.session.commit()
        except SQLAlchemyError as ex:
            return _persistence_failed("update assignment", ex)

        log.info("assignment updated", extra={"assignment_id": assignment_id})
        return OpResult.success(self.repo.enrich([a])[0], "Assignment updated successfully")

    def delete(self, assignment_id: int, actor_id: Optional[int] = None) -> OpResult[Dict[str, Any]]:
        a = self.repo.get_assignment(assignment_id)
        if a is None:
            return not_found("Assignment not found", id=assignment_id)
        ident = {"id": a.id, "dance_date": a.dance_date.isoformat()}
        try:
            self.repo.delete_assignment(assignment_id)
            _audit("DELETE", "assignment", assignment_id, actor_id, ident)
            db.session.commit()
        except SQLAlchemyError as ex:
            return _persistence_failed("delete assignment", ex)

        log.info("assignment deleted", extra={"assignment_id": assignment_id})
        return OpResult.success(ident, "Assignment deleted successfully")
