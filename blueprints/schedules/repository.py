# blueprints/schedules/repository.py
from __future__ import annotations
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Set

from extensions import db
from models import Schedule, ScheduleAssignment, ScheduleType, ClubNightType
from blueprints.members.services import MemberDirectory, SqlMemberDirectory
from .sequencer import DateEntry

UPDATABLE_FIELDS = ("squarehead1_id", "squarehead2_id", "club_night_type", "notes")


class ScheduleRepository:
    """Queries and writes over schedules and their assignments.

    Methods flush but never commit: the calling service owns the transaction.
    """

    def __init__(self, directory: Optional[MemberDirectory] = None):
        self.directory = directory or SqlMemberDirectory()

    # ---------- schedules ----------
    def get_active(self, schedule_type: ScheduleType) -> Optional[Schedule]:
        return (Schedule.query
                .filter_by(schedule_type=schedule_type, is_active=True)
                .order_by(Schedule.id.desc())
                .first())

    def create_schedule(self, name: str, start: date, end: date, schedule_type: ScheduleType) -> Schedule:
        s = Schedule(name=name, schedule_type=schedule_type, start_date=start, end_date=end, is_active=True)
        db.session.add(s)
        db.session.flush()
        return s

    def deactivate(self, schedule: Schedule) -> None:
        schedule.is_active = False
        db.session.flush()

    def set_schedule_type(self, schedule: Schedule, schedule_type: ScheduleType) -> None:
        schedule.schedule_type = schedule_type
        db.session.flush()

    def widen_schedule_range(self, schedule: Schedule, new_start: date, new_end: date) -> Schedule:
        schedule.start_date = min(schedule.start_date, new_start)
        schedule.end_date = max(schedule.end_date, new_end)
        db.session.flush()
        return schedule

    def delete_schedule(self, schedule: Schedule) -> int:
        """Deletes the schedule and every assignment it owns; returns the assignment count."""
        count = len(schedule.assignments)
        # cascade="all, delete-orphan" removes the assignment rows before the schedule row
        db.session.delete(schedule)
        db.session.flush()
        return count

    # ---------- assignments ----------
    def existing_dates(self, schedule_id: int) -> Set[date]:
        rows = db.session.query(ScheduleAssignment.dance_date).filter_by(schedule_id=schedule_id).all()
        return {r[0] for r in rows}

    def insert_assignments(self, schedule_id: int, entries: Iterable[DateEntry]) -> List[ScheduleAssignment]:
        created = [
            ScheduleAssignment(
                schedule_id=schedule_id,
                dance_date=e.date,
                club_night_type=ClubNightType.FIFTH_WEEK if e.is_fifth_week else ClubNightType.NORMAL,
            )
            for e in sorted(entries, key=lambda x: x.date)
        ]
        db.session.add_all(created)
        db.session.flush()
        return created

    def list_assignments(self, schedule_id: int) -> List[ScheduleAssignment]:
        return (ScheduleAssignment.query
                .filter_by(schedule_id=schedule_id)
                .order_by(ScheduleAssignment.dance_date.asc())
                .all())

    def get_assignment(self, assignment_id: int) -> Optional[ScheduleAssignment]:
        return db.session.get(ScheduleAssignment, assignment_id)

    def update_assignment(self, assignment_id: int, fields: Dict[str, Any]) -> Optional[ScheduleAssignment]:
        a = self.get_assignment(assignment_id)
        if a is None:
            return None
        for key, value in fields.items():
            if key in UPDATABLE_FIELDS:
                setattr(a, key, value)
        db.session.flush()
        return a

    def delete_assignment(self, assignment_id: int) -> bool:
        a = self.get_assignment(assignment_id)
        if a is None:
            return False
        db.session.delete(a)
        db.session.flush()
        return True

    # ---------- read models ----------
    def enrich(self, assignments: List[ScheduleAssignment]) -> List[Dict[str, Any]]:
        ids: Set[int] = set()
        for a in assignments:
            ids.update(a.volunteer_ids())
        names = self.directory.display_names(ids)
        out = []
        for a in assignments:
            item = a.to_dict()
            item["squarehead1_name"] = names.get(a.squarehead1_id) if a.squarehead1_id else None
            item["squarehead2_name"] = names.get(a.squarehead2_id) if a.squarehead2_id else None
            out.append(item)
        return out

    def schedule_view(self, schedule: Optional[Schedule]) -> Dict[str, Any]:
        if schedule is None:
            return {"schedule": None, "assignments": [], "count": 0}
        items = self.enrich(self.list_assignments(schedule.id))
        return {"schedule": schedule.to_dict(), "assignments": items, "count": len(items)}
