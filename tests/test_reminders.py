from __future__ import annotations
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo
from types import SimpleNamespace
import pytest

from app import create_app
from extensions import db
from models import Schedule, ScheduleAssignment, ScheduleType, Setting, User
from blueprints.members.services import Volunteer
from blueprints.settings.services import ZoneClock
from blueprints.reminders.services import (
    ReminderPlanner, SweepReport, preview_reminders, run_reminder_sweep,
)

class RecordingSink:
    def __init__(self, fail_for=()):
        self.calls = []
        self.fail_for = set(fail_for)

    def send_reminder(self, email, name, date_label):
        self.calls.append((email, name, date_label))
        if email in self.fail_for:
            raise RuntimeError("smtp down")
        return True

class DictDirectory:
    def __init__(self, people):
        self.people = people

    def resolve(self, member_id):
        return self.people.get(member_id)

    def display_names(self, member_ids):
        return {i: self.people[i].name for i in member_ids if i in self.people}

def _slot(aid, d, s1=None, s2=None):
    return SimpleNamespace(id=aid, dance_date=d, squarehead1_id=s1, squarehead2_id=s2)

# ---------- planner, без БД ----------
def test_plan_matches_offsets():
    rows = [_slot(1, date(2025, 1, 8), 42), _slot(2, date(2025, 1, 15), 43), _slot(3, date(2025, 1, 2), 44, 45)]
    due = ReminderPlanner(DictDirectory({})).plan(date(2025, 1, 1), rows, [7, 1])
    assert [(d.assignment_id, d.volunteer_id, d.day_offset) for d in due] == [(1, 42, 7), (3, 44, 1), (3, 45, 1)]

def test_plan_ignores_bad_offsets_and_empty_slots():
    rows = [_slot(1, date(2025, 1, 8)), _slot(2, date(2025, 1, 1), 42)]
    planner = ReminderPlanner(DictDirectory({}))
    assert planner.plan(date(2025, 1, 1), rows, [0, -3, 7, 7]) == []

def test_dispatch_isolates_failures():
    people = {
        1: Volunteer(1, "Ann", "ann@example.com"),
        2: Volunteer(2, "Ben", "ben@example.com"),
        3: Volunteer(3, "Cy", None),
    }
    rows = [_slot(10, date(2025, 1, 8), 1, 2), _slot(11, date(2025, 1, 8), 3, 4)]
    sink = RecordingSink(fail_for={"ann@example.com"})
    report = ReminderPlanner(DictDirectory(people)).plan_and_dispatch(date(2025, 1, 1), rows, [7], sink)
    assert [c[0] for c in sink.calls] == ["ann@example.com", "ben@example.com"]
    assert report.sent_count == 1 and report.sent[0]["email"] == "ben@example.com"
    reasons = {f.volunteer_id: f.reason for f in report.failures}
    assert reasons[1].startswith("RuntimeError")
    assert reasons[3] == "no email address on file"
    assert reasons[4] == "volunteer not found"

def test_sweep_report_shape():
    report = SweepReport(schedule_id=5, reminder_days_checked=[7, 1])
    assert report.to_dict() == {
        "schedule_id": 5, "reminder_days_checked": [7, 1], "emails_sent": [],
        "total_emails_sent": 0, "errors": [], "dry_run": False,
    }

# ---------- полный проход по БД ----------
@pytest.fixture()
def app_ctx():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        db.session.add(User(id=42, email="alice@example.com", first_name="Alice", last_name="Allemande"))
        db.session.add(Setting(key="reminder_days", value="7,1"))
        s = Schedule(name="Jan", schedule_type=ScheduleType.CURRENT, start_date=date(2025, 1, 1),
                     end_date=date(2025, 1, 31), is_active=True)
        db.session.add(s)
        db.session.flush()
        for day in (1, 8, 15):
            db.session.add(ScheduleAssignment(schedule_id=s.id, dance_date=date(2025, 1, day),
                                              squarehead1_id=42 if day == 8 else None))
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

def test_sweep_sends_one_reminder(app_ctx):
    sink = RecordingSink()
    res = run_reminder_sweep(date(2025, 1, 1), sink=sink)
    assert res.ok
    assert sink.calls == [("alice@example.com", "Alice Allemande", "2025-01-08")]
    assert res.value.to_dict()["total_emails_sent"] == 1
    assert res.value.reminder_days_checked == [7, 1]

def test_sweep_runs_twice(app_ctx):
    sink = RecordingSink()
    run_reminder_sweep(date(2025, 1, 1), sink=sink)
    run_reminder_sweep(date(2025, 1, 1), sink=sink)
    assert len(sink.calls) == 2

def test_dry_run_sends_nothing(app_ctx):
    sink = RecordingSink()
    res = run_reminder_sweep(date(2025, 1, 1), sink=sink, dry_run=True)
    assert sink.calls == []
    assert res.value.dry_run is True and res.value.sent_count == 1

def test_sweep_without_current_schedule(app_ctx):
    Schedule.query.first().is_active = False
    db.session.commit()
    res = run_reminder_sweep(date(2025, 1, 1), sink=RecordingSink())
    assert res.error.code == "NOT_FOUND"

def test_sweep_without_offsets(app_ctx):
    Setting.query.filter_by(key="reminder_days").first().value = "0, x"
    db.session.commit()
    res = run_reminder_sweep(date(2025, 1, 1), sink=RecordingSink())
    assert res.error.code == "VALIDATION_ERROR"

def test_preview(app_ctx):
    res = preview_reminders(date(2025, 1, 7))
    assert res.ok
    assert res.value["due"] == [{"assignment_id": 2, "dance_date": "2025-01-08", "volunteer_id": 42, "day_offset": 1}]

# UTC+14 и UTC-11: календарные даты в этих зонах различаются всегда
AHEAD, BEHIND = "Pacific/Kiritimati", "Pacific/Pago_Pago"

def _zone_today(name):
    return datetime.now(ZoneInfo(name)).date()

def _add_duty(volunteer_id, day):
    s = Schedule.query.filter_by(schedule_type=ScheduleType.CURRENT, is_active=True).first()
    db.session.add(ScheduleAssignment(schedule_id=s.id, dance_date=day, squarehead1_id=volunteer_id))

def test_zone_clock_uses_club_date():
    assert ZoneClock(ZoneInfo(AHEAD)).today() == _zone_today(AHEAD)
    assert ZoneClock(ZoneInfo(AHEAD)).today() != ZoneClock(ZoneInfo(BEHIND)).today()

def test_sweep_defaults_to_today_in_club_timezone(app_ctx):
    db.session.add(User(id=43, email="bob@example.com", first_name="Bob", last_name="Brush"))
    db.session.add(Setting(key="system_timezone", value=AHEAD))
    club_day = _zone_today(AHEAD) + timedelta(days=7)
    _add_duty(42, club_day)
    _add_duty(43, _zone_today(BEHIND) + timedelta(days=7))
    db.session.commit()

    sink = RecordingSink()
    res = run_reminder_sweep(None, sink=sink)
    assert res.ok
    assert sink.calls == [("alice@example.com", "Alice Allemande", club_day.isoformat())]

def test_sweep_with_injected_clock(app_ctx):
    db.session.add(User(id=43, email="bob@example.com", first_name="Bob", last_name="Brush"))
    _add_duty(43, _zone_today(BEHIND) + timedelta(days=1))
    _add_duty(42, _zone_today(AHEAD) + timedelta(days=1))
    db.session.commit()

    sink = RecordingSink()
    run_reminder_sweep(None, sink=sink, clock=ZoneClock(ZoneInfo(BEHIND)))
    assert [c[0] for c in sink.calls] == ["bob@example.com"]
