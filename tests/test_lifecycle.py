from __future__ import annotations
from datetime import date
import pytest
from sqlalchemy.exc import SQLAlchemyError

from app import create_app
from extensions import db
from models import AuditLog, ClubNightType, Schedule, ScheduleAssignment, ScheduleType, Setting
from blueprints.schedules import services as schedule_services
from blueprints.schedules.services import ScheduleLifecycle

@pytest.fixture()
def app_ctx():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        db.session.add(Setting(key="club_day_of_week", value="Wednesday"))
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

def _active(schedule_type):
    return Schedule.query.filter_by(schedule_type=schedule_type, is_active=True).all()

def test_create_next_generates_club_nights(app_ctx):
    res = ScheduleLifecycle().create_next("Winter", date(2025, 1, 1), date(2025, 1, 31), actor_id=None)
    assert res.ok, res.error
    assert res.value["count"] == 5
    assert res.value["schedule"]["schedule_type"] == "next"
    types = [a["club_night_type"] for a in res.value["assignments"]]
    assert types == ["NORMAL"] * 4 + ["FIFTH_WEEK"]
    assert all(a["squarehead1_id"] is None and a["squarehead2_id"] is None for a in res.value["assignments"])
    assert AuditLog.query.filter_by(action="CREATE_NEXT").count() == 1

def test_create_next_replaces_previous_draft(app_ctx):
    lc = ScheduleLifecycle()
    first = lc.create_next("A", date(2025, 1, 1), date(2025, 1, 31)).value["schedule"]["id"]
    second = lc.create_next("B", date(2025, 2, 1), date(2025, 2, 28)).value["schedule"]["id"]
    drafts = _active(ScheduleType.NEXT)
    assert [s.id for s in drafts] == [second]
    # история сохраняется
    old = db.session.get(Schedule, first)
    assert old is not None and old.is_active is False

def test_create_next_rejects_bad_input(app_ctx):
    lc = ScheduleLifecycle()
    assert lc.create_next("  ", date(2025, 1, 1), date(2025, 1, 31)).error.code == "VALIDATION_ERROR"
    res = lc.create_next("X", date(2025, 2, 1), date(2025, 1, 1))
    assert res.error.code == "VALIDATION_ERROR"
    assert Schedule.query.count() == 0

def test_add_dates_skips_existing(app_ctx):
    lc = ScheduleLifecycle()
    lc.create_next("Winter", date(2025, 1, 1), date(2025, 1, 31))
    res = lc.add_dates(date(2025, 1, 20), date(2025, 2, 15))
    assert res.ok
    assert res.value["added_count"] == 2  # 5 и 12 февраля
    assert [a["dance_date"] for a in res.value["new_assignments"]] == ["2025-02-05", "2025-02-12"]
    assert res.value["count"] == 7
    assert res.value["schedule"]["end_date"] == "2025-02-15"
    # повтор ничего не добавляет
    again = lc.add_dates(date(2025, 1, 1), date(2025, 2, 15))
    assert again.value["added_count"] == 0
    assert ScheduleAssignment.query.count() == 7

def test_add_dates_without_draft(app_ctx):
    res = ScheduleLifecycle().add_dates(date(2025, 1, 1), date(2025, 1, 31))
    assert res.error.code == "NOT_FOUND"

def test_promote_swaps_current(app_ctx):
    lc = ScheduleLifecycle()
    lc.create_next("Old", date(2025, 1, 1), date(2025, 1, 31))
    old_id = lc.promote().value["schedule"]["id"]
    lc.create_next("New", date(2025, 2, 1), date(2025, 2, 28))
    res = lc.promote()
    assert res.ok
    new_id = res.value["schedule"]["id"]
    assert [s.id for s in _active(ScheduleType.CURRENT)] == [new_id]
    assert _active(ScheduleType.NEXT) == []
    assert db.session.get(Schedule, old_id).is_active is False
    assert lc.get_current()["count"] == 4
    assert lc.get_next() == {"schedule": None, "assignments": [], "count": 0}

def test_promote_without_draft(app_ctx):
    res = ScheduleLifecycle().promote()
    assert res.error.code == "NOT_FOUND"
    assert res.error.http_status == 404

def test_promote_failure_rolls_back(app_ctx, monkeypatch):
    lc = ScheduleLifecycle()
    lc.create_next("Old", date(2025, 1, 1), date(2025, 1, 31))
    current_id = lc.promote().value["schedule"]["id"]
    draft_id = lc.create_next("New", date(2025, 2, 1), date(2025, 2, 28)).value["schedule"]["id"]

    def boom(schedule, schedule_type):
        raise SQLAlchemyError("disk on fire")
    monkeypatch.setattr(lc.repo, "set_schedule_type", boom)

    res = lc.promote()
    assert not res.ok and res.error.code == "PERSISTENCE_ERROR"
    assert res.error.http_status == 503
    assert [s.id for s in _active(ScheduleType.CURRENT)] == [current_id]
    assert [s.id for s in _active(ScheduleType.NEXT)] == [draft_id]

def test_clear_next(app_ctx):
    lc = ScheduleLifecycle()
    lc.create_next("Winter", date(2025, 1, 1), date(2025, 1, 31))
    res = lc.clear_next()
    assert res.ok
    assert res.value.to_dict() == {"schedule_deleted": True, "assignments_deleted": 5, "schedule_name": "Winter"}
    assert Schedule.query.count() == 0 and ScheduleAssignment.query.count() == 0

def test_clear_when_nothing_to_clear(app_ctx):
    res = ScheduleLifecycle().clear_next()
    assert res.ok
    assert res.value.to_dict() == {"schedule_deleted": False, "assignments_deleted": 0}
    assert ScheduleLifecycle().clear_current().value.schedule_deleted is False

def test_clear_current_leaves_draft(app_ctx):
    lc = ScheduleLifecycle()
    lc.create_next("Jan", date(2025, 1, 1), date(2025, 1, 31))
    lc.promote()
    lc.create_next("Feb", date(2025, 2, 1), date(2025, 2, 28))
    res = lc.clear_current()
    assert res.value.assignments_deleted == 5
    assert lc.get_current()["schedule"] is None
    assert lc.get_next()["count"] == 4

def test_club_weekday_from_settings(app_ctx):
    Setting.query.filter_by(key="club_day_of_week").first().value = "friday"
    db.session.commit()
    res = ScheduleLifecycle().create_next("Fri", date(2025, 1, 1), date(2025, 1, 31))
    dates = [a["dance_date"] for a in res.value["assignments"]]
    assert dates == ["2025-01-03", "2025-01-10", "2025-01-17", "2025-01-24", "2025-01-31"]
    assert res.value["assignments"][-1]["club_night_type"] == ClubNightType.FIFTH_WEEK.value

def _boom(*args, **kwargs):
    raise SQLAlchemyError("disk on fire")

def test_create_next_failure_keeps_previous_draft(app_ctx, monkeypatch):
    lc = ScheduleLifecycle()
    draft_id = lc.create_next("Jan", date(2025, 1, 1), date(2025, 1, 31)).value["schedule"]["id"]
    monkeypatch.setattr(lc.repo, "insert_assignments", _boom)

    res = lc.create_next("Feb", date(2025, 2, 1), date(2025, 2, 28))
    assert res.error.code == "PERSISTENCE_ERROR"
    assert [s.id for s in _active(ScheduleType.NEXT)] == [draft_id]
    assert Schedule.query.count() == 1 and ScheduleAssignment.query.count() == 5

def test_add_dates_failure_rolls_back(app_ctx, monkeypatch):
    lc = ScheduleLifecycle()
    lc.create_next("Winter", date(2025, 1, 1), date(2025, 1, 31))
    # сбой после вставки новых дат, до расширения диапазона
    monkeypatch.setattr(lc.repo, "widen_schedule_range", _boom)

    res = lc.add_dates(date(2025, 2, 1), date(2025, 2, 28))
    assert res.error.code == "PERSISTENCE_ERROR"
    assert ScheduleAssignment.query.count() == 5
    s = _active(ScheduleType.NEXT)[0]
    assert (s.start_date, s.end_date) == (date(2025, 1, 1), date(2025, 1, 31))

def test_clear_next_failure_rolls_back(app_ctx, monkeypatch):
    lc = ScheduleLifecycle()
    lc.create_next("Winter", date(2025, 1, 1), date(2025, 1, 31))
    monkeypatch.setattr(schedule_services, "_audit", _boom)

    res = lc.clear_next()
    assert res.error.code == "PERSISTENCE_ERROR"
    assert len(_active(ScheduleType.NEXT)) == 1
    assert ScheduleAssignment.query.count() == 5

def test_clear_current_failure_rolls_back(app_ctx, monkeypatch):
    lc = ScheduleLifecycle()
    lc.create_next("Winter", date(2025, 1, 1), date(2025, 1, 31))
    current_id = lc.promote().value["schedule"]["id"]
    monkeypatch.setattr(schedule_services, "_audit", _boom)

    res = lc.clear_current()
    assert res.error.code == "PERSISTENCE_ERROR"
    assert [s.id for s in _active(ScheduleType.CURRENT)] == [current_id]
    assert ScheduleAssignment.query.filter_by(schedule_id=current_id).count() == 5
