"""
Idempotent seed-скрипт для локальной разработки.
Запуск:
  python seed.py --reset         # дропнуть и пересоздать БД + демо-данные
  python seed.py --ensure-admin  # создать только администратора admin@example.com / pass
  python seed.py                 # мягкое наполнение недостающих данных (idempotent)
"""
from datetime import date, timedelta
import argparse

from app import create_app
from extensions import db
from models import Role, Setting, User

DEMO_MEMBERS = [
    ("alice@example.com", "Alice", "Allemande"),
    ("bob@example.com", "Bob", "Brush"),
    ("carol@example.com", "Carol", "Circulate"),
    ("dave@example.com", "Dave", "Dosado"),
]

DEFAULT_SETTINGS = {
    "club_name": "Square Dance Club",
    "club_day_of_week": "Wednesday",
    "reminder_days": "14,7,3,1",
    "system_timezone": "America/Los_Angeles",
}

def ensure_admin():
    if not User.query.filter_by(email="admin@example.com").first():
        admin = User(email="admin@example.com", first_name="Club", last_name="Admin", role=Role.ADMIN.value)
        admin.set_password("pass")
        db.session.add(admin)
        print("[seed] admin@example.com / pass created")

def ensure_members():
    for email, first, last in DEMO_MEMBERS:
        if not User.query.filter_by(email=email).first():
            db.session.add(User(email=email, first_name=first, last_name=last, role=Role.MEMBER.value))

def ensure_settings():
    for key, value in DEFAULT_SETTINGS.items():
        if not Setting.query.filter_by(key=key).first():
            db.session.add(Setting(key=key, value=value))

def ensure_next_schedule():
    # import here: needs models mapped and an app context
    from blueprints.schedules.services import ScheduleLifecycle
    lifecycle = ScheduleLifecycle()
    if lifecycle.get_next()["schedule"] is not None:
        return
    start = date.today()
    res = lifecycle.create_next("Demo schedule", start, start + timedelta(days=90))
    if res.ok:
        print(f"[seed] next schedule with {res.value['count']} dates created")
    else:
        print(f"[seed] next schedule not created: {res.error.message}")

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--reset", action="store_true")
    ap.add_argument("--ensure-admin", action="store_true")
    args = ap.parse_args()

    app = create_app("dev")
    with app.app_context():
        if args.reset:
            db.drop_all()
            db.create_all()
        else:
            db.create_all()

        ensure_admin()
        if not args.ensure_admin:
            ensure_members()
            ensure_settings()
        db.session.commit()
        if not args.ensure_admin:
            ensure_next_schedule()
        print("[seed] done")

if __name__ == "__main__":
    main()
