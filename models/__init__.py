from extensions import db
from .schedule import ScheduleType, ClubNightType, Schedule, ScheduleAssignment
from .user import Role, User
from .setting import Setting
from .audit import AuditLog

__all__ = [
    "db",
    "ScheduleType", "ClubNightType", "Schedule", "ScheduleAssignment",
    "Role", "User",
    "Setting",
    "AuditLog",
]
