# blueprints/settings/services.py
from __future__ import annotations
import logging
from datetime import date, datetime
from typing import List, Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import current_app, has_app_context

from models import Setting
from blueprints.core.filters import WEEKDAYS

log = logging.getLogger(__name__)

DEFAULT_WEEKDAY = WEEKDAYS.index("Wednesday")
DEFAULT_REMINDER_DAYS = "14,7,3,1"

# settings-table key -> app config key
CONFIG_FALLBACK = {
    "club_name": "CLUB_NAME",
    "club_day_of_week": "CLUB_DAY_OF_WEEK",
    "system_timezone": "CLUB_TIMEZONE",
    "reminder_days": "REMINDER_DAYS",
    "email_template_subject": "EMAIL_TEMPLATE_SUBJECT",
    "email_template_body": "EMAIL_TEMPLATE_BODY",
}


def parse_weekday(name: str | int | None) -> int:
    """English day name (any case) -> 0=Mon..6=Sun; unknown names fall back to Wednesday."""
    if isinstance(name, int):
        return name % 7
    key = (name or "").strip().lower()
    for idx, day in enumerate(WEEKDAYS):
        if day.lower() == key:
            return idx
    return DEFAULT_WEEKDAY


def parse_reminder_days(raw: str | None) -> List[int]:
    out: List[int] = []
    for part in (raw or "").split(","):
        part = part.strip()
        if not part.isdigit():
            continue
        n = int(part)
        if n > 0 and n not in out:
            out.append(n)
    return out


class Clock(Protocol):
    def today(self) -> date:
        ...


class ZoneClock:
    def __init__(self, tz: ZoneInfo):
        self.tz = tz

    def today(self) -> date:
        return datetime.now(self.tz).date()


class FixedClock:
    def __init__(self, day: date):
        self.day = day

    def today(self) -> date:
        return self.day


class ClubSettings:
    """Club-wide settings: the settings table first, then app config."""

    def get(self, key: str) -> Optional[str]:
        row = Setting.query.filter_by(key=key).first()
        if row is not None and row.value not in (None, ""):
            return row.value
        cfg_key = CONFIG_FALLBACK.get(key)
        if cfg_key and has_app_context():
            return current_app.config.get(cfg_key)
        return None

    def club_name(self) -> str:
        return self.get("club_name") or "Square Dance Club"

    def club_weekday(self) -> int:
        return parse_weekday(self.get("club_day_of_week"))

    def reminder_offsets(self) -> List[int]:
        raw = self.get("reminder_days")
        return parse_reminder_days(raw if raw is not None else DEFAULT_REMINDER_DAYS)

    def timezone(self) -> ZoneInfo:
        name = self.get("system_timezone") or "UTC"
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            log.warning("unknown timezone %r, using UTC", name)
            return ZoneInfo("UTC")

    def clock(self) -> Clock:
        return ZoneClock(self.timezone())
