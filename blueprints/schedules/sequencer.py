# blueprints/schedules/sequencer.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, List


@dataclass(frozen=True)
class DateEntry:
    date: date
    is_fifth_week: bool


def is_fifth_week(d: date) -> bool:
    # days 1..28 hold exactly four of every weekday, so day > 28 means the fifth one
    return d.day > 28


def iter_weekdays(start: date, end: date, weekday: int) -> Iterator[date]:
    """Every `weekday` (0=Mon..6=Sun) in [start, end], both ends inclusive."""
    cur = start
    while cur.weekday() != weekday and cur <= end:
        cur += timedelta(days=1)
    while cur <= end:
        yield cur
        cur += timedelta(days=7)


def generate(start: date, end: date, weekday: int) -> List[DateEntry]:
    return [DateEntry(d, is_fifth_week(d)) for d in iter_weekdays(start, end, weekday)]
