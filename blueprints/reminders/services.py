# blueprints/reminders/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field, asdict
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Protocol

from models import ScheduleAssignment, ScheduleType
from blueprints.core.results import OpResult, not_found, validation_error
from blueprints.members.services import MemberDirectory, SqlMemberDirectory
from blueprints.schedules.repository import ScheduleRepository
from blueprints.settings.services import ClubSettings, Clock
from .mailer import ReminderMailer

log = logging.getLogger(__name__)


# ===== DTO =====
@dataclass(frozen=True)
class ReminderDue:
    assignment_id: int
    dance_date: date
    volunteer_id: int
    day_offset: int


@dataclass
class ReminderFailure:
    volunteer_id: int
    dance_date: str
    day_offset: int
    reason: str
    email: Optional[str] = None
    name: Optional[str] = None


@dataclass
class SweepReport:
    schedule_id: Optional[int]
    reminder_days_checked: List[int]
    sent: List[Dict[str, Any]] = field(default_factory=list)
    failures: List[ReminderFailure] = field(default_factory=list)
    dry_run: bool = False

    @property
    def sent_count(self) -> int:
        return len(self.sent)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schedule_id": self.schedule_id,
            "reminder_days_checked": self.reminder_days_checked,
            "emails_sent": self.sent,
            "total_emails_sent": self.sent_count,
            "errors": [asdict(f) for f in self.failures],
            "dry_run": self.dry_run,
        }


class ReminderSink(Protocol):
    def send_reminder(self, email: str, name: str, date_label: str) -> bool:
        ...


# ===== planner =====
class ReminderPlanner:
    """Maps "today" plus day offsets onto roster entries and hands each due volunteer to a sink.

    Nothing is persisted: running twice for the same day sends the same reminders twice.
    """

    def __init__(self, directory: Optional[MemberDirectory] = None):
        self.directory = directory or SqlMemberDirectory()

    def plan(self, today: date, assignments: Iterable[ScheduleAssignment], offsets: Iterable[int]) -> List[ReminderDue]:
        by_date: Dict[date, List[ScheduleAssignment]] = {}
        for a in assignments:
            by_date.setdefault(a.dance_date, []).append(a)

        due: List[ReminderDue] = []
        seen_offsets: List[int] = []
        for offset in offsets:
            if offset <= 0 or offset in seen_offsets:
                continue
            seen_offsets.append(offset)
            target = today + timedelta(days=offset)
            for a in sorted(by_date.get(target, []), key=lambda x: x.id):
                # each filled slot is reminded on its own
                for vid in (a.squarehead1_id, a.squarehead2_id):
                    if vid is not None:
                        due.append(ReminderDue(a.id, a.dance_date, vid, offset))
        return due

    def dispatch(self, due: Iterable[ReminderDue], sink: ReminderSink, report: SweepReport) -> SweepReport:
        for item in due:
            label = item.dance_date.isoformat()
            volunteer = self.directory.resolve(item.volunteer_id)
            if volunteer is None or not volunteer.email:
                report.failures.append(ReminderFailure(
                    volunteer_id=item.volunteer_id, dance_date=label, day_offset=item.day_offset,
                    reason="volunteer not found" if volunteer is None else "no email address on file",
                    name=volunteer.name if volunteer else None,
                ))
                continue
            try:
                delivered = sink.send_reminder(volunteer.email, volunteer.name, label)
                reason = None if delivered else "send failed"
            except Exception as ex:  # one bad recipient must not stop the sweep
                delivered, reason = False, f"{ex.__class__.__name__}: {ex}"
            if delivered:
                report.sent.append({
                    "email": volunteer.email,
                    "name": volunteer.name,
                    "dance_date": label,
                    "reminder_days": item.day_offset,
                })
                log.info("reminder sent", extra={"assignment_id": item.assignment_id, "user_id": volunteer.id})
            else:
                report.failures.append(ReminderFailure(
                    volunteer_id=item.volunteer_id, dance_date=label, day_offset=item.day_offset,
                    reason=reason, email=volunteer.email, name=volunteer.name,
                ))
                log.warning("reminder failed: %s", reason,
                            extra={"assignment_id": item.assignment_id, "user_id": volunteer.id})
        return report

    def plan_and_dispatch(self, today: date, assignments: Iterable[ScheduleAssignment], offsets: Iterable[int],
                          sink: ReminderSink, schedule_id: Optional[int] = None) -> SweepReport:
        offsets = list(offsets)
        report = SweepReport(schedule_id=schedule_id, reminder_days_checked=offsets)
        return self.dispatch(self.plan(today, assignments, offsets), sink, report)


# ===== фасад для cron =====
def _load_current(repo: ScheduleRepository, settings: ClubSettings):
    offsets = settings.reminder_offsets()
    if not offsets:
        return None, None, validation_error("No reminder days configured", reminder_days="empty")
    schedule = repo.get_active(ScheduleType.CURRENT)
    if schedule is None:
        return None, None, not_found("No active current schedule found")
    return schedule, offsets, None


def preview_reminders(today: Optional[date] = None, *, settings: Optional[ClubSettings] = None,
                      clock: Optional[Clock] = None, repo: Optional[ScheduleRepository] = None) -> OpResult[Dict[str, Any]]:
    settings = settings or ClubSettings()
    repo = repo or ScheduleRepository()
    today = today or (clock or settings.clock()).today()
    schedule, offsets, err = _load_current(repo, settings)
    if err:
        return err
    due = ReminderPlanner(repo.directory).plan(today, repo.list_assignments(schedule.id), offsets)
    return OpResult.success({
        "today": today.isoformat(),
        "schedule_id": schedule.id,
        "reminder_days_checked": offsets,
        "due": [{**asdict(d), "dance_date": d.dance_date.isoformat()} for d in due],
    })


def run_reminder_sweep(today: Optional[date] = None, *, sink: Optional[ReminderSink] = None,
                       settings: Optional[ClubSettings] = None, clock: Optional[Clock] = None,
                       repo: Optional[ScheduleRepository] = None, dry_run: bool = False) -> OpResult[SweepReport]:
    settings = settings or ClubSettings()
    repo = repo or ScheduleRepository()
    # "today" is the club's date, not the server's
    today = today or (clock or settings.clock()).today()
    schedule, offsets, err = _load_current(repo, settings)
    if err:
        return err

    if dry_run:
        sink = _DrySink()
    elif sink is None:
        sink = ReminderMailer(settings)
    planner = ReminderPlanner(repo.directory)
    report = planner.plan_and_dispatch(today, repo.list_assignments(schedule.id), offsets, sink,
                                       schedule_id=schedule.id)
    report.dry_run = dry_run

    log.info("reminder sweep finished: %d sent, %d failed", report.sent_count, len(report.failures),
             extra={"schedule_id": schedule.id, "count": report.sent_count})
    msg = "Reminders processed with some errors" if report.failures else "Reminders sent successfully"
    return OpResult.success(report, msg)


class _DrySink:
    def send_reminder(self, email: str, name: str, date_label: str) -> bool:
        log.info("dry run: would remind %s for %s", email, date_label)
        return True
