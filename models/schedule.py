from __future__ import annotations
from datetime import datetime, date
from enum import Enum as PyEnum

from sqlalchemy import (
    Enum, ForeignKey, UniqueConstraint, Index, Boolean, Date, DateTime,
    Integer, String, Text,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db


# ---------- Enums ----------
class ScheduleType(str, PyEnum):
    CURRENT = "current"
    NEXT = "next"


class ClubNightType(str, PyEnum):
    NORMAL = "NORMAL"
    FIFTH_WEEK = "FIFTH_WEEK"   # fifth occurrence of the club weekday in its month


# ---------- Entities ----------
class Schedule(db.Model):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    schedule_type: Mapped[ScheduleType] = mapped_column(
        Enum(ScheduleType, name="schedule_type"), nullable=False, index=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    assignments = relationship(
        "ScheduleAssignment", back_populates="schedule",
        cascade="all, delete-orphan", order_by="ScheduleAssignment.dance_date",
    )

    __table_args__ = (
        # at most one active schedule per type
        Index(
            "uq_schedules_active_type", "schedule_type", unique=True,
            sqlite_where=db.text("is_active = 1"),
            postgresql_where=db.text("is_active"),
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "schedule_type": self.schedule_type.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "is_active": bool(self.is_active),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Schedule {self.id} {self.schedule_type.value} active={self.is_active}>"


class ScheduleAssignment(db.Model):
    __tablename__ = "schedule_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    schedule_id: Mapped[int] = mapped_column(ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    dance_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    club_night_type: Mapped[ClubNightType] = mapped_column(
        Enum(ClubNightType, name="club_night_type"), nullable=False, default=ClubNightType.NORMAL
    )
    # references into the member directory; either slot may be empty
    squarehead1_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    squarehead2_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    schedule = relationship("Schedule", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("schedule_id", "dance_date", name="uq_assignment_schedule_date"),
    )

    def volunteer_ids(self) -> list[int]:
        return [v for v in (self.squarehead1_id, self.squarehead2_id) if v is not None]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "schedule_id": self.schedule_id,
            "dance_date": self.dance_date.isoformat(),
            "club_night_type": self.club_night_type.value,
            "squarehead1_id": self.squarehead1_id,
            "squarehead2_id": self.squarehead2_id,
            "notes": self.notes,
        }

    def __repr__(self):
        return f"<ScheduleAssignment {self.id} {self.dance_date}>"
