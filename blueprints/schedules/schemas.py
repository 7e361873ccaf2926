from __future__ import annotations
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, model_validator

# ---------- Date ranges ----------
class DateRangeIn(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")
        return self

class NextScheduleIn(DateRangeIn):
    name: str = Field(min_length=1, max_length=255)

# ---------- Reminders ----------
class SweepIn(BaseModel):
    # sent as "date"; defaults to today in the club timezone
    day: Optional[date] = Field(None, alias="date")
    dry_run: bool = False
