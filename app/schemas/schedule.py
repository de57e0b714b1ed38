"""Pydantic schemas for class schedules."""

from __future__ import annotations

import re
from datetime import date

from pydantic import BaseModel, field_validator, model_validator

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ScheduleCreate(BaseModel):
    course_name: str
    teacher_id: int | None = None
    education_level: str
    grade_year_level: str
    section: str
    days: str | list[str] = ""
    start_time: str
    end_time: str
    semester: str | None = None

    @field_validator("days")
    @classmethod
    def _days(cls, v: str | list[str]) -> str:
        # Stored as typed; parsing happens on read.
        if isinstance(v, list):
            v = ", ".join(s.strip() for s in v if s.strip())
        return v.strip()

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        v = v.strip()
        if not _HHMM_RE.match(v):
            raise ValueError("Time must be HH:MM (24-hour)")
        return v

    @model_validator(mode="after")
    def _same_day(self) -> "ScheduleCreate":
        if self.start_time >= self.end_time:
            raise ValueError("end_time must be after start_time (schedules cannot span midnight)")
        return self


class ScheduleRead(BaseModel):
    id: int
    course_name: str
    teacher_id: int | None
    education_level: str
    grade_year_level: str
    section: str
    days: str
    weekdays: list[int]  # Mon=0 .. Sun=6; empty = every day
    start_time: str
    end_time: str
    semester: str | None


class ScheduledDayResponse(BaseModel):
    schedule_id: int
    date: date
    weekday: int
    scheduled: bool
    matches_every_day: bool
