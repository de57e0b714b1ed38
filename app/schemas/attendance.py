"""Pydantic schemas for scans, attendance events, statistics and reports."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


# ── Scan ────────────────────────────────────────────────────────────
class ScanRequest(BaseModel):
    # Raw reader output; blank and repeated codes are answered, not refused.
    code: str = Field(default="", max_length=256)


class ScanSubject(BaseModel):
    id: int
    code: str
    display_name: str
    subject_type: str
    last_sign_in: datetime | None
    last_sign_out: datetime | None

    model_config = {"from_attributes": True}


class ScanResponse(BaseModel):
    success: bool
    status: str  # SIGN_IN | SIGN_OUT | ALREADY_RECORDED | STATE_ERROR | REJECTED
    message: str
    reason: str | None = None  # empty | cooldown (REJECTED only)
    retry_after: float | None = None
    subject: ScanSubject | None = None
    event_id: int | None = None
    event_timestamp: datetime | None = None


# ── Attendance ──────────────────────────────────────────────────────
class AttendanceEventRead(BaseModel):
    id: int
    subject_id: int
    event_type: str
    timestamp: datetime | None
    date: str | None

    model_config = {"from_attributes": True}


# ── Statistics ──────────────────────────────────────────────────────
class StatisticsRead(BaseModel):
    eligible_days: int
    present_days: int
    absent_days: int
    percentage: int

    model_config = {"from_attributes": True}


class SubjectStatisticsResponse(BaseModel):
    subject_id: int
    name: str
    start: date
    end: date
    excluded_weekday: int
    statistics: StatisticsRead
    warning: bool


class CohortMember(BaseModel):
    subject_id: int
    name: str
    statistics: StatisticsRead
    warning: bool


class CohortStatisticsResponse(BaseModel):
    start: date
    end: date
    excluded_weekday: int
    schedule_id: int | None = None
    weekdays: list[int] | None = None
    total_subjects: int
    subjects: list[CohortMember]
    aggregate: StatisticsRead


# ── Reports ─────────────────────────────────────────────────────────
class AttendanceRowRead(BaseModel):
    subject_id: int
    name: str
    section: str | None
    date: date
    sign_in_time: datetime | None
    sign_out_time: datetime | None


class AttendanceReportResponse(BaseModel):
    start: date
    end: date
    total_rows: int
    rows: list[AttendanceRowRead]


# ── Health ──────────────────────────────────────────────────────────
class HealthResponse(BaseModel):
    db: bool


# ── Generic ────────────────────────────────────────────────────────
class DeleteResponse(BaseModel):
    success: bool
    message: str
