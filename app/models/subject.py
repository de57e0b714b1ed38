"""
Subject & AttendanceEvent models: the people who scan cards and their history.

A *subject* is a student or a teacher. ``last_sign_in`` / ``last_sign_out``
are denormalised copies of the newest events of each type, refreshed on every
append so the kiosk can decide a scan from a single row read.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (Boolean, Column, Date, DateTime, ForeignKey, Index,
                        Integer, String)
from sqlalchemy.orm import relationship

from app.db.base import Base

SUBJECT_TYPES = ("STUDENT", "TEACHER")
EVENT_TYPES = ("SIGN_IN", "SIGN_OUT")


class Subject(Base):
    __tablename__ = "subjects"
    __table_args__ = (
        Index("ix_subjects_class", "education_level", "grade_year_level", "section"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    code: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    subject_type: str = Column(String(10), nullable=False, default="STUDENT")  # type: ignore[assignment]
    # STUDENT | TEACHER
    first_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    middle_name: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    last_name: str = Column(String(100), nullable=False, index=True)  # type: ignore[assignment]
    email: str | None = Column(String(320), nullable=True)  # type: ignore[assignment]
    student_number: str | None = Column(String(40), nullable=True)  # type: ignore[assignment]
    education_level: str | None = Column(String(20), nullable=True)  # type: ignore[assignment]
    # Primary | Secondary
    grade_year_level: str | None = Column(String(40), nullable=True)  # type: ignore[assignment]
    section: str | None = Column(String(40), nullable=True)  # type: ignore[assignment]
    semester: str | None = Column(String(20), nullable=True)  # type: ignore[assignment]
    semester_start: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    semester_end: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    last_sign_in: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    last_sign_out: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    events = relationship(
        "AttendanceEvent",
        back_populates="subject",
        cascade="all, delete-orphan",
    )

    @property
    def display_name(self) -> str:
        """``Last, First M.`` as printed on the kiosk and in exports."""
        initial = f"{self.middle_name[0]}." if self.middle_name else ""
        return f"{self.last_name}, {self.first_name} {initial}".strip().rstrip(",")


class AttendanceEvent(Base):
    """Append-only. Rows are never updated once written."""

    __tablename__ = "attendance_events"
    __table_args__ = (Index("ix_attendance_subject_date", "subject_id", "date"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    subject_id: int = Column(Integer, ForeignKey("subjects.id"), nullable=False)  # type: ignore[assignment]
    event_type: str = Column(String(10), nullable=False)  # type: ignore[assignment]
    # SIGN_IN | SIGN_OUT
    timestamp: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    date: str = Column(String(10), index=True)  # type: ignore[assignment]  # local YYYY-MM-DD

    subject = relationship("Subject", back_populates="events")
