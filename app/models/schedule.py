"""
Schedule model: a class meeting for one section.

``days`` keeps the free text the administrator typed ("Mon, Wed, Fri",
"T Th", "Monday") and is parsed on read, so a half-typed schedule is still
stored as entered.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from app.db.base import Base


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (
        Index("ix_schedules_class", "education_level", "grade_year_level", "section"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    course_name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    teacher_id: int | None = Column(Integer, ForeignKey("subjects.id"), nullable=True)  # type: ignore[assignment]
    education_level: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    grade_year_level: str = Column(String(40), nullable=False)  # type: ignore[assignment]
    section: str = Column(String(40), nullable=False)  # type: ignore[assignment]
    days: str = Column(String(100), nullable=False, default="")  # type: ignore[assignment]
    start_time: str = Column(String(5), nullable=False)  # type: ignore[assignment]  # HH:MM
    end_time: str = Column(String(5), nullable=False)  # type: ignore[assignment]  # HH:MM
    semester: str | None = Column(String(20), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
