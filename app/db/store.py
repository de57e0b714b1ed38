"""
Attendance storage: the only place that reads or writes attendance rows.

Appends for one subject are serialised by locking the subject row
(``SELECT ... FOR UPDATE``) for the lifetime of the scan transaction.
SQLite ignores the lock clause; tests run scans serially.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import day_bounds_utc, ensure_utc, local_date
from app.models.schedule import Schedule
from app.models.subject import AttendanceEvent, Subject
from app.services.statistics import PeriodBounds

logger = logging.getLogger(__name__)


class AttendanceStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ── Subjects ────────────────────────────────────────────────────
    async def get_subject_by_code(self, code: str, *, lock: bool = False) -> Subject | None:
        query = select(Subject).where(Subject.code == code, Subject.is_active.is_(True))
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def release(self) -> None:
        """End the current transaction, dropping any row lock without writing."""
        await self.db.commit()

    async def get_subject(self, subject_id: int) -> Subject | None:
        result = await self.db.execute(
            select(Subject).where(Subject.id == subject_id, Subject.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def list_subjects(
        self,
        *,
        subject_type: str | None = None,
        education_level: str | None = None,
        grade_year_level: str | None = None,
        section: str | None = None,
    ) -> list[Subject]:
        query = select(Subject).where(Subject.is_active.is_(True))
        if subject_type:
            query = query.where(Subject.subject_type == subject_type)
        if education_level:
            query = query.where(Subject.education_level == education_level)
        if grade_year_level:
            query = query.where(Subject.grade_year_level == grade_year_level)
        if section:
            query = query.where(Subject.section == section)
        result = await self.db.execute(query.order_by(Subject.last_name, Subject.first_name))
        return list(result.scalars().all())

    # ── Events ──────────────────────────────────────────────────────
    async def _append(self, subject: Subject, event_type: str, now: datetime) -> AttendanceEvent:
        ts = ensure_utc(now).astimezone(timezone.utc)
        event = AttendanceEvent(
            subject_id=subject.id,
            event_type=event_type,
            timestamp=ts,
            date=local_date(ts).isoformat(),
        )
        if event_type == "SIGN_IN":
            subject.last_sign_in = ts
        else:
            subject.last_sign_out = ts
        self.db.add(event)
        await self.db.commit()
        await self.db.refresh(event)
        await self.db.refresh(subject)
        return event

    async def record_sign_in(self, subject: Subject, now: datetime) -> AttendanceEvent:
        return await self._append(subject, "SIGN_IN", now)

    async def record_sign_out(self, subject: Subject, now: datetime) -> AttendanceEvent:
        return await self._append(subject, "SIGN_OUT", now)

    async def list_events(self, subject_id: int, period: PeriodBounds) -> list[AttendanceEvent]:
        grouped = await self.list_events_for_subjects([subject_id], period)
        return grouped.get(subject_id, [])

    async def list_events_for_subjects(
        self, subject_ids: Iterable[int], period: PeriodBounds
    ) -> dict[int, list[AttendanceEvent]]:
        """All events of *subject_ids* inside *period*, in one query."""
        ids = list(subject_ids)
        if not ids or not period.is_valid:
            return {}
        lo, hi = day_bounds_utc(period.start, period.end)
        result = await self.db.execute(
            select(AttendanceEvent)
            .where(
                AttendanceEvent.subject_id.in_(ids),
                AttendanceEvent.timestamp >= lo,
                AttendanceEvent.timestamp < hi,
            )
            .order_by(AttendanceEvent.subject_id, AttendanceEvent.timestamp.asc())
        )
        grouped: dict[int, list[AttendanceEvent]] = defaultdict(list)
        for ev in result.scalars().all():
            grouped[ev.subject_id].append(ev)
        return dict(grouped)

    # ── Schedules ───────────────────────────────────────────────────
    async def get_schedule(self, schedule_id: int) -> Schedule | None:
        result = await self.db.execute(select(Schedule).where(Schedule.id == schedule_id))
        return result.scalar_one_or_none()

    async def list_schedules(
        self,
        *,
        subject: Subject | None = None,
        education_level: str | None = None,
        grade_year_level: str | None = None,
        section: str | None = None,
    ) -> list[Schedule]:
        """Schedules for a subject (taught or attended) or for a class."""
        query = select(Schedule)
        if subject is not None:
            if subject.subject_type == "TEACHER":
                query = query.where(Schedule.teacher_id == subject.id)
            else:
                education_level = subject.education_level
                grade_year_level = subject.grade_year_level
                section = subject.section
                if not (education_level and grade_year_level and section):
                    return []
        if education_level:
            query = query.where(Schedule.education_level == education_level)
        if grade_year_level:
            query = query.where(Schedule.grade_year_level == grade_year_level)
        if section:
            query = query.where(Schedule.section == section)
        result = await self.db.execute(query.order_by(Schedule.id))
        return list(result.scalars().all())
