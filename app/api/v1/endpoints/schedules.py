"""
Class schedule endpoints and the scheduled-day check.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query

from app.api.v1.deps import get_store
from app.core.exceptions import ScheduleNotFoundError, SubjectNotFoundError
from app.db.store import AttendanceStore
from app.models.schedule import Schedule
from app.schemas.attendance import DeleteResponse
from app.schemas.schedule import ScheduleCreate, ScheduledDayResponse, ScheduleRead
from app.services.schedule_days import SchedulePattern, is_scheduled_day

router = APIRouter(prefix="/schedules", tags=["schedules"])
logger = logging.getLogger(__name__)


def pattern_of(schedule: Schedule) -> SchedulePattern:
    return SchedulePattern.parse(schedule.days, schedule.start_time, schedule.end_time)


def _read(schedule: Schedule) -> ScheduleRead:
    return ScheduleRead(
        id=schedule.id,
        course_name=schedule.course_name,
        teacher_id=schedule.teacher_id,
        education_level=schedule.education_level,
        grade_year_level=schedule.grade_year_level,
        section=schedule.section,
        days=schedule.days,
        weekdays=sorted(int(d) for d in pattern_of(schedule).weekdays),
        start_time=schedule.start_time,
        end_time=schedule.end_time,
        semester=schedule.semester,
    )


async def get_schedule_or_404(store: AttendanceStore, schedule_id: int) -> Schedule:
    schedule = await store.get_schedule(schedule_id)
    if schedule is None:
        raise ScheduleNotFoundError(schedule_id)
    return schedule


@router.post("", response_model=ScheduleRead, status_code=201)
async def create_schedule(
    body: ScheduleCreate,
    store: AttendanceStore = Depends(get_store),
) -> ScheduleRead:
    if body.teacher_id is not None:
        teacher = await store.get_subject(body.teacher_id)
        if teacher is None or teacher.subject_type != "TEACHER":
            raise SubjectNotFoundError(subject_id=body.teacher_id)

    schedule = Schedule(**body.model_dump())
    store.db.add(schedule)
    await store.db.commit()
    await store.db.refresh(schedule)

    if not pattern_of(schedule).weekdays:
        logger.warning(
            "Schedule %d has no recognisable days (%r); it will match every day",
            schedule.id,
            schedule.days,
        )
    logger.info("Created schedule %d (%s)", schedule.id, schedule.course_name)
    return _read(schedule)


@router.get("", response_model=list[ScheduleRead])
async def list_schedules(
    subject_id: int | None = None,
    education_level: str | None = None,
    grade_year_level: str | None = None,
    section: str | None = None,
    store: AttendanceStore = Depends(get_store),
) -> list[ScheduleRead]:
    """Schedules of one subject (``subject_id``) or of a class."""
    subject = None
    if subject_id is not None:
        subject = await store.get_subject(subject_id)
        if subject is None:
            raise SubjectNotFoundError(subject_id=subject_id)
    schedules = await store.list_schedules(
        subject=subject,
        education_level=education_level,
        grade_year_level=grade_year_level,
        section=section,
    )
    return [_read(s) for s in schedules]


@router.get("/{schedule_id}", response_model=ScheduleRead)
async def get_schedule(
    schedule_id: int,
    store: AttendanceStore = Depends(get_store),
) -> ScheduleRead:
    return _read(await get_schedule_or_404(store, schedule_id))


@router.get("/{schedule_id}/is-scheduled", response_model=ScheduledDayResponse)
async def schedule_is_scheduled(
    schedule_id: int,
    on: date = Query(..., alias="date"),
    store: AttendanceStore = Depends(get_store),
) -> ScheduledDayResponse:
    """Does the class meet on the given date?"""
    pattern = pattern_of(await get_schedule_or_404(store, schedule_id))
    return ScheduledDayResponse(
        schedule_id=schedule_id,
        date=on,
        weekday=on.weekday(),
        scheduled=is_scheduled_day(pattern, on),
        matches_every_day=pattern.matches_every_day,
    )


@router.delete("/{schedule_id}", response_model=DeleteResponse)
async def delete_schedule(
    schedule_id: int,
    store: AttendanceStore = Depends(get_store),
) -> DeleteResponse:
    schedule = await get_schedule_or_404(store, schedule_id)
    await store.db.delete(schedule)
    await store.db.commit()
    logger.info("Deleted schedule %d", schedule_id)
    return DeleteResponse(success=True, message=f"Schedule {schedule_id} deleted")
