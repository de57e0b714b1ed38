"""
Attendance statistics: per subject, per class section and per schedule.

Each endpoint fetches all events of the cohort in **one** query and
aggregates in Python. Nothing here is cached or persisted.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query

from app.api.v1.deps import get_store, get_today
from app.api.v1.endpoints.schedules import get_schedule_or_404, pattern_of
from app.core.config import settings
from app.core.exceptions import SubjectNotFoundError
from app.db.store import AttendanceStore
from app.models.subject import Subject
from app.schemas.attendance import (CohortMember, CohortStatisticsResponse,
                                    StatisticsRead, SubjectStatisticsResponse)
from app.services.schedule_days import SchedulePattern
from app.services.statistics import (AttendanceStatistics, PeriodBounds,
                                     absence_warning, compute, compute_many)

router = APIRouter(prefix="/statistics", tags=["statistics"])
logger = logging.getLogger(__name__)


def resolve_period(
    start: date | None,
    end: date | None,
    subject: Subject | None = None,
) -> PeriodBounds:
    """Explicit dates win, then the subject's semester, then the configured default."""
    if start is None:
        start = (subject.semester_start if subject else None) or settings.DEFAULT_SEMESTER_START
    if end is None:
        end = (subject.semester_end if subject else None) or settings.DEFAULT_SEMESTER_END
    period = PeriodBounds(start, end)
    if not period.is_valid:
        logger.info("Inverted period %s..%s; reporting zero eligible days", start, end)
    return period


def _read(stats: AttendanceStatistics) -> StatisticsRead:
    return StatisticsRead.model_validate(stats)


@router.get("/subjects/{subject_id}", response_model=SubjectStatisticsResponse)
async def subject_statistics(
    subject_id: int,
    start: date | None = None,
    end: date | None = None,
    store: AttendanceStore = Depends(get_store),
    today: date = Depends(get_today),
) -> SubjectStatisticsResponse:
    """Present / absent days for one subject (defaults to their semester)."""
    subject = await store.get_subject(subject_id)
    if subject is None:
        raise SubjectNotFoundError(subject_id=subject_id)

    period = resolve_period(start, end, subject)
    events = await store.list_events(subject_id, period)
    stats = compute(events, period, settings.EXCLUDED_WEEKDAY, today=today)

    return SubjectStatisticsResponse(
        subject_id=subject.id,
        name=subject.display_name,
        start=period.start,
        end=period.end,
        excluded_weekday=settings.EXCLUDED_WEEKDAY,
        statistics=_read(stats),
        warning=absence_warning(stats, settings.ABSENCE_WARNING_THRESHOLD),
    )


async def _cohort(
    store: AttendanceStore,
    subjects: list[Subject],
    period: PeriodBounds,
    today: date,
    schedule_id: int | None = None,
    pattern: SchedulePattern | None = None,
) -> CohortStatisticsResponse:
    events = await store.list_events_for_subjects((s.id for s in subjects), period)
    cohort = compute_many(
        {s.id: events.get(s.id, []) for s in subjects},
        period,
        settings.EXCLUDED_WEEKDAY,
        today=today,
        schedule=pattern,
    )
    members = [
        CohortMember(
            subject_id=s.id,
            name=s.display_name,
            statistics=_read(cohort.per_subject[s.id]),
            warning=absence_warning(cohort.per_subject[s.id], settings.ABSENCE_WARNING_THRESHOLD),
        )
        for s in subjects
    ]
    return CohortStatisticsResponse(
        start=period.start,
        end=period.end,
        excluded_weekday=settings.EXCLUDED_WEEKDAY,
        schedule_id=schedule_id,
        weekdays=sorted(int(d) for d in pattern.weekdays) if pattern is not None else None,
        total_subjects=len(members),
        subjects=members,
        aggregate=_read(cohort.aggregate),
    )


@router.get("/cohort", response_model=CohortStatisticsResponse)
async def cohort_statistics(
    start: date | None = None,
    end: date | None = None,
    subject_type: str = Query(default="STUDENT"),
    education_level: str | None = None,
    grade_year_level: str | None = None,
    section: str | None = None,
    store: AttendanceStore = Depends(get_store),
    today: date = Depends(get_today),
) -> CohortStatisticsResponse:
    """Statistics for every active subject matching the class filters."""
    subjects = await store.list_subjects(
        subject_type=subject_type.upper(),
        education_level=education_level,
        grade_year_level=grade_year_level,
        section=section,
    )
    period = resolve_period(start, end)
    return await _cohort(store, subjects, period, today)


@router.get("/schedules/{schedule_id}", response_model=CohortStatisticsResponse)
async def schedule_statistics(
    schedule_id: int,
    start: date | None = None,
    end: date | None = None,
    store: AttendanceStore = Depends(get_store),
    today: date = Depends(get_today),
) -> CohortStatisticsResponse:
    """Statistics for the students of a schedule's section, on its meeting days only."""
    schedule = await get_schedule_or_404(store, schedule_id)
    subjects = await store.list_subjects(
        subject_type="STUDENT",
        education_level=schedule.education_level,
        grade_year_level=schedule.grade_year_level,
        section=schedule.section,
    )
    period = resolve_period(start, end)
    return await _cohort(store, subjects, period, today, schedule.id, pattern_of(schedule))
