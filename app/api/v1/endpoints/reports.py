"""
Attendance report rows (JSON) and CSV export, plus the health check.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import select

from app.api.v1.deps import get_store
from app.core.clock import to_local
from app.db.store import AttendanceStore
from app.schemas.attendance import (AttendanceReportResponse,
                                    AttendanceRowRead, HealthResponse)
from app.services.report_rows import AttendanceRow, iter_csv, rows_from_events
from app.services.statistics import PeriodBounds

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)


async def _report_rows(
    store: AttendanceStore,
    period: PeriodBounds,
    subject_type: str | None,
    education_level: str | None,
    grade_year_level: str | None,
    section: str | None,
) -> list[AttendanceRow]:
    subjects = await store.list_subjects(
        subject_type=subject_type.upper() if subject_type else None,
        education_level=education_level,
        grade_year_level=grade_year_level,
        section=section,
    )
    events = await store.list_events_for_subjects((s.id for s in subjects), period)
    return rows_from_events(subjects, events)


@router.get("/reports/attendance", response_model=AttendanceReportResponse)
async def attendance_report(
    start: date = Query(...),
    end: date = Query(...),
    subject_type: str | None = None,
    education_level: str | None = None,
    grade_year_level: str | None = None,
    section: str | None = None,
    store: AttendanceStore = Depends(get_store),
) -> AttendanceReportResponse:
    """One row per subject per day with a recorded event, sorted by surname then date."""
    period = PeriodBounds(start, end)
    rows = await _report_rows(store, period, subject_type, education_level, grade_year_level, section)
    return AttendanceReportResponse(
        start=start,
        end=end,
        total_rows=len(rows),
        rows=[
            AttendanceRowRead(
                subject_id=r.subject.id,
                name=r.subject.display_name,
                section=r.subject.section,
                date=r.date,
                sign_in_time=to_local(r.sign_in_time) if r.sign_in_time else None,
                sign_out_time=to_local(r.sign_out_time) if r.sign_out_time else None,
            )
            for r in rows
        ],
    )


@router.get("/reports/attendance/csv")
async def attendance_csv(
    start: date = Query(...),
    end: date = Query(...),
    subject_type: str | None = None,
    education_level: str | None = None,
    grade_year_level: str | None = None,
    section: str | None = None,
    store: AttendanceStore = Depends(get_store),
) -> StreamingResponse:
    """Export attendance rows as a CSV file download."""
    period = PeriodBounds(start, end)
    rows = await _report_rows(store, period, subject_type, education_level, grade_year_level, section)
    logger.info("CSV export %s..%s: %d rows", start, end, len(rows))
    return StreamingResponse(
        iter_csv(rows),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=attendance_{start}_{end}.csv"
        },
    )


# ── Health ──────────────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(store: AttendanceStore = Depends(get_store)) -> HealthResponse:
    """Public health check (database connectivity)."""
    result = HealthResponse(db=False)
    try:
        await store.db.execute(select(1))
        result.db = True
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
    return result
