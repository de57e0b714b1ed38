"""
Subject (student / teacher) CRUD, code lookup and event history.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_db, get_store
from app.core.exceptions import SubjectNotFoundError
from app.db.store import AttendanceStore
from app.models.subject import Subject
from app.schemas.attendance import AttendanceEventRead, DeleteResponse
from app.schemas.subject import SubjectCreate, SubjectRead, SubjectUpdate
from app.services.statistics import PeriodBounds

router = APIRouter(prefix="/subjects", tags=["subjects"])
logger = logging.getLogger(__name__)


async def _get_or_404(store: AttendanceStore, subject_id: int) -> Subject:
    subject = await store.get_subject(subject_id)
    if subject is None:
        raise SubjectNotFoundError(subject_id=subject_id)
    return subject


@router.get("", response_model=list[SubjectRead])
async def list_subjects(
    subject_type: str | None = None,
    education_level: str | None = None,
    grade_year_level: str | None = None,
    section: str | None = None,
    store: AttendanceStore = Depends(get_store),
) -> list[Subject]:
    return await store.list_subjects(
        subject_type=subject_type.upper() if subject_type else None,
        education_level=education_level,
        grade_year_level=grade_year_level,
        section=section,
    )


@router.post("", response_model=SubjectRead, status_code=201)
async def create_subject(
    body: SubjectCreate,
    db: AsyncSession = Depends(get_db),
) -> Subject:
    existing = await db.execute(select(Subject).where(Subject.code == body.code))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Code '{body.code}' already registered")

    subject = Subject(**body.model_dump())
    db.add(subject)
    await db.commit()
    await db.refresh(subject)
    logger.info("Created %s %s (code %s)", subject.subject_type, subject.display_name, subject.code)
    return subject


@router.get("/by-code/{code}", response_model=SubjectRead)
async def get_subject_by_code(
    code: str,
    store: AttendanceStore = Depends(get_store),
) -> Subject:
    subject = await store.get_subject_by_code(code.strip())
    if subject is None:
        raise SubjectNotFoundError(code=code)
    return subject


@router.get("/{subject_id}", response_model=SubjectRead)
async def get_subject(
    subject_id: int,
    store: AttendanceStore = Depends(get_store),
) -> Subject:
    return await _get_or_404(store, subject_id)


@router.put("/{subject_id}", response_model=SubjectRead)
async def update_subject(
    subject_id: int,
    body: SubjectUpdate,
    store: AttendanceStore = Depends(get_store),
) -> Subject:
    subject = await _get_or_404(store, subject_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(subject, field, value)

    await store.db.commit()
    await store.db.refresh(subject)
    logger.info("Updated subject %d", subject_id)
    return subject


@router.delete("/{subject_id}", response_model=DeleteResponse)
async def delete_subject(
    subject_id: int,
    store: AttendanceStore = Depends(get_store),
) -> DeleteResponse:
    """Soft-delete (deactivate). Attendance history is preserved."""
    subject = await _get_or_404(store, subject_id)
    subject.is_active = False
    await store.db.commit()
    logger.info("Soft-deleted subject %d (%s)", subject_id, subject.display_name)
    return DeleteResponse(success=True, message=f"'{subject.display_name}' deactivated")


@router.get("/{subject_id}/events", response_model=list[AttendanceEventRead])
async def list_subject_events(
    subject_id: int,
    start: date = Query(...),
    end: date = Query(...),
    store: AttendanceStore = Depends(get_store),
):
    await _get_or_404(store, subject_id)
    return await store.list_events(subject_id, PeriodBounds(start, end))
