"""Pydantic schemas for Subject (student / teacher) CRUD."""

from __future__ import annotations

import re
from datetime import date, datetime

from pydantic import BaseModel, field_validator, model_validator

_CODE_RE = re.compile(r"^[A-Za-z0-9:_-]{2,64}$")
_VALID_TYPES = {"STUDENT", "TEACHER"}
_VALID_LEVELS = {"Primary", "Secondary"}


def _clean_code(v: str) -> str:
    v = v.strip()
    if not _CODE_RE.match(v):
        raise ValueError("Code must be 2-64 alphanumeric chars (colons / hyphens allowed)")
    return v


class SubjectCreate(BaseModel):
    code: str
    first_name: str
    last_name: str
    middle_name: str | None = None
    subject_type: str = "STUDENT"
    email: str | None = None
    student_number: str | None = None
    education_level: str | None = None
    grade_year_level: str | None = None
    section: str | None = None
    semester: str | None = None
    semester_start: date | None = None
    semester_end: date | None = None

    @field_validator("code")
    @classmethod
    def _code(cls, v: str) -> str:
        return _clean_code(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be empty")
        if len(v) > 100:
            raise ValueError("Name must not exceed 100 characters")
        return v

    @field_validator("subject_type")
    @classmethod
    def _type(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in _VALID_TYPES:
            raise ValueError(f"subject_type must be one of: {sorted(_VALID_TYPES)}")
        return v

    @field_validator("education_level")
    @classmethod
    def _level(cls, v: str | None) -> str | None:
        if v is not None and v not in _VALID_LEVELS:
            raise ValueError(f"education_level must be one of: {sorted(_VALID_LEVELS)}")
        return v

    @model_validator(mode="after")
    def _semester_order(self) -> "SubjectCreate":
        if self.semester_start and self.semester_end and self.semester_start > self.semester_end:
            raise ValueError("semester_start must not be after semester_end")
        return self


class SubjectUpdate(BaseModel):
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    education_level: str | None = None
    grade_year_level: str | None = None
    section: str | None = None
    semester: str | None = None
    semester_start: date | None = None
    semester_end: date | None = None


class SubjectRead(BaseModel):
    id: int
    code: str
    subject_type: str
    first_name: str
    middle_name: str | None
    last_name: str
    display_name: str
    email: str | None
    student_number: str | None
    education_level: str | None
    grade_year_level: str | None
    section: str | None
    semester: str | None
    semester_start: date | None
    semester_end: date | None
    last_sign_in: datetime | None
    last_sign_out: datetime | None
    is_active: bool

    model_config = {"from_attributes": True}
