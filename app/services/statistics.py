"""
Attendance statistics over a calendar period.

A day counts as *present* when the subject has at least one SIGN_IN event on
that local date; a sign-out alone does not count. Days after today never
count, and one weekday (Sunday by default) is never a school day.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Protocol

from app.core.clock import local_date, local_today
from app.services.schedule_days import SchedulePattern, Weekday

SIGN_IN = "SIGN_IN"


class EventLike(Protocol):
    event_type: Any
    timestamp: datetime


@dataclass(frozen=True)
class PeriodBounds:
    """Inclusive on both ends."""

    start: date
    end: date

    @property
    def is_valid(self) -> bool:
        return self.start <= self.end

    def days(self, until: Optional[date] = None) -> Iterable[date]:
        last = self.end if until is None else min(self.end, until)
        current = self.start
        while current <= last:
            yield current
            current += timedelta(days=1)


@dataclass(frozen=True)
class AttendanceStatistics:
    eligible_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    percentage: int = 0

    @classmethod
    def from_counts(cls, present_days: int, absent_days: int) -> "AttendanceStatistics":
        eligible = present_days + absent_days
        return cls(
            eligible_days=eligible,
            present_days=present_days,
            absent_days=absent_days,
            percentage=percentage(present_days, eligible),
        )

    def __add__(self, other: "AttendanceStatistics") -> "AttendanceStatistics":
        return AttendanceStatistics.from_counts(
            self.present_days + other.present_days,
            self.absent_days + other.absent_days,
        )


@dataclass(frozen=True)
class CohortStatistics:
    per_subject: dict[Hashable, AttendanceStatistics] = field(default_factory=dict)
    aggregate: AttendanceStatistics = field(default_factory=AttendanceStatistics)


def percentage(present_days: int, eligible_days: int) -> int:
    if eligible_days <= 0:
        return 0
    ratio = Decimal(100 * present_days) / Decimal(eligible_days)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _event_type(event: EventLike) -> str:
    value = event.event_type
    return getattr(value, "value", value)


def present_dates(events: Iterable[EventLike], tz: tzinfo | None = None) -> set[date]:
    return {
        local_date(ev.timestamp, tz)
        for ev in events
        if ev.timestamp is not None and _event_type(ev) == SIGN_IN
    }


def compute(
    events: Iterable[EventLike],
    period: PeriodBounds,
    excluded_weekday: int = Weekday.SUNDAY,
    *,
    today: Optional[date] = None,
    schedule: Optional[SchedulePattern] = None,
    tz: tzinfo | None = None,
) -> AttendanceStatistics:
    """Eligible / present / absent day counts for one subject.

    When *schedule* is given only its weekdays are school days (an empty
    pattern matches every day). An inverted period yields all zeros.
    """
    if not period.is_valid:
        return AttendanceStatistics()

    today = today or local_today()
    present = present_dates(events, tz)

    present_days = absent_days = 0
    for day in period.days(until=today):
        if day.weekday() == excluded_weekday:
            continue
        if schedule is not None and not schedule.matches(day):
            continue
        if day in present:
            present_days += 1
        else:
            absent_days += 1

    return AttendanceStatistics.from_counts(present_days, absent_days)


def compute_many(
    subjects: Mapping[Hashable, Iterable[EventLike]] | Iterable[tuple[Hashable, Iterable[EventLike]]],
    period: PeriodBounds,
    excluded_weekday: int = Weekday.SUNDAY,
    *,
    today: Optional[date] = None,
    schedule: Optional[SchedulePattern] = None,
    tz: tzinfo | None = None,
) -> CohortStatistics:
    """Per-subject statistics plus one aggregate.

    The aggregate percentage comes from the summed day counts, so it is
    generally *not* the mean of the per-subject percentages.
    """
    items = subjects.items() if isinstance(subjects, Mapping) else subjects
    today = today or local_today()

    per_subject: dict[Hashable, AttendanceStatistics] = {}
    aggregate = AttendanceStatistics()
    for subject_id, events in items:
        stats = compute(
            events,
            period,
            excluded_weekday,
            today=today,
            schedule=schedule,
            tz=tz,
        )
        per_subject[subject_id] = stats
        aggregate = aggregate + stats

    return CohortStatistics(per_subject=per_subject, aggregate=aggregate)


def absence_warning(stats: AttendanceStatistics, threshold: int) -> bool:
    """True once absences reach *threshold* (0 disables the warning)."""
    return threshold > 0 and stats.absent_days >= threshold
