"""
Tabular attendance rows for exports.

Only shapes and orders data; attendance percentages come from
:mod:`app.services.statistics`.
"""

from __future__ import annotations

import csv
import io
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Any, Optional

from app.core.clock import ensure_utc, local_date, to_local

CSV_HEADER = (
    "subject_id",
    "name",
    "subject_type",
    "education_level",
    "grade_year_level",
    "section",
    "date",
    "sign_in",
    "sign_out",
)


@dataclass(frozen=True)
class AttendanceRow:
    subject: Any  # anything with id / last_name / first_name
    date: date
    sign_in_time: Optional[datetime] = None
    sign_out_time: Optional[datetime] = None


def _sort_key(row: AttendanceRow) -> tuple:
    subject = row.subject
    return (
        (getattr(subject, "last_name", "") or "").casefold(),
        (getattr(subject, "first_name", "") or "").casefold(),
        getattr(subject, "id", 0) or 0,
        row.date,
    )


def build_rows(rows: Iterable[AttendanceRow]) -> list[AttendanceRow]:
    """Stable sort by surname, then date."""
    return sorted(rows, key=_sort_key)


def rows_from_events(
    subjects: Iterable[Any],
    events_by_subject: dict[int, list[Any]],
    tz: tzinfo | None = None,
) -> list[AttendanceRow]:
    """Fold raw events into one row per subject per local day.

    A row carries the first sign-in and the last sign-out of that day.
    """
    rows: list[AttendanceRow] = []
    for subject in subjects:
        by_day: dict[date, list[Any]] = defaultdict(list)
        for ev in events_by_subject.get(subject.id, []):
            by_day[local_date(ev.timestamp, tz)].append(ev)

        for day, events in by_day.items():
            events.sort(key=lambda e: ensure_utc(e.timestamp))
            first_in = next(
                (e.timestamp for e in events if e.event_type == "SIGN_IN"), None
            )
            last_out = next(
                (e.timestamp for e in reversed(events) if e.event_type == "SIGN_OUT"),
                None,
            )
            rows.append(AttendanceRow(subject, day, first_in, last_out))
    return build_rows(rows)


def _fmt_time(ts: Optional[datetime], tz: tzinfo | None) -> str:
    """Format a timestamp to readable HH:MM AM/PM in local time."""
    if ts is None:
        return ""
    return to_local(ts, tz).strftime("%I:%M %p")


def iter_csv(rows: Iterable[AttendanceRow], tz: tzinfo | None = None) -> Iterator[str]:
    """Yield the CSV export one line at a time, header first."""
    buf = io.StringIO(newline="")
    writer = csv.writer(buf, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)

    def _line(fields) -> str:
        buf.seek(0)
        buf.truncate()
        writer.writerow(fields)
        return buf.getvalue()

    yield _line(CSV_HEADER)
    for row in rows:
        s = row.subject
        fields = [
            str(s.id),
            getattr(s, "display_name", f"{s.last_name}, {s.first_name}"),
            getattr(s, "subject_type", "") or "",
            getattr(s, "education_level", "") or "",
            getattr(s, "grade_year_level", "") or "",
            getattr(s, "section", "") or "",
            row.date.isoformat(),
            _fmt_time(row.sign_in_time, tz),
            _fmt_time(row.sign_out_time, tz),
        ]
        yield _line(fields)
