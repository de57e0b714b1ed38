"""Tests for export row shaping."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from app.services.report_rows import (CSV_HEADER, AttendanceRow, build_rows,
                                      iter_csv, rows_from_events)

PHT = timezone(timedelta(hours=8))


@dataclass
class Person:
    id: int
    first_name: str
    last_name: str
    section: str = "A"

    @property
    def display_name(self) -> str:
        return f"{self.last_name}, {self.first_name}"


@dataclass
class Event:
    subject_id: int
    event_type: str
    timestamp: datetime


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 4, day, hour, minute, tzinfo=PHT)


def test_sorted_by_surname_then_date():
    zed, abe = Person(1, "Zoe", "Zed"), Person(2, "Al", "abe")
    rows = build_rows([
        AttendanceRow(zed, date(2025, 4, 21)),
        AttendanceRow(abe, date(2025, 4, 22)),
        AttendanceRow(abe, date(2025, 4, 21)),
    ])
    assert [(r.subject.id, r.date.day) for r in rows] == [(2, 21), (2, 22), (1, 21)]


def test_events_fold_into_first_in_last_out_per_day():
    p = Person(1, "Dave", "Galang")
    events = {
        1: [
            Event(1, "SIGN_OUT", at(21, 16)),
            Event(1, "SIGN_IN", at(21, 7)),
            Event(1, "SIGN_IN", at(21, 13)),
            Event(1, "SIGN_OUT", at(21, 12)),
            Event(1, "SIGN_IN", at(22, 7, 30)),
        ]
    }
    rows = rows_from_events([p], events, PHT)
    assert len(rows) == 2
    assert rows[0].date == date(2025, 4, 21)
    assert rows[0].sign_in_time == at(21, 7)
    assert rows[0].sign_out_time == at(21, 16)
    assert rows[1].sign_in_time == at(22, 7, 30)
    assert rows[1].sign_out_time is None


def test_subject_without_events_has_no_rows():
    assert rows_from_events([Person(1, "A", "B")], {}, PHT) == []


def test_csv_quotes_names_with_commas():
    p = Person(7, "Dave", "Galang")
    lines = list(iter_csv([AttendanceRow(p, date(2025, 4, 21), at(21, 7, 5), None)], PHT))
    assert lines[0] == ",".join(CSV_HEADER) + "\r\n"
    assert lines[1].startswith('7,"Galang, Dave",')
    assert lines[1].endswith("2025-04-21,07:05 AM,\r\n")


def test_csv_quotes_carriage_returns_and_quotes():
    p = Person(8, 'Ann "Jo"', "Cruz", section="A\rB")
    lines = list(iter_csv([AttendanceRow(p, date(2025, 4, 21))], PHT))
    assert '"Cruz, Ann ""Jo"""' in lines[1]
    assert ',"A\rB",' in lines[1]
    assert lines[1].endswith("2025-04-21,,\r\n")
