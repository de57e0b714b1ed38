"""
Weekday parsing and matching for class schedules.

Administrators type schedule days by hand ("Mon, Wed, Fri", "T Th",
"monday saturday"). :func:`parse_weekdays` maps each token through one lookup
table; anything it does not recognise is dropped. A pattern whose weekday set
is empty matches every date, so callers that need "no schedule, no match"
must check ``pattern.weekdays`` first.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from typing import Union

from app.core.clock import to_local


class Weekday(enum.IntEnum):
    """Same numbering as :meth:`datetime.date.weekday`."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


_TOKENS: dict[str, Weekday] = {}
for _day, _aliases in {
    Weekday.MONDAY: ("monday", "mon", "mo", "m"),
    Weekday.TUESDAY: ("tuesday", "tues", "tue", "tu", "t"),
    Weekday.WEDNESDAY: ("wednesday", "wed", "we", "w"),
    Weekday.THURSDAY: ("thursday", "thurs", "thur", "thu", "th", "r"),
    Weekday.FRIDAY: ("friday", "fri", "fr", "f"),
    Weekday.SATURDAY: ("saturday", "sat", "sa"),
    Weekday.SUNDAY: ("sunday", "sun", "su"),
}.items():
    for _alias in _aliases:
        _TOKENS[_alias] = _day

_SEPARATORS = re.compile(r"[\s,;/|]+")

RawDays = Union[str, Iterable[str], None]


def tokenize(raw: RawDays) -> list[str]:
    if raw is None:
        return []
    chunks = [raw] if isinstance(raw, str) else list(raw)
    tokens: list[str] = []
    for chunk in chunks:
        if not isinstance(chunk, str):
            continue
        tokens.extend(t for t in _SEPARATORS.split(chunk.strip().lower()) if t)
    return tokens


def parse_weekdays(raw: RawDays) -> frozenset[Weekday]:
    """``"Mon, Wed, Fri"`` -> ``{MONDAY, WEDNESDAY, FRIDAY}``; unknown tokens ignored."""
    return frozenset(_TOKENS[t.rstrip(".")] for t in tokenize(raw) if t.rstrip(".") in _TOKENS)


@dataclass(frozen=True)
class SchedulePattern:
    weekdays: frozenset[Weekday] = field(default_factory=frozenset)
    start_time: time | None = None
    end_time: time | None = None

    @classmethod
    def parse(
        cls,
        raw: RawDays,
        start_time: time | str | None = None,
        end_time: time | str | None = None,
    ) -> "SchedulePattern":
        return cls(
            weekdays=parse_weekdays(raw),
            start_time=_as_time(start_time),
            end_time=_as_time(end_time),
        )

    @property
    def matches_every_day(self) -> bool:
        return not self.weekdays

    def matches(self, day: date) -> bool:
        return matches(self, day)


def _as_time(value: time | str | None) -> time | None:
    if value is None or isinstance(value, time):
        return value
    return time.fromisoformat(value.strip())


def matches(pattern: SchedulePattern | Iterable[int], day: date) -> bool:
    """True when *day* falls on one of the pattern's weekdays (or the set is empty)."""
    weekdays = pattern.weekdays if isinstance(pattern, SchedulePattern) else frozenset(pattern)
    if not weekdays:
        return True
    return day.weekday() in weekdays


is_scheduled_day = matches


def in_session(pattern: SchedulePattern, moment: datetime, tz: tzinfo | None = None) -> bool:
    """Day match plus ``start_time <= t < end_time`` on the school's wall clock.

    Aware moments (stored timestamps are UTC) are converted to local time first;
    a naive moment is taken as local wall-clock time already.
    """
    if moment.tzinfo is not None:
        moment = to_local(moment, tz)
    if not matches(pattern, moment.date()):
        return False
    t = moment.time()
    if pattern.start_time is not None and t < pattern.start_time:
        return False
    if pattern.end_time is not None and t >= pattern.end_time:
        return False
    return True
