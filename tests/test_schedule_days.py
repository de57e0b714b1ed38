"""Tests for weekday parsing and schedule matching."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from app.services.schedule_days import (SchedulePattern, Weekday, in_session,
                                        is_scheduled_day, matches,
                                        parse_weekdays)

# Week of Monday 2025-04-21
MON, TUE, WED, THU, FRI, SAT, SUN = (date(2025, 4, 21) + timedelta(days=i) for i in range(7))


def test_mon_wed_fri():
    pattern = SchedulePattern.parse("Mon, Wed, Fri")
    assert pattern.weekdays == {Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY}
    assert pattern.matches(WED)
    assert not pattern.matches(THU)


def test_t_and_th_do_not_collide():
    assert parse_weekdays("TH") == {Weekday.THURSDAY}
    assert parse_weekdays("T") == {Weekday.TUESDAY}
    assert parse_weekdays("T Th") == {Weekday.TUESDAY, Weekday.THURSDAY}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Monday", {Weekday.MONDAY}),
        ("MONDAY tuesday", {Weekday.MONDAY, Weekday.TUESDAY}),
        ("M W F", {Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY}),
        ("Sat,Sun", {Weekday.SATURDAY, Weekday.SUNDAY}),
        ("tues; thurs", {Weekday.TUESDAY, Weekday.THURSDAY}),
        ("Mon./Wed.", {Weekday.MONDAY, Weekday.WEDNESDAY}),
        (["Monday", "Thu, Fri"], {Weekday.MONDAY, Weekday.THURSDAY, Weekday.FRIDAY}),
    ],
)
def test_accepted_forms(raw, expected):
    assert parse_weekdays(raw) == expected


def test_unknown_tokens_are_ignored():
    assert parse_weekdays("Mon, Funday, Wedn") == {Weekday.MONDAY}


@pytest.mark.parametrize("raw", ["", "   ", None, [], "xyz", ["", "??"]])
def test_empty_or_unparseable_matches_every_day(raw):
    pattern = SchedulePattern.parse(raw)
    assert pattern.weekdays == frozenset()
    assert pattern.matches_every_day
    assert all(pattern.matches(d) for d in (MON, TUE, WED, THU, FRI, SAT, SUN))


def test_matches_accepts_plain_weekday_sets():
    assert matches({0, 2}, MON)
    assert not matches({0, 2}, TUE)
    assert is_scheduled_day(SchedulePattern.parse("Sun"), SUN)


def test_matches_ignores_time_of_day():
    pattern = SchedulePattern.parse("Wed", "08:00", "09:00")
    assert pattern.matches(WED)
    assert pattern.matches(datetime(2025, 4, 23, 23, 59).date())


def test_in_session_checks_time_window():
    pattern = SchedulePattern.parse("Wed", "08:00", "09:30")
    assert pattern.start_time == time(8, 0)
    assert in_session(pattern, datetime(2025, 4, 23, 8, 0))
    assert in_session(pattern, datetime(2025, 4, 23, 9, 29))
    assert not in_session(pattern, datetime(2025, 4, 23, 9, 30))
    assert not in_session(pattern, datetime(2025, 4, 23, 7, 59))
    assert not in_session(pattern, datetime(2025, 4, 24, 8, 30))


def test_in_session_uses_local_wall_clock_for_utc_moments():
    pattern = SchedulePattern.parse("Thu", "07:00", "08:00")
    pht = timezone(timedelta(hours=8))
    # 07:30 local on Thursday the 24th is 23:30 UTC on Wednesday the 23rd.
    moment = datetime(2025, 4, 23, 23, 30, tzinfo=timezone.utc)
    assert in_session(pattern, moment, pht)
    assert not in_session(pattern, datetime(2025, 4, 24, 7, 30, tzinfo=timezone.utc), pht)
