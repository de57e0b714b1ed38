"""Tests for the attendance statistics calculator."""

import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

import pytest

from app.services.schedule_days import SchedulePattern, Weekday
from app.services.statistics import (AttendanceStatistics, PeriodBounds,
                                     absence_warning, compute, compute_many,
                                     percentage)

PHT = timezone(timedelta(hours=8))
WEEK = PeriodBounds(date(2025, 4, 21), date(2025, 4, 27))  # Mon..Sun
AFTER_WEEK = date(2025, 5, 1)


@dataclass
class Event:
    event_type: str
    timestamp: datetime


def sign_in(day: date, hour: int = 7) -> Event:
    return Event("SIGN_IN", datetime(day.year, day.month, day.day, hour, tzinfo=PHT))


def sign_out(day: date, hour: int = 16) -> Event:
    return Event("SIGN_OUT", datetime(day.year, day.month, day.day, hour, tzinfo=PHT))


def test_full_week_one_sign_in():
    stats = compute([sign_in(date(2025, 4, 22))], WEEK, Weekday.SUNDAY, today=AFTER_WEEK, tz=PHT)
    assert stats == AttendanceStatistics(eligible_days=6, present_days=1, absent_days=5, percentage=17)


def test_no_events_means_every_eligible_day_absent():
    stats = compute([], WEEK, today=AFTER_WEEK, tz=PHT)
    assert (stats.eligible_days, stats.present_days, stats.absent_days) == (6, 0, 6)
    assert stats.percentage == 0


def test_sign_out_alone_is_not_presence():
    stats = compute([sign_out(date(2025, 4, 22))], WEEK, today=AFTER_WEEK, tz=PHT)
    assert stats.present_days == 0


def test_multiple_sign_ins_same_day_count_once():
    day = date(2025, 4, 23)
    stats = compute([sign_in(day, 7), sign_in(day, 13), sign_out(day)], WEEK, today=AFTER_WEEK, tz=PHT)
    assert stats.present_days == 1


def test_presence_uses_local_date():
    # 07:00 local on the 22nd is 23:00 UTC on the 21st.
    ev = Event("SIGN_IN", datetime(2025, 4, 21, 23, 0, tzinfo=timezone.utc))
    stats = compute([ev], PeriodBounds(date(2025, 4, 22), date(2025, 4, 22)), today=AFTER_WEEK, tz=PHT)
    assert stats.present_days == 1


def test_sign_in_on_excluded_day_is_not_counted():
    stats = compute([sign_in(date(2025, 4, 27))], WEEK, today=AFTER_WEEK, tz=PHT)
    assert stats.eligible_days == 6
    assert stats.present_days == 0


def test_other_excluded_weekday():
    stats = compute([], WEEK, Weekday.SATURDAY, today=AFTER_WEEK, tz=PHT)
    assert stats.eligible_days == 6


def test_future_days_are_not_eligible():
    # Today is Wednesday: Mon, Tue, Wed only.
    stats = compute([sign_in(date(2025, 4, 21))], WEEK, today=date(2025, 4, 23), tz=PHT)
    assert (stats.eligible_days, stats.present_days, stats.absent_days) == (3, 1, 2)


def test_period_entirely_in_future():
    stats = compute([], WEEK, today=date(2025, 4, 1), tz=PHT)
    assert stats == AttendanceStatistics()


def test_inverted_period_reports_zero():
    stats = compute([sign_in(date(2025, 4, 22))], PeriodBounds(date(2025, 4, 27), date(2025, 4, 21)),
                    today=AFTER_WEEK, tz=PHT)
    assert stats == AttendanceStatistics(0, 0, 0, 0)


def test_events_outside_period_are_ignored():
    events = [sign_in(date(2025, 4, 14)), sign_in(date(2025, 4, 28)), sign_in(date(2025, 4, 22))]
    stats = compute(events, WEEK, today=AFTER_WEEK, tz=PHT)
    assert stats.present_days == 1


def test_event_order_does_not_matter():
    events = [sign_in(date(2025, 4, d)) for d in (21, 22, 24)] + [sign_out(date(2025, 4, 22))]
    shuffled = events[:]
    random.Random(7).shuffle(shuffled)
    assert compute(events, WEEK, today=AFTER_WEEK, tz=PHT) == compute(shuffled, WEEK, today=AFTER_WEEK, tz=PHT)


def test_schedule_restricts_eligible_days():
    mwf = SchedulePattern.parse("Mon, Wed, Fri")
    stats = compute([sign_in(date(2025, 4, 23)), sign_in(date(2025, 4, 22))], WEEK,
                    today=AFTER_WEEK, schedule=mwf, tz=PHT)
    assert (stats.eligible_days, stats.present_days, stats.absent_days) == (3, 1, 2)


def test_empty_schedule_keeps_every_day():
    stats = compute([], WEEK, today=AFTER_WEEK, schedule=SchedulePattern.parse(""), tz=PHT)
    assert stats.eligible_days == 6


def test_single_excluded_occurrence_subtracts_one():
    # Thu 2025-04-24 .. Wed 2025-04-30 contains exactly one Sunday.
    period = PeriodBounds(date(2025, 4, 24), date(2025, 4, 30))
    day_count = (period.end - period.start).days + 1
    stats = compute([], period, Weekday.SUNDAY, today=AFTER_WEEK, tz=PHT)
    assert stats.eligible_days == day_count - 1


@pytest.mark.parametrize("seed", range(5))
def test_invariants_hold_for_random_inputs(seed):
    rng = random.Random(seed)
    start = date(2025, 1, 1) + timedelta(days=rng.randint(0, 60))
    end = start + timedelta(days=rng.randint(-5, 90))
    events = [
        Event(rng.choice(["SIGN_IN", "SIGN_OUT"]),
              datetime(2025, 1, 1, tzinfo=PHT) + timedelta(hours=rng.randint(0, 24 * 160)))
        for _ in range(rng.randint(0, 80))
    ]
    stats = compute(events, PeriodBounds(start, end), rng.randint(0, 6), today=date(2025, 3, 15), tz=PHT)
    assert stats.eligible_days == stats.present_days + stats.absent_days
    assert 0 <= stats.percentage <= 100


def test_percentage_rounds_half_up():
    assert percentage(1, 8) == 13  # 12.5
    assert percentage(1, 6) == 17
    assert percentage(0, 0) == 0
    assert percentage(5, 5) == 100


def test_cohort_aggregate_sums_counts():
    alice = [sign_in(date(2025, 4, d)) for d in (21, 22, 23, 24, 25, 26)]  # 6/6
    bob = [sign_in(date(2025, 4, 21))]  # 1/6
    cohort = compute_many({"alice": alice, "bob": bob}, WEEK, today=AFTER_WEEK, tz=PHT)

    assert cohort.per_subject["alice"].percentage == 100
    assert cohort.per_subject["bob"].percentage == 17
    assert cohort.aggregate == AttendanceStatistics(12, 7, 5, 58)


def test_cohort_aggregate_is_not_mean_of_percentages():
    # The aggregate is computed from summed day counts. It is not the mean of
    # the rounded per-subject percentages, and this is intended.
    period = PeriodBounds(date(2025, 4, 21), date(2025, 4, 29))  # 8 eligible days
    cohort = compute_many(
        [("a", [sign_in(date(2025, 4, 21))]), ("b", [])], period, today=AFTER_WEEK, tz=PHT
    )
    assert cohort.per_subject["a"].percentage == 13  # 12.5
    assert cohort.per_subject["b"].percentage == 0
    mean = sum(s.percentage for s in cohort.per_subject.values()) / 2
    assert mean == 6.5
    assert cohort.aggregate.percentage == 6  # 1 / 16
    assert cohort.aggregate.eligible_days == sum(s.eligible_days for s in cohort.per_subject.values())


def test_empty_cohort():
    cohort = compute_many({}, WEEK, today=AFTER_WEEK, tz=PHT)
    assert cohort.per_subject == {}
    assert cohort.aggregate == AttendanceStatistics()


def test_absence_warning_threshold():
    assert absence_warning(AttendanceStatistics.from_counts(2, 4), 4)
    assert not absence_warning(AttendanceStatistics.from_counts(2, 3), 4)
    assert not absence_warning(AttendanceStatistics.from_counts(0, 10), 0)
