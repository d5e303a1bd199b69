"""
Tests for day bucketing and week boundaries.
"""

import datetime
import pytest

from taskledger.services.calendar_service import (
    date_range, day_key, end_of_week, iter_days, iter_weeks, start_of_week
)


class TestDayKey:

    def test_same_utc_day_shares_key(self):
        morning = datetime.datetime(2026, 1, 14, 0, 0, 1)
        night = datetime.datetime(2026, 1, 14, 23, 59, 59)
        assert day_key(morning) == day_key(night) == "2026-01-14"

    def test_aware_timestamp_is_bucketed_in_utc(self):
        # 01:30 in UTC+2 is still the previous day in UTC
        tz = datetime.timezone(datetime.timedelta(hours=2))
        value = datetime.datetime(2026, 1, 14, 1, 30, tzinfo=tz)
        assert day_key(value) == "2026-01-13"

    def test_dates_pass_through(self):
        assert day_key(datetime.date(2026, 3, 1)) == "2026-03-01"


class TestStartOfWeek:

    @pytest.mark.parametrize("day", [11, 12, 13, 14, 15, 16, 17])
    def test_week_starts_on_sunday(self, day):
        # 2026-01-11 is a Sunday
        value = datetime.datetime(2026, 1, day, 15, 30)
        assert start_of_week(value) == datetime.date(2026, 1, 11)

    def test_sunday_is_its_own_week_start(self):
        assert start_of_week(datetime.date(2026, 1, 4)) == datetime.date(2026, 1, 4)

    def test_week_crossing_year_boundary(self):
        assert start_of_week(datetime.date(2026, 1, 1)) == datetime.date(2025, 12, 28)
        assert end_of_week(datetime.date(2026, 1, 1)) == datetime.date(2026, 1, 3)


class TestDateRange:

    def test_window_includes_today(self):
        now = datetime.datetime(2026, 1, 14, 12, 0)
        assert date_range(1, now) == (datetime.date(2026, 1, 14), datetime.date(2026, 1, 14))
        assert date_range(7, now) == (datetime.date(2026, 1, 8), datetime.date(2026, 1, 14))

    def test_rejects_empty_window(self):
        with pytest.raises(ValueError):
            date_range(0)

    def test_iterators_are_inclusive(self):
        days = list(iter_days(datetime.date(2026, 1, 30), datetime.date(2026, 2, 2)))
        assert [d.day for d in days] == [30, 31, 1, 2]

        weeks = list(iter_weeks(datetime.date(2025, 12, 28), datetime.date(2026, 1, 11)))
        assert weeks == [
            datetime.date(2025, 12, 28), datetime.date(2026, 1, 4), datetime.date(2026, 1, 11)
        ]
