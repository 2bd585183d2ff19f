"""Tests for week boundary arithmetic in the configured zone."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from discipline_tracker.domain.disciplines import Weekday
from discipline_tracker.services import period


class TestWeekStart:
    def test_midweek_instant_maps_to_monday_midnight(self, local, tz):
        start = period.week_start(local(2024, 1, 17, 10, 30), tz)
        assert start == local(2024, 1, 15)
        assert (start.hour, start.minute, start.second) == (0, 0, 0)

    def test_sunday_belongs_to_preceding_monday(self, local, tz):
        assert period.week_start(local(2024, 1, 21, 23, 59), tz) == local(2024, 1, 15)

    def test_monday_midnight_is_its_own_week_start(self, local, tz):
        assert period.week_start(local(2024, 1, 15), tz) == local(2024, 1, 15)

    def test_utc_instant_uses_local_calendar_day(self, local, tz):
        # Sunday 23:30 UTC is already Monday 00:30 in Lagos (UTC+1)
        instant = datetime(2024, 1, 14, 23, 30, tzinfo=timezone.utc)
        assert period.week_start(instant, tz) == local(2024, 1, 15)

    def test_naive_instant_stays_naive(self, tz):
        start = period.week_start(datetime(2024, 1, 18, 8), tz)
        assert start == datetime(2024, 1, 15)
        assert start.tzinfo is None

    @pytest.mark.parametrize("day", range(15, 22))
    @pytest.mark.parametrize("hour_minute", [(0, 0), (12, 30), (23, 59)])
    def test_week_start_is_idempotent_across_the_week(self, local, tz, day, hour_minute):
        start = period.week_start(local(2024, 1, day, *hour_minute), tz)
        assert start == local(2024, 1, 15)
        assert period.week_start(start, tz) == start

    @pytest.mark.parametrize(
        "instant, expected",
        [
            # Sunday 23:30 EST, the day clocks fell back
            (datetime(2024, 11, 4, 4, 30, tzinfo=timezone.utc), datetime(2024, 10, 28)),
            # Monday 00:05 EST right after that Sunday
            (datetime(2024, 11, 4, 5, 5, tzinfo=timezone.utc), datetime(2024, 11, 4)),
            # Monday 00:30 EDT after the spring-forward Sunday
            (datetime(2024, 3, 11, 4, 30, tzinfo=timezone.utc), datetime(2024, 3, 11)),
        ],
    )
    def test_week_start_near_midnight_in_dst_zone(self, instant, expected):
        zone = ZoneInfo("America/New_York")
        start = period.week_start(instant, zone)
        assert start.replace(tzinfo=None) == expected
        assert start.tzinfo is zone
        assert period.week_start(start, zone) == start


class TestWeekEnd:
    def test_week_end_is_sunday_last_millisecond(self, local):
        end = period.week_end(local(2024, 1, 15))
        assert end.date() == date(2024, 1, 21)
        assert (end.hour, end.minute, end.second, end.microsecond) == (23, 59, 59, 999000)

    def test_week_dates_are_monday_first(self, local):
        dates = period.week_dates(local(2024, 1, 15))
        assert dates[0] == date(2024, 1, 15)
        assert dates[-1] == date(2024, 1, 21)
        assert len(dates) == 7


class TestWeekdaysThroughToday:
    def test_wednesday(self, local, tz):
        days = period.weekdays_through_today(local(2024, 1, 17, 7), tz)
        assert days == [Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY]

    def test_monday_only_includes_monday(self, local, tz):
        assert period.weekdays_through_today(local(2024, 1, 15, 0, 1), tz) == [Weekday.MONDAY]

    def test_sunday_includes_whole_week(self, local, tz):
        days = period.weekdays_through_today(local(2024, 1, 21, 21), tz)
        assert days == list(Weekday)

    def test_to_wall_clock_drops_zone(self, local, tz):
        instant = datetime(2024, 1, 15, 6, 0, tzinfo=timezone.utc)
        assert period.to_wall_clock(instant, tz) == datetime(2024, 1, 15, 7, 0)
