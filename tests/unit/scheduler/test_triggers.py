"""Unit tests for trigger arithmetic."""

from datetime import datetime, timedelta

import pytest

from insurance_batch.scheduler.triggers import (
    DailyAt,
    HourlyAt,
    MonthlyAt,
    WeeklyAt,
    initial_delay,
    next_fire_time,
)


class TestDailyAt:
    """Test daily trigger occurrences."""

    def test_hour_still_ahead_fires_today(self) -> None:
        """At 01:00 a 02:00 trigger waits one hour."""
        now = datetime(2024, 6, 1, 1, 0)
        assert next_fire_time(DailyAt(2), now) == datetime(2024, 6, 1, 2, 0)
        assert initial_delay(DailyAt(2), now) == timedelta(hours=1)

    def test_hour_passed_fires_tomorrow(self) -> None:
        """At 03:00 a 02:00 trigger waits 23 hours."""
        now = datetime(2024, 6, 1, 3, 0)
        assert next_fire_time(DailyAt(2), now) == datetime(2024, 6, 2, 2, 0)
        assert initial_delay(DailyAt(2), now) == timedelta(hours=23)

    def test_exact_hour_counts_as_passed(self) -> None:
        """Evaluated exactly on its hour the trigger fires a day later."""
        now = datetime(2024, 6, 1, 2, 0)
        assert initial_delay(DailyAt(2), now) == timedelta(days=1)

    def test_crosses_month_end(self) -> None:
        """Tomorrow of the last day of a month is the first of the next."""
        now = datetime(2024, 6, 30, 23, 30)
        assert next_fire_time(DailyAt(3), now) == datetime(2024, 7, 1, 3, 0)

    def test_period_and_description(self) -> None:
        """Daily triggers repeat every 24 hours."""
        assert DailyAt(3).period == timedelta(days=1)
        assert DailyAt(3).describe() == "daily at 03:00"

    def test_rejects_out_of_range_hour(self) -> None:
        """Hours outside 0-23 are rejected at construction."""
        with pytest.raises(ValueError):
            DailyAt(24)


class TestHourlyAt:
    """Test hourly trigger occurrences."""

    def test_minute_still_ahead_fires_this_hour(self) -> None:
        """At 10:15 a :30 trigger fires at 10:30."""
        now = datetime(2024, 6, 1, 10, 15)
        assert next_fire_time(HourlyAt(30), now) == datetime(2024, 6, 1, 10, 30)

    def test_minute_passed_fires_next_hour(self) -> None:
        """At 10:45 a :30 trigger fires at 11:30."""
        now = datetime(2024, 6, 1, 10, 45)
        assert initial_delay(HourlyAt(30), now) == timedelta(minutes=45)

    def test_top_of_hour_at_midnight_rollover(self) -> None:
        """An :00 trigger at 23:10 fires at midnight of the next day."""
        now = datetime(2024, 6, 1, 23, 10)
        assert next_fire_time(HourlyAt(0), now) == datetime(2024, 6, 2, 0, 0)

    def test_exact_minute_counts_as_passed(self) -> None:
        """Evaluated exactly on its minute the trigger fires an hour later."""
        now = datetime(2024, 6, 1, 10, 30)
        assert initial_delay(HourlyAt(30), now) == timedelta(hours=1)

    def test_rejects_out_of_range_minute(self) -> None:
        """Minutes outside 0-59 are rejected at construction."""
        with pytest.raises(ValueError):
            HourlyAt(60)


class TestWeeklyAt:
    """Test weekly trigger occurrences (Monday=0)."""

    def test_saturday_waits_for_monday(self) -> None:
        """2024-06-01 is a Saturday; the next Monday is 2024-06-03."""
        now = datetime(2024, 6, 1, 10, 0)
        assert next_fire_time(WeeklyAt(0, 4), now) == datetime(2024, 6, 3, 4, 0)

    def test_same_day_before_hour(self) -> None:
        """On Monday 03:00 a Monday 04:00 trigger fires within the hour."""
        now = datetime(2024, 6, 3, 3, 0)
        assert initial_delay(WeeklyAt(0, 4), now) == timedelta(hours=1)

    def test_same_day_after_hour_waits_a_week(self) -> None:
        """On Monday 05:00 the next occurrence is the following Monday."""
        now = datetime(2024, 6, 3, 5, 0)
        assert next_fire_time(WeeklyAt(0, 4), now) == datetime(2024, 6, 10, 4, 0)

    def test_period(self) -> None:
        """Weekly triggers repeat every seven days."""
        assert WeeklyAt(0, 4).period == timedelta(days=7)
        assert WeeklyAt(0, 4).describe() == "weekly on Monday at 04:00"


class TestMonthlyAt:
    """Test monthly trigger occurrences."""

    def test_first_of_month_already_passed(self) -> None:
        """On June 1st at 10:00 the 05:00 run is next on July 1st."""
        now = datetime(2024, 6, 1, 10, 0)
        assert next_fire_time(MonthlyAt(1, 5), now) == datetime(2024, 7, 1, 5, 0)

    def test_first_of_month_still_ahead(self) -> None:
        """On June 1st at 04:00 the 05:00 run is the same day."""
        now = datetime(2024, 6, 1, 4, 0)
        assert initial_delay(MonthlyAt(1, 5), now) == timedelta(hours=1)

    def test_december_rolls_into_january(self) -> None:
        """The month after December is January of the next year."""
        now = datetime(2024, 12, 15, 0, 0)
        assert next_fire_time(MonthlyAt(1, 5), now) == datetime(2025, 1, 1, 5, 0)

    def test_day_clamped_to_short_month(self) -> None:
        """Day 31 in February 2024 falls on the 29th."""
        now = datetime(2024, 2, 10, 0, 0)
        assert next_fire_time(MonthlyAt(31, 5), now) == datetime(2024, 2, 29, 5, 0)

    def test_day_clamped_in_following_month(self) -> None:
        """After January 31st has passed, day 31 lands on February 29th."""
        now = datetime(2024, 1, 31, 6, 0)
        assert next_fire_time(MonthlyAt(31, 5), now) == datetime(2024, 2, 29, 5, 0)

    def test_fixed_thirty_day_period(self) -> None:
        """Monthly triggers repeat on a fixed 30-day period."""
        assert MonthlyAt(1, 5).period == timedelta(days=30)

    def test_rejects_day_zero(self) -> None:
        """Days start at 1."""
        with pytest.raises(ValueError):
            MonthlyAt(0, 5)
