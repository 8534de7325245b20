# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Trigger specifications and "time until next occurrence" arithmetic.

Pure functions of a wall-clock ``now``. A target instant equal to ``now``
counts as already passed, so a trigger evaluated exactly on its hour fires one
period later rather than immediately.

Example: ``DailyAt(2)`` evaluated at 01:00 fires at 02:00 the same day (one
hour of initial delay); evaluated at 03:00 it fires at 02:00 the next day.
"""

import calendar
from datetime import datetime, timedelta

from attrs import field, frozen
from attrs.validators import and_, ge, instance_of, le
from beartype import beartype


def _bounded(low: int, high: int):  # noqa: ANN202
    return and_(instance_of(int), ge(low), le(high))


def _clamped_day(year: int, month: int, day: int) -> int:
    return min(day, calendar.monthrange(year, month)[1])


@frozen
class DailyAt:
    """Every day at ``hour:00:00``."""

    hour: int = field(validator=_bounded(0, 23))

    @property
    def period(self) -> timedelta:
        return timedelta(days=1)

    def next_fire_time(self, now: datetime) -> datetime:
        target = now.replace(hour=self.hour, minute=0, second=0, microsecond=0)
        if target <= now:
            target += timedelta(days=1)
        return target

    def describe(self) -> str:
        return f"daily at {self.hour:02d}:00"


@frozen
class HourlyAt:
    """Every hour at ``:minute:00``."""

    minute: int = field(validator=_bounded(0, 59))

    @property
    def period(self) -> timedelta:
        return timedelta(hours=1)

    def next_fire_time(self, now: datetime) -> datetime:
        target = now.replace(minute=self.minute, second=0, microsecond=0)
        if target <= now:
            target += timedelta(hours=1)
        return target

    def describe(self) -> str:
        return f"hourly at :{self.minute:02d}"


@frozen
class WeeklyAt:
    """Every week on ``weekday`` (Monday=0) at ``hour:00:00``."""

    weekday: int = field(validator=_bounded(0, 6))
    hour: int = field(validator=_bounded(0, 23))

    @property
    def period(self) -> timedelta:
        return timedelta(days=7)

    def next_fire_time(self, now: datetime) -> datetime:
        days_ahead = (self.weekday - now.weekday()) % 7
        target = (now + timedelta(days=days_ahead)).replace(
            hour=self.hour, minute=0, second=0, microsecond=0
        )
        if target <= now:
            target += timedelta(days=7)
        return target

    def describe(self) -> str:
        return f"weekly on {calendar.day_name[self.weekday]} at {self.hour:02d}:00"


@frozen
class MonthlyAt:
    """Every month on ``day`` at ``hour:00:00``.

    Days past the end of a short month fall on its last day. Once started the
    job repeats on a fixed 30-day period, so it drifts against the calendar.
    """

    day: int = field(validator=_bounded(1, 31))
    hour: int = field(validator=_bounded(0, 23))

    @property
    def period(self) -> timedelta:
        return timedelta(days=30)

    def next_fire_time(self, now: datetime) -> datetime:
        target = now.replace(
            day=_clamped_day(now.year, now.month, self.day),
            hour=self.hour,
            minute=0,
            second=0,
            microsecond=0,
        )
        if target <= now:
            year, month = (now.year + 1, 1) if now.month == 12 else (now.year, now.month + 1)
            target = target.replace(
                year=year, month=month, day=_clamped_day(year, month, self.day)
            )
        return target

    def describe(self) -> str:
        return f"monthly on day {self.day} at {self.hour:02d}:00"


Trigger = DailyAt | HourlyAt | WeeklyAt | MonthlyAt


@beartype
def next_fire_time(trigger: Trigger, now: datetime) -> datetime:
    """First firing strictly after ``now``."""
    return trigger.next_fire_time(now)


@beartype
def initial_delay(trigger: Trigger, now: datetime) -> timedelta:
    """Time from ``now`` until the trigger's next occurrence."""
    return trigger.next_fire_time(now) - now
