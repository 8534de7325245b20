# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Clock abstraction shared by the scheduler and the batch jobs.

All times are naive wall-clock datetimes in the configured batch timezone,
matching the ``timestamp without time zone`` columns of the contract store.
"""

from datetime import date, datetime, timedelta
from typing import Protocol, runtime_checkable
from zoneinfo import ZoneInfo

from beartype import beartype


@runtime_checkable
class Clock(Protocol):
    """Source of the current wall-clock time."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Clock backed by the system time in a fixed timezone."""

    @beartype
    def __init__(self, timezone: str = "UTC") -> None:
        self._tz = ZoneInfo(timezone)

    @beartype
    def now(self) -> datetime:
        return datetime.now(self._tz).replace(tzinfo=None)

    @beartype
    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Manually advanced clock for tests and replaying a given day."""

    @beartype
    def __init__(self, current: datetime) -> None:
        self._current = current

    @beartype
    def now(self) -> datetime:
        return self._current

    @beartype
    def today(self) -> date:
        return self._current.date()

    @beartype
    def set(self, current: datetime) -> None:
        """Jump to an absolute point in time."""
        self._current = current

    @beartype
    def advance(self, delta: timedelta) -> None:
        """Move the clock forward."""
        self._current = self._current + delta
