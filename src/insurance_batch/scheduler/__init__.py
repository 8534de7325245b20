# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""In-process job scheduling: trigger arithmetic and the scheduler loop."""

from .core import (
    JobDefinition,
    JobId,
    JobStatus,
    ScheduledJob,
    Scheduler,
    SchedulerStatus,
    Timeline,
)
from .triggers import (
    DailyAt,
    HourlyAt,
    MonthlyAt,
    Trigger,
    WeeklyAt,
    initial_delay,
    next_fire_time,
)

__all__ = [
    "JobDefinition",
    "JobId",
    "JobStatus",
    "ScheduledJob",
    "Scheduler",
    "SchedulerStatus",
    "Timeline",
    "DailyAt",
    "HourlyAt",
    "MonthlyAt",
    "Trigger",
    "WeeklyAt",
    "initial_delay",
    "next_fire_time",
]
