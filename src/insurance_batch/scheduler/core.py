# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Single-process job scheduler.

Each registered job gets its own loop task that sleeps until the trigger's
first occurrence (computed once at ``start()``) and then fires on a fixed
period. Jobs are grouped into timelines; a per-timeline lock guarantees that
scheduled runs of the same category never overlap, while different timelines
run concurrently.

``run_now`` executes a job on the caller's task, bypassing both the trigger
and the timeline lock. The batch jobs are idempotent and predicate-bound, so a
manual run racing a scheduled one converges.
"""

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum
from typing import Any

from attrs import define, field, frozen
from beartype import beartype

from ..core.clock import Clock
from ..core.logging_utils import get_logger
from .triggers import Trigger, initial_delay

logger = get_logger(__name__)

JobAction = Callable[[], Awaitable[Any]]


class JobId(str, Enum):
    """Closed set of batch jobs."""

    PREMIUM_UPDATE = "premium_update"
    REQUEST_STATUS_CHECK = "request_status_check"
    CONTRACT_STATUS_UPDATE = "contract_status_update"
    PAYMENT_STATUS_CHECK = "payment_status_check"
    WEEKLY_REPORTS = "weekly_reports"
    MONTHLY_REPORTS = "monthly_reports"


class Timeline(str, Enum):
    """Job categories; scheduled runs within one never overlap."""

    LIFECYCLE = "lifecycle"
    PREMIUM_MAINTENANCE = "premium_maintenance"
    REPORTING = "reporting"


@frozen
class JobDefinition:
    """What to run, when, and on which timeline."""

    job_id: JobId = field()
    trigger: Trigger = field()
    action: JobAction = field()
    timeline: Timeline = field()


@define
class ScheduledJob:
    """Runtime state of a job while the scheduler is started."""

    definition: JobDefinition = field()
    next_fire_at: datetime = field()
    task: "asyncio.Task[None] | None" = field(default=None)


@frozen
class JobStatus:
    """Snapshot of one job for the control surface."""

    job_id: JobId = field()
    timeline: Timeline = field()
    trigger: str = field()
    running: bool = field()
    last_run_at: datetime | None = field()
    next_fire_at: datetime | None = field()


@frozen
class SchedulerStatus:
    """Snapshot of the whole scheduler."""

    started: bool = field()
    jobs: tuple[JobStatus, ...] = field()

    @property
    def running(self) -> bool:
        """True while any job is executing."""
        return any(job.running for job in self.jobs)

    @property
    def last_run_at(self) -> datetime | None:
        """Most recent completion across all jobs."""
        finished = [job.last_run_at for job in self.jobs if job.last_run_at]
        return max(finished) if finished else None


class Scheduler:
    """Runs registered jobs on independent single-worker timelines."""

    def __init__(self, clock: Clock) -> None:
        """Initialize an empty, stopped scheduler."""
        self._clock = clock
        self._definitions: dict[JobId, JobDefinition] = {}
        self._jobs: dict[JobId, ScheduledJob] = {}
        self._running: Counter[JobId] = Counter()
        self._last_run_at: dict[JobId, datetime] = {}
        self._timeline_locks: dict[Timeline, asyncio.Lock] = {}
        self._stop_event: asyncio.Event | None = None

    @property
    def is_started(self) -> bool:
        return self._stop_event is not None

    @beartype
    def register(
        self,
        job_id: JobId,
        trigger: Trigger,
        action: JobAction,
        timeline: Timeline,
    ) -> None:
        """Add a job definition. Jobs cannot be added while started."""
        if self.is_started:
            raise RuntimeError("Cannot register jobs while the scheduler is running")
        if job_id in self._definitions:
            raise ValueError(f"Job {job_id.value} is already registered")
        self._definitions[job_id] = JobDefinition(job_id, trigger, action, timeline)

    @beartype
    async def start(self) -> None:
        """Compute initial delays and launch one loop per job."""
        if self.is_started:
            raise RuntimeError("Scheduler already started")

        now = self._clock.now()
        stop_event = asyncio.Event()
        self._stop_event = stop_event
        self._timeline_locks = {t: asyncio.Lock() for t in Timeline}
        loop = asyncio.get_running_loop()

        for job_id, definition in self._definitions.items():
            delay = initial_delay(definition.trigger, now)
            job = ScheduledJob(definition=definition, next_fire_at=now + delay)
            job.task = loop.create_task(
                self._job_loop(job, delay.total_seconds(), stop_event),
                name=f"batch:{job_id.value}",
            )
            self._jobs[job_id] = job
            logger.info(
                "Scheduled %s (%s), first run at %s",
                job_id.value,
                definition.trigger.describe(),
                job.next_fire_at.isoformat(),
            )

    @beartype
    async def stop(self, drain_timeout: float = 60.0) -> bool:
        """Stop scheduling and wait for in-flight runs.

        Returns True when every job finished within ``drain_timeout``; jobs
        still running after that are cancelled and False is returned.
        """
        if self._stop_event is None:
            return True

        self._stop_event.set()
        tasks = [job.task for job in self._jobs.values() if job.task is not None]
        drained = True
        if tasks:
            _, pending = await asyncio.wait(tasks, timeout=drain_timeout)
            if pending:
                drained = False
                logger.warning(
                    "Drain timeout after %.1fs, cancelling %d job(s)",
                    drain_timeout,
                    len(pending),
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

        self._jobs.clear()
        self._stop_event = None
        logger.info("Scheduler stopped")
        return drained

    @beartype
    async def run_now(self, job_id: JobId) -> Any:
        """Run a job immediately on the caller's task and return its result."""
        definition = self._definitions.get(job_id)
        if definition is None:
            raise KeyError(f"Unknown job: {job_id.value}")
        logger.info("Manual run of %s", job_id.value)
        return await self._invoke(definition)

    @beartype
    def status(self) -> SchedulerStatus:
        """Snapshot of every registered job."""
        jobs = []
        for job_id, definition in self._definitions.items():
            scheduled = self._jobs.get(job_id)
            jobs.append(
                JobStatus(
                    job_id=job_id,
                    timeline=definition.timeline,
                    trigger=definition.trigger.describe(),
                    running=self._running[job_id] > 0,
                    last_run_at=self._last_run_at.get(job_id),
                    next_fire_at=scheduled.next_fire_at if scheduled else None,
                )
            )
        return SchedulerStatus(started=self.is_started, jobs=tuple(jobs))

    async def _job_loop(
        self, job: ScheduledJob, delay: float, stop_event: asyncio.Event
    ) -> None:
        definition = job.definition
        loop = asyncio.get_running_loop()
        period = definition.trigger.period
        next_fire = loop.time() + delay

        while not stop_event.is_set():
            try:
                await asyncio.wait_for(
                    stop_event.wait(), timeout=max(0.0, next_fire - loop.time())
                )
                break
            except asyncio.TimeoutError:
                pass

            async with self._timeline_locks[definition.timeline]:
                if stop_event.is_set():
                    break
                await self._invoke(definition)
            next_fire += period.total_seconds()
            job.next_fire_at += period

    async def _invoke(self, definition: JobDefinition) -> Any:
        job_id = definition.job_id
        self._running[job_id] += 1
        try:
            return await definition.action()
        except Exception:
            logger.exception("Job %s failed", job_id.value)
            return None
        finally:
            self._running[job_id] -= 1
            self._last_run_at[job_id] = self._clock.now()
