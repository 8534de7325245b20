# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Administrative control surface for the batch engine.

``BatchControl`` wires the store and clock into the rating engine and the three
batches, registers every job with the scheduler, and exposes start/stop,
manual runs and a status snapshot. There is no module-level state: create one
instance per process and pass it to whoever needs it.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from attrs import field, frozen
from beartype import beartype

from ..core.clock import Clock
from ..core.config import Settings, get_settings
from ..core.logging_utils import get_logger
from ..persistence.store import ContractStore
from ..scheduler.core import JobId, Scheduler, Timeline
from ..scheduler.triggers import DailyAt, HourlyAt, MonthlyAt, Trigger, WeeklyAt
from ..schemas.batch import BatchStatus, JobStatusView
from .batch.contract_lifecycle import ContractLifecycleBatch
from .batch.premium_maintenance import PremiumMaintenanceBatch
from .batch.reporting import ReportGenerationBatch
from .rating.premium_calculator import PremiumCalculationService
from .rating.rate_resolution import RateResolver

logger = get_logger(__name__)

# Order of the "run every batch" action: premiums first so the lifecycle and
# the reports see current amounts.
RUN_ALL_ORDER: tuple[JobId, ...] = (
    JobId.PREMIUM_UPDATE,
    JobId.REQUEST_STATUS_CHECK,
    JobId.CONTRACT_STATUS_UPDATE,
    JobId.PAYMENT_STATUS_CHECK,
    JobId.WEEKLY_REPORTS,
    JobId.MONTHLY_REPORTS,
)


@frozen
class JobBinding:
    """Handler, trigger and timeline of one job id."""

    action: Callable[[], Awaitable[Any]] = field()
    trigger: Trigger = field()
    timeline: Timeline = field()


@beartype
def build_triggers(settings: Settings) -> dict[JobId, Trigger]:
    """Trigger of every job, from configuration."""
    return {
        JobId.PREMIUM_UPDATE: DailyAt(settings.premium_update_hour),
        JobId.REQUEST_STATUS_CHECK: HourlyAt(settings.request_check_minute),
        JobId.CONTRACT_STATUS_UPDATE: DailyAt(settings.contract_status_hour),
        JobId.PAYMENT_STATUS_CHECK: HourlyAt(settings.payment_check_minute),
        JobId.WEEKLY_REPORTS: WeeklyAt(
            settings.weekly_report_weekday, settings.weekly_report_hour
        ),
        JobId.MONTHLY_REPORTS: MonthlyAt(
            settings.monthly_report_day, settings.monthly_report_hour
        ),
    }


class BatchControl:
    """Owns the scheduler and the batch services built on one store."""

    def __init__(
        self,
        store: ContractStore,
        clock: Clock,
        settings: Settings | None = None,
    ) -> None:
        """Build the services and register every job."""
        self._settings = settings or get_settings()
        self._clock = clock
        self.resolver = RateResolver(store)
        self.calculator = PremiumCalculationService(self.resolver, clock)
        self.lifecycle = ContractLifecycleBatch(store, clock, self._settings)
        self.maintenance = PremiumMaintenanceBatch(
            store, self.calculator, clock, self._settings
        )
        self.reporting = ReportGenerationBatch(store, clock)
        self._scheduler = Scheduler(clock)

        triggers = build_triggers(self._settings)
        self._bindings: dict[JobId, JobBinding] = {
            JobId.PREMIUM_UPDATE: JobBinding(
                self.maintenance.execute_premium_update,
                triggers[JobId.PREMIUM_UPDATE],
                Timeline.PREMIUM_MAINTENANCE,
            ),
            JobId.REQUEST_STATUS_CHECK: JobBinding(
                self.maintenance.check_request_status,
                triggers[JobId.REQUEST_STATUS_CHECK],
                Timeline.PREMIUM_MAINTENANCE,
            ),
            JobId.CONTRACT_STATUS_UPDATE: JobBinding(
                self.lifecycle.execute_status_update,
                triggers[JobId.CONTRACT_STATUS_UPDATE],
                Timeline.LIFECYCLE,
            ),
            JobId.PAYMENT_STATUS_CHECK: JobBinding(
                self.lifecycle.check_payment_status,
                triggers[JobId.PAYMENT_STATUS_CHECK],
                Timeline.LIFECYCLE,
            ),
            JobId.WEEKLY_REPORTS: JobBinding(
                self.reporting.execute_weekly_reports,
                triggers[JobId.WEEKLY_REPORTS],
                Timeline.REPORTING,
            ),
            JobId.MONTHLY_REPORTS: JobBinding(
                self.reporting.execute_monthly_reports,
                triggers[JobId.MONTHLY_REPORTS],
                Timeline.REPORTING,
            ),
        }
        for job_id, binding in self._bindings.items():
            self._scheduler.register(
                job_id, binding.trigger, binding.action, binding.timeline
            )

    @property
    def is_started(self) -> bool:
        return self._scheduler.is_started

    @beartype
    async def start(self) -> None:
        """Start every scheduled job."""
        logger.info("Starting batch scheduler with %d job(s)", len(self._bindings))
        await self._scheduler.start()

    @beartype
    async def stop(self, drain_timeout: float | None = None) -> bool:
        """Stop scheduling; True when in-flight runs drained in time."""
        timeout = (
            self._settings.scheduler_drain_timeout_seconds
            if drain_timeout is None
            else drain_timeout
        )
        return await self._scheduler.stop(timeout)

    @beartype
    async def run_now(self, job_id: JobId | str) -> Any:
        """Run one job immediately and return its Result.

        Raises ValueError for a name that is not a job id.
        """
        return await self._scheduler.run_now(JobId(job_id))

    @beartype
    async def run_all(self) -> dict[JobId, Any]:
        """Run every job once: premium maintenance, lifecycle, then reports."""
        logger.info("Running all batch jobs")
        results: dict[JobId, Any] = {}
        for job_id in RUN_ALL_ORDER:
            results[job_id] = await self._scheduler.run_now(job_id)
        return results

    @beartype
    def status(self) -> BatchStatus:
        """Running flags and last/next run times per job."""
        snapshot = self._scheduler.status()
        return BatchStatus(
            started=snapshot.started,
            running=snapshot.running,
            last_run_at=snapshot.last_run_at,
            jobs={
                job.job_id.value: JobStatusView(
                    running=job.running,
                    last_run_at=job.last_run_at,
                    next_fire_at=job.next_fire_at,
                    timeline=job.timeline.value,
                    trigger=job.trigger,
                )
                for job in snapshot.jobs
            },
        )
