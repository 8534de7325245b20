# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Contract lifecycle batch.

Moves contracts forward along the status graph::

    UNDER_REVIEW --(review older than N days)--> CANCELLED
    APPROVED     --(no payment for M days)-----> LAPSED
    APPROVED     --(maturity date reached)-----> MATURED

Each transition is one ``update_where`` whose guard includes the source
status, so repeating a cycle immediately affects zero rows. The steps run in
the order above: a contract that is both overdue and matured in the same
cycle is lapsed first and the maturity step no longer matches it.
"""

from datetime import date, datetime, time, timedelta

from beartype import beartype

from ...core.clock import Clock
from ...core.config import Settings
from ...core.errors import PersistenceError
from ...core.logging_utils import get_logger
from ...core.result_types import Err, Ok, Result
from ...models.contract import CancellationReason, ContractStatus
from ...persistence.predicates import Eq, Le, Lt, all_of
from ...persistence.store import ContractStore, Entity
from ...schemas.batch import DelinquencyReport, DelinquentContract, StatusUpdateSummary

logger = get_logger(__name__)


@beartype
class ContractLifecycleBatch:
    """Applies time-driven status transitions to contracts."""

    def __init__(self, store: ContractStore, clock: Clock, settings: Settings) -> None:
        """Initialize batch with its store, clock and thresholds."""
        self._store = store
        self._clock = clock
        self._settings = settings

    async def cancel_expired_reviews(self) -> Result[int, PersistenceError]:
        """Cancel contracts still under review after the review timeout."""
        today = self._clock.today()
        cutoff = datetime.combine(
            today - timedelta(days=self._settings.review_timeout_days), time.min
        )
        result = await self._store.update_where(
            Entity.CONTRACTS,
            all_of(
                Eq("status", ContractStatus.UNDER_REVIEW),
                Lt("created_at", cutoff),
            ),
            {
                "status": ContractStatus.CANCELLED,
                "cancellation_date": today,
                "cancellation_reason": CancellationReason.REVIEW_EXPIRED,
                "updated_at": self._clock.now(),
            },
        )
        if isinstance(result, Ok):
            logger.info("Cancelled %d contract(s) with expired review", result.value)
        return result

    async def lapse_overdue_payments(self) -> Result[int, PersistenceError]:
        """Lapse approved contracts with no payment since the lapse threshold."""
        today = self._clock.today()
        cutoff = today - timedelta(days=self._settings.payment_lapse_days)
        result = await self._store.update_where(
            Entity.CONTRACTS,
            all_of(
                Eq("status", ContractStatus.APPROVED),
                Lt("last_payment_date", cutoff),
            ),
            {
                "status": ContractStatus.LAPSED,
                "lapse_date": today,
                "updated_at": self._clock.now(),
            },
        )
        if isinstance(result, Ok):
            logger.info("Lapsed %d contract(s) for missed payments", result.value)
        return result

    async def complete_matured_contracts(self) -> Result[int, PersistenceError]:
        """Mature approved contracts whose maturity date has been reached.

        The maturity date is re-stamped with the day the batch observed it.
        """
        today = self._clock.today()
        result = await self._store.update_where(
            Entity.CONTRACTS,
            all_of(
                Eq("status", ContractStatus.APPROVED),
                Le("maturity_date", today),
            ),
            {
                "status": ContractStatus.MATURED,
                "maturity_date": today,
                "updated_at": self._clock.now(),
            },
        )
        if isinstance(result, Ok):
            logger.info("Matured %d contract(s)", result.value)
        return result

    async def execute_status_update(
        self,
    ) -> Result[StatusUpdateSummary, PersistenceError]:
        """Run the three transitions in order; a failed step ends the cycle."""
        run_date = self._clock.today()
        logger.info("Contract status update started for %s", run_date.isoformat())
        try:
            cancelled = await self.cancel_expired_reviews()
            if isinstance(cancelled, Err):
                return self._aborted("cancel_expired_reviews", cancelled)

            lapsed = await self.lapse_overdue_payments()
            if isinstance(lapsed, Err):
                return self._aborted("lapse_overdue_payments", lapsed)

            matured = await self.complete_matured_contracts()
            if isinstance(matured, Err):
                return self._aborted("complete_matured_contracts", matured)
        except Exception as e:
            logger.exception("Contract status update failed")
            return Err(PersistenceError(str(e), operation="contract status update"))

        summary = StatusUpdateSummary(
            run_date=run_date,
            cancelled=cancelled.value,
            lapsed=lapsed.value,
            matured=matured.value,
        )
        logger.info("Contract status update finished: %d transition(s)", summary.total)
        return Ok(summary)

    async def check_payment_status(
        self,
    ) -> Result[DelinquencyReport, PersistenceError]:
        """List approved contracts that are overdue or need a payment reminder.

        Read-only. A contract past the overdue threshold is also past the
        reminder threshold and appears in both lists.
        """
        today = self._clock.today()
        reminder_cutoff = today - timedelta(days=self._settings.payment_reminder_days)
        overdue_cutoff = today - timedelta(days=self._settings.payment_overdue_days)
        try:
            rows = await self._store.query_where(
                Entity.CONTRACTS,
                all_of(
                    Eq("status", ContractStatus.APPROVED),
                    Lt("last_payment_date", reminder_cutoff),
                ),
                order_by=(("last_payment_date", False), ("id", False)),
            )
            if isinstance(rows, Err):
                logger.error("Payment status check failed: %s", rows.error)
                return rows

            reminders = [self._delinquent(row, today) for row in rows.value]
            overdue = [
                contract
                for contract in reminders
                if contract.last_payment_date < overdue_cutoff
            ]
        except Exception as e:
            logger.exception("Payment status check failed")
            return Err(PersistenceError(str(e), operation="payment status check"))

        if overdue:
            logger.warning("%d contract(s) with overdue payments", len(overdue))
        if reminders:
            logger.info("%d contract(s) due a payment reminder", len(reminders))
        return Ok(DelinquencyReport(run_date=today, overdue=overdue, reminders=reminders))

    async def manual_execute(
        self,
    ) -> Result[tuple[StatusUpdateSummary, DelinquencyReport], PersistenceError]:
        """Run the status update and the payment check back to back."""
        logger.info("Manual contract lifecycle run requested")
        summary = await self.execute_status_update()
        if isinstance(summary, Err):
            return summary
        report = await self.check_payment_status()
        if isinstance(report, Err):
            return report
        return Ok((summary.value, report.value))

    @staticmethod
    def _delinquent(row: dict, today: date) -> DelinquentContract:
        last_payment: date = row["last_payment_date"]
        return DelinquentContract(
            contract_id=row["id"],
            customer_id=row["customer_id"],
            last_payment_date=last_payment,
            days_since_payment=(today - last_payment).days,
        )

    @staticmethod
    def _aborted(
        step: str, failure: Err[PersistenceError]
    ) -> Err[PersistenceError]:
        logger.error("Contract status update aborted at %s: %s", step, failure.error)
        return failure
