# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Premium maintenance batch.

Daily cycle, in order:

1. close expired rate windows at yesterday,
2. stamp ``valid_from = today`` on rates whose window is open today,
3. recompute the premium of every open contract from its primary insured.

Steps 1 and 2 are set-based and abort the cycle on failure. Step 3 works row
by row and isolates failures: a contract that cannot be priced is logged,
counted as skipped, and the loop moves on.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Any

from beartype import beartype
from pydantic import ValidationError as PydanticValidationError

from ...core.clock import Clock
from ...core.config import Settings
from ...core.errors import PersistenceError
from ...core.logging_utils import get_logger
from ...core.result_types import Err, Ok, Result
from ...models.contract import (
    PREMIUM_BEARING_STATUSES,
    Contract,
    InsuredPerson,
    InsuredRelationship,
)
from ...models.document_request import CLOSED_REQUEST_STATUSES, RequestStatus
from ...persistence.predicates import (
    Eq,
    Ge,
    In,
    IsNull,
    Lt,
    Ne,
    NotNull,
    all_of,
    any_of,
)
from ...persistence.store import ContractStore, Entity
from ...schemas.batch import PremiumUpdateSummary, RequestStatusReport, StaleRequest
from ..rating.premium_calculator import PremiumCalculationService

logger = get_logger(__name__)

MONTHS_PER_YEAR = Decimal("12")


@beartype
class PremiumMaintenanceBatch:
    """Keeps rate windows current and contract premiums in line with them."""

    def __init__(
        self,
        store: ContractStore,
        calculator: PremiumCalculationService,
        clock: Clock,
        settings: Settings,
    ) -> None:
        """Initialize batch with its collaborators."""
        self._store = store
        self._calculator = calculator
        self._clock = clock
        self._settings = settings

    async def disable_expired_rates(self) -> Result[int, PersistenceError]:
        """Pin every window that ended before yesterday to end yesterday."""
        today = self._clock.today()
        yesterday = today - timedelta(days=1)
        result = await self._store.update_where(
            Entity.PREMIUM_RATES,
            all_of(
                NotNull("valid_to"),
                Lt("valid_to", today),
                Ne("valid_to", yesterday),
            ),
            {"valid_to": yesterday, "updated_at": self._clock.now()},
        )
        if isinstance(result, Ok):
            logger.info("Closed %d expired rate window(s)", result.value)
        return result

    async def activate_new_rates(self) -> Result[int, PersistenceError]:
        """Stamp ``valid_from = today`` on every rate whose window is open today."""
        today = self._clock.today()
        result = await self._store.update_where(
            Entity.PREMIUM_RATES,
            all_of(
                Lt("valid_from", today),
                any_of(IsNull("valid_to"), Ge("valid_to", today)),
            ),
            {"valid_from": today, "updated_at": self._clock.now()},
        )
        if isinstance(result, Ok):
            logger.info("Activated %d rate(s)", result.value)
        return result

    async def update_contract_premiums(
        self,
    ) -> Result[PremiumUpdateSummary, PersistenceError]:
        """Recalculate the premium of every UNDER_REVIEW or APPROVED contract.

        Only listing the contracts can fail the step. Everything after that
        is per contract and ends up in the recalculated, unchanged or skipped
        counts of the summary.
        """
        today = self._clock.today()
        contracts = await self._store.query_where(
            Entity.CONTRACTS,
            In("status", PREMIUM_BEARING_STATUSES),
            order_by=(("id", False),),
        )
        if isinstance(contracts, Err):
            return contracts

        recalculated = 0
        unchanged = 0
        skipped: list[int] = []
        for row in contracts.value:
            contract_id = row.get("id")
            try:
                outcome = await self._recalculate(row)
            except Exception:
                logger.exception(
                    "Unexpected error recalculating contract %s", contract_id
                )
                outcome = None

            if outcome is None:
                skipped.append(contract_id)
            elif outcome:
                recalculated += 1
            else:
                unchanged += 1

        logger.info(
            "Premium recalculation: %d updated, %d unchanged, %d skipped",
            recalculated,
            unchanged,
            len(skipped),
        )
        return Ok(
            PremiumUpdateSummary(
                run_date=today,
                recalculated=recalculated,
                unchanged=unchanged,
                skipped=len(skipped),
                skipped_contract_ids=skipped,
            )
        )

    async def execute_premium_update(
        self,
    ) -> Result[PremiumUpdateSummary, PersistenceError]:
        """Run the full daily cycle and return its summary."""
        logger.info("Premium update started for %s", self._clock.today().isoformat())
        try:
            expired = await self.disable_expired_rates()
            if isinstance(expired, Err):
                logger.error(
                    "Premium update aborted at disable_expired_rates: %s", expired.error
                )
                return expired

            activated = await self.activate_new_rates()
            if isinstance(activated, Err):
                logger.error(
                    "Premium update aborted at activate_new_rates: %s", activated.error
                )
                return activated

            premiums = await self.update_contract_premiums()
            if isinstance(premiums, Err):
                logger.error(
                    "Premium update aborted at update_contract_premiums: %s",
                    premiums.error,
                )
                return premiums
        except Exception as e:
            logger.exception("Premium update failed")
            return Err(PersistenceError(str(e), operation="premium update"))

        summary = premiums.value.model_copy(
            update={"expired_rates": expired.value, "activated_rates": activated.value}
        )
        logger.info("Premium update finished")
        return Ok(summary)

    async def check_request_status(
        self,
    ) -> Result[RequestStatusReport, PersistenceError]:
        """Report requests stuck in processing and follow-ups past their date."""
        now = self._clock.now()
        today = now.date()
        stale_cutoff = now - timedelta(days=self._settings.request_stale_days)
        try:
            stale = await self._store.query_where(
                Entity.DOCUMENT_REQUESTS,
                all_of(
                    Eq("status", RequestStatus.PROCESSING),
                    Lt("created_at", stale_cutoff),
                ),
                order_by=(("created_at", False), ("id", False)),
            )
            if isinstance(stale, Err):
                logger.error("Request status check failed: %s", stale.error)
                return stale

            overdue = await self._store.query_where(
                Entity.DOCUMENT_REQUESTS,
                all_of(
                    Lt("follow_up_date", today),
                    *(Ne("status", closed) for closed in CLOSED_REQUEST_STATUSES),
                ),
                order_by=(("follow_up_date", False), ("id", False)),
            )
            if isinstance(overdue, Err):
                logger.error("Request status check failed: %s", overdue.error)
                return overdue

            report = RequestStatusReport(
                checked_at=now,
                stale=[self._flagged(row) for row in stale.value],
                overdue_follow_ups=[self._flagged(row) for row in overdue.value],
            )
        except Exception as e:
            logger.exception("Request status check failed")
            return Err(PersistenceError(str(e), operation="request status check"))

        if report.stale:
            logger.warning(
                "%d request(s) processing for over %d days",
                len(report.stale),
                self._settings.request_stale_days,
            )
        if report.overdue_follow_ups:
            logger.warning(
                "%d request(s) past their follow-up date",
                len(report.overdue_follow_ups),
            )
        return Ok(report)

    async def manual_execute(
        self,
    ) -> Result[tuple[PremiumUpdateSummary, RequestStatusReport], PersistenceError]:
        """Run the premium update and the request check back to back."""
        logger.info("Manual premium maintenance run requested")
        summary = await self.execute_premium_update()
        if isinstance(summary, Err):
            return summary
        report = await self.check_request_status()
        if isinstance(report, Err):
            return report
        return Ok((summary.value, report.value))

    async def _recalculate(self, row: dict[str, Any]) -> bool | None:
        """True when the premium was rewritten, False when already current,
        None when the contract had to be skipped."""
        try:
            contract = Contract.model_validate(row)
        except PydanticValidationError as e:
            logger.warning("Skipping malformed contract row %s: %s", row.get("id"), e)
            return None

        insured = await self._primary_insured(contract.id)
        if isinstance(insured, Err):
            logger.warning("Skipping contract %d: %s", contract.id, insured.error)
            return None
        if insured.value is None:
            logger.warning("Skipping contract %d: no primary insured person", contract.id)
            return None

        person = insured.value
        calculation = await self._calculator.calculate(
            contract.product_id,
            person.gender,
            person.entry_age,
            person.insurance_period,
            contract.insured_amount,
            self._clock.today(),
        )
        if isinstance(calculation, Err):
            logger.warning(
                "Skipping contract %d: %s", contract.id, calculation.error
            )
            return None

        monthly = calculation.value.monthly_premium
        written = await self._store.update_where(
            Entity.CONTRACTS,
            all_of(
                Eq("id", contract.id),
                In("status", PREMIUM_BEARING_STATUSES),
                any_of(IsNull("monthly_premium"), Ne("monthly_premium", monthly)),
            ),
            {
                "monthly_premium": monthly,
                "annual_premium": monthly * MONTHS_PER_YEAR,
                "updated_at": self._clock.now(),
            },
        )
        if isinstance(written, Err):
            logger.warning("Skipping contract %d: %s", contract.id, written.error)
            return None
        return written.value > 0

    async def _primary_insured(
        self, contract_id: int
    ) -> Result[InsuredPerson | None, PersistenceError]:
        rows = await self._store.query_where(
            Entity.INSURED_PERSONS,
            all_of(
                Eq("contract_id", contract_id),
                Eq("relationship", InsuredRelationship.SELF),
            ),
            order_by=(("id", False),),
        )
        if isinstance(rows, Err):
            return rows
        if not rows.value:
            return Ok(None)
        return Ok(InsuredPerson.model_validate(rows.value[0]))

    @staticmethod
    def _flagged(row: dict[str, Any]) -> StaleRequest:
        return StaleRequest(
            request_id=row["id"],
            request_number=row["request_number"],
            status=row["status"],
            created_at=row["created_at"],
            follow_up_date=row.get("follow_up_date"),
        )
