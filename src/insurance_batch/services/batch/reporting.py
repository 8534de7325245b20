# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Weekly and monthly report generation.

Read-only. Aggregation happens here over predicate-scoped reads so the store
stays the only place that renders SQL.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from beartype import beartype

from ...core.clock import Clock
from ...core.errors import PersistenceError
from ...core.logging_utils import get_logger
from ...core.result_types import Err, Ok, Result
from ...models.contract import ContractStatus, InsuredRelationship
from ...models.document_request import RequestStatus
from ...persistence.predicates import Always, Eq, Ge, In, Lt, all_of
from ...persistence.store import ContractStore, Entity
from ...schemas.batch import (
    ContractStatsReport,
    CustomerSegmentRow,
    MonthlyProductRow,
    MonthlyReport,
    RequestStatsReport,
    WeeklyReport,
)

logger = get_logger(__name__)

AGE_BAND_WIDTH = 10


def _average(values: Iterable[Decimal | None]) -> Decimal | None:
    present = [Decimal(v) for v in values if v is not None]
    if not present:
        return None
    return sum(present, Decimal("0")) / Decimal(len(present))


def _month_bounds(today: date) -> tuple[datetime, datetime]:
    start = date(today.year, today.month, 1)
    if today.month == 12:
        end = date(today.year + 1, 1, 1)
    else:
        end = date(today.year, today.month + 1, 1)
    return datetime.combine(start, time.min), datetime.combine(end, time.min)


@beartype
class ReportGenerationBatch:
    """Builds the weekly and monthly management reports."""

    def __init__(self, store: ContractStore, clock: Clock) -> None:
        """Initialize batch with its store and clock."""
        self._store = store
        self._clock = clock

    async def contract_stats(self) -> Result[ContractStatsReport, PersistenceError]:
        """Portfolio totals across every contract."""
        rows = await self._store.query_where(Entity.CONTRACTS, Always())
        if isinstance(rows, Err):
            return rows

        contracts = rows.value
        by_status = Counter(ContractStatus(row["status"]) for row in contracts)
        return Ok(
            ContractStatsReport(
                total_contracts=len(contracts),
                by_status={status: by_status[status] for status in ContractStatus},
                average_monthly_premium=_average(
                    row.get("monthly_premium") for row in contracts
                ),
                total_insured_amount=sum(
                    (Decimal(row["insured_amount"]) for row in contracts),
                    Decimal("0"),
                ),
            )
        )

    async def request_stats(self) -> Result[RequestStatsReport, PersistenceError]:
        """Request totals and average processing time in whole days.

        Open requests are measured up to now.
        """
        now = self._clock.now()
        rows = await self._store.query_where(Entity.DOCUMENT_REQUESTS, Always())
        if isinstance(rows, Err):
            return rows

        requests = rows.value
        by_status = Counter(RequestStatus(row["status"]) for row in requests)
        processing_days = [
            Decimal(((row.get("completed_date") or now) - row["created_at"]).days)
            for row in requests
        ]
        return Ok(
            RequestStatsReport(
                total_requests=len(requests),
                by_status={status: by_status[status] for status in RequestStatus},
                average_processing_days=_average(processing_days),
            )
        )

    async def execute_weekly_reports(self) -> Result[WeeklyReport, PersistenceError]:
        """Contract and request statistics bundled for the weekly run."""
        logger.info("Weekly report generation started")
        try:
            contracts = await self.contract_stats()
            if isinstance(contracts, Err):
                logger.error("Weekly reports failed: %s", contracts.error)
                return contracts

            requests = await self.request_stats()
            if isinstance(requests, Err):
                logger.error("Weekly reports failed: %s", requests.error)
                return requests
        except Exception as e:
            logger.exception("Weekly report generation failed")
            return Err(PersistenceError(str(e), operation="weekly reports"))

        logger.info(
            "Weekly reports: %d contract(s), %d request(s)",
            contracts.value.total_contracts,
            requests.value.total_requests,
        )
        return Ok(
            WeeklyReport(
                generated_at=self._clock.now(),
                contracts=contracts.value,
                requests=requests.value,
            )
        )

    async def monthly_contracts(
        self,
    ) -> Result[list[dict[str, Any]], PersistenceError]:
        """Contracts created in the current calendar month."""
        start, end = _month_bounds(self._clock.today())
        return await self._store.query_where(
            Entity.CONTRACTS,
            all_of(Ge("created_at", start), Lt("created_at", end)),
            order_by=(("id", False),),
        )

    @staticmethod
    def product_breakdown(contracts: list[dict[str, Any]]) -> list[MonthlyProductRow]:
        """New business per product."""
        grouped: dict[int, list[dict[str, Any]]] = defaultdict(list)
        for row in contracts:
            grouped[row["product_id"]].append(row)

        breakdown = []
        for product_id in sorted(grouped):
            rows = grouped[product_id]
            premiums = [row.get("monthly_premium") for row in rows]
            breakdown.append(
                MonthlyProductRow(
                    product_id=product_id,
                    contract_count=len(rows),
                    total_insured_amount=sum(
                        (Decimal(row["insured_amount"]) for row in rows),
                        Decimal("0"),
                    ),
                    total_monthly_premium=sum(
                        (Decimal(p) for p in premiums if p is not None),
                        Decimal("0"),
                    ),
                    average_monthly_premium=_average(premiums),
                )
            )
        return breakdown

    async def customer_analysis(
        self, contracts: list[dict[str, Any]]
    ) -> Result[list[CustomerSegmentRow], PersistenceError]:
        """New business by primary insured gender and 10-year entry-age band."""
        by_id = {row["id"]: row for row in contracts}
        if not by_id:
            return Ok([])

        insured = await self._store.query_where(
            Entity.INSURED_PERSONS,
            all_of(
                In("contract_id", sorted(by_id)),
                Eq("relationship", InsuredRelationship.SELF),
            ),
            order_by=(("id", False),),
        )
        if isinstance(insured, Err):
            return insured

        segments: dict[tuple[str, int], list[dict[str, Any]]] = defaultdict(list)
        seen: set[int] = set()
        for person in insured.value:
            contract_id = person["contract_id"]
            if contract_id in seen:
                continue
            seen.add(contract_id)
            band = person["entry_age"] // AGE_BAND_WIDTH * AGE_BAND_WIDTH
            segments[(person["gender"], band)].append(by_id[contract_id])

        return Ok(
            [
                CustomerSegmentRow(
                    gender=gender,
                    age_band=band,
                    customer_count=len({row["customer_id"] for row in rows}),
                    average_monthly_premium=_average(
                        row.get("monthly_premium") for row in rows
                    ),
                    average_insured_amount=_average(
                        row["insured_amount"] for row in rows
                    ),
                )
                for (gender, band), rows in sorted(segments.items())
            ]
        )

    async def execute_monthly_reports(
        self,
    ) -> Result[MonthlyReport, PersistenceError]:
        """Product and customer breakdowns of the current month's new business."""
        today = self._clock.today()
        logger.info(
            "Monthly report generation started for %04d-%02d", today.year, today.month
        )
        try:
            contracts = await self.monthly_contracts()
            if isinstance(contracts, Err):
                logger.error("Monthly reports failed: %s", contracts.error)
                return contracts

            customers = await self.customer_analysis(contracts.value)
            if isinstance(customers, Err):
                logger.error("Monthly reports failed: %s", customers.error)
                return customers

            report = MonthlyReport(
                generated_at=self._clock.now(),
                month=f"{today.year:04d}-{today.month:02d}",
                products=self.product_breakdown(contracts.value),
                customers=customers.value,
            )
        except Exception as e:
            logger.exception("Monthly report generation failed")
            return Err(PersistenceError(str(e), operation="monthly reports"))

        logger.info(
            "Monthly reports: %d new contract(s) across %d product(s)",
            len(contracts.value),
            len(report.products),
        )
        return Ok(report)

    async def manual_execute(
        self,
    ) -> Result[tuple[WeeklyReport, MonthlyReport], PersistenceError]:
        """Generate both report bundles now."""
        logger.info("Manual report generation requested")
        weekly = await self.execute_weekly_reports()
        if isinstance(weekly, Err):
            return weekly
        monthly = await self.execute_monthly_reports()
        if isinstance(monthly, Err):
            return monthly
        return Ok((weekly.value, monthly.value))
