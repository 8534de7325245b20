# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Pydantic models used as typed payloads for batch job Result objects.

Every batch run returns one of these instead of a loose dict, so the control
surface, the CLI and the tests all see the same shape.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from ..models.base import BaseModelConfig
from ..models.contract import ContractStatus
from ..models.document_request import RequestStatus

__all__ = [
    "StatusUpdateSummary",
    "DelinquentContract",
    "DelinquencyReport",
    "PremiumUpdateSummary",
    "StaleRequest",
    "RequestStatusReport",
    "ContractStatsReport",
    "RequestStatsReport",
    "WeeklyReport",
    "MonthlyProductRow",
    "CustomerSegmentRow",
    "MonthlyReport",
    "JobStatusView",
    "BatchStatus",
]


class StatusUpdateSummary(BaseModelConfig):
    """Affected row counts of one contract lifecycle cycle."""

    run_date: date = Field(...)
    cancelled: int = Field(0, ge=0)
    lapsed: int = Field(0, ge=0)
    matured: int = Field(0, ge=0)

    @property
    def total(self) -> int:
        """Contracts transitioned in this cycle."""
        return self.cancelled + self.lapsed + self.matured


class DelinquentContract(BaseModelConfig):
    """An approved contract whose last payment is getting old."""

    contract_id: int = Field(..., ge=1)
    customer_id: int = Field(..., ge=1)
    last_payment_date: date = Field(...)
    days_since_payment: int = Field(..., ge=0)


class DelinquencyReport(BaseModelConfig):
    """Read-only payment check output for downstream notification."""

    run_date: date = Field(...)
    overdue: list[DelinquentContract] = Field(default_factory=list)
    reminders: list[DelinquentContract] = Field(default_factory=list)


class PremiumUpdateSummary(BaseModelConfig):
    """Outcome of one premium maintenance cycle."""

    run_date: date = Field(...)
    expired_rates: int = Field(0, ge=0)
    activated_rates: int = Field(0, ge=0)
    recalculated: int = Field(0, ge=0)
    unchanged: int = Field(0, ge=0)
    skipped: int = Field(0, ge=0)
    skipped_contract_ids: list[int] = Field(default_factory=list)


class StaleRequest(BaseModelConfig):
    """A document request flagged by the hourly request check."""

    request_id: int = Field(..., ge=1)
    request_number: str = Field(...)
    status: RequestStatus = Field(...)
    created_at: datetime = Field(...)
    follow_up_date: date | None = Field(None)


class RequestStatusReport(BaseModelConfig):
    """Requests stuck in processing and follow-ups past due."""

    checked_at: datetime = Field(...)
    stale: list[StaleRequest] = Field(default_factory=list)
    overdue_follow_ups: list[StaleRequest] = Field(default_factory=list)


class ContractStatsReport(BaseModelConfig):
    """Portfolio-wide contract statistics."""

    total_contracts: int = Field(0, ge=0)
    by_status: dict[ContractStatus, int] = Field(default_factory=dict)
    average_monthly_premium: Decimal | None = Field(None)
    total_insured_amount: Decimal = Field(Decimal("0"))


class RequestStatsReport(BaseModelConfig):
    """Document request throughput statistics."""

    total_requests: int = Field(0, ge=0)
    by_status: dict[RequestStatus, int] = Field(default_factory=dict)
    average_processing_days: Decimal | None = Field(None)


class WeeklyReport(BaseModelConfig):
    """Weekly reporting bundle."""

    generated_at: datetime = Field(...)
    contracts: ContractStatsReport = Field(...)
    requests: RequestStatsReport = Field(...)


class MonthlyProductRow(BaseModelConfig):
    """New business for one product in the reporting month."""

    product_id: int = Field(..., ge=1)
    contract_count: int = Field(..., ge=0)
    total_insured_amount: Decimal = Field(...)
    total_monthly_premium: Decimal = Field(...)
    average_monthly_premium: Decimal | None = Field(None)


class CustomerSegmentRow(BaseModelConfig):
    """New business for one gender and 10-year entry-age band."""

    gender: str = Field(...)
    age_band: int = Field(..., ge=0, description="Lower bound, e.g. 30 for 30-39")
    customer_count: int = Field(..., ge=0)
    average_monthly_premium: Decimal | None = Field(None)
    average_insured_amount: Decimal | None = Field(None)


class MonthlyReport(BaseModelConfig):
    """Monthly reporting bundle."""

    generated_at: datetime = Field(...)
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    products: list[MonthlyProductRow] = Field(default_factory=list)
    customers: list[CustomerSegmentRow] = Field(default_factory=list)


class JobStatusView(BaseModelConfig):
    """Per-job entry of the control surface status."""

    running: bool = Field(...)
    last_run_at: datetime | None = Field(None)
    next_fire_at: datetime | None = Field(None)
    timeline: str = Field(...)
    trigger: str = Field(...)


class BatchStatus(BaseModelConfig):
    """Status returned to the administrative control surface."""

    started: bool = Field(...)
    running: bool = Field(...)
    last_run_at: datetime | None = Field(None)
    jobs: dict[str, JobStatusView] = Field(default_factory=dict)
