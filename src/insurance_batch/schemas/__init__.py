# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Typed payloads for calculation and batch results."""

from .batch import (
    BatchStatus,
    ContractStatsReport,
    CustomerSegmentRow,
    DelinquencyReport,
    DelinquentContract,
    JobStatusView,
    MonthlyProductRow,
    MonthlyReport,
    PremiumUpdateSummary,
    RequestStatsReport,
    RequestStatusReport,
    StaleRequest,
    StatusUpdateSummary,
    WeeklyReport,
)
from .premium import PremiumCalculation

__all__ = [
    "BatchStatus",
    "ContractStatsReport",
    "CustomerSegmentRow",
    "DelinquencyReport",
    "DelinquentContract",
    "JobStatusView",
    "MonthlyProductRow",
    "MonthlyReport",
    "PremiumUpdateSummary",
    "RequestStatsReport",
    "RequestStatusReport",
    "StaleRequest",
    "StatusUpdateSummary",
    "WeeklyReport",
    "PremiumCalculation",
]
