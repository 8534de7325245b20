# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Recurring batch jobs."""

from .contract_lifecycle import ContractLifecycleBatch
from .premium_maintenance import PremiumMaintenanceBatch
from .reporting import ReportGenerationBatch

__all__ = [
    "ContractLifecycleBatch",
    "PremiumMaintenanceBatch",
    "ReportGenerationBatch",
]
