# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Domain models for contracts, premium rates and document requests."""

from .base import BaseModelConfig
from .contract import (
    PREMIUM_BEARING_STATUSES,
    CancellationReason,
    Contract,
    ContractStatus,
    InsuredPerson,
    InsuredRelationship,
)
from .document_request import CLOSED_REQUEST_STATUSES, DocumentRequest, RequestStatus
from .premium_rate import Gender, PremiumRate

__all__ = [
    "BaseModelConfig",
    "PREMIUM_BEARING_STATUSES",
    "CancellationReason",
    "Contract",
    "ContractStatus",
    "InsuredPerson",
    "InsuredRelationship",
    "CLOSED_REQUEST_STATUSES",
    "DocumentRequest",
    "RequestStatus",
    "Gender",
    "PremiumRate",
]
