# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Contract domain models.

A contract moves forward only::

    UNDER_REVIEW -> CANCELLED
    APPROVED     -> LAPSED
    APPROVED     -> MATURED

Transitions are applied by the lifecycle batch; premiums are refreshed by the
premium maintenance batch.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from beartype import beartype
from pydantic import Field

from .base import BaseModelConfig


class ContractStatus(str, Enum):
    """Enumeration of contract lifecycle states."""

    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    CANCELLED = "CANCELLED"
    LAPSED = "LAPSED"
    MATURED = "MATURED"


# Contracts whose premium is still maintained by the batch.
PREMIUM_BEARING_STATUSES: tuple[ContractStatus, ...] = (
    ContractStatus.UNDER_REVIEW,
    ContractStatus.APPROVED,
)


class CancellationReason(str, Enum):
    """Why a contract was cancelled."""

    REVIEW_EXPIRED = "REVIEW_EXPIRED"


class InsuredRelationship(str, Enum):
    """Relationship of an insured person to the policyholder."""

    SELF = "SELF"
    SPOUSE = "SPOUSE"
    CHILD = "CHILD"
    OTHER = "OTHER"


@beartype
class Contract(BaseModelConfig):
    """Insurance contract as stored in the ``contracts`` table."""

    id: int = Field(..., ge=1)
    product_id: int = Field(..., ge=1)
    customer_id: int = Field(..., ge=1)
    insured_amount: Decimal = Field(..., gt=Decimal("0"))
    monthly_premium: Decimal | None = Field(None, ge=Decimal("0"))
    annual_premium: Decimal | None = Field(None, ge=Decimal("0"))
    status: ContractStatus = Field(...)
    created_at: datetime = Field(...)
    last_payment_date: date | None = Field(None)
    maturity_date: date | None = Field(None)
    cancellation_date: date | None = Field(None)
    cancellation_reason: CancellationReason | None = Field(None)
    lapse_date: date | None = Field(None)
    updated_at: datetime | None = Field(None)


@beartype
class InsuredPerson(BaseModelConfig):
    """Person covered by a contract; the SELF row keys the premium rate."""

    id: int = Field(..., ge=1)
    contract_id: int = Field(..., ge=1)
    relationship: InsuredRelationship = Field(...)
    gender: str = Field(..., pattern="^(M|F)$")
    entry_age: int = Field(..., ge=0, le=120)
    insurance_period: int = Field(..., ge=1, le=100)
