# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Typed payloads returned by the premium calculation engine."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from ..models.base import BaseModelConfig
from ..models.premium_rate import PremiumRate

__all__ = ["PremiumCalculation"]


class PremiumCalculation(BaseModelConfig):
    """Premium for one (product, gender, age, period, amount) quote.

    Amounts are exact: ``annual_premium = insured_amount * total_rate`` and
    ``monthly_premium = annual_premium / 12`` with no rounding applied.
    """

    annual_premium: Decimal = Field(..., ge=Decimal("0"))
    monthly_premium: Decimal = Field(..., ge=Decimal("0"))
    total_rate: Decimal = Field(..., ge=Decimal("0"))
    base_rate: Decimal = Field(..., ge=Decimal("0"))
    loading_rate: Decimal = Field(..., ge=Decimal("0"))
    rate: PremiumRate = Field(..., description="Resolved rate row")
    insured_amount: Decimal = Field(..., gt=Decimal("0"))
    calculated_at: datetime = Field(...)

