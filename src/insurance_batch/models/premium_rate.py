# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Premium rate model with validity windows."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from beartype import beartype
from pydantic import Field, model_validator

from .base import BaseModelConfig


class Gender(str, Enum):
    """Gender key of a rate row. ALL rows are only matched by an ALL lookup."""

    MALE = "M"
    FEMALE = "F"
    ALL = "ALL"


@beartype
class PremiumRate(BaseModelConfig):
    """One row of the ``premium_rates`` table."""

    id: int = Field(..., ge=1)
    product_id: int = Field(..., ge=1)
    gender: Gender = Field(...)
    entry_age: int = Field(..., ge=0)
    insurance_period: int = Field(..., ge=1)
    base_rate: Decimal = Field(..., ge=Decimal("0"))
    loading_rate: Decimal = Field(..., ge=Decimal("0"))
    valid_from: date = Field(...)
    valid_to: date | None = Field(None, description="None means open-ended")
    updated_at: datetime | None = Field(None)

    @model_validator(mode="after")
    @beartype
    def validate_window(self) -> "PremiumRate":
        """A window may not end before it starts."""
        if self.valid_to is not None and self.valid_to < self.valid_from:
            raise ValueError("valid_to must not precede valid_from")
        return self

    @property
    def total_rate(self) -> Decimal:
        """Base rate plus loading rate."""
        return self.base_rate + self.loading_rate

    @beartype
    def is_effective_on(self, as_of: date) -> bool:
        """Check whether as_of falls inside the validity window (inclusive)."""
        if self.valid_from > as_of:
            return False
        return self.valid_to is None or self.valid_to >= as_of

    @property
    def selection_key(self) -> tuple[date, int]:
        """Ordering used to pick one row among overlapping windows."""
        return (self.valid_from, self.id)
