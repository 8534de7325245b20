# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Rate resolution and premium calculation."""

from .premium_calculator import (
    PremiumCalculationService,
    calculate_premium,
    validate_static_inputs,
)
from .rate_resolution import RateResolver, ValueRange, select_rate

__all__ = [
    "PremiumCalculationService",
    "calculate_premium",
    "validate_static_inputs",
    "RateResolver",
    "ValueRange",
    "select_rate",
]
