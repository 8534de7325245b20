# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Premium calculation engine.

Validates a quote request, resolves the rate row and applies::

    total_rate      = base_rate + loading_rate
    annual_premium  = insured_amount * total_rate
    monthly_premium = annual_premium / 12

Validation fails fast in a fixed order and always runs to completion before
any rate lookup, so an out-of-range request never touches the rate table.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from beartype import beartype

from ...core.clock import Clock, SystemClock
from ...core.config import get_settings
from ...core.errors import NotFoundError, PersistenceError, ValidationError
from ...core.logging_utils import get_logger
from ...core.result_types import Err, Ok, Result
from ...persistence.store import ContractStore
from ...schemas.premium import PremiumCalculation
from .rate_resolution import RateResolver

logger = get_logger(__name__)

MIN_ENTRY_AGE = 0
MAX_ENTRY_AGE = 100
MIN_INSURANCE_PERIOD = 1
MAX_INSURANCE_PERIOD = 50
QUOTE_GENDERS = ("M", "F")
MONTHS_PER_YEAR = Decimal("12")

CalculationResult = Result[
    PremiumCalculation, ValidationError | NotFoundError | PersistenceError
]
PremiumGrid = dict[str, dict[int, dict[int, CalculationResult]]]


@beartype
def validate_static_inputs(
    product_id: int,
    gender: str | None,
    entry_age: int,
    insurance_period: int,
    insured_amount: Decimal | int,
) -> ValidationError | None:
    """Checks that need no rate table, in the order they are reported."""
    if product_id <= 0:
        return ValidationError("Product id must be a positive integer", "product_id")
    if gender not in QUOTE_GENDERS:
        return ValidationError("Gender must be M or F", "gender")
    if not MIN_ENTRY_AGE <= entry_age <= MAX_ENTRY_AGE:
        return ValidationError(
            f"Entry age must be between {MIN_ENTRY_AGE} and {MAX_ENTRY_AGE}",
            "entry_age",
        )
    if not MIN_INSURANCE_PERIOD <= insurance_period <= MAX_INSURANCE_PERIOD:
        return ValidationError(
            f"Insurance period must be between {MIN_INSURANCE_PERIOD} "
            f"and {MAX_INSURANCE_PERIOD} years",
            "insurance_period",
        )
    if insured_amount <= 0:
        return ValidationError(
            "Insured amount must be greater than 0", "insured_amount"
        )
    return None


@beartype
class PremiumCalculationService:
    """Quote premiums from the current rate table."""

    def __init__(self, resolver: RateResolver, clock: Clock) -> None:
        """Initialize calculation service."""
        self._resolver = resolver
        self._clock = clock

    async def calculate(
        self,
        product_id: int,
        gender: str | None,
        entry_age: int,
        insurance_period: int,
        insured_amount: Decimal | int,
        as_of: date | None = None,
    ) -> CalculationResult:
        """Validate inputs, resolve the rate and compute annual/monthly premium.

        Invalid input of any kind, a missing gender included, comes back as
        ``Err(ValidationError)``. Integer amounts are taken as exact Decimals.
        """
        invalid = validate_static_inputs(
            product_id, gender, entry_age, insurance_period, insured_amount
        )
        if invalid is not None:
            return Err(invalid)
        amount = Decimal(insured_amount)

        age_range = await self._resolver.valid_age_range(product_id)
        if isinstance(age_range, Err):
            return age_range
        if not age_range.value.contains(entry_age):
            bounds = age_range.value
            return Err(
                ValidationError(
                    f"Entry age is outside the product range "
                    f"({bounds.minimum}-{bounds.maximum})",
                    "entry_age",
                )
            )

        period_range = await self._resolver.valid_period_range(product_id)
        if isinstance(period_range, Err):
            return period_range
        if not period_range.value.contains(insurance_period):
            bounds = period_range.value
            return Err(
                ValidationError(
                    f"Insurance period is outside the product range "
                    f"({bounds.minimum}-{bounds.maximum} years)",
                    "insurance_period",
                )
            )

        effective = as_of if as_of is not None else self._clock.today()
        rate = await self._resolver.resolve(
            product_id, gender, entry_age, insurance_period, effective
        )
        if isinstance(rate, Err):
            return rate

        resolved = rate.value
        total_rate = resolved.base_rate + resolved.loading_rate
        annual_premium = amount * total_rate
        return Ok(
            PremiumCalculation(
                annual_premium=annual_premium,
                monthly_premium=annual_premium / MONTHS_PER_YEAR,
                total_rate=total_rate,
                base_rate=resolved.base_rate,
                loading_rate=resolved.loading_rate,
                rate=resolved,
                insured_amount=amount,
                calculated_at=self._clock.now(),
            )
        )

    async def calculate_grid(
        self,
        product_id: int,
        gender: str,
        ages: Sequence[int],
        periods: Sequence[int],
        insured_amount: Decimal | int,
        as_of: date | None = None,
    ) -> PremiumGrid:
        """Calculate every (age, period) pair; a failing cell keeps its Err."""
        effective = as_of if as_of is not None else self._clock.today()
        by_age: dict[int, dict[int, CalculationResult]] = {}
        for age in ages:
            for period in periods:
                by_age.setdefault(age, {})[period] = await self.calculate(
                    product_id, gender, age, period, insured_amount, effective
                )
        return {gender: by_age}


@beartype
async def calculate_premium(
    store: ContractStore,
    product_id: int,
    gender: str | None,
    entry_age: int,
    insurance_period: int,
    insured_amount: Decimal | int,
    *,
    clock: Clock | None = None,
    as_of: date | None = None,
) -> CalculationResult:
    """One-shot quote for the interactive layer.

    Without an explicit clock the system clock in the configured batch
    timezone decides "today".
    """
    if clock is None:
        clock = SystemClock(get_settings().batch_timezone)
    service = PremiumCalculationService(RateResolver(store), clock)
    result = await service.calculate(
        product_id, gender, entry_age, insurance_period, insured_amount, as_of
    )
    if isinstance(result, Err):
        logger.info("Quote rejected: %s", result.error)
    return result
