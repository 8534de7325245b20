# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Rate resolution: pick the single applicable rate row for a key and date.

A key is ``(product_id, gender, entry_age, insurance_period)``. Several rows
may share a key with different validity windows; among the rows effective on
the as-of date the one with the latest ``valid_from`` wins, and the larger id
breaks a tie on ``valid_from``. The maintenance batch rewrites ``valid_from``
to the activation day, so ties are common in practice.
"""

from collections.abc import Iterable
from datetime import date
from typing import Any

from attrs import field, frozen
from beartype import beartype
from pydantic import ValidationError as PydanticValidationError

from ...core.errors import NotFoundError, PersistenceError
from ...core.logging_utils import get_logger
from ...core.result_types import Err, Ok, Result
from ...models.premium_rate import PremiumRate
from ...persistence.predicates import And, Eq, Ge, IsNull, Le, Or
from ...persistence.store import ContractStore, Entity

logger = get_logger(__name__)

RateTable = dict[str, dict[int, dict[int, PremiumRate]]]


@frozen
class ValueRange:
    """Inclusive integer range of rate-table keys for one product."""

    minimum: int = field()
    maximum: int = field()

    def contains(self, value: int) -> bool:
        return self.minimum <= value <= self.maximum


@beartype
def select_rate(candidates: Iterable[PremiumRate]) -> PremiumRate | None:
    """Apply the tie-break: latest ``valid_from``, then largest id."""
    return max(candidates, key=lambda rate: rate.selection_key, default=None)


def _to_rates(
    rows: list[dict[str, Any]],
) -> Result[list[PremiumRate], PersistenceError]:
    try:
        return Ok([PremiumRate.model_validate(row) for row in rows])
    except PydanticValidationError as e:
        logger.error("Malformed premium_rates row: %s", e)
        return Err(PersistenceError(str(e), operation="load premium_rates"))


@beartype
class RateResolver:
    """Resolves rate rows through the store and applies the selection rule."""

    def __init__(self, store: ContractStore) -> None:
        """Initialize resolver with a contract store."""
        self._store = store

    async def resolve(
        self,
        product_id: int,
        gender: str,
        entry_age: int,
        insurance_period: int,
        as_of: date,
    ) -> Result[PremiumRate, NotFoundError | PersistenceError]:
        """Return the rate row effective on ``as_of`` for the exact key."""
        rows = await self._store.resolve_rate(
            product_id, gender, entry_age, insurance_period, as_of
        )
        if isinstance(rows, Err):
            return rows

        rates = _to_rates(rows.value)
        if isinstance(rates, Err):
            return rates

        selected = select_rate(rates.value)
        if selected is None:
            return Err(
                NotFoundError(
                    f"No premium rate for product {product_id}, gender {gender}, "
                    f"age {entry_age}, period {insurance_period} on {as_of.isoformat()}"
                )
            )
        return Ok(selected)

    async def valid_age_range(
        self, product_id: int
    ) -> Result[ValueRange, NotFoundError | PersistenceError]:
        """Min/max ``entry_age`` across every rate row of the product."""
        return await self._key_range(product_id, "entry_age")

    async def valid_period_range(
        self, product_id: int
    ) -> Result[ValueRange, NotFoundError | PersistenceError]:
        """Min/max ``insurance_period`` across every rate row of the product."""
        return await self._key_range(product_id, "insurance_period")

    async def rate_table(
        self, product_id: int, as_of: date
    ) -> Result[RateTable, PersistenceError]:
        """Every key of the product effective on ``as_of``.

        Keyed gender -> age -> period; each cell holds the row ``resolve``
        would return for that key.
        """
        predicate = And(
            (
                Eq("product_id", product_id),
                Le("valid_from", as_of),
                Or((IsNull("valid_to"), Ge("valid_to", as_of))),
            )
        )
        rows = await self._store.query_where(Entity.PREMIUM_RATES, predicate)
        if isinstance(rows, Err):
            return rows

        rates = _to_rates(rows.value)
        if isinstance(rates, Err):
            return rates

        grouped: dict[tuple[str, int, int], list[PremiumRate]] = {}
        for rate in rates.value:
            key = (rate.gender.value, rate.entry_age, rate.insurance_period)
            grouped.setdefault(key, []).append(rate)

        table: RateTable = {}
        for (gender, age, period), candidates in sorted(grouped.items()):
            selected = select_rate(candidates)
            if selected is not None:
                table.setdefault(gender, {}).setdefault(age, {})[period] = selected
        return Ok(table)

    async def _key_range(
        self, product_id: int, column: str
    ) -> Result[ValueRange, NotFoundError | PersistenceError]:
        rows = await self._store.query_where(
            Entity.PREMIUM_RATES, Eq("product_id", product_id)
        )
        if isinstance(rows, Err):
            return rows

        values = [row[column] for row in rows.value if row.get(column) is not None]
        if not values:
            return Err(
                NotFoundError(f"No premium rates defined for product {product_id}")
            )
        return Ok(ValueRange(minimum=min(values), maximum=max(values)))
