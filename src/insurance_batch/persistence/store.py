# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Narrow persistence interface consumed by the rating engine and batches.

The protocol is **runtime_checkable** so both production stores and test
doubles satisfy it as long as the three methods exist. It intentionally
covers only predicate-scoped reads and writes: every mutation the batch
engine performs is a single atomic ``update_where`` call.
"""

from collections.abc import Mapping, Sequence
from datetime import date
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from beartype import beartype

from ..core.errors import PersistenceError
from ..core.result_types import Result
from .predicates import And, Eq, Ge, IsNull, Le, Or, Predicate


class Entity(str, Enum):
    """Closed set of tables the engine may touch."""

    CONTRACTS = "contracts"
    INSURED_PERSONS = "insured_persons"
    PREMIUM_RATES = "premium_rates"
    DOCUMENT_REQUESTS = "document_requests"


# (column, descending)
OrderBy = Sequence[tuple[str, bool]]


@runtime_checkable
class ContractStore(Protocol):
    """Persistence collaborator for contracts, rates and requests."""

    async def update_where(
        self,
        entity: Entity,
        predicate: Predicate,
        fields: Mapping[str, Any],
    ) -> Result[int, PersistenceError]: ...

    async def query_where(
        self,
        entity: Entity,
        predicate: Predicate,
        order_by: OrderBy = (),
    ) -> Result[list[dict[str, Any]], PersistenceError]: ...

    async def resolve_rate(
        self,
        product_id: int,
        gender: str,
        entry_age: int,
        insurance_period: int,
        as_of: date,
    ) -> Result[list[dict[str, Any]], PersistenceError]: ...


@beartype
def rate_key_predicate(
    product_id: int,
    gender: str,
    entry_age: int,
    insurance_period: int,
    as_of: date,
) -> Predicate:
    """Exact rate key plus ``valid_from <= as_of <= valid_to`` (open-ended ok)."""
    return And(
        (
            Eq("product_id", product_id),
            Eq("gender", gender),
            Eq("entry_age", entry_age),
            Eq("insurance_period", insurance_period),
            Le("valid_from", as_of),
            Or((IsNull("valid_to"), Ge("valid_to", as_of))),
        )
    )


# Most recently effective first; id breaks ties on valid_from.
RATE_SELECTION_ORDER: tuple[tuple[str, bool], ...] = (
    ("valid_from", True),
    ("id", True),
)
