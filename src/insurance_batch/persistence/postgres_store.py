# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""PostgreSQL implementation of the contract store.

This is the only module that renders SQL. Every write is a single
``UPDATE ... WHERE <predicate>`` statement, so concurrent batch runs and
interactive writers converge without application-level locking.
"""

import re
from collections.abc import Mapping
from datetime import date
from typing import Any

from beartype import beartype

from ..core.errors import PersistenceError
from ..core.logging_utils import get_logger
from ..core.result_types import Err, Ok, Result
from ..core.types import DatabaseLike
from .predicates import Predicate, bind_value
from .store import RATE_SELECTION_ORDER, Entity, OrderBy, rate_key_predicate

logger = get_logger(__name__)

_COLUMN_RE = re.compile(r"^[a-z_][a-z0-9_]*$")
_STATUS_COUNT_RE = re.compile(r"^(?:UPDATE|DELETE|INSERT \d+) (\d+)$")


def _column(name: str) -> str:
    if not _COLUMN_RE.match(name):
        raise ValueError(f"Invalid column name: {name!r}")
    return name


@beartype
def build_update(
    entity: Entity, predicate: Predicate, fields: Mapping[str, Any]
) -> tuple[str, list[Any]]:
    """Render ``UPDATE table SET ... WHERE ...`` with positional parameters."""
    if not fields:
        raise ValueError("update_where requires at least one field")

    params: list[Any] = []
    assignments = []
    for name, value in fields.items():
        params.append(bind_value(value))
        assignments.append(f"{_column(name)} = ${len(params)}")

    where = predicate.compile(params)
    query = f"UPDATE {entity.value} SET {', '.join(assignments)} WHERE {where}"
    return query, params


@beartype
def build_select(
    entity: Entity, predicate: Predicate, order_by: OrderBy = ()
) -> tuple[str, list[Any]]:
    """Render ``SELECT * FROM table WHERE ... ORDER BY ...``."""
    params: list[Any] = []
    query = f"SELECT * FROM {entity.value} WHERE {predicate.compile(params)}"
    if order_by:
        ordering = ", ".join(
            f"{_column(column)} {'DESC' if descending else 'ASC'} NULLS LAST"
            for column, descending in order_by
        )
        query = f"{query} ORDER BY {ordering}"
    return query, params


@beartype
def affected_rows(status: str) -> int:
    """Parse the row count out of a command tag such as ``UPDATE 3``."""
    match = _STATUS_COUNT_RE.match(status.strip())
    if not match:
        raise ValueError(f"Unexpected command status: {status!r}")
    return int(match.group(1))


class PostgresStore:
    """Contract store backed by an asyncpg pool."""

    def __init__(self, db: DatabaseLike) -> None:
        """Initialize store with a connected database."""
        self._db = db

    @beartype
    async def update_where(
        self,
        entity: Entity,
        predicate: Predicate,
        fields: Mapping[str, Any],
    ) -> Result[int, PersistenceError]:
        query, params = build_update(entity, predicate, fields)
        try:
            status = await self._db.execute(query, *params)
            return Ok(affected_rows(status))
        except Exception as e:
            logger.error("Update on %s failed: %s", entity.value, e)
            return Err(PersistenceError(str(e), operation=f"update {entity.value}"))

    @beartype
    async def query_where(
        self,
        entity: Entity,
        predicate: Predicate,
        order_by: OrderBy = (),
    ) -> Result[list[dict[str, Any]], PersistenceError]:
        query, params = build_select(entity, predicate, order_by)
        try:
            rows = await self._db.fetch(query, *params)
            return Ok([dict(row) for row in rows])
        except Exception as e:
            logger.error("Query on %s failed: %s", entity.value, e)
            return Err(PersistenceError(str(e), operation=f"query {entity.value}"))

    @beartype
    async def resolve_rate(
        self,
        product_id: int,
        gender: str,
        entry_age: int,
        insurance_period: int,
        as_of: date,
    ) -> Result[list[dict[str, Any]], PersistenceError]:
        predicate = rate_key_predicate(
            product_id, gender, entry_age, insurance_period, as_of
        )
        return await self.query_where(
            Entity.PREMIUM_RATES, predicate, RATE_SELECTION_ORDER
        )
