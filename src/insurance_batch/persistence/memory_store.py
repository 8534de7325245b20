# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""In-process implementation of the contract store.

Used by the test-suite and for dry runs of the batches. Every method body runs
without awaiting, so each call is atomic with respect to other tasks on the
event loop, which gives the same guarantee as a single SQL statement.
"""

import itertools
from collections.abc import Mapping
from datetime import date
from typing import Any

from beartype import beartype

from ..core.errors import PersistenceError
from ..core.result_types import Ok, Result
from .predicates import Predicate, bind_value
from .store import RATE_SELECTION_ORDER, Entity, OrderBy, rate_key_predicate


def _sort_rows(rows: list[dict[str, Any]], order_by: OrderBy) -> list[dict[str, Any]]:
    # Stable sorts applied from the last key to the first; NULLs sort last.
    for column, descending in reversed(list(order_by)):
        present = [r for r in rows if r.get(column) is not None]
        missing = [r for r in rows if r.get(column) is None]
        present.sort(key=lambda r: bind_value(r[column]), reverse=descending)
        rows = present + missing
    return rows


class MemoryStore:
    """Dictionary-backed store keyed by entity."""

    def __init__(self) -> None:
        self._tables: dict[Entity, list[dict[str, Any]]] = {e: [] for e in Entity}
        self._ids = {e: itertools.count(1) for e in Entity}

    @beartype
    def insert(self, entity: Entity, row: Mapping[str, Any]) -> dict[str, Any]:
        """Add a row, assigning the next id when none is given."""
        stored = dict(row)
        if stored.get("id") is None:
            taken = {r["id"] for r in self._tables[entity]}
            next_id = next(self._ids[entity])
            while next_id in taken:
                next_id = next(self._ids[entity])
            stored["id"] = next_id
        self._tables[entity].append(stored)
        return dict(stored)

    @beartype
    def rows(self, entity: Entity) -> list[dict[str, Any]]:
        """Snapshot of every row of a table."""
        return [dict(r) for r in self._tables[entity]]

    @beartype
    def get(self, entity: Entity, row_id: int) -> dict[str, Any] | None:
        """Snapshot of a single row by id."""
        for row in self._tables[entity]:
            if row["id"] == row_id:
                return dict(row)
        return None

    @beartype
    async def update_where(
        self,
        entity: Entity,
        predicate: Predicate,
        fields: Mapping[str, Any],
    ) -> Result[int, PersistenceError]:
        matched = [row for row in self._tables[entity] if predicate.matches(row)]
        for row in matched:
            row.update(fields)
        return Ok(len(matched))

    @beartype
    async def query_where(
        self,
        entity: Entity,
        predicate: Predicate,
        order_by: OrderBy = (),
    ) -> Result[list[dict[str, Any]], PersistenceError]:
        rows = [dict(row) for row in self._tables[entity] if predicate.matches(row)]
        return Ok(_sort_rows(rows, order_by))

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
