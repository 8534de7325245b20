# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Predicate algebra for set-based reads and writes.

A predicate both evaluates against an in-memory row and compiles to a
parameterised PostgreSQL ``WHERE`` clause, so the batch logic can be written
once and run against either store.

SQL three-valued logic is mirrored in ``matches``: any comparison against a
``NULL`` column is false, only ``IsNull`` matches a missing value.
"""

import re
from collections.abc import Mapping
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from attrs import field, frozen

_COLUMN_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


def _validate_column(instance: Any, attribute: Any, value: str) -> None:
    if not _COLUMN_RE.match(value):
        raise ValueError(f"Invalid column name: {value!r}")


def bind_value(value: Any) -> Any:
    """Convert a Python value into something the database driver accepts."""
    if isinstance(value, Enum):
        return value.value
    return value


def _comparable(left: Any, right: Any) -> tuple[Any, Any]:
    # A bare date against a timestamp compares as midnight, like PostgreSQL.
    if isinstance(left, datetime) and not isinstance(right, datetime):
        if isinstance(right, date):
            right = datetime.combine(right, time.min)
    elif isinstance(right, datetime) and not isinstance(left, datetime):
        if isinstance(left, date):
            left = datetime.combine(left, time.min)
    return bind_value(left), bind_value(right)


class Predicate:
    """Base class for all predicates."""

    def matches(self, row: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def compile(self, params: list[Any]) -> str:
        """Render SQL, appending bind values to params ($n placeholders)."""
        raise NotImplementedError


@frozen
class _Comparison(Predicate):
    column: str = field(validator=_validate_column)
    value: Any = field()

    operator = ""

    def _holds(self, left: Any, right: Any) -> bool:
        raise NotImplementedError

    def matches(self, row: Mapping[str, Any]) -> bool:
        current = row.get(self.column)
        if current is None or self.value is None:
            return False
        left, right = _comparable(current, self.value)
        return self._holds(left, right)

    def compile(self, params: list[Any]) -> str:
        params.append(bind_value(self.value))
        return f"{self.column} {self.operator} ${len(params)}"


@frozen
class Eq(_Comparison):
    """column = value"""

    operator = "="

    def _holds(self, left: Any, right: Any) -> bool:
        return left == right


@frozen
class Ne(_Comparison):
    """column != value (false when the column is NULL)."""

    operator = "!="

    def _holds(self, left: Any, right: Any) -> bool:
        return left != right


@frozen
class Lt(_Comparison):
    """column < value"""

    operator = "<"

    def _holds(self, left: Any, right: Any) -> bool:
        return left < right


@frozen
class Le(_Comparison):
    """column <= value"""

    operator = "<="

    def _holds(self, left: Any, right: Any) -> bool:
        return left <= right


@frozen
class Ge(_Comparison):
    """column >= value"""

    operator = ">="

    def _holds(self, left: Any, right: Any) -> bool:
        return left >= right


@frozen
class In(Predicate):
    """column IN (values)"""

    column: str = field(validator=_validate_column)
    values: tuple[Any, ...] = field(converter=tuple)

    def matches(self, row: Mapping[str, Any]) -> bool:
        current = row.get(self.column)
        if current is None:
            return False
        current = bind_value(current)
        return any(current == bind_value(v) for v in self.values)

    def compile(self, params: list[Any]) -> str:
        if not self.values:
            return "FALSE"
        params.append([bind_value(v) for v in self.values])
        return f"{self.column} = ANY(${len(params)})"


@frozen
class IsNull(Predicate):
    """column IS NULL"""

    column: str = field(validator=_validate_column)

    def matches(self, row: Mapping[str, Any]) -> bool:
        return row.get(self.column) is None

    def compile(self, params: list[Any]) -> str:
        return f"{self.column} IS NULL"


@frozen
class NotNull(Predicate):
    """column IS NOT NULL"""

    column: str = field(validator=_validate_column)

    def matches(self, row: Mapping[str, Any]) -> bool:
        return row.get(self.column) is not None

    def compile(self, params: list[Any]) -> str:
        return f"{self.column} IS NOT NULL"


@frozen
class And(Predicate):
    """All of the given predicates."""

    predicates: tuple[Predicate, ...] = field(converter=tuple)

    def matches(self, row: Mapping[str, Any]) -> bool:
        return all(p.matches(row) for p in self.predicates)

    def compile(self, params: list[Any]) -> str:
        if not self.predicates:
            return "TRUE"
        return "(" + " AND ".join(p.compile(params) for p in self.predicates) + ")"


@frozen
class Or(Predicate):
    """Any of the given predicates."""

    predicates: tuple[Predicate, ...] = field(converter=tuple)

    def matches(self, row: Mapping[str, Any]) -> bool:
        return any(p.matches(row) for p in self.predicates)

    def compile(self, params: list[Any]) -> str:
        if not self.predicates:
            return "FALSE"
        return "(" + " OR ".join(p.compile(params) for p in self.predicates) + ")"


@frozen
class Always(Predicate):
    """Matches every row."""

    def matches(self, row: Mapping[str, Any]) -> bool:
        return True

    def compile(self, params: list[Any]) -> str:
        return "TRUE"


def all_of(*predicates: Predicate) -> And:
    """Shorthand for ``And(predicates)``."""
    return And(predicates)


def any_of(*predicates: Predicate) -> Or:
    """Shorthand for ``Or(predicates)``."""
    return Or(predicates)
