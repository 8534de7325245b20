# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Typed error values carried inside ``Err`` results.

These are plain values, not exceptions. Calculation callers receive them as
``Err(ValidationError(...))`` and so on; batch jobs log them and move on.
"""

from attrs import field, frozen


@frozen
class ValidationError:
    """Malformed or out-of-range calculation input."""

    message: str = field()
    field_name: str | None = field(default=None)

    def __str__(self) -> str:
        return self.message


@frozen
class NotFoundError:
    """No applicable premium rate exists for the requested key."""

    message: str = field()

    def __str__(self) -> str:
        return self.message


@frozen
class PersistenceError:
    """The store was unreachable or a statement failed."""

    message: str = field()
    operation: str | None = field(default=None)

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


CalculationError = ValidationError | NotFoundError | PersistenceError
