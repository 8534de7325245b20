# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Result types for error handling without exceptions."""

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from attrs import frozen
from beartype import beartype

T = TypeVar("T")
E = TypeVar("E")


@frozen
class Ok(Generic[T]):
    """Success result wrapper."""

    value: T

    @beartype
    def is_ok(self) -> bool:
        """Check if result is Ok."""
        return True

    @beartype
    def is_err(self) -> bool:
        """Check if result is Error."""
        return False

    @property
    @beartype
    def ok_value(self) -> T:
        """Get the Ok value."""
        return self.value

    @property
    @beartype
    def err_value(self) -> None:
        """Get the Error value (None for Ok)."""
        return None


@frozen
class Err(Generic[E]):
    """Error result wrapper."""

    error: E

    @beartype
    def is_ok(self) -> bool:
        """Check if result is Ok."""
        return False

    @beartype
    def is_err(self) -> bool:
        """Check if result is Error."""
        return True

    @property
    @beartype
    def ok_value(self) -> None:
        """Get the Ok value (None for Err)."""
        return None

    @property
    @beartype
    def err_value(self) -> E:
        """Get the Error value."""
        return self.error


# Type alias for Result - this is the proper way to define Result[T, E]
if TYPE_CHECKING:
    Result = Ok[T] | Err[E]
else:

    class Result(Generic[T, E]):
        """Generic alias supporting annotations like Result[T, E]."""

        def __class_getitem__(cls, params: Any) -> type[Ok[Any] | Err[Any]]:
            """Support generic type annotations like Result[T, E]."""
            return Ok[Any] | Err[Any]  # type: ignore[return-value]
