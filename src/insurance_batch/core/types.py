# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Core lightweight protocol interfaces so that production classes and async test mocks both satisfy them.

These protocols are **runtime_checkable** so beartype `isinstance` calls succeed against
`unittest.mock.AsyncMock` as long as the mocked attributes exist. They cover only the
narrow surface required by the PostgreSQL contract store.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DatabaseLike(Protocol):
    """Minimal async database interface used by the PostgreSQL store."""

    async def fetch(self, query: str, *params: Any) -> Any: ...  # noqa: D401,E701

    async def execute(self, query: str, *params: Any) -> Any: ...
