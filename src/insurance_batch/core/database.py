# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Database connection management with asyncpg and connection pooling."""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import Any

import asyncpg
from attrs import field, frozen
from beartype import beartype

from .config import Settings, get_settings
from .logging_utils import get_logger
from .result_types import Err, Ok, Result

logger = get_logger(__name__)


@frozen
class PoolConfig:
    """Immutable pool configuration."""

    min_connections: int = field()
    max_connections: int = field()
    connection_timeout: float = field(default=10.0)
    command_timeout: float = field(default=30.0)
    server_settings: dict[str, str] = field(factory=dict)


@frozen
class RecoveryConfig:
    """Connection recovery configuration."""

    max_retry_attempts: int = field(default=3)
    retry_delay_seconds: float = field(default=1.0)
    exponential_backoff: bool = field(default=True)


class Database:
    """asyncpg pool wrapper used by the PostgreSQL contract store."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize database manager."""
        self._pool: asyncpg.Pool | None = None
        self._settings = settings or get_settings()
        self._recovery_config = RecoveryConfig(
            max_retry_attempts=self._settings.database_retry_attempts
        )

    @beartype
    def _get_pool_config(self) -> PoolConfig:
        """Build pool configuration from settings."""
        return PoolConfig(
            min_connections=self._settings.database_pool_min,
            max_connections=self._settings.database_pool_max,
            connection_timeout=self._settings.database_pool_timeout,
            command_timeout=self._settings.database_command_timeout,
            server_settings={
                "application_name": "insurance_batch",
                "timezone": self._settings.batch_timezone,
            },
        )

    @beartype
    async def connect(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return

        config = self._get_pool_config()
        self._pool = await asyncpg.create_pool(
            self._settings.database_url,
            min_size=config.min_connections,
            max_size=config.max_connections,
            command_timeout=config.command_timeout,
            server_settings=config.server_settings,
        )
        logger.info(
            "Database pool ready (min=%d, max=%d)",
            config.min_connections,
            config.max_connections,
        )

    @beartype
    async def disconnect(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
        self._pool = None

    @contextlib.asynccontextmanager
    async def acquire(
        self, *, timeout: float | None = None
    ) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a pooled connection."""
        if self._pool is None:
            raise RuntimeError("Database not connected")

        timeout = timeout or self._settings.database_pool_timeout
        async with self._pool.acquire(timeout=timeout) as conn:
            yield conn

    @beartype
    async def execute_with_retry(
        self,
        query: str,
        *args: Any,
    ) -> Result[str, str]:
        """Execute a statement, retrying only when the connection was lost."""
        attempts = self._recovery_config.max_retry_attempts
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                async with self.acquire() as conn:
                    status = await conn.execute(query, *args)
                    return Ok(status)
            except (asyncpg.PostgresConnectionError, OSError) as e:
                last_error = e
                if attempt < attempts - 1:
                    delay = self._recovery_config.retry_delay_seconds
                    if self._recovery_config.exponential_backoff:
                        delay *= 2**attempt
                    logger.warning(
                        "Connection error on attempt %d/%d, retrying in %.1fs: %s",
                        attempt + 1,
                        attempts,
                        delay,
                        e,
                    )
                    await asyncio.sleep(delay)
                    continue
            except Exception as e:
                return Err(f"Query execution failed: {str(e)}")

        return Err(f"Connection failed after {attempts} attempts: {str(last_error)}")

    @beartype
    async def execute(self, query: str, *args: Any) -> str:
        """Execute a statement and return the command status tag."""
        result = await self.execute_with_retry(query, *args)
        if result.is_err():
            raise RuntimeError(result.err_value)
        return result.ok_value

    @beartype
    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        """Execute a query and fetch all results."""
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._pool is not None
