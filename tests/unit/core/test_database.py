"""Unit tests for the database wrapper."""

import contextlib
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest

from insurance_batch.core.config import Settings
from insurance_batch.core.database import Database, RecoveryConfig


class FakePool:
    """Pool whose single connection fails a set number of times."""

    def __init__(self, failures: list[Exception]) -> None:
        self.conn = MagicMock()
        self.conn.execute = AsyncMock(side_effect=[*failures, "UPDATE 2"])

    @contextlib.asynccontextmanager
    async def acquire(self, timeout: float | None = None) -> AsyncIterator[MagicMock]:
        yield self.conn


def connected(pool: FakePool, attempts: int = 3) -> Database:
    db = Database(Settings())
    db._pool = pool  # type: ignore[assignment]
    db._recovery_config = RecoveryConfig(
        max_retry_attempts=attempts, retry_delay_seconds=0.0
    )
    return db


class TestExecute:
    """Test statement execution and connection retries."""

    @pytest.mark.asyncio
    async def test_returns_command_tag(self) -> None:
        """A successful statement returns its status tag."""
        db = connected(FakePool([]))

        assert await db.execute("UPDATE contracts SET status = $1", "LAPSED") == (
            "UPDATE 2"
        )

    @pytest.mark.asyncio
    async def test_retries_lost_connection(self) -> None:
        """Connection errors are retried up to the configured attempts."""
        pool = FakePool([OSError("reset"), OSError("reset")])
        db = connected(pool)

        result = await db.execute_with_retry("UPDATE contracts SET status = $1", "X")

        assert result.is_ok()
        assert result.ok_value == "UPDATE 2"
        assert pool.conn.execute.await_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self) -> None:
        """Exhausted retries raise from execute()."""
        db = connected(FakePool([OSError("reset"), OSError("reset")]), attempts=2)

        with pytest.raises(RuntimeError, match="after 2 attempts"):
            await db.execute("UPDATE contracts SET status = $1", "X")

    @pytest.mark.asyncio
    async def test_sql_errors_not_retried(self) -> None:
        """Errors other than lost connections fail immediately."""
        pool = FakePool([ValueError("syntax error")])
        db = connected(pool)

        result = await db.execute_with_retry("UPDATE nowhere")

        assert result.is_err()
        assert pool.conn.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_not_connected(self) -> None:
        """Using the database before connect() is an error."""
        db = Database(Settings())

        with pytest.raises(RuntimeError, match="not connected"):
            await db.fetch("SELECT 1")


class TestLifecycle:
    """Test pool creation and shutdown."""

    @pytest.mark.asyncio
    async def test_connect_uses_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The pool is sized from settings and tagged with the batch timezone."""
        pool = MagicMock()
        pool.close = AsyncMock()
        create_pool = AsyncMock(return_value=pool)
        monkeypatch.setattr(
            "insurance_batch.core.database.asyncpg.create_pool", create_pool
        )
        db = Database(Settings(database_pool_min=3, database_pool_max=6))

        await db.connect()
        await db.connect()

        create_pool.assert_awaited_once()
        kwargs = create_pool.await_args.kwargs
        assert (kwargs["min_size"], kwargs["max_size"]) == (3, 6)
        assert kwargs["server_settings"]["timezone"] == "Asia/Tokyo"
        assert db.is_connected

        await db.disconnect()
        pool.close.assert_awaited_once()
        assert not db.is_connected
