"""Unit tests for rate resolution and its tie-break rule."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from insurance_batch.core.errors import NotFoundError, PersistenceError
from insurance_batch.core.result_types import Err, Ok
from insurance_batch.persistence.memory_store import MemoryStore
from insurance_batch.persistence.store import Entity
from insurance_batch.services.rating.rate_resolution import RateResolver, ValueRange

from conftest import Seeder

AS_OF = date(2024, 6, 1)


class TestResolve:
    """Test single-key resolution."""

    @pytest.mark.asyncio
    async def test_newer_window_wins(
        self, resolver: RateResolver, seed: Seeder
    ) -> None:
        """A 2024 open window beats a 2023 window that still covers the date."""
        seed.rate(
            valid_from=date(2023, 1, 1),
            valid_to=date(2024, 12, 31),
            base_rate=Decimal("0.0050"),
        )
        newer = seed.rate(valid_from=date(2024, 1, 1), base_rate=Decimal("0.0045"))

        result = await resolver.resolve(1, "M", 30, 20, AS_OF)

        assert isinstance(result, Ok)
        assert result.value.id == newer["id"]
        assert result.value.base_rate == Decimal("0.0045")

    @pytest.mark.asyncio
    async def test_equal_valid_from_prefers_larger_id(
        self, resolver: RateResolver, seed: Seeder
    ) -> None:
        """When two rows became effective on the same day the later row wins."""
        seed.rate(valid_from=date(2024, 6, 1))
        later = seed.rate(valid_from=date(2024, 6, 1), loading_rate=Decimal("0.0010"))

        result = await resolver.resolve(1, "M", 30, 20, AS_OF)

        assert isinstance(result, Ok)
        assert result.value.id == later["id"]

    @pytest.mark.asyncio
    async def test_window_bounds_are_inclusive(
        self, resolver: RateResolver, seed: Seeder
    ) -> None:
        """valid_from and valid_to both count as effective days."""
        row = seed.rate(valid_from=date(2024, 5, 1), valid_to=date(2024, 6, 1))

        on_last_day = await resolver.resolve(1, "M", 30, 20, date(2024, 6, 1))
        on_first_day = await resolver.resolve(1, "M", 30, 20, date(2024, 5, 1))
        after = await resolver.resolve(1, "M", 30, 20, date(2024, 6, 2))

        assert isinstance(on_last_day, Ok) and on_last_day.value.id == row["id"]
        assert isinstance(on_first_day, Ok)
        assert isinstance(after, Err)

    @pytest.mark.asyncio
    async def test_future_rate_not_applied(
        self, resolver: RateResolver, seed: Seeder
    ) -> None:
        """A row that starts after the as-of date is ignored."""
        seed.rate(valid_from=date(2024, 7, 1))

        result = await resolver.resolve(1, "M", 30, 20, AS_OF)

        assert isinstance(result, Err)
        assert isinstance(result.error, NotFoundError)
        assert "product 1" in result.error.message

    @pytest.mark.asyncio
    async def test_all_gender_rows_not_matched_by_m(
        self, resolver: RateResolver, seed: Seeder
    ) -> None:
        """Gender matching is exact; an ALL row does not serve an M lookup."""
        seed.rate(gender="ALL")

        result = await resolver.resolve(1, "M", 30, 20, AS_OF)

        assert isinstance(result, Err)

    @pytest.mark.asyncio
    async def test_store_error_is_passed_through(self) -> None:
        """A failing store surfaces as PersistenceError."""
        store = MagicMock()
        store.resolve_rate = AsyncMock(
            return_value=Err(PersistenceError("timeout", operation="query"))
        )

        result = await RateResolver(store).resolve(1, "M", 30, 20, AS_OF)

        assert isinstance(result, Err)
        assert isinstance(result.error, PersistenceError)

    @pytest.mark.asyncio
    async def test_malformed_row_is_persistence_error(
        self, store: MemoryStore, resolver: RateResolver
    ) -> None:
        """A row that fails model validation is reported, not raised."""
        store.insert(
            Entity.PREMIUM_RATES,
            {
                "product_id": 1,
                "gender": "M",
                "entry_age": 30,
                "insurance_period": 20,
                "base_rate": Decimal("-1"),
                "loading_rate": Decimal("0"),
                "valid_from": date(2024, 1, 1),
                "valid_to": None,
            },
        )

        result = await resolver.resolve(1, "M", 30, 20, AS_OF)

        assert isinstance(result, Err)
        assert result.error.operation == "load premium_rates"


class TestRanges:
    """Test product key ranges."""

    @pytest.mark.asyncio
    async def test_ranges_span_all_rows(
        self, resolver: RateResolver, seed: Seeder
    ) -> None:
        """Ranges cover every row of the product, expired ones included."""
        seed.rate(entry_age=20, insurance_period=10)
        seed.rate(
            entry_age=60,
            insurance_period=30,
            valid_from=date(2023, 1, 1),
            valid_to=date(2023, 12, 31),
        )
        seed.rate(product_id=2, entry_age=80, insurance_period=40)

        ages = await resolver.valid_age_range(1)
        periods = await resolver.valid_period_range(1)

        assert isinstance(ages, Ok) and ages.value == ValueRange(20, 60)
        assert isinstance(periods, Ok) and periods.value == ValueRange(10, 30)

    @pytest.mark.asyncio
    async def test_unknown_product(self, resolver: RateResolver) -> None:
        """A product without rows has no range."""
        result = await resolver.valid_age_range(9)

        assert isinstance(result, Err)
        assert result.error.message == "No premium rates defined for product 9"

    def test_value_range_is_inclusive(self) -> None:
        """Both bounds are inside the range."""
        bounds = ValueRange(20, 60)
        assert bounds.contains(20)
        assert bounds.contains(60)
        assert not bounds.contains(61)


class TestRateTable:
    """Test the effective rate table."""

    @pytest.mark.asyncio
    async def test_table_groups_by_gender_age_period(
        self, resolver: RateResolver, seed: Seeder
    ) -> None:
        """Each cell holds the row resolve() would pick."""
        seed.rate(valid_from=date(2023, 1, 1))
        newest = seed.rate(valid_from=date(2024, 1, 1))
        female = seed.rate(gender="F", entry_age=40, insurance_period=10)
        seed.rate(
            gender="F", entry_age=50, insurance_period=10, valid_from=date(2025, 1, 1)
        )

        result = await resolver.rate_table(1, AS_OF)

        assert isinstance(result, Ok)
        table = result.value
        assert set(table) == {"M", "F"}
        assert table["M"][30][20].id == newest["id"]
        assert table["F"][40][10].id == female["id"]
        assert 50 not in table["F"]
