"""Unit tests for the premium maintenance batch."""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from insurance_batch.core.clock import FixedClock
from insurance_batch.core.config import Settings
from insurance_batch.core.errors import PersistenceError
from insurance_batch.core.result_types import Err, Ok
from insurance_batch.persistence.memory_store import MemoryStore
from insurance_batch.persistence.store import Entity
from insurance_batch.services.batch.premium_maintenance import PremiumMaintenanceBatch
from insurance_batch.services.rating.premium_calculator import (
    PremiumCalculationService,
)

from conftest import NOW, TODAY, Seeder

YESTERDAY = date(2024, 5, 31)


@pytest.fixture
def maintenance(
    store: MemoryStore,
    calculator: PremiumCalculationService,
    clock: FixedClock,
    settings: Settings,
) -> PremiumMaintenanceBatch:
    """Maintenance batch over the test store."""
    return PremiumMaintenanceBatch(store, calculator, clock, settings)


class TestRateWindows:
    """Test the set-based rate window steps."""

    @pytest.mark.asyncio
    async def test_expired_windows_pinned_to_yesterday(
        self, maintenance: PremiumMaintenanceBatch, store: MemoryStore, seed: Seeder
    ) -> None:
        """Windows that ended before yesterday are rewritten to end yesterday."""
        ended = seed.rate(valid_from=date(2023, 1, 1), valid_to=date(2024, 5, 15))
        pinned = seed.rate(valid_from=date(2023, 1, 1), valid_to=YESTERDAY)
        seed.rate(valid_from=date(2023, 1, 1), valid_to=TODAY)
        seed.rate()

        result = await maintenance.disable_expired_rates()

        assert isinstance(result, Ok) and result.value == 1
        row = store.get(Entity.PREMIUM_RATES, ended["id"])
        assert row["valid_to"] == YESTERDAY
        assert row["updated_at"] == NOW
        assert store.get(Entity.PREMIUM_RATES, pinned["id"])["updated_at"] is None

    @pytest.mark.asyncio
    async def test_open_windows_activated_today(
        self, maintenance: PremiumMaintenanceBatch, store: MemoryStore, seed: Seeder
    ) -> None:
        """Every window open today gets valid_from = today."""
        open_ended = seed.rate(valid_from=date(2024, 1, 1))
        bounded = seed.rate(valid_from=date(2024, 1, 1), valid_to=date(2024, 12, 31))
        future = seed.rate(valid_from=date(2024, 7, 1))
        expired = seed.rate(valid_from=date(2023, 1, 1), valid_to=YESTERDAY)

        result = await maintenance.activate_new_rates()

        assert isinstance(result, Ok) and result.value == 2
        assert store.get(Entity.PREMIUM_RATES, open_ended["id"])["valid_from"] == TODAY
        assert store.get(Entity.PREMIUM_RATES, bounded["id"])["valid_from"] == TODAY
        assert store.get(Entity.PREMIUM_RATES, future["id"])["valid_from"] == date(
            2024, 7, 1
        )
        assert store.get(Entity.PREMIUM_RATES, expired["id"])["valid_from"] == date(
            2023, 1, 1
        )


class TestContractPremiums:
    """Test per-contract premium recalculation."""

    @pytest.mark.asyncio
    async def test_recalculates_from_primary_insured(
        self, maintenance: PremiumMaintenanceBatch, store: MemoryStore, seed: Seeder
    ) -> None:
        """Premiums follow the rate of the SELF insured person."""
        seed.rate()
        seed.rate(gender="F", entry_age=28, base_rate=Decimal("0.0100"))
        row = seed.contract()
        seed.insured(row["id"], relationship="SPOUSE", gender="F", entry_age=28)
        seed.insured(row["id"])

        result = await maintenance.update_contract_premiums()

        assert isinstance(result, Ok)
        assert result.value.recalculated == 1
        updated = store.get(Entity.CONTRACTS, row["id"])
        assert updated["monthly_premium"] == Decimal("400")
        assert updated["annual_premium"] == Decimal("4800")
        assert updated["updated_at"] == NOW

    @pytest.mark.asyncio
    async def test_current_premium_left_alone(
        self, maintenance: PremiumMaintenanceBatch, store: MemoryStore, seed: Seeder
    ) -> None:
        """A contract already at the computed premium counts as unchanged."""
        seed.rate()
        row = seed.contract(
            monthly_premium=Decimal("400"), annual_premium=Decimal("4800")
        )
        seed.insured(row["id"])

        result = await maintenance.update_contract_premiums()

        assert isinstance(result, Ok)
        assert (result.value.recalculated, result.value.unchanged) == (0, 1)
        assert store.get(Entity.CONTRACTS, row["id"])["updated_at"] is None

    @pytest.mark.asyncio
    async def test_failures_are_isolated(
        self, maintenance: PremiumMaintenanceBatch, store: MemoryStore, seed: Seeder
    ) -> None:
        """Unpriceable contracts are skipped and the rest still update."""
        seed.rate()
        no_insured = seed.contract()
        out_of_range = seed.contract()
        seed.insured(out_of_range["id"], entry_age=99)
        malformed = seed.contract()
        seed.insured(malformed["id"], gender="X")
        priced = seed.contract(status="UNDER_REVIEW")
        seed.insured(priced["id"])
        lapsed = seed.contract(status="LAPSED")
        seed.insured(lapsed["id"])

        result = await maintenance.update_contract_premiums()

        assert isinstance(result, Ok)
        summary = result.value
        assert summary.recalculated == 1
        assert summary.skipped == 3
        assert summary.skipped_contract_ids == [
            no_insured["id"],
            out_of_range["id"],
            malformed["id"],
        ]
        assert store.get(Entity.CONTRACTS, priced["id"])["monthly_premium"] == Decimal(
            "400"
        )
        assert store.get(Entity.CONTRACTS, lapsed["id"])["monthly_premium"] is None


class TestPremiumUpdateCycle:
    """Test the full daily cycle."""

    @pytest.mark.asyncio
    async def test_cycle_summary_and_idempotence(
        self, maintenance: PremiumMaintenanceBatch, seed: Seeder
    ) -> None:
        """A second run on the same day changes nothing."""
        seed.rate(valid_from=date(2023, 1, 1), valid_to=date(2024, 3, 31))
        seed.rate()
        row = seed.contract()
        seed.insured(row["id"])

        first = await maintenance.execute_premium_update()
        second = await maintenance.execute_premium_update()

        assert isinstance(first, Ok)
        assert (first.value.expired_rates, first.value.activated_rates) == (1, 1)
        assert first.value.recalculated == 1
        assert isinstance(second, Ok)
        assert second.value.expired_rates == 0
        assert second.value.activated_rates == 0
        assert second.value.recalculated == 0
        assert second.value.unchanged == 1

    @pytest.mark.asyncio
    async def test_failed_rate_step_aborts(
        self,
        calculator: PremiumCalculationService,
        clock: FixedClock,
        settings: Settings,
    ) -> None:
        """When closing expired windows fails no later step runs."""
        store = MagicMock()
        store.update_where = AsyncMock(
            return_value=Err(PersistenceError("lock timeout", "update premium_rates"))
        )
        store.query_where = AsyncMock()
        maintenance = PremiumMaintenanceBatch(store, calculator, clock, settings)

        result = await maintenance.execute_premium_update()

        assert isinstance(result, Err)
        assert store.update_where.await_count == 1
        store.query_where.assert_not_awaited()


class TestRequestCheck:
    """Test document request monitoring."""

    @pytest.mark.asyncio
    async def test_stale_and_overdue_requests(
        self, maintenance: PremiumMaintenanceBatch, seed: Seeder
    ) -> None:
        """Stale means processing for over a week; overdue means a past follow-up."""
        stale = seed.request(status="PROCESSING", created_at=datetime(2024, 5, 20))
        seed.request(status="PROCESSING", created_at=datetime(2024, 5, 30))
        seed.request(status="NEW", created_at=datetime(2024, 5, 1))
        overdue = seed.request(follow_up_date=YESTERDAY)
        seed.request(status="COMPLETED", follow_up_date=YESTERDAY)
        seed.request(status="CANCELLED", follow_up_date=YESTERDAY)
        seed.request(follow_up_date=TODAY)

        result = await maintenance.check_request_status()

        assert isinstance(result, Ok)
        report = result.value
        assert report.checked_at == NOW
        assert [r.request_id for r in report.stale] == [stale["id"]]
        assert [r.request_id for r in report.overdue_follow_ups] == [overdue["id"]]
        assert report.overdue_follow_ups[0].follow_up_date == YESTERDAY

    @pytest.mark.asyncio
    async def test_manual_execute(
        self, maintenance: PremiumMaintenanceBatch, seed: Seeder
    ) -> None:
        """The manual run returns the premium summary and the request report."""
        seed.request(status="PROCESSING", created_at=datetime(2024, 5, 1))

        result = await maintenance.manual_execute()

        assert isinstance(result, Ok)
        summary, report = result.value
        assert summary.run_date == TODAY
        assert len(report.stale) == 1
