"""Test configuration and shared fixtures.

Every test runs against a ``FixedClock`` pinned to 2024-06-01 10:00 and an
empty ``MemoryStore``; the ``seed`` fixture inserts rows with sensible
defaults so each test only spells out the fields it cares about.
"""

import itertools
from collections.abc import Iterator
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from insurance_batch.core.clock import FixedClock
from insurance_batch.core.config import Settings, clear_settings_cache
from insurance_batch.models.contract import ContractStatus, InsuredRelationship
from insurance_batch.models.document_request import RequestStatus
from insurance_batch.persistence.memory_store import MemoryStore
from insurance_batch.persistence.store import Entity
from insurance_batch.services.rating.premium_calculator import (
    PremiumCalculationService,
)
from insurance_batch.services.rating.rate_resolution import RateResolver

NOW = datetime(2024, 6, 1, 10, 0, 0)
TODAY = NOW.date()


class Seeder:
    """Insert rows into a MemoryStore with defaults for unspecified columns."""

    def __init__(self, store: MemoryStore) -> None:
        self._store = store
        self._request_numbers = itertools.count(1)

    def contract(self, **overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "product_id": 1,
            "customer_id": 1,
            "insured_amount": Decimal("1000000"),
            "monthly_premium": None,
            "annual_premium": None,
            "status": ContractStatus.APPROVED.value,
            "created_at": datetime(2024, 1, 10, 9, 0),
            "last_payment_date": date(2024, 5, 25),
            "maturity_date": date(2044, 1, 10),
            "cancellation_date": None,
            "cancellation_reason": None,
            "lapse_date": None,
            "updated_at": None,
        }
        row.update(overrides)
        return self._store.insert(Entity.CONTRACTS, row)

    def insured(self, contract_id: int, **overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "contract_id": contract_id,
            "relationship": InsuredRelationship.SELF.value,
            "gender": "M",
            "entry_age": 30,
            "insurance_period": 20,
        }
        row.update(overrides)
        return self._store.insert(Entity.INSURED_PERSONS, row)

    def rate(self, **overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "product_id": 1,
            "gender": "M",
            "entry_age": 30,
            "insurance_period": 20,
            "base_rate": Decimal("0.0040"),
            "loading_rate": Decimal("0.0008"),
            "valid_from": date(2024, 1, 1),
            "valid_to": None,
            "updated_at": None,
        }
        row.update(overrides)
        return self._store.insert(Entity.PREMIUM_RATES, row)

    def request(self, **overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "request_number": f"REQ-{next(self._request_numbers):05d}",
            "status": RequestStatus.NEW.value,
            "created_at": datetime(2024, 5, 30, 9, 0),
            "follow_up_date": None,
            "completed_date": None,
        }
        row.update(overrides)
        return self._store.insert(Entity.DOCUMENT_REQUESTS, row)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep the settings cache and environment from leaking between tests."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Default settings (30/60/30/15/7 day thresholds)."""
    return Settings()


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2024-06-01 10:00."""
    return FixedClock(NOW)


@pytest.fixture
def store() -> MemoryStore:
    """Empty in-memory contract store."""
    return MemoryStore()


@pytest.fixture
def seed(store: MemoryStore) -> Seeder:
    """Row factory bound to the test's store."""
    return Seeder(store)


@pytest.fixture
def resolver(store: MemoryStore) -> RateResolver:
    """Rate resolver over the test's store."""
    return RateResolver(store)


@pytest.fixture
def calculator(resolver: RateResolver, clock: FixedClock) -> PremiumCalculationService:
    """Premium calculation service over the test's store and clock."""
    return PremiumCalculationService(resolver, clock)


@pytest.fixture
def mock_db() -> MagicMock:
    """Create mock database connection for testing."""
    db = MagicMock()
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="UPDATE 0")
    return db
