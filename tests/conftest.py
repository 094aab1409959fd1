# tests/conftest.py
"""
Shared fixtures.
"""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, AsyncIterator
from unittest.mock import AsyncMock

import pytest

# Must be set before carrymatch.config is imported
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("RABBITMQ_PASSWORD", "guest")

from carrymatch.core.matching.exceptions import MatchNotFoundError, SourceNotFoundError, StaleMatchError
from carrymatch.core.matching.models import Match
from carrymatch.shared.models.demand_dto import DemandSummary
from carrymatch.shared.models.enums import MatchStatus
from carrymatch.shared.models.journey_dto import JourneySummary


TODAY = date(2025, 6, 1)


# =============================================================================
# CONFIGURATION
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    return project_root / "config" / "config.json"


# =============================================================================
# INFRASTRUCTURE MOCKS
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """DatabaseManager mock."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="UPDATE 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """EventBus mock."""
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=True)
    event_bus.is_connected = True
    return event_bus


# =============================================================================
# DOMAIN FACTORIES
# =============================================================================

def make_demand(**overrides: Any) -> DemandSummary:
    """SF -> NYC, 2 kg of electronics, due in 10 days."""
    data: dict[str, Any] = {
        "id": "d-1",
        "owner_id": "alice",
        "item_type": "Electronics",
        "weight_kg": 2.0,
        "origin_country": "USA",
        "origin_city": "San Francisco",
        "destination_country": "USA",
        "destination_city": "New York",
        "deadline": TODAY + timedelta(days=10),
        "status": "PENDING",
    }
    data.update(overrides)
    return DemandSummary(**data)


def make_journey(**overrides: Any) -> JourneySummary:
    """SF -> NYC with 5 kg spare, departing in 2 days, prefers electronics."""
    data: dict[str, Any] = {
        "id": 101,
        "owner_id": "bob",
        "from_country": "USA",
        "from_city": "San Francisco",
        "to_country": "USA",
        "to_city": "New York",
        "departure_date": TODAY + timedelta(days=2),
        "available_weight_kg": 5.0,
        "preferred_item_types": {"Electronics"},
        "status": "ACTIVE",
    }
    data.update(overrides)
    return JourneySummary(**data)


def make_match(**overrides: Any) -> Match:
    data: dict[str, Any] = {
        "id": 1,
        "demand_id": "d-1",
        "journey_id": 101,
        "demand_owner_id": "alice",
        "journey_owner_id": "bob",
        "status": MatchStatus.PROPOSED,
        "score": 0.9,
        "matched_at": datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
        "updated_at": datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
        "version": 0,
    }
    data.update(overrides)
    return Match(**data)


@pytest.fixture
def demand() -> DemandSummary:
    return make_demand()


@pytest.fixture
def journey() -> JourneySummary:
    return make_journey()


# =============================================================================
# IN-MEMORY COLLABORATORS
# =============================================================================

class FakeMatchLedger:
    """
    In-memory ledger with the same contract as MatchRepository,
    including the active-pair uniqueness and version checks.
    """

    def __init__(self) -> None:
        self.rows: dict[int, Match] = {}
        self._next_id = 1
        self._locks: dict[str, asyncio.Lock] = {}
        self.stale_saves_remaining = 0

    @asynccontextmanager
    async def locked_scope(self, key: str) -> AsyncIterator["FakeMatchLedger"]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            yield self

    async def find_active_by_demand(self, demand_id: str) -> set[int]:
        return {m.journey_id for m in self.rows.values() if m.demand_id == demand_id and m.is_active}

    async def find_active_by_journey(self, journey_id: int) -> set[str]:
        return {m.demand_id for m in self.rows.values() if m.journey_id == journey_id and m.is_active}

    async def create(self, match: Match) -> Match | None:
        for existing in self.rows.values():
            if (existing.demand_id, existing.journey_id) == (match.demand_id, match.journey_id) and existing.is_active:
                return None
        stored = match.model_copy(update={"id": self._next_id, "version": 0})
        self.rows[stored.id] = stored
        self._next_id += 1
        return stored

    async def get(self, match_id: int) -> Match:
        if match_id not in self.rows:
            raise MatchNotFoundError(match_id)
        return self.rows[match_id]

    async def list_by_user(self, user_id: str) -> list[Match]:
        return [m for m in self.rows.values() if user_id in (m.demand_owner_id, m.journey_owner_id)]

    async def list_by_status_and_user(self, status: MatchStatus, user_id: str) -> list[Match]:
        return [m for m in await self.list_by_user(user_id) if m.status == status]

    async def list_by_demand(self, demand_id: str) -> list[Match]:
        return [m for m in self.rows.values() if m.demand_id == demand_id]

    async def list_by_journey(self, journey_id: int) -> list[Match]:
        return [m for m in self.rows.values() if m.journey_id == journey_id]

    async def save(self, match: Match) -> Match:
        current = self.rows[match.id]
        if self.stale_saves_remaining > 0:
            # Simulates another writer bumping the version first
            self.stale_saves_remaining -= 1
            self.rows[match.id] = current.model_copy(update={"version": current.version + 1})
            raise StaleMatchError(match.id, match.version)
        if current.version != match.version:
            raise StaleMatchError(match.id, match.version)
        stored = match.model_copy(update={"version": match.version + 1})
        self.rows[match.id] = stored
        return stored

    def active_pairs(self) -> list[tuple[str, int]]:
        return sorted((m.demand_id, m.journey_id) for m in self.rows.values() if m.is_active)


class FakeDemandSource:
    def __init__(self, *demands: DemandSummary) -> None:
        self.by_id = {d.id: d for d in demands}
        self.failing: set[str] = set()
        self.get_calls: list[str] = []

    def add(self, *demands: DemandSummary) -> None:
        self.by_id.update({d.id: d for d in demands})

    async def get_by_id(self, demand_id: str) -> DemandSummary:
        self.get_calls.append(demand_id)
        if demand_id in self.failing or demand_id not in self.by_id:
            raise SourceNotFoundError("demand", demand_id)
        return self.by_id[demand_id]

    async def search(self, *, status: str | None = None, **filters: Any) -> list[DemandSummary]:
        return [d for d in self.by_id.values() if status is None or d.status == status]


class FakeJourneySource:
    def __init__(self, *journeys: JourneySummary) -> None:
        self.by_id = {j.id: j for j in journeys}
        self.failing: set[int] = set()
        self.get_calls: list[int] = []

    def add(self, *journeys: JourneySummary) -> None:
        self.by_id.update({j.id: j for j in journeys})

    async def get_by_id(self, journey_id: int) -> JourneySummary:
        self.get_calls.append(journey_id)
        if journey_id in self.failing or journey_id not in self.by_id:
            raise SourceNotFoundError("journey", journey_id)
        return self.by_id[journey_id]

    async def list_by_status(self, status: str) -> list[JourneySummary]:
        return [j for j in self.by_id.values() if j.status == status]


@pytest.fixture
def ledger() -> FakeMatchLedger:
    return FakeMatchLedger()


@pytest.fixture
def demand_source() -> FakeDemandSource:
    return FakeDemandSource()


@pytest.fixture
def journey_source() -> FakeJourneySource:
    return FakeJourneySource()


@pytest.fixture
def demand_factory():
    return make_demand


@pytest.fixture
def journey_factory():
    return make_journey


@pytest.fixture
def match_factory():
    return make_match
